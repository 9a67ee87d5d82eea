"""
Data normalization service - converts raw spreadsheet rows to export record fields.
"""
import base64
import hashlib
import re
import secrets
import string
import warnings
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

import pandas as pd
from openpyxl.utils.datetime import MAC_EPOCH, WINDOWS_EPOCH, from_excel

from tradeintel.services.column_resolver import RawRow, RawValue, is_blank, resolve

IDENTITY_RANDOM = "random"
IDENTITY_DIGEST = "digest"

DEFAULT_UNIT = "KGS"
DEFAULT_CURRENCY = "USD"
MIN_VALID_YEAR = 1900

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_DATE_PARTS = re.compile(r"[-/]")
# Day, month and year all present: "21-01-2024", "21 Jan 2024", "Jan 21, 2024"
_FULL_DATE = re.compile(
    r"\d{1,4}[-/. ]+(\d{1,2}|[A-Za-z]{3,})\.?[-/., ]+\d{2,4}"
    r"|[A-Za-z]{3,}\.?\s+\d{1,2},?\s+\d{4}"
)
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def as_text(value: RawValue) -> str:
    """Stringify a raw cell, dropping the ``.0`` pandas adds to integer columns."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def safe_decimal(val: RawValue, default: Decimal = Decimal("0")) -> Decimal:
    """Parse a quantity-like value; anything unparseable becomes ``default``."""
    if is_blank(val):
        return default
    try:
        result = Decimal(as_text(val) if not isinstance(val, Decimal) else val)
    except (InvalidOperation, ValueError, TypeError):
        return default
    return result if result.is_finite() else default


def parse_fob(val: RawValue) -> Decimal:
    """
    Parse an FOB amount.

    Handles formats like "$1,200.50" or "USD 3,400" by keeping only digits,
    dots and minus signs before parsing.
    """
    if is_blank(val):
        return Decimal("0")
    return safe_decimal(_NON_NUMERIC.sub("", as_text(val)))


def format_decimal(value: Decimal) -> str:
    """Render without exponent or trailing zeros: Decimal("1200.50") -> "1200.5"."""
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def decode_serial_date(serial: Any, epoch: str = "1900") -> Optional[date]:
    """Decode a spreadsheet date serial using the workbook's epoch convention."""
    base = MAC_EPOCH if epoch == "1904" else WINDOWS_EPOCH
    try:
        serial = float(serial)
        # serials below 1 are time-of-day fractions with no calendar day
        if serial < 1:
            return None
        decoded = from_excel(serial, epoch=base)
    except (OverflowError, ValueError, TypeError):
        return None
    if isinstance(decoded, datetime):
        return decoded.date()
    return decoded if isinstance(decoded, date) else None


def _parse_date_string(text: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    # pandas fills missing parts from today, so "14:30" would become a date
    if not _FULL_DATE.search(text):
        return None

    try:
        with warnings.catch_warnings():
            # pandas warns per call when it falls back to dateutil
            warnings.simplefilter("ignore", UserWarning)
            parsed = pd.to_datetime(text, dayfirst=True)
        if not pd.isna(parsed):
            return parsed.date()
    except (ValueError, TypeError, OverflowError):
        pass

    # DD-MM-YYYY or DD/MM/YYYY
    parts = _DATE_PARTS.split(text)
    if len(parts) == 3:
        try:
            day, month, year = (int(p.strip()) for p in parts)
            return date(year, month, day)
        except ValueError:
            return None
    return None


def parse_shipment_date(value: RawValue, epoch: str = "1900") -> Tuple[Optional[date], Optional[str]]:
    """
    Resolve a raw date cell to ``(shipment_date, "YYYY-MM")``.

    Numbers are spreadsheet serials, date objects are taken as-is, strings
    are parsed day-first. Any failure yields ``(None, None)``.
    """
    if is_blank(value):
        return None, None

    if _is_number(value):
        parsed = decode_serial_date(value, epoch)
    elif isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        parsed = _parse_date_string(str(value).strip())
        # two-digit fragments parse to year 0024 and the like
        if parsed is not None and parsed.year <= MIN_VALID_YEAR:
            parsed = None

    if parsed is None:
        return None, None
    return parsed, f"{parsed.year:04d}-{parsed.month:02d}"


def identity_composite(
    exporter: str,
    consignee: str,
    product: str,
    date_value: RawValue,
    fob_value: Decimal,
) -> Optional[str]:
    """
    Composite used to key rows without a declaration id.

    Returns ``None`` when every part is empty and FOB is zero: such a row
    cannot be told apart from any other blank line.
    """
    raw_date = as_text(date_value)
    if not (exporter or consignee or product or raw_date) and fob_value == 0:
        return None
    return "-".join([exporter, consignee, product, raw_date, format_decimal(fob_value)])


def synthesize_identity(composite: str, strategy: str = IDENTITY_RANDOM) -> str:
    encoded = composite.encode("utf-8")
    if strategy == IDENTITY_DIGEST:
        return f"AUTO-{hashlib.sha256(encoded).hexdigest()[:32]}"
    prefix = base64.b64encode(encoded).decode("ascii")[:20]
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"AUTO-{prefix}-{suffix}"


def normalize_row(
    row: RawRow,
    aliases: Mapping[str, List[str]],
    category: str,
    upload_batch: str,
    reserved: Optional[Mapping[str, Set[str]]] = None,
    identity_strategy: str = IDENTITY_RANDOM,
    date_epoch: str = "1900",
) -> Dict[str, Any]:
    """
    Normalize a single spreadsheet row to export record fields.

    Args:
        row: raw row, header -> cell value
        aliases: canonical field -> ordered header aliases
        category: category tag supplied by the uploader
        upload_batch: batch tag shared by every row of one import
        reserved: canonical field -> normalized headers owned by other fields
        identity_strategy: "random" or "digest" for rows without a declaration id
        date_epoch: "1900" or "1904", the workbook's serial date convention

    Returns:
        dict with normalized fields. ``declaration_id`` is ``None`` when the
        row has no usable identity.
    """
    reserved = reserved or {}

    def get_value(field_name: str) -> RawValue:
        return resolve(row, aliases.get(field_name, []), reserved.get(field_name))

    def get_text(field_name: str, default: str = "") -> str:
        return as_text(get_value(field_name)) or default

    exporter = get_text("exporter_name")
    consignee = get_text("consignee_name")
    product = get_text("product_description")

    quantity = safe_decimal(get_value("quantity"))
    fob_value = parse_fob(get_value("fob_value"))

    date_value = get_value("shipment_date")
    shipment_date, month_year = parse_shipment_date(date_value, date_epoch)

    declaration_id = get_text("declaration_id")
    if not declaration_id:
        composite = identity_composite(exporter, consignee, product, date_value, fob_value)
        declaration_id = synthesize_identity(composite, identity_strategy) if composite else None

    return {
        "declaration_id": declaration_id,
        "exporter_name": exporter.upper(),
        "consignee_name": consignee.upper(),
        "product_description": product,
        "category": category,
        "hs_code": get_text("hs_code"),
        "quantity": quantity,
        "unit": get_text("unit", DEFAULT_UNIT),
        "fob_value": fob_value,
        "fob_currency": get_text("currency", DEFAULT_CURRENCY),
        "port_of_loading": get_text("port_of_loading"),
        "port_of_discharge": get_text("port_of_discharge"),
        "country_of_destination": get_text("country_of_destination"),
        "shipment_date": shipment_date,
        "month_year": month_year,
        "upload_batch": upload_batch,
    }
