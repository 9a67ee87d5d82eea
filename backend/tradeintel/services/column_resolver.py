"""
Flexible column resolution for customs spreadsheet rows.

Shipping-bill exports from different data vendors name the same column in
many ways ("SB No", "Shipping Bill No", "DECLARATION_ID"). ``resolve`` picks
the value for one canonical field out of a raw row, trying the aliases in
priority order:

1. exact header match
2. normalized header match (case, whitespace, ``_`` and ``-`` ignored)
3. substring match in either direction on the normalized forms

The first non-empty value wins. Only ``None``, NaN/NaT and whitespace-only
strings count as empty; ``0`` and ``"0"`` are real values.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

from tradeintel.config.mapping_loader import get_alias_overrides

logger = logging.getLogger(__name__)

RawValue = Union[str, int, float, Decimal, date, datetime, None]
RawRow = Mapping[str, RawValue]

EMPTY = ""

_SEPARATORS = re.compile(r"[\s_-]+")


# Canonical fields, their semantic type and header aliases (most specific first)
FIELD_TYPES: Dict[str, str] = {
    "declaration_id": "string",
    "exporter_name": "string",
    "consignee_name": "string",
    "product_description": "string",
    "hs_code": "string",
    "quantity": "decimal",
    "unit": "string",
    "fob_value": "decimal",
    "currency": "string",
    "port_of_loading": "string",
    "port_of_discharge": "string",
    "country_of_destination": "string",
    "shipment_date": "date",
}

FIELD_ALIASES: Dict[str, List[str]] = {
    "declaration_id": [
        "Declaration ID", "DECLARATION_ID", "declaration_id", "Dec ID",
        "Declaration No", "DECLARATION_NO", "declaration_no", "Declaration_No",
        "DeclarationNo", "DECLARATIONNO", "Dec No", "DEC_NO", "DecNo",
        "SB No", "SB_No", "SB NO", "SB_NO", "SBNO", "Sb No",
        "Shipping Bill No", "SHIPPING_BILL_NO", "Shipping Bill Number",
        "Bill No", "BILL_NO", "Bill Number", "Reference No", "Ref No",
        "Invoice No", "INVOICE_NO", "Invoice Number", "ID", "Sr No", "SrNo",
        "S.No", "SNO", "Record ID", "RECORD_ID", "Unique ID",
    ],
    "exporter_name": [
        "Exporter Name", "EXPORTER_NAME", "exporter_name", "Exporter",
        "EXPORTER", "Indian Exporter", "INDIAN_EXPORTER", "Shipper",
        "SHIPPER", "Shipper Name", "Seller", "SELLER", "Seller Name",
        "Company", "Company Name", "COMPANY_NAME", "Supplier", "SUPPLIER",
    ],
    "consignee_name": [
        "Consignee Name", "CONSIGNEE_NAME", "consignee_name", "Consignee",
        "CONSIGNEE", "Buyer", "BUYER", "Buyer Name", "BUYER_NAME",
        "Foreign Buyer", "FOREIGN_BUYER", "Importer", "IMPORTER",
        "Importer Name", "Customer", "CUSTOMER", "Customer Name",
        # common misspelling in vendor exports
        "Consinee Name", "CONSINEE_NAME", "Consinee", "CONSINEE",
    ],
    "product_description": [
        "Product Description", "PRODUCT_DESCRIPTION", "product_description",
        "Product", "PRODUCT", "Item", "ITEM", "Item Description",
        "ITEM_DESCRIPTION", "Description", "DESCRIPTION", "Goods",
        "GOODS", "Goods Description", "GOODS_DESCRIPTION", "Goods_Description",
        "Product Name", "PRODUCT_NAME", "Commodity", "COMMODITY",
        "HS Description", "Item Name", "ItemDescription",
    ],
    "hs_code": [
        "HS Code", "HS_CODE", "hs_code", "HSCode", "HSCODE", "HS",
        "ITC Code", "ITC_CODE", "ITCCode", "ITC HS", "ITC_HS",
        "Tariff Code", "TARIFF_CODE", "Chapter", "CHAPTER",
    ],
    "quantity": [
        "Quantity", "QUANTITY", "quantity", "Qty", "QTY", "qty",
        "Unit Quantity", "UNIT_QUANTITY", "Net Quantity", "NET_QUANTITY",
        "Weight", "WEIGHT", "Net Weight", "NET_WEIGHT", "Gross Weight",
    ],
    "unit": [
        "Unit", "UNIT", "unit", "UQC", "UOM", "Unit of Measure",
        "UNIT_OF_MEASURE", "Quantity Unit", "QUANTITY_UNIT",
    ],
    "fob_value": [
        "FOB Value", "FOB_VALUE", "fob_value", "FOB", "Fob",
        "FOB USD", "FOB_USD", "Fob Usd", "FOB Usd", "Fob USD",
        "FOB INR", "FOB_INR", "Fob Inr", "Value",
        "VALUE", "Invoice Value", "INVOICE_VALUE", "Total Value",
        "TOTAL_VALUE", "Amount", "AMOUNT", "Price", "PRICE",
        "Value USD", "Value INR", "FOB (USD)", "FOB (INR)",
    ],
    "currency": [
        "Currency", "CURRENCY", "currency", "Curr", "CURR",
        "Currency Code", "CURRENCY_CODE",
    ],
    "port_of_loading": [
        "Port of Loading", "PORT_OF_LOADING", "port_of_loading",
        "Indian Port", "INDIAN_PORT", "Loading Port", "LOADING_PORT",
        "Port", "PORT", "Origin Port", "ORIGIN_PORT", "From Port",
        "Departure Port", "DEPARTURE_PORT", "POL", "Port Code",
    ],
    "port_of_discharge": [
        "Port of Discharge", "PORT_OF_DISCHARGE", "port_of_discharge",
        "Foreign Port", "FOREIGN_PORT", "Discharge Port", "DISCHARGE_PORT",
        "Destination Port", "DESTINATION_PORT", "To Port", "POD",
        "Arrival Port", "ARRIVAL_PORT", "Final Port",
    ],
    "country_of_destination": [
        "Country", "COUNTRY", "country", "Destination Country",
        "DESTINATION_COUNTRY", "Country of Destination", "COUNTRY_OF_DESTINATION",
        "Destination", "DESTINATION", "Foreign Country", "FOREIGN_COUNTRY",
        "Importing Country", "IMPORTING_COUNTRY", "To Country",
    ],
    "shipment_date": [
        "Shipment Date", "SHIPMENT_DATE", "shipment_date", "Date", "DATE",
        "SB Date", "SB_DATE", "Shipping Date", "SHIPPING_DATE",
        "Bill Date", "BILL_DATE", "Export Date", "EXPORT_DATE",
        "Invoice Date", "INVOICE_DATE", "Dispatch Date", "DISPATCH_DATE",
    ],
}


def normalize_header(value: str) -> str:
    """Lowercase and drop whitespace, underscores and hyphens."""
    return _SEPARATORS.sub("", str(value).lower())


def is_blank(value: RawValue) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    # pandas.NaT stringifies to "NaT" but compares unequal to itself
    if value != value:
        return True
    return str(value).strip() == ""


def _build_index(row: RawRow) -> Dict[str, List[str]]:
    """Normalized header -> original headers in left-to-right column order."""
    index: Dict[str, List[str]] = {}
    for header in row.keys():
        normalized = normalize_header(header)
        if normalized:
            index.setdefault(normalized, []).append(header)
    return index


def _first_present(row: RawRow, headers: Iterable[str]) -> Optional[str]:
    for header in headers:
        if not is_blank(row[header]):
            return header
    return None


def resolve(
    row: RawRow,
    aliases: Iterable[str],
    reserved: Optional[Set[str]] = None,
) -> RawValue:
    """
    Return the best-matching raw value for ``aliases`` in ``row``.

    ``reserved`` holds normalized headers that belong to another canonical
    field; they are ignored by the substring pass only. Returns ``""`` when
    nothing matches.
    """
    aliases = list(aliases)

    for alias in aliases:
        if alias in row and not is_blank(row[alias]):
            return row[alias]

    index = _build_index(row)
    for alias in aliases:
        header = _first_present(row, index.get(normalize_header(alias), []))
        if header is not None:
            return row[header]

    reserved = reserved or set()
    for alias in aliases:
        wanted = normalize_header(alias)
        if not wanted:
            continue
        for normalized, headers in index.items():
            if normalized in reserved:
                continue
            if normalized in wanted or wanted in normalized:
                header = _first_present(row, headers)
                if header is not None:
                    return row[header]

    return EMPTY


def get_field_aliases() -> Dict[str, List[str]]:
    """Built-in aliases with configured site aliases tried first."""
    overrides = get_alias_overrides()
    for unknown in sorted(set(overrides) - set(FIELD_TYPES)):
        logger.warning("Ignoring aliases for unknown field %r in column mappings", unknown)

    table: Dict[str, List[str]] = {}
    for field_name, builtin in FIELD_ALIASES.items():
        merged: List[str] = []
        for alias in overrides.get(field_name, []) + builtin:
            if alias not in merged:
                merged.append(alias)
        table[field_name] = merged
    return table


def reserved_headers(
    headers: Iterable[str],
    field_name: str,
    alias_table: Mapping[str, List[str]],
) -> Set[str]:
    """
    Normalized headers that name some other canonical field outright.

    Keeps the loose substring pass for ``field_name`` from grabbing, say, a
    "Port of Discharge" column through the bare "Port" alias of
    ``port_of_loading``.
    """
    own = {normalize_header(a) for a in alias_table.get(field_name, [])}
    others: Set[str] = set()
    for other_field, aliases in alias_table.items():
        if other_field == field_name:
            continue
        others.update(normalize_header(a) for a in aliases)

    reserved = set()
    for header in headers:
        normalized = normalize_header(header)
        if normalized in others and normalized not in own:
            reserved.add(normalized)
    return reserved
