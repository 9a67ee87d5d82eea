"""
Spreadsheet parsing - turns uploaded bytes into raw rows.
"""
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from tradeintel.services.column_resolver import RawRow

logger = logging.getLogger(__name__)

EXCEL_EPOCH_1900 = "1900"
EXCEL_EPOCH_1904 = "1904"


@dataclass
class ParsedSheet:
    rows: List[RawRow] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    sheet_name: Optional[str] = None
    date_epoch: str = EXCEL_EPOCH_1900


def infer_file_type(filename: str) -> str:
    """Infer file type from extension."""
    ext = Path(filename).suffix.lower()
    if ext in (".xlsx", ".xlsm", ".xls"):
        return "xlsx"
    elif ext == ".csv":
        return "csv"
    else:
        return ext.lstrip(".")


def _clean_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, pd.Timestamp)):
        return value
    if pd.isna(value):
        return None
    if hasattr(value, "item"):
        # numpy scalars -> plain Python numbers
        return value.item()
    return value


def _book_epoch(excel_file: pd.ExcelFile) -> str:
    book = excel_file.book
    # openpyxl exposes the epoch as a datetime, xlrd as a datemode flag
    epoch = getattr(book, "epoch", None)
    if epoch is not None:
        return EXCEL_EPOCH_1904 if epoch.year == 1904 else EXCEL_EPOCH_1900
    return EXCEL_EPOCH_1904 if getattr(book, "datemode", 0) == 1 else EXCEL_EPOCH_1900


def _dataframe_to_rows(df: pd.DataFrame) -> List[RawRow]:
    df = df.dropna(how="all")
    columns = [str(col) for col in df.columns]
    rows: List[RawRow] = []
    for values in df.itertuples(index=False, name=None):
        row: Dict[str, Any] = {}
        for header, value in zip(columns, values):
            row[header] = _clean_value(value)
        rows.append(row)
    return rows


def _read_csv(content: bytes) -> pd.DataFrame:
    # Try different encodings
    for encoding in ["utf-8", "latin-1", "cp1252"]:
        try:
            return pd.read_csv(io.BytesIO(content), encoding=encoding)
        except UnicodeDecodeError:
            continue
    raise ValueError("Could not decode CSV file")


def read_rows(content: bytes, filename: str) -> ParsedSheet:
    """
    Parse an uploaded spreadsheet into raw rows.

    Only the first sheet of a workbook is read. Header keys are kept in
    left-to-right column order; NaN/NaT cells become ``None``.
    """
    if not content:
        raise ValueError("Uploaded file is empty")

    file_type = infer_file_type(filename)
    parsed = ParsedSheet()
    try:
        if file_type == "xlsx":
            excel_file = pd.ExcelFile(io.BytesIO(content))
            parsed.sheet_name = str(excel_file.sheet_names[0])
            parsed.date_epoch = _book_epoch(excel_file)
            df = excel_file.parse(excel_file.sheet_names[0])
        elif file_type == "csv":
            df = _read_csv(content)
        else:
            raise ValueError(f"Unsupported file type: {file_type}")
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Could not read spreadsheet {filename}: {e}") from e

    parsed.columns = [str(col) for col in df.columns]
    parsed.rows = _dataframe_to_rows(df)

    logger.info(
        "Parsed %d rows from %s (sheet=%s, columns=%d, epoch=%s)",
        len(parsed.rows),
        filename,
        parsed.sheet_name,
        len(parsed.columns),
        parsed.date_epoch,
    )
    return parsed
