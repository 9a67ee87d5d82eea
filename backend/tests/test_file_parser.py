"""Tests for turning uploaded bytes into raw rows."""
from datetime import datetime
from types import SimpleNamespace

import pytest

from tradeintel.services.file_parser import (
    EXCEL_EPOCH_1900,
    EXCEL_EPOCH_1904,
    _book_epoch,
    infer_file_type,
    read_rows,
)


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("exports.xlsx", "xlsx"),
        ("EXPORTS.XLS", "xlsx"),
        ("macro.xlsm", "xlsx"),
        ("exports.csv", "csv"),
        ("notes.pdf", "pdf"),
    ],
)
def test_infer_file_type(filename, expected):
    assert infer_file_type(filename) == expected


def test_read_xlsx_keeps_column_order_and_blanks(xlsx_bytes):
    content = xlsx_bytes(
        [
            {"SB No": "SB1", "Exporter": "acme", "FOB": 1200.5},
            {"SB No": "SB2", "Exporter": None, "FOB": 300},
        ]
    )
    parsed = read_rows(content, "exports.xlsx")

    assert parsed.sheet_name == "Sheet1"
    assert parsed.date_epoch == EXCEL_EPOCH_1900
    assert parsed.columns == ["SB No", "Exporter", "FOB"]
    assert list(parsed.rows[0].keys()) == ["SB No", "Exporter", "FOB"]
    assert parsed.rows[0] == {"SB No": "SB1", "Exporter": "acme", "FOB": 1200.5}
    assert parsed.rows[1]["Exporter"] is None


def test_read_xlsx_drops_fully_empty_lines(xlsx_bytes):
    content = xlsx_bytes(
        [
            {"SB No": "SB1", "FOB": 1},
            {"SB No": None, "FOB": None},
            {"SB No": "SB3", "FOB": 3},
        ]
    )
    parsed = read_rows(content, "exports.xlsx")
    assert [row["SB No"] for row in parsed.rows] == ["SB1", "SB3"]


def test_read_xlsx_header_only(xlsx_bytes):
    parsed = read_rows(xlsx_bytes([], columns=["SB No", "Exporter"]), "exports.xlsx")
    assert parsed.rows == []
    assert parsed.columns == ["SB No", "Exporter"]


def test_read_csv_with_plain_python_values():
    parsed = read_rows(b"SB No,Exporter,FOB\n1001,acme,12.5\n1002,,7\n", "exports.csv")

    assert parsed.sheet_name is None
    first, second = parsed.rows
    assert first == {"SB No": 1001, "Exporter": "acme", "FOB": 12.5}
    assert type(first["SB No"]) is int
    assert second["Exporter"] is None


def test_read_csv_falls_back_to_latin1():
    parsed = read_rows("SB No,Exporter\nSB1,Café Ltd\n".encode("latin-1"), "exports.csv")
    assert parsed.rows[0]["Exporter"] == "Café Ltd"


def test_empty_upload_is_rejected():
    with pytest.raises(ValueError, match="empty"):
        read_rows(b"", "exports.xlsx")


def test_unsupported_extension_is_rejected():
    with pytest.raises(ValueError, match="Unsupported file type: pdf"):
        read_rows(b"%PDF-1.4", "exports.pdf")


def test_corrupt_workbook_raises_value_error():
    with pytest.raises(ValueError):
        read_rows(b"this is not a zip archive", "exports.xlsx")


def test_book_epoch_detection():
    openpyxl_1904 = SimpleNamespace(book=SimpleNamespace(epoch=datetime(1904, 1, 1)))
    openpyxl_1900 = SimpleNamespace(book=SimpleNamespace(epoch=datetime(1899, 12, 30)))
    xlrd_1904 = SimpleNamespace(book=SimpleNamespace(datemode=1))
    xlrd_1900 = SimpleNamespace(book=SimpleNamespace(datemode=0))

    assert _book_epoch(openpyxl_1904) == EXCEL_EPOCH_1904
    assert _book_epoch(openpyxl_1900) == EXCEL_EPOCH_1900
    assert _book_epoch(xlrd_1904) == EXCEL_EPOCH_1904
    assert _book_epoch(xlrd_1900) == EXCEL_EPOCH_1900
