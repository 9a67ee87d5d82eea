"""Tests for flexible header matching."""
import math

import pytest

from tradeintel.config.mapping_loader import load_mapping_config
from tradeintel.services.column_resolver import (
    FIELD_ALIASES,
    FIELD_TYPES,
    get_field_aliases,
    is_blank,
    normalize_header,
    reserved_headers,
    resolve,
)


def test_normalize_header_strips_case_and_separators():
    assert normalize_header("SB_No") == "sbno"
    assert normalize_header("  Port of-Loading ") == "portofloading"
    assert normalize_header("FOB (USD)") == "fob(usd)"


def test_exact_match_wins_over_other_candidates():
    row = {"port_of_loading": "MUNDRA", "Port of Loading": "JNPT MUMBAI", "Port": "CHENNAI"}
    assert resolve(row, ["Port of Loading", "port_of_loading", "Port"]) == "JNPT MUMBAI"


def test_alias_priority_beats_column_order():
    row = {"Shipper": "SECOND CHOICE", "Exporter Name": "FIRST CHOICE"}
    assert resolve(row, ["Exporter Name", "Shipper"]) == "FIRST CHOICE"


def test_normalized_match():
    row = {"sb-no": "SB1001", "Exporter": "ACME"}
    assert resolve(row, ["SB No"]) == "SB1001"


def test_substring_match_as_last_resort():
    row = {"FOB Value (USD)": "1,000"}
    assert resolve(row, ["FOB Value"]) == "1,000"


def test_exact_and_normalized_preferred_over_substring():
    # "Port" would substring-match both columns; the exact alias must win
    row = {"Port of Discharge": "DUBAI", "PORT": "JNPT"}
    assert resolve(row, ["Port of Loading", "PORT", "Port"]) == "JNPT"


@pytest.mark.parametrize("value", [0, "0", 0.0])
def test_zero_is_a_value(value):
    assert resolve({"Qty": value}, ["Qty"]) == value


@pytest.mark.parametrize("blank", [None, "", "   ", float("nan")])
def test_blank_values_fall_through_to_next_alias(blank):
    row = {"Exporter": blank, "Shipper": "ACME"}
    assert resolve(row, ["Exporter", "Shipper"]) == "ACME"


def test_no_match_returns_empty_string():
    assert resolve({"Remarks": "fragile"}, ["Consignee"]) == ""


def test_port_of_loading_alias_does_not_cross_match_discharge():
    assert resolve({"Port of Discharge": "DUBAI"}, ["Port of Loading"]) == ""


def test_reserved_headers_keep_loose_aliases_off_other_fields():
    row = {"Port of Discharge": "DUBAI"}
    loading = FIELD_ALIASES["port_of_loading"]

    # The bare "Port" alias substring-matches without the reservation
    assert resolve(row, loading) == "DUBAI"

    reserved = reserved_headers(row.keys(), "port_of_loading", FIELD_ALIASES)
    assert reserved == {"portofdischarge"}
    assert resolve(row, loading, reserved) == ""
    # Discharge still finds its own column
    discharge_reserved = reserved_headers(row.keys(), "port_of_discharge", FIELD_ALIASES)
    assert resolve(row, FIELD_ALIASES["port_of_discharge"], discharge_reserved) == "DUBAI"


def test_unit_column_is_not_read_as_quantity():
    row = {"Unit": "KGS"}
    reserved = reserved_headers(row.keys(), "quantity", FIELD_ALIASES)
    assert resolve(row, FIELD_ALIASES["quantity"], reserved) == ""


def test_colliding_headers_use_first_non_empty_column():
    row = {"SB-No": "LEFT", "SB_NO ": "RIGHT"}
    assert resolve(row, ["SB No"]) == "LEFT"

    row = {"SB-No": "  ", "SB_NO ": "RIGHT"}
    assert resolve(row, ["SB No"]) == "RIGHT"


def test_is_blank():
    assert is_blank(None)
    assert is_blank(math.nan)
    assert is_blank(" \t")
    assert not is_blank(0)
    assert not is_blank("0")


def test_every_field_has_type_and_aliases():
    assert set(FIELD_TYPES) == set(FIELD_ALIASES)
    assert len(FIELD_TYPES) == 13
    assert FIELD_TYPES["fob_value"] == "decimal"
    assert FIELD_TYPES["shipment_date"] == "date"


def test_configured_aliases_are_tried_first(monkeypatch, tmp_path):
    config = tmp_path / "column_mappings.yaml"
    config.write_text(
        "aliases:\n"
        "  exporter_name:\n"
        "    - Indian Company\n"
        "    - Exporter\n"
        "  not_a_field:\n"
        "    - Whatever\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("COLUMN_MAPPINGS_PATH", str(config))
    load_mapping_config.cache_clear()

    aliases = get_field_aliases()

    assert aliases["exporter_name"][0] == "Indian Company"
    assert aliases["exporter_name"].count("Exporter") == 1
    assert "Exporter Name" in aliases["exporter_name"]
    assert "not_a_field" not in aliases
    assert aliases["consignee_name"] == FIELD_ALIASES["consignee_name"]
