from __future__ import annotations

import pandas as pd
import pytest

from conftest import xlsx_bytes

from stock_core.data import (
    coerce_quantity,
    load_products,
    normalize_row,
    normalize_rows,
    parse_damaged,
    read_spreadsheet,
)
from stock_core.errors import EmptyValidBatch, MalformedRow, SpreadsheetError
from stock_core.records import ExpiryStatus


@pytest.mark.parametrize(
    "value,expected",
    [(12, 12), (0, 0), (4.0, 4), ("30 un", 30), ("1.200", 1200), (-3, None), (2.5, None), ("abc", None), (True, None)],
)
def test_coerce_quantity(value, expected):
    assert coerce_quantity(value) == expected


@pytest.mark.parametrize("value,expected", [("Sim", True), (" yes ", True), ("não", False), (None, False), ("", False), (1, True), ("talvez", False)])
def test_parse_damaged(value, expected):
    assert parse_damaged(value) is expected


def test_normalize_row_maps_locale_headers():
    product = normalize_row(
        {"Nome": " Leite ", "Marca": "Alfa", "Quantidade": "12", "Validade": "10/10/2026", "Status Validade": "VERMELHO", "Avariado": "sim"}
    )
    assert product.name == "Leite"
    assert product.brand == "Alfa"
    assert product.quantity == 12
    assert product.expiry_label == "10/10/2026"
    assert product.expiry_status is ExpiryStatus.RED
    assert product.damaged is True


def test_normalize_row_accepts_english_headers():
    product = normalize_row({"name": "Milk", "brand": "A", "quantity": 3, "expiry": "soon", "status": "yellow"})
    assert product.expiry_status is ExpiryStatus.YELLOW
    assert product.damaged is False


@pytest.mark.parametrize(
    "row,reason",
    [
        ({"Nome": "x", "Marca": "y", "Quantidade": 1, "Validade": "v"}, "Missing"),
        ({"Nome": "x", "Marca": "", "Quantidade": 1, "Validade": "v", "Status Validade": "verde"}, "Missing"),
        ({"Nome": "x", "Marca": "y", "Quantidade": "n/a", "Validade": "v", "Status Validade": "verde"}, "quantity"),
        ({"Nome": "x", "Marca": "y", "Quantidade": 1, "Validade": "v", "Status Validade": "azul"}, "status"),
    ],
)
def test_normalize_row_rejects_malformed(row, reason):
    with pytest.raises(MalformedRow, match=reason):
        normalize_row(row, 7)


def test_normalize_rows_skips_and_counts(sheet_rows, caplog):
    with caplog.at_level("WARNING", logger="stock_core.data"):
        result = normalize_rows(sheet_rows)

    assert [p.name for p in result.products] == ["Leite", "Pão", "Queijo"]
    assert result.skipped_count == 2
    assert [s.row_number for s in result.skipped] == [4, 5]
    assert "Skipping row 4" in caplog.text


def test_normalize_rows_all_invalid_is_fatal():
    with pytest.raises(EmptyValidBatch, match="No valid products"):
        normalize_rows([{"Nome": "x"}, {"Marca": "y"}])


def test_load_products_from_xlsx(sheet_rows):
    result = load_products(xlsx_bytes(sheet_rows))

    assert len(result.products) == 3
    first, second, third = result.products
    assert (first.name, first.quantity, first.expiry_status, first.damaged) == ("Leite", 12, ExpiryStatus.RED, True)
    assert (second.quantity, second.expiry_status, second.damaged) == (30, ExpiryStatus.YELLOW, False)
    assert third.damaged is False


def test_read_spreadsheet_without_rows():
    with pytest.raises(EmptyValidBatch, match="No data found"):
        read_spreadsheet(xlsx_bytes([]))


def test_read_spreadsheet_rejects_garbage():
    with pytest.raises(SpreadsheetError):
        read_spreadsheet(b"definitely not a workbook")


def test_read_spreadsheet_wraps_sheet_parse_failures(monkeypatch, sheet_rows):
    def broken_parse(self, *args, **kwargs):
        raise ValueError("corrupt worksheet")

    monkeypatch.setattr(pd.ExcelFile, "parse", broken_parse)
    with pytest.raises(SpreadsheetError, match="corrupt worksheet"):
        read_spreadsheet(xlsx_bytes(sheet_rows))
