from __future__ import annotations

import io
from typing import List

import pandas as pd
import pytest

from stock_core.records import ExpiryStatus, ProductInput, ProductRecord
from stock_core.store import RecordStore


def make_record(name: str, brand: str, quantity: int, status: str, *, damaged: bool = False, label: str = "01/01/2030") -> ProductRecord:
    return ProductRecord.create(
        ProductInput(
            name=name,
            brand=brand,
            quantity=quantity,
            expiry_label=label,
            expiry_status=ExpiryStatus(status),
            damaged=damaged,
        )
    )


def xlsx_bytes(rows: List[dict]) -> bytes:
    buf = io.BytesIO()
    pd.DataFrame(rows).to_excel(buf, index=False, engine="openpyxl")
    return buf.getvalue()


@pytest.fixture
def scenario_records() -> List[ProductRecord]:
    return [
        make_record("Milk", "A", 5, "red"),
        make_record("Bread", "B", 10, "red"),
        make_record("Cheese", "A", 1, "green"),
    ]


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def sheet_rows() -> List[dict]:
    return [
        {"Id": 1, "Nome": "Leite", "Marca": "Alfa", "Quantidade": 12, "Validade": "10/10/2026", "Status Validade": "Vermelho", "Avariado": "Sim"},
        {"Id": 2, "Nome": "Pão", "Marca": "Beta", "Quantidade": "30 un", "Validade": "12/11/2026", "Status Validade": " amarelo ", "Avariado": "não"},
        {"Id": 3, "Nome": "Queijo", "Marca": "Alfa", "Quantidade": 4, "Validade": "01/02/2027", "Status Validade": "verde", "Avariado": None},
        {"Id": 4, "Nome": None, "Marca": "Gama", "Quantidade": 2, "Validade": "01/02/2027", "Status Validade": "verde", "Avariado": None},
        {"Id": 5, "Nome": "Manteiga", "Marca": "Gama", "Quantidade": 3, "Validade": "01/02/2027", "Status Validade": "azul", "Avariado": None},
    ]
