from __future__ import annotations

import io
import logging
import re
from datetime import date
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from stock_core.errors import EmptyValidBatch, MalformedRow, SpreadsheetError
from stock_core.records import ExpiryStatus, ProductInput


logger = logging.getLogger(__name__)

# Spreadsheet header -> internal field. Matched case-insensitively after trimming.
PRODUCT_COLUMNS = {
    "Nome": "name",
    "Name": "name",
    "Produto": "name",
    "Product": "name",
    "Marca": "brand",
    "Brand": "brand",
    "Quantidade": "quantity",
    "Quantity": "quantity",
    "Qtd": "quantity",
    "Qty": "quantity",
    "Validade": "expiry_label",
    "Expiry": "expiry_label",
    "Expiry Date": "expiry_label",
    "Status Validade": "expiry_status",
    "Status": "expiry_status",
    "Expiry Status": "expiry_status",
    "Avariado": "damaged",
    "Damaged": "damaged",
}
REQUIRED_FIELDS = ("name", "brand", "quantity", "expiry_label", "expiry_status")

STATUS_TOKENS = {
    "red": ExpiryStatus.RED,
    "vermelho": ExpiryStatus.RED,
    "vencido": ExpiryStatus.RED,
    "yellow": ExpiryStatus.YELLOW,
    "amarelo": ExpiryStatus.YELLOW,
    "proximo": ExpiryStatus.YELLOW,
    "próximo": ExpiryStatus.YELLOW,
    "green": ExpiryStatus.GREEN,
    "verde": ExpiryStatus.GREEN,
    "valido": ExpiryStatus.GREEN,
    "válido": ExpiryStatus.GREEN,
}
AFFIRMATIVE_TOKENS = {"sim", "s", "yes", "y", "true", "1", "x"}

SpreadsheetSource = Union[str, Path, bytes, BinaryIO]


@dataclass
class ParseResult:
    products: List[ProductInput] = field(default_factory=list)
    skipped: List[MalformedRow] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def _header_key(value: object) -> str:
    return re.sub(r"\s+", " ", str(value)).strip().lower()


_COLUMN_LOOKUP = {_header_key(k): v for k, v in PRODUCT_COLUMNS.items()}


def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    if value is pd.NaT or value is pd.NA:
        return True
    return isinstance(value, str) and not value.strip()


def map_columns(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename spreadsheet headers to internal field names, dropping unknown columns."""
    out: Dict[str, Any] = {}
    for key, value in row.items():
        target = _COLUMN_LOOKUP.get(_header_key(key))
        if target is None:
            target = key if key in REQUIRED_FIELDS or key == "damaged" else None
        if target is not None and target not in out:
            out[target] = value
    return out


def coerce_quantity(value: object) -> Optional[int]:
    """Non-negative integer from a cell, or None when it cannot be read as one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value) if value >= 0 else None
    if isinstance(value, (float, np.floating)):
        if np.isnan(value) or value < 0 or not float(value).is_integer():
            return None
        return int(value)
    digits = re.sub(r"\D", "", str(value))
    if not digits:
        return None
    return int(digits)


def normalize_status(value: object) -> Optional[ExpiryStatus]:
    if isinstance(value, ExpiryStatus):
        return value
    return STATUS_TOKENS.get(str(value).strip().lower())


def parse_damaged(value: object) -> bool:
    if is_blank(value):
        return False
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        return value == 1
    return str(value).strip().lower() in AFFIRMATIVE_TOKENS


def normalize_cell_text(value: object) -> str:
    # Timestamp and datetime are both date subclasses.
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_row(row: Mapping[str, Any], row_number: Optional[int] = None) -> ProductInput:
    """Turn one raw spreadsheet row into a ProductInput or raise MalformedRow."""
    fields = map_columns(row)
    missing = [name for name in REQUIRED_FIELDS if is_blank(fields.get(name))]
    if missing:
        raise MalformedRow(f"Missing required fields: {', '.join(missing)}", row_number)

    quantity = coerce_quantity(fields["quantity"])
    if quantity is None:
        raise MalformedRow(f"Invalid quantity: {fields['quantity']!r}", row_number)

    status = normalize_status(fields["expiry_status"])
    if status is None:
        raise MalformedRow(f"Invalid expiry status: {fields['expiry_status']!r}", row_number)

    name = normalize_cell_text(fields["name"])
    brand = normalize_cell_text(fields["brand"])
    if not name or not brand:
        raise MalformedRow("Missing required fields: name/brand", row_number)

    return ProductInput(
        name=name,
        brand=brand,
        quantity=quantity,
        expiry_label=normalize_cell_text(fields["expiry_label"]),
        expiry_status=status,
        damaged=parse_damaged(fields.get("damaged")),
    )


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> ParseResult:
    """Validate a batch of raw rows, skipping the malformed ones.

    Raises EmptyValidBatch when nothing survives.
    """
    result = ParseResult()
    for idx, row in enumerate(rows, start=1):
        try:
            if not isinstance(row, Mapping):
                raise MalformedRow(f"Row is not a mapping: {type(row).__name__}", idx)
            result.products.append(normalize_row(row, idx))
        except MalformedRow as exc:
            logger.warning("Skipping row %s: %s", idx, exc.reason)
            result.skipped.append(exc)

    if not result.products:
        raise EmptyValidBatch(f"No valid products found in the spreadsheet ({result.skipped_count} rows skipped)")
    if result.skipped:
        logger.info("Parsed %d products, skipped %d rows", len(result.products), result.skipped_count)
    return result


def read_spreadsheet(source: SpreadsheetSource) -> List[Dict[str, Any]]:
    """Rows of the first worksheet as dicts keyed by header."""
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        with pd.ExcelFile(source, engine="openpyxl") as workbook:
            if not workbook.sheet_names:
                raise SpreadsheetError("No sheets found in the spreadsheet")
            df = workbook.parse(workbook.sheet_names[0])
    except SpreadsheetError:
        raise
    except Exception as exc:
        raise SpreadsheetError(f"Failed to read the spreadsheet: {exc}") from exc

    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    if df.empty:
        raise EmptyValidBatch("No data found in the spreadsheet")
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def load_products(source: SpreadsheetSource) -> ParseResult:
    return normalize_rows(read_spreadsheet(source))
