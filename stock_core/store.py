from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Iterable, List

from stock_core.errors import ValidationError
from stock_core.records import ProductInput, ProductRecord, coerce_product_input

logger = logging.getLogger(__name__)


class RecordStore:
    """In-memory collection of product records with replace-all semantics.

    Every upload swaps the whole collection. The batch is validated into a
    temporary list before the swap, so a failing batch leaves the current
    records untouched and readers never see a half-replaced set.
    """

    def __init__(self, records: Iterable[ProductRecord] = ()):
        self._lock = threading.Lock()
        self._records: List[ProductRecord] = list(records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get_all(self) -> List[ProductRecord]:
        with self._lock:
            return list(self._records)

    # Stats and exports read through this so they work on one consistent set.
    snapshot = get_all

    def replace_all(self, products: Sequence[ProductInput | Mapping]) -> List[ProductRecord]:
        if isinstance(products, (str, bytes, Mapping)) or not isinstance(products, Sequence):
            raise ValidationError("Products data must be an array")

        validated: List[ProductInput] = []
        for index, raw in enumerate(products):
            try:
                validated.append(coerce_product_input(raw))
            except ValidationError as exc:
                raise ValidationError(f"Invalid product data at index {index}: {exc}") from exc

        uploaded_at = datetime.now(timezone.utc)
        created = [ProductRecord.create(p, uploaded_at=uploaded_at) for p in validated]
        with self._lock:
            previous = len(self._records)
            self._records = created
        logger.info("Replaced %d products with %d new products", previous, len(created))
        return list(created)

    def clear(self) -> None:
        with self._lock:
            self._records = []
        logger.info("Cleared all products")
