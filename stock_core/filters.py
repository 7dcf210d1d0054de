from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from stock_core.data import is_blank, normalize_status
from stock_core.records import ExpiryStatus, ProductRecord


DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class ProductFilters:
    search: str = ""
    statuses: List[ExpiryStatus] = field(default_factory=list)
    # Set when status values were given, even if none of them was recognised.
    status_requested: bool = False
    brands: List[str] = field(default_factory=list)
    damaged: Optional[bool] = None
    page: Optional[int] = None
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class FilteredPage:
    items: List[ProductRecord]
    total: int
    page: int
    page_size: int
    pages: int


def _as_status_list(values: Optional[Iterable[object]]) -> List[ExpiryStatus]:
    if not values:
        return []
    out: List[ExpiryStatus] = []
    for v in values:
        status = normalize_status(v)
        if status is not None and status not in out:
            out.append(status)
    return out


def _as_optional_bool(value: object) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    token = str(value).strip().lower()
    if token in {"true", "1", "yes", "sim"}:
        return True
    if token in {"false", "0", "no", "nao", "não"}:
        return False
    return None


def normalize_filters(raw: dict) -> ProductFilters:
    search = (raw.get("search") or "").strip()
    raw_statuses = [v for v in (raw.get("statuses") or []) if not is_blank(v)]
    statuses = _as_status_list(raw_statuses)
    brands = [str(x) for x in (raw.get("brands") or []) if x is not None and str(x).strip()]
    damaged = _as_optional_bool(raw.get("damaged"))

    page = raw.get("page")
    if page is not None:
        try:
            page = max(1, int(page))
        except Exception:
            page = 1

    page_size = raw.get("page_size", DEFAULT_PAGE_SIZE)
    try:
        page_size = int(page_size)
    except Exception:
        page_size = DEFAULT_PAGE_SIZE
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))

    return ProductFilters(
        search=search,
        statuses=statuses,
        status_requested=bool(raw_statuses),
        brands=brands,
        damaged=damaged,
        page=page,
        page_size=page_size,
    )


def matches(record: ProductRecord, filters: ProductFilters) -> bool:
    if filters.search:
        q = filters.search.lower()
        if q not in record.name.lower() and q not in record.brand.lower():
            return False
    if filters.status_requested and record.expiry_status not in filters.statuses:
        return False
    if filters.brands and record.brand not in filters.brands:
        return False
    if filters.damaged is not None and record.damaged != filters.damaged:
        return False
    return True


def apply_filters(records: Sequence[ProductRecord], filters: ProductFilters) -> FilteredPage:
    """Filter the product table, then slice one page when ``filters.page`` is set."""
    selected = [r for r in records if matches(r, filters)]
    total = len(selected)
    if filters.page is None:
        return FilteredPage(items=selected, total=total, page=1, page_size=max(total, 1), pages=1 if total else 0)

    pages = math.ceil(total / filters.page_size)
    start = (filters.page - 1) * filters.page_size
    return FilteredPage(
        items=selected[start:start + filters.page_size],
        total=total,
        page=filters.page,
        page_size=filters.page_size,
        pages=pages,
    )
