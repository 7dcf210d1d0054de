from __future__ import annotations

from conftest import make_record

from stock_core.filters import MAX_PAGE_SIZE, ProductFilters, apply_filters, normalize_filters
from stock_core.records import ExpiryStatus


def _records():
    return [
        make_record("Leite Integral", "Alfa", 3, "red", damaged=True),
        make_record("Pão de Forma", "Beta", 8, "yellow"),
        make_record("Queijo", "Alfa", 1, "green"),
        make_record("Iogurte", "Leiteria", 6, "green", damaged=True),
    ]


def test_normalize_filters_defaults_and_clamping():
    f = normalize_filters({"page": "0", "page_size": 10_000, "statuses": ["RED", "bogus", "red"], "damaged": "sim"})

    assert f.page == 1
    assert f.page_size == MAX_PAGE_SIZE
    assert f.statuses == [ExpiryStatus.RED]
    assert f.damaged is True
    assert normalize_filters({}) == ProductFilters()


def test_search_matches_name_or_brand_case_insensitive():
    result = apply_filters(_records(), normalize_filters({"search": "LEITE"}))
    assert [r.name for r in result.items] == ["Leite Integral", "Iogurte"]
    assert result.total == 2


def test_status_brand_and_damaged_filters_combine():
    result = apply_filters(
        _records(), normalize_filters({"statuses": ["green"], "brands": ["Alfa", "Leiteria"], "damaged": False})
    )
    assert [r.name for r in result.items] == ["Queijo"]


def test_pagination():
    records = [make_record(f"p{i}", "B", i, "green") for i in range(25)]

    page = apply_filters(records, normalize_filters({"page": 3, "page_size": 10}))
    assert [r.name for r in page.items] == [f"p{i}" for i in range(20, 25)]
    assert (page.total, page.pages, page.page) == (25, 3, 3)

    everything = apply_filters(records, normalize_filters({}))
    assert len(everything.items) == 25
    assert everything.pages == 1


def test_status_filter_accepts_portuguese_tokens():
    result = apply_filters(_records(), normalize_filters({"statuses": ["Vermelho"]}))
    assert [r.name for r in result.items] == ["Leite Integral"]


def test_unknown_status_filter_matches_nothing():
    f = normalize_filters({"statuses": ["purple"]})

    assert f.statuses == []
    assert f.status_requested is True
    assert apply_filters(_records(), f).total == 0
