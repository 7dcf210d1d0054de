from __future__ import annotations

from conftest import make_record

from stock_core.charts import build_dashboard_charts
from stock_core.stats import compute_stats


def test_charts_are_vega_lite_specs(scenario_records):
    charts = build_dashboard_charts(compute_stats(scenario_records))

    assert set(charts) == {"status_distribution", "top_brands", "brand_status_comparison", "brand_stock"}
    for spec in charts.values():
        assert "$schema" in spec
        assert "vega-lite" in spec["$schema"]


def test_brand_damaged_chart_only_with_damaged_products():
    records = [make_record("a", "A", 1, "green", damaged=True), make_record("b", "B", 1, "red")]
    charts = build_dashboard_charts(compute_stats(records))
    assert "brand_damaged" in charts


def test_charts_for_empty_dashboard():
    charts = build_dashboard_charts(compute_stats([]))
    assert "brand_damaged" not in charts
    assert "status_distribution" in charts
