from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from stock_core.records import ExpiryStatus
from stock_core.stats import DashboardStats

alt.data_transformers.disable_max_rows()

STATUS_COLORS = {
    ExpiryStatus.RED.value: "#DC2626",
    ExpiryStatus.YELLOW.value: "#EAB308",
    ExpiryStatus.GREEN.value: "#16A34A",
}
STATUS_LABELS = {
    ExpiryStatus.RED.value: "Expired",
    ExpiryStatus.YELLOW.value: "Near expiry",
    ExpiryStatus.GREEN.value: "Valid",
}
BRAND_COLOR = "#3B82F6"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _status_scale() -> alt.Scale:
    return alt.Scale(domain=list(STATUS_COLORS), range=list(STATUS_COLORS.values()))


def status_distribution_chart(stats: DashboardStats) -> alt.Chart:
    df = pd.DataFrame(
        [
            {"status": status, "label": STATUS_LABELS[status], "count": count}
            for status, count in stats.status_counts.items()
        ]
    )
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=60, stroke="#000000", strokeWidth=4)
        .encode(
            theta=alt.Theta("count:Q"),
            color=alt.Color("status:N", scale=_status_scale(), legend=None),
            tooltip=[alt.Tooltip("label:N", title="Status"), alt.Tooltip("count:Q", title="Products", format=",")],
        )
        .properties(height=300)
    )


def top_brands_chart(stats: DashboardStats) -> alt.Chart:
    leaders = stats.top_brands
    df = pd.DataFrame(
        [
            {"category": "Most valid", "brand": leaders.most_green.name, "count": leaders.most_green.count},
            {"category": "Most expired", "brand": leaders.most_red.name, "count": leaders.most_red.count},
            {"category": "Most damaged", "brand": leaders.most_damaged.name, "count": leaders.most_damaged.count},
        ]
    )
    return (
        alt.Chart(df)
        .mark_bar(color=BRAND_COLOR, stroke="#000000", strokeWidth=3)
        .encode(
            x=alt.X("category:N", title=None, sort=None, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("count:Q", title="Products", axis=alt.Axis(format="d")),
            tooltip=["category", "brand", alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=300)
    )


def brand_status_comparison_chart(stats: DashboardStats) -> alt.Chart:
    rows = []
    for b in stats.all_brand_stats:
        for status in STATUS_COLORS:
            rows.append({"brand": b.name, "status": status, "label": STATUS_LABELS[status], "count": getattr(b, status)})
    df = pd.DataFrame(rows, columns=["brand", "status", "label", "count"])
    brand_order = [b.name for b in stats.all_brand_stats]
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("brand:N", title="Brand", sort=brand_order),
            y=alt.Y("count:Q", title="Products", stack="zero"),
            color=alt.Color("status:N", scale=_status_scale(), title="Status"),
            tooltip=["brand", alt.Tooltip("label:N", title="Status"), alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=320)
    )


def brand_stock_chart(stats: DashboardStats) -> alt.Chart:
    df = pd.DataFrame(
        [{"brand": b.name, "total_stock": b.total_stock} for b in stats.all_brand_stats],
        columns=["brand", "total_stock"],
    )
    return (
        alt.Chart(df)
        .mark_bar(color=BRAND_COLOR, stroke="#000000", strokeWidth=2)
        .encode(
            x=alt.X("brand:N", title="Brand", sort="-y"),
            y=alt.Y("total_stock:Q", title="Units in stock", axis=alt.Axis(format="~s")),
            tooltip=["brand", alt.Tooltip("total_stock:Q", title="Stock", format=",")],
        )
        .properties(height=320)
    )


def brand_damaged_chart(stats: DashboardStats) -> alt.Chart:
    df = pd.DataFrame(
        [{"brand": b.name, "damaged": b.damaged} for b in stats.all_brand_stats if b.damaged > 0],
        columns=["brand", "damaged"],
    )
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=40)
        .encode(
            theta=alt.Theta("damaged:Q"),
            color=alt.Color("brand:N", title="Brand"),
            tooltip=["brand", alt.Tooltip("damaged:Q", title="Damaged", format=",")],
        )
        .properties(height=300)
    )


def build_dashboard_charts(stats: DashboardStats) -> Dict[str, Any]:
    charts: Dict[str, Any] = {
        "status_distribution": to_vega_spec(status_distribution_chart(stats)),
        "top_brands": to_vega_spec(top_brands_chart(stats)),
        "brand_status_comparison": to_vega_spec(brand_status_comparison_chart(stats)),
        "brand_stock": to_vega_spec(brand_stock_chart(stats)),
    }
    if any(b.damaged > 0 for b in stats.all_brand_stats):
        charts["brand_damaged"] = to_vega_spec(brand_damaged_chart(stats))
    return charts
