from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import pandas as pd

from stock_core.records import STATUS_ORDER, ExpiryStatus, ProductRecord


TOP_N = 10
FRAME_COLUMNS = ["name", "brand", "quantity", "expiry_label", "expiry_status", "damaged"]
LEADER_METRICS = ("green", "red", "damaged")


@dataclass(frozen=True)
class BrandStats:
    name: str
    green: int = 0
    yellow: int = 0
    red: int = 0
    damaged: int = 0
    total: int = 0
    total_stock: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "green": self.green,
            "yellow": self.yellow,
            "red": self.red,
            "damaged": self.damaged,
            "total": self.total,
            "totalStock": self.total_stock,
        }


@dataclass(frozen=True)
class BrandLeader:
    name: str = ""
    count: int = 0


@dataclass(frozen=True)
class TopBrands:
    most_green: BrandLeader = field(default_factory=BrandLeader)
    most_red: BrandLeader = field(default_factory=BrandLeader)
    most_damaged: BrandLeader = field(default_factory=BrandLeader)


@dataclass(frozen=True)
class StockedProduct:
    name: str
    brand: str
    quantity: int


@dataclass(frozen=True)
class CriticalProduct:
    name: str
    brand: str
    expiry_label: str
    expiry_status: ExpiryStatus


@dataclass(frozen=True)
class DashboardStats:
    total_products: int = 0
    expired_products: int = 0
    damaged_products: int = 0
    total_stock: int = 0
    status_counts: Dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in STATUS_ORDER})
    top_brands: TopBrands = field(default_factory=TopBrands)
    all_brand_stats: List[BrandStats] = field(default_factory=list)
    top_products_by_stock: List[StockedProduct] = field(default_factory=list)
    critical_products: List[CriticalProduct] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        def leader(b: BrandLeader) -> Dict[str, Any]:
            return {"name": b.name, "count": b.count}

        return {
            "totalProducts": self.total_products,
            "expiredProducts": self.expired_products,
            "damagedProducts": self.damaged_products,
            "totalStock": self.total_stock,
            "statusCounts": dict(self.status_counts),
            "topBrands": {
                "mostGreen": leader(self.top_brands.most_green),
                "mostRed": leader(self.top_brands.most_red),
                "mostDamaged": leader(self.top_brands.most_damaged),
            },
            "allBrandStats": [b.to_dict() for b in self.all_brand_stats],
            "topProductsByStock": [
                {"name": p.name, "brand": p.brand, "quantity": p.quantity} for p in self.top_products_by_stock
            ],
            "criticalProducts": [
                {
                    "name": p.name,
                    "brand": p.brand,
                    "expiryLabel": p.expiry_label,
                    "expiryStatus": p.expiry_status.value,
                }
                for p in self.critical_products
            ],
        }


def records_frame(records: Sequence[ProductRecord]) -> pd.DataFrame:
    """One row per record, in input order."""
    rows = [
        {
            "name": r.name,
            "brand": r.brand,
            "quantity": int(r.quantity),
            "expiry_label": r.expiry_label,
            "expiry_status": ExpiryStatus(r.expiry_status).value,
            "damaged": bool(r.damaged),
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def compute_brand_stats(df: pd.DataFrame) -> pd.DataFrame:
    """Per-brand partition counts, one row per brand in first-seen order."""
    if df.empty:
        return pd.DataFrame(columns=["brand", "green", "yellow", "red", "damaged", "total", "total_stock"])
    status = df["expiry_status"]
    flags = df.assign(
        is_green=(status == ExpiryStatus.GREEN.value).astype(int),
        is_yellow=(status == ExpiryStatus.YELLOW.value).astype(int),
        is_red=(status == ExpiryStatus.RED.value).astype(int),
        is_damaged=df["damaged"].astype(bool).astype(int),
    )
    # sort=False keeps groups in order of first appearance.
    return (
        flags.groupby("brand", sort=False)
        .agg(
            green=("is_green", "sum"),
            yellow=("is_yellow", "sum"),
            red=("is_red", "sum"),
            damaged=("is_damaged", "sum"),
            total=("name", "size"),
            total_stock=("quantity", "sum"),
        )
        .reset_index()
    )


def _leader(brand_df: pd.DataFrame, metric: str) -> BrandLeader:
    if brand_df.empty:
        return BrandLeader()
    top = brand_df[metric].max()
    # No brand leads a metric nobody has.
    if top <= 0:
        return BrandLeader()
    first = brand_df[brand_df[metric] == top].iloc[0]
    return BrandLeader(name=str(first["brand"]), count=int(top))


def compute_stats(records: Sequence[ProductRecord]) -> DashboardStats:
    """Derive every dashboard metric from the current record set.

    Pure and recomputed on each call. Brand order, and therefore which brand
    wins a tie for a leader slot, is the order in which brands first appear
    in ``records``.
    """
    df = records_frame(records)
    if df.empty:
        return DashboardStats()

    status = df["expiry_status"]
    status_counts = {s.value: int((status == s.value).sum()) for s in STATUS_ORDER}

    brand_df = compute_brand_stats(df)
    all_brand_stats = [
        BrandStats(
            name=str(row.brand),
            green=int(row.green),
            yellow=int(row.yellow),
            red=int(row.red),
            damaged=int(row.damaged),
            total=int(row.total),
            total_stock=int(row.total_stock),
        )
        for row in brand_df.itertuples(index=False)
    ]

    top_stock = df.sort_values("quantity", ascending=False, kind="stable").head(TOP_N)
    critical = df[status == ExpiryStatus.RED.value].head(TOP_N)

    return DashboardStats(
        total_products=int(len(df)),
        expired_products=status_counts[ExpiryStatus.RED.value],
        damaged_products=int(df["damaged"].astype(bool).sum()),
        total_stock=int(df["quantity"].sum()),
        status_counts=status_counts,
        top_brands=TopBrands(
            most_green=_leader(brand_df, "green"),
            most_red=_leader(brand_df, "red"),
            most_damaged=_leader(brand_df, "damaged"),
        ),
        all_brand_stats=all_brand_stats,
        top_products_by_stock=[
            StockedProduct(name=str(r.name), brand=str(r.brand), quantity=int(r.quantity))
            for r in top_stock.itertuples(index=False)
        ],
        critical_products=[
            CriticalProduct(
                name=str(r.name),
                brand=str(r.brand),
                expiry_label=str(r.expiry_label),
                expiry_status=ExpiryStatus(r.expiry_status),
            )
            for r in critical.itertuples(index=False)
        ],
    )


def leaders_for(stats: DashboardStats, metric: str) -> List[BrandStats]:
    """Every brand tied for the maximum of ``metric`` (green, red or damaged)."""
    if metric not in LEADER_METRICS:
        raise ValueError(f"Unknown leader metric: {metric!r}")
    if not stats.all_brand_stats:
        return []
    top = max(getattr(b, metric) for b in stats.all_brand_stats)
    if top <= 0:
        return []
    return [b for b in stats.all_brand_stats if getattr(b, metric) == top]
