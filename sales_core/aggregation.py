from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date as Date
from typing import Dict, List, Optional, Sequence

import pandas as pd

from sales_core.data import NOT_AVAILABLE, Number, SalesRecord, as_number, records_to_frame, safe_ratio


logger = logging.getLogger(__name__)

DIMENSIONS = {
    "store": "store_location",
    "category": "product_category",
    "day_of_week": "day_of_week",
    "month": "month",
    "date": "date",
}
WEEKDAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
WEEKEND_DAYS = {"Saturday", "Sunday"}


@dataclass(frozen=True)
class KPISummary:
    total_revenue: Number = 0
    total_units_sold: Number = 0
    total_profit: Number = 0
    top_store: str = NOT_AVAILABLE
    top_category: str = NOT_AVAILABLE


@dataclass(frozen=True)
class GroupTotals:
    sales: Number = 0
    profit: Number = 0
    units: Number = 0
    count: int = 0


@dataclass(frozen=True)
class GroupShare:
    key: str
    sales: Number
    profit: Number
    units: Number
    revenue_share: float
    profit_margin: float


@dataclass(frozen=True)
class CumulativePoint:
    date: str
    cumulative_sales: Number
    cumulative_profit: Number


@dataclass(frozen=True)
class WeekdayTotals:
    day: str
    sales: Number
    profit: Number
    units: Number
    count: int
    avg_revenue: float
    is_weekend: bool


def _sum(series: pd.Series) -> Number:
    # NaN from a malformed row must show up in the total.
    return as_number(series.sum(skipna=False))


def _top_key(df: pd.DataFrame, column: str) -> str:
    totals = df.groupby(column, sort=False, dropna=False)["total_sales_amount"].agg(_sum)
    totals = totals.dropna()
    if totals.empty:
        return NOT_AVAILABLE
    # idxmax keeps the first-seen key on ties.
    return str(totals.astype(float).idxmax())


def summarize(records: Sequence[SalesRecord]) -> KPISummary:
    if not records:
        return KPISummary()
    df = records_to_frame(records)
    return KPISummary(
        total_revenue=_sum(df["total_sales_amount"]),
        total_units_sold=_sum(df["units_sold"]),
        total_profit=_sum(df["profit_amount"]),
        top_store=_top_key(df, "store_location"),
        top_category=_top_key(df, "product_category"),
    )


def _date_order(records: Sequence[SalesRecord]) -> Dict[str, tuple]:
    order: Dict[str, tuple] = {}
    for r in records:
        order.setdefault(r.date, r.sort_key)
    return order


def group_by(records: Sequence[SalesRecord], dimension: str) -> Dict[str, GroupTotals]:
    if dimension not in DIMENSIONS:
        raise ValueError(f"Unknown dimension: {dimension}")
    if not records:
        return {}
    column = DIMENSIONS[dimension]
    df = records_to_frame(records)
    grouped = df.groupby(column, sort=False, dropna=False).agg(
        sales=("total_sales_amount", _sum),
        profit=("profit_amount", _sum),
        units=("units_sold", _sum),
        n=("total_sales_amount", "size"),
    )
    out: Dict[str, GroupTotals] = {}
    for key, row in zip(grouped.index, grouped.itertuples(index=False)):
        name = key if isinstance(key, str) else NOT_AVAILABLE
        out[name] = GroupTotals(
            sales=as_number(row.sales),
            profit=as_number(row.profit),
            units=as_number(row.units),
            count=int(row.n),
        )
    if dimension == "date":
        order = _date_order(records)
        out = dict(sorted(out.items(), key=lambda kv: order.get(kv[0], (True, Date.min))))
    return out


def cumulative_by_date(records: Sequence[SalesRecord]) -> List[CumulativePoint]:
    dated = [r for r in records if r.parsed_date is not None]
    if len(dated) < len(records):
        logger.warning("Skipping %d undated records in cumulative series", len(records) - len(dated))
    daily = group_by(dated, "date")
    if not daily:
        return []
    frame = pd.DataFrame(
        {"sales": [t.sales for t in daily.values()], "profit": [t.profit for t in daily.values()]},
        index=list(daily.keys()),
    )
    running = frame.cumsum(skipna=False)
    return [
        CumulativePoint(date=d, cumulative_sales=as_number(row["sales"]), cumulative_profit=as_number(row["profit"]))
        for d, row in running.iterrows()
    ]


def ranked_breakdown(records: Sequence[SalesRecord], dimension: str) -> List[GroupShare]:
    groups = group_by(records, dimension)
    total = sum(t.sales for t in groups.values())
    ranked = sorted(groups.items(), key=lambda kv: -kv[1].sales if not math.isnan(kv[1].sales) else math.inf)
    return [
        GroupShare(
            key=key,
            sales=t.sales,
            profit=t.profit,
            units=t.units,
            revenue_share=safe_ratio(t.sales, total, 100.0),
            profit_margin=safe_ratio(t.profit, t.sales, 100.0),
        )
        for key, t in ranked
    ]


def weekday_breakdown(records: Sequence[SalesRecord]) -> List[WeekdayTotals]:
    groups = group_by(records, "day_of_week")
    rows = []
    for day in WEEKDAY_ORDER:
        t = groups.get(day, GroupTotals())
        rows.append(
            WeekdayTotals(
                day=day,
                sales=t.sales,
                profit=t.profit,
                units=t.units,
                count=t.count,
                avg_revenue=(t.sales / t.count) if t.count else 0.0,
                is_weekend=day in WEEKEND_DAYS,
            )
        )
    return rows


def weekend_lift(records: Sequence[SalesRecord]) -> Dict[str, float]:
    """Average revenue per calendar day, weekend vs weekday."""
    daily = group_by(records, "date")
    day_names: Dict[str, str] = {}
    for r in records:
        day_names.setdefault(r.date, r.day_of_week)
    weekend = [t.sales for d, t in daily.items() if day_names[d] in WEEKEND_DAYS]
    weekday = [t.sales for d, t in daily.items() if day_names[d] not in WEEKEND_DAYS]
    weekend_avg = sum(weekend) / len(weekend) if weekend else 0.0
    weekday_avg = sum(weekday) / len(weekday) if weekday else 0.0
    lift = (weekend_avg - weekday_avg) / weekday_avg * 100 if weekday_avg > 0 else 0.0
    return {"weekend_avg": weekend_avg, "weekday_avg": weekday_avg, "lift_pct": lift}


def peak_day(records: Sequence[SalesRecord]) -> Optional[Dict[str, object]]:
    daily = group_by([r for r in records if r.parsed_date is not None], "date")
    best: Optional[str] = None
    for d, t in daily.items():
        if math.isnan(t.sales):
            continue
        if best is None or t.sales > daily[best].sales:
            best = d
    if best is None:
        return None
    return {"date": best, "sales": daily[best].sales}

