from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt

from sales_core.aggregation import (
    GroupShare,
    cumulative_by_date,
    peak_day,
    ranked_breakdown,
    weekday_breakdown,
    weekend_lift,
)
from sales_core.charts import PROFIT_COLOR, SALES_COLOR, WEEKEND_COLOR, rows_frame, to_vega_spec
from sales_core.data import SalesRecord, format_currency, format_percent
from sales_core.filters import SalesFilters
from sales_core.metrics_trends import cumulative_chart

METHODOLOGY = {
    "category-sales-profit": "Profit margin = (Profit ÷ Sales) × 100; Revenue share = (Category Revenue ÷ Total Revenue) × 100",
    "day-of-week-comparison": "Weekend lift = (Weekend Avg – Weekday Avg) ÷ Weekday Avg × 100",
    "cumulative-growth": "Running sum of daily sales/profit; steeper slope = higher demand period",
}


def category_chart(rows: List[GroupShare]) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    df = rows_frame(rows)
    long_df = df.melt(id_vars=["key", "profit_margin"], value_vars=["sales", "profit"], var_name="metric", value_name="amount")
    long_df["metric"] = long_df["metric"].map({"sales": "Total Sales", "profit": "Total Profit"})
    bars = (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            x=alt.X("key:N", title="Category", sort=list(df["key"])),
            xOffset="metric:N",
            y=alt.Y("amount:Q", title="INR", axis=alt.Axis(format="~s", gridDash=[4, 4])),
            color=alt.Color(
                "metric:N",
                title="Series",
                scale=alt.Scale(domain=["Total Sales", "Total Profit"], range=[SALES_COLOR, PROFIT_COLOR]),
            ),
            tooltip=[
                alt.Tooltip("key:N", title="Category"),
                "metric",
                alt.Tooltip("amount:Q", format=",.0f"),
                alt.Tooltip("profit_margin:Q", title="Margin %", format=".1f"),
            ],
        )
        .properties(height=300)
    )
    return to_vega_spec(bars)


def weekday_chart(records: List[SalesRecord]) -> Optional[Dict[str, Any]]:
    if not records:
        return None
    df = rows_frame(weekday_breakdown(records))
    bars = (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("day:N", title="Day", sort=list(df["day"])),
            y=alt.Y("sales:Q", title="Revenue (INR)", axis=alt.Axis(format="~s", gridDash=[4, 4])),
            color=alt.condition(alt.datum.is_weekend, alt.value(WEEKEND_COLOR), alt.value(SALES_COLOR)),
            tooltip=[
                "day",
                alt.Tooltip("sales:Q", format=",.0f"),
                alt.Tooltip("profit:Q", format=",.0f"),
                alt.Tooltip("avg_revenue:Q", title="Avg per record", format=",.0f"),
            ],
        )
        .properties(height=300)
    )
    return to_vega_spec(bars)


def category_evidence(rows: List[GroupShare]) -> List[str]:
    return [
        f"{r.key} = {format_percent(r.revenue_share)} of revenue, {format_percent(r.profit_margin, 0)} margin"
        for r in rows
    ]


def weekday_evidence(lift: Dict[str, float]) -> List[str]:
    return [
        f"Weekend avg = {format_currency(lift['weekend_avg'])}",
        f"Weekday avg = {format_currency(lift['weekday_avg'])}",
        f"Weekend lift = {lift['lift_pct']:+.1f}%",
    ]


def cumulative_evidence(records: List[SalesRecord]) -> List[str]:
    points = cumulative_by_date(records)
    if not points:
        return []
    last = points[-1]
    lines = [
        f"Cumulative Sales: {format_currency(last.cumulative_sales)} by {last.date}",
        f"Cumulative Profit: {format_currency(last.cumulative_profit)} by {last.date}",
    ]
    peak = peak_day(records)
    if peak is not None:
        lines.append(f"Peak Sales Day: {peak['date']} with {format_currency(peak['sales'])}")
    return lines


def recommendations(records: List[SalesRecord], lift: Dict[str, float]) -> List[Dict[str, Any]]:
    recs: List[Dict[str, Any]] = []
    stores = ranked_breakdown(records, "store")
    if len(stores) >= 2:
        leaders, rest = stores[:2], stores[2:]
        leader_share = sum(s.revenue_share for s in leaders)
        evidence = f"{leaders[0].key} & {leaders[1].key} = {format_percent(leader_share)} revenue"
        if rest:
            evidence += "; " + ", ".join(f"{s.key} = {format_percent(s.revenue_share)}" for s in rest)
        recs.append(
            {
                "title": "Inventory Optimization",
                "description": "Shift stock from underperforming stores to top-performing locations",
                "evidence": evidence + ".",
                "chart_id": "category-sales-profit",
            }
        )

    categories = [c for c in ranked_breakdown(records, "category") if not math.isnan(c.profit_margin)]
    if len(categories) >= 2:
        smallest = categories[-1]
        recs.append(
            {
                "title": "Bundling Strategy",
                "description": f"Bundle {smallest.key.lower()} with {categories[0].key.lower()} at an attractive discount",
                "evidence": (
                    f"{smallest.key} = {format_percent(smallest.revenue_share)} of revenue, "
                    f"with {format_percent(smallest.profit_margin, 0)} average margin."
                ),
                "chart_id": "category-sales-profit",
            }
        )
        premium = max(categories[1:], key=lambda c: c.profit_margin)
        recs.append(
            {
                "title": "Premium Push",
                "description": f"Promote high-margin {premium.key.lower()} products",
                "evidence": (
                    f"{premium.key} margin = {format_percent(premium.profit_margin, 0)} "
                    f"vs {categories[0].key} at {format_percent(categories[0].profit_margin, 0)}."
                ),
                "chart_id": "category-sales-profit",
            }
        )

    if lift["weekday_avg"] > 0 and lift["weekend_avg"] > 0:
        recs.append(
            {
                "title": "Weekend Marketing",
                "description": "Focus advertising campaigns on weekend peak periods",
                "evidence": (
                    f"Avg weekend revenue/day = {format_currency(lift['weekend_avg'])}; "
                    f"weekday = {format_currency(lift['weekday_avg'])}. Weekend lift = {lift['lift_pct']:+.1f}%."
                ),
                "chart_id": "day-of-week-comparison",
            }
        )
    return recs


def compute_insights(filters: SalesFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: List[SalesRecord] = ctx.get("filtered_records", []) or []
    categories = ranked_breakdown(filtered, "category")
    lift = weekend_lift(filtered)

    insights = [
        {
            "id": "category-sales-profit",
            "title": "Category-wise Sales vs Profit",
            "evidence": category_evidence(categories),
            "methodology": METHODOLOGY["category-sales-profit"],
            "chart": category_chart(categories),
        },
        {
            "id": "day-of-week-comparison",
            "title": "Day-of-Week Sales Comparison",
            "evidence": weekday_evidence(lift),
            "methodology": METHODOLOGY["day-of-week-comparison"],
            "chart": weekday_chart(filtered),
        },
        {
            "id": "cumulative-growth",
            "title": "Cumulative Sales and Profit Growth Over Time",
            "evidence": cumulative_evidence(filtered),
            "methodology": METHODOLOGY["cumulative-growth"],
            "chart": cumulative_chart(cumulative_by_date(filtered)),
        },
    ]

    return {
        "filters": asdict(filters),
        "weekdays": [asdict(w) for w in weekday_breakdown(filtered)],
        "weekend_lift": lift,
        "insights": insights,
        "recommendations": recommendations(filtered, lift),
    }
