from __future__ import annotations

import math
from dataclasses import asdict
from typing import Any, Dict, List

import altair as alt
import pandas as pd

from sales_core.aggregation import ranked_breakdown
from sales_core.charts import to_vega_spec
from sales_core.data import SalesRecord
from sales_core.filters import SalesFilters

CATEGORY_COLORS = {
    "Smartphones": "#3b82f6",
    "Laptops": "#a855f7",
    "Audio": "#22c55e",
    "Accessories": "#f97316",
}


def scatter_points(records: List[SalesRecord]) -> List[Dict[str, Any]]:
    # Records without a margin cannot be placed on the y axis.
    return [
        {
            "label": f"{r.store_location} - {r.product_category}",
            "category": r.product_category,
            "date": r.date,
            "revenue": r.total_sales_amount,
            "profit": r.profit_amount,
            "units": r.units_sold,
            "profit_margin": r.profit_margin,
        }
        for r in records
        if not math.isnan(r.profit_margin)
    ]


def compute_profitability(filters: SalesFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: List[SalesRecord] = ctx.get("filtered_records", []) or []
    points = scatter_points(filtered)
    margins = [
        {"category": r.key, "sales": r.sales, "profit": r.profit, "profit_margin": r.profit_margin}
        for r in ranked_breakdown(filtered, "category")
    ]

    chart = None
    if points:
        df = pd.DataFrame(points)
        domain = list(dict.fromkeys(df["category"]))
        bubble = (
            alt.Chart(df)
            .mark_circle(opacity=0.7, stroke="white", strokeWidth=1)
            .encode(
                x=alt.X("revenue:Q", title="Revenue (INR)", axis=alt.Axis(format="~s")),
                y=alt.Y("profit_margin:Q", title="Profit Margin (%)"),
                size=alt.Size("units:Q", title="Units Sold"),
                color=alt.Color(
                    "category:N",
                    title="Category",
                    scale=alt.Scale(domain=domain, range=[CATEGORY_COLORS.get(c, "#9ca3af") for c in domain]),
                ),
                tooltip=[
                    "label",
                    "date",
                    alt.Tooltip("revenue:Q", format=",.0f"),
                    alt.Tooltip("profit:Q", format=",.0f"),
                    alt.Tooltip("profit_margin:Q", title="Margin %", format=".1f"),
                    "units",
                ],
            )
            .properties(height=360, title="Revenue vs Profit Margin (Bubble = Units Sold)")
        )
        chart = to_vega_spec(bubble)

    return {
        "filters": asdict(filters),
        "points": points,
        "category_margins": margins,
        "excluded_points": len(filtered) - len(points),
        "charts": {"revenue_vs_margin": chart},
    }
