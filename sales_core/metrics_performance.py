from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Literal

import altair as alt

from sales_core.aggregation import ranked_breakdown, summarize
from sales_core.charts import rows_frame, to_vega_spec
from sales_core.data import SalesRecord
from sales_core.filters import SalesFilters

_VIEWS = {"store": "Store", "category": "Category"}
_PALETTE = ["#3b82f6", "#a855f7", "#22c55e", "#f97316", "#ec4899"]


def compute_performance(
    filters: SalesFilters,
    ctx: Dict[str, Any],
    *,
    view: Literal["store", "category"] = "store",
) -> Dict[str, Any]:
    if view not in _VIEWS:
        raise ValueError(f"Unknown performance view: {view}")
    filtered: List[SalesRecord] = ctx.get("filtered_records", []) or []
    rows = ranked_breakdown(filtered, view)
    kpis = ctx.get("filtered_kpis") or summarize(filtered)

    chart = None
    if rows:
        df = rows_frame(rows)
        label = _VIEWS[view]
        bar = (
            alt.Chart(df)
            .mark_bar(cornerRadiusTopLeft=6, cornerRadiusTopRight=6)
            .encode(
                x=alt.X("key:N", title=label, sort=list(df["key"])),
                y=alt.Y("sales:Q", title="Revenue (INR)", axis=alt.Axis(format="~s", gridDash=[4, 4])),
                color=alt.Color("key:N", legend=None, scale=alt.Scale(range=_PALETTE)),
                tooltip=[
                    alt.Tooltip("key:N", title=label),
                    alt.Tooltip("sales:Q", title="Revenue", format=",.0f"),
                    alt.Tooltip("profit:Q", title="Profit", format=",.0f"),
                    alt.Tooltip("units:Q", title="Units", format=","),
                    alt.Tooltip("revenue_share:Q", title="Share %", format=".1f"),
                ],
            )
            .properties(height=280, title=f"Revenue by {label}")
        )
        chart = to_vega_spec(bar)

    return {
        "filters": asdict(filters),
        "view": view,
        "top": kpis.top_store if view == "store" else kpis.top_category,
        "rows": [asdict(r) for r in rows],
        "charts": {f"revenue_by_{view}": chart},
    }
