from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from sales_core.aggregation import CumulativePoint, cumulative_by_date, group_by, peak_day
from sales_core.charts import PROFIT_COLOR, SALES_COLOR, rows_frame, to_vega_spec
from sales_core.data import SalesRecord, parse_display_date
from sales_core.filters import SalesFilters

_SERIES_COLORS = alt.Scale(domain=["Sales", "Profit"], range=[SALES_COLOR, PROFIT_COLOR])


def _iso_day(value: str) -> Optional[str]:
    parsed = parse_display_date(value)
    return parsed.isoformat() if parsed else None


def _with_day(df: pd.DataFrame) -> pd.DataFrame:
    # Vega needs an ISO date for a temporal axis; "date" stays in display form.
    df = df.copy()
    df["day"] = df["date"].apply(_iso_day)
    return df


def daily_series(records: List[SalesRecord]) -> List[Dict[str, Any]]:
    return [
        {"date": d, "sales": t.sales, "profit": t.profit, "units": t.units}
        for d, t in group_by(records, "date").items()
    ]


def daily_trend_chart(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not rows:
        return None
    df = _with_day(pd.DataFrame(rows))
    long_df = df.melt(id_vars=["date", "day"], value_vars=["sales", "profit"], var_name="metric", value_name="amount")
    long_df["metric"] = long_df["metric"].map({"sales": "Sales", "profit": "Profit"})
    hover = alt.selection_point(fields=["metric"], on="mouseover", empty="all")
    line = (
        alt.Chart(long_df)
        .mark_line(point={"filled": True, "size": 40})
        .encode(
            x=alt.X("day:T", title="Date", axis=alt.Axis(format="%d-%m", grid=False)),
            y=alt.Y("amount:Q", title="Amount (INR)", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("metric:N", title="Series", scale=_SERIES_COLORS),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=["date", "metric", alt.Tooltip("amount:Q", format=",.0f")],
        )
        .add_params(hover)
        .properties(height=280)
    )
    return to_vega_spec(line)


def cumulative_chart(points: List[CumulativePoint]) -> Optional[Dict[str, Any]]:
    if not points:
        return None
    df = _with_day(rows_frame(points))
    long_df = df.melt(
        id_vars=["date", "day"],
        value_vars=["cumulative_sales", "cumulative_profit"],
        var_name="metric",
        value_name="amount",
    )
    long_df["metric"] = long_df["metric"].map({"cumulative_sales": "Sales", "cumulative_profit": "Profit"})
    area = (
        alt.Chart(long_df)
        .mark_area(opacity=0.35, line=True)
        .encode(
            x=alt.X("day:T", title="Date", axis=alt.Axis(format="%d-%m", grid=False)),
            y=alt.Y("amount:Q", title="Cumulative (INR)", stack=None, axis=alt.Axis(format="~s", gridDash=[4, 4])),
            color=alt.Color("metric:N", title="Series", scale=_SERIES_COLORS),
            tooltip=["date", "metric", alt.Tooltip("amount:Q", format=",.0f")],
        )
        .properties(height=280)
    )
    return to_vega_spec(area)


def compute_trends(filters: SalesFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: List[SalesRecord] = ctx.get("filtered_records", []) or []
    daily = daily_series(filtered)
    cumulative = cumulative_by_date(filtered)

    return {
        "filters": asdict(filters),
        "daily": daily,
        "cumulative": [asdict(p) for p in cumulative],
        "peak_day": peak_day(filtered),
        "charts": {
            "daily_trend": daily_trend_chart(daily),
            "cumulative_growth": cumulative_chart(cumulative),
        },
    }
