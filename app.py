import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from sales_core.data import (
    DATA_FILE,
    format_currency,
    format_number,
    format_percent,
    load_dashboard_data,
    prepare_context,
)
from sales_core.filters import ALL, DEFAULT_PROFIT_RANGE, SalesFilters
from sales_core.metrics_insights import compute_insights
from sales_core.metrics_overview import compute_overview
from sales_core.metrics_performance import compute_performance
from sales_core.metrics_profitability import compute_profitability
from sales_core.metrics_simulator import compute_simulation
from sales_core.metrics_trends import compute_trends
from sales_core.simulator import BudgetLimits, SimulationSession

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
alt.data_transformers.disable_max_rows()

STEPS = [
    ("Overview", "Dataset & Cleaning"),
    ("Trends", "Sales Over Time"),
    ("Stores", "Performance Analysis"),
    ("Products", "Category Insights"),
    ("Profitability", "Margin Analysis"),
    ("Simulator", "Business Investment"),
    ("Insights", "Recommendations & Evidence"),
    ("Summary", "Conclusion"),
]


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: SalesFilters) -> str:
    chips = [
        f"Store: {filters.store if filters.store != ALL else 'All'}",
        f"Category: {filters.category if filters.category != ALL else 'All'}",
        f"Month: {filters.month if filters.month != ALL else 'All'}",
        f"Day: {filters.day_of_week if filters.day_of_week != ALL else 'All'}",
        f"Margin: {filters.profit_range[0]:.0f}–{filters.profit_range[1]:.0f}%",
    ]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_chart(spec: Optional[Dict[str, Any]]):
    if spec is None:
        st.info("No data for the current filters.")
        return
    st.vega_lite_chart(spec, use_container_width=True)


def render_kpis(kpis: Dict[str, Any]):
    cols = st.columns(5)
    cols[0].metric("Total Revenue", format_currency(kpis["total_revenue"]))
    cols[1].metric("Units Sold", format_number(kpis["total_units_sold"]))
    cols[2].metric("Total Profit", format_currency(kpis["total_profit"]))
    cols[3].metric("Top Store", kpis["top_store"])
    cols[4].metric("Top Category", kpis["top_category"])


# ---------- UI setup ----------
st.set_page_config(page_title="Mumbai Electronics Sales Dashboard", layout="wide")
inject_base_styles()
st.title("Mumbai Electronics Sales Dashboard")
st.caption("Q3 2023 sales walkthrough: eight steps from raw data to a budget simulator.")

data_ctx = load_dashboard_data()
records = data_ctx.get("records", [])
if not records:
    st.error(f"No sales data found. Place {DATA_FILE} next to app.py.")
    st.stop()

options = data_ctx.get("options", {})
if "simulation_session" not in st.session_state:
    st.session_state["simulation_session"] = SimulationSession()

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    step_labels = [f"{i}. {title}: {desc}" for i, (title, desc) in enumerate(STEPS, start=1)]
    step = step_labels.index(st.radio("Step", step_labels, index=0)) + 1

    st.markdown("---")
    st.markdown("### Filters")
    if st.button("Reset filters"):
        for key in ["f_store", "f_category", "f_month", "f_day", "f_range"]:
            st.session_state.pop(key, None)
    store = st.selectbox("Store", [ALL] + options.get("stores", []), key="f_store")
    category = st.selectbox("Category", [ALL] + options.get("categories", []), key="f_category")
    month = st.selectbox("Month", [ALL] + options.get("months", []), key="f_month")
    day_of_week = st.selectbox("Day", [ALL] + options.get("days_of_week", []), key="f_day")
    profit_range = st.slider("Profit margin %", 0.0, 100.0, DEFAULT_PROFIT_RANGE, step=1.0, key="f_range")

    st.markdown("---")
    st.download_button(
        "Download CSV",
        data=(data_ctx.get("raw_text") or "").encode("utf-8"),
        file_name=DATA_FILE,
        mime="text/csv",
    )

filters = SalesFilters(
    store=store,
    category=category,
    month=month,
    day_of_week=day_of_week,
    profit_range=tuple(profit_range),
)
ctx = prepare_context(filters, data_ctx)
st.markdown(f"<div class='chip-row'>{format_filter_summary(filters)}</div>", unsafe_allow_html=True)
st.subheader(f"Step {step}: {STEPS[step - 1][0]}")


# ----- Page renderers -----
def render_overview_page():
    payload = compute_overview(filters, ctx)
    profile = payload["profile"]
    cols = st.columns(3)
    cols[0].metric("Dataset Shape", f"{profile['records']} records", help=f"{profile['columns']} columns of sales data")
    cols[1].metric("Data Quality", f"{profile['valid_share']:.0%}", help=f"{profile['invalid_rows']} malformed rows")
    cols[2].metric("Time Period", " - ".join(profile["months"][:1] + profile["months"][-1:]) or "N/A")
    with card("KPIs (filtered)"):
        render_kpis(payload["filtered_kpis"])
    with card("KPIs (all data)"):
        render_kpis(payload["kpis"])


def render_trends_page():
    payload = compute_trends(filters, ctx)
    with card("Revenue and Profit Trends"):
        render_chart(payload["charts"]["daily_trend"])
    with card("Cumulative Growth"):
        render_chart(payload["charts"]["cumulative_growth"])
    if payload["peak_day"]:
        st.caption(f"Peak sales day: {payload['peak_day']['date']} ({format_currency(payload['peak_day']['sales'])})")


def render_breakdown_page(view: str):
    payload = compute_performance(filters, ctx, view=view)
    with card(f"Revenue by {view.title()}"):
        render_chart(payload["charts"][f"revenue_by_{view}"])
    rows: List[Dict[str, Any]] = payload["rows"]
    if rows:
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)


def render_profitability_page():
    payload = compute_profitability(filters, ctx)
    with card("Revenue vs Profit Margin"):
        render_chart(payload["charts"]["revenue_vs_margin"])
    for row in payload["category_margins"]:
        st.markdown(f"- **{row['category']}**: {format_percent(row['profit_margin'])} margin")


def render_simulator_page():
    limits = BudgetLimits()
    session: SimulationSession = st.session_state["simulation_session"]
    budget = st.number_input(
        "Budget Amount (₹)",
        min_value=limits.minimum,
        max_value=limits.maximum,
        value=limits.default,
        step=limits.step,
    )
    payload = compute_simulation(filters, ctx, budget=budget, session=session)
    result = payload["result"]
    cols = st.columns(3)
    cols[0].metric("Expected Revenue", format_currency(result["expected_revenue"]))
    cols[1].metric("Expected Profit", format_currency(result["expected_profit"]))
    cols[2].metric("ROI", f"{result['roi']:.1f}%")
    st.markdown(f"**Performance Rating:** {payload['badge']}")
    if session.best_roi > 0:
        st.caption(f"Best ROI today: {session.best_roi:.1f}% ({session.best_move})")
    for line in payload["insights"]:
        st.markdown(f"- {line}")
    if payload["achievement"]:
        st.success("Smart Investor Achievement Unlocked!")


def render_insights_page():
    payload = compute_insights(filters, ctx)
    for insight in payload["insights"]:
        with card(insight["title"]):
            render_chart(insight["chart"])
            for line in insight["evidence"]:
                st.markdown(f"- {line}")
            st.caption(insight["methodology"])
    st.markdown("### Strategic Recommendations")
    for rec in payload["recommendations"]:
        with card(rec["title"]):
            st.markdown(rec["description"])
            st.caption(f"Evidence: {rec['evidence']}")


def render_summary_page():
    render_kpis(compute_overview(filters, ctx)["filtered_kpis"])
    st.markdown(
        "This dashboard turns the raw quarter of sales into store, category and weekday insights, "
        "and a simulator for testing budget scenarios against the filtered history."
    )


PAGES = {
    1: render_overview_page,
    2: render_trends_page,
    3: lambda: render_breakdown_page("store"),
    4: lambda: render_breakdown_page("category"),
    5: render_profitability_page,
    6: render_simulator_page,
    7: render_insights_page,
    8: render_summary_page,
}
PAGES[step]()
