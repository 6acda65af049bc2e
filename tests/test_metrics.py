import pytest

from sales_core.data import prepare_context
from sales_core.filters import SalesFilters
from sales_core.metrics_insights import compute_insights
from sales_core.metrics_overview import compute_overview
from sales_core.metrics_performance import compute_performance
from sales_core.metrics_profitability import compute_profitability
from sales_core.metrics_simulator import compute_simulation
from sales_core.metrics_trends import compute_trends
from sales_core.simulator import SimulationSession


@pytest.fixture
def ctx(data_ctx):
    return prepare_context(SalesFilters(), data_ctx)


def test_overview(ctx):
    payload = compute_overview(SalesFilters(), ctx)
    assert payload["filters"]["profit_range"] == (0.0, 100.0)
    assert payload["kpis"]["total_revenue"] == 410000
    assert payload["filtered_kpis"]["top_store"] == "Bandra"
    assert payload["row_counts"] == {"all": 5, "filtered": 5}


def test_overview_with_filters(data_ctx):
    filters = SalesFilters(category="Smartphones")
    payload = compute_overview(filters, prepare_context(filters, data_ctx))
    assert payload["filtered_kpis"]["total_revenue"] == 150000
    assert payload["kpis"]["total_revenue"] == 410000


def test_trends(ctx):
    payload = compute_trends(SalesFilters(), ctx)
    assert [row["date"] for row in payload["daily"]][0] == "15-07-2023"
    assert payload["cumulative"][-1]["cumulative_sales"] == 410000
    assert payload["peak_day"]["date"] == "12-08-2023"
    assert payload["charts"]["daily_trend"]["mark"]["type"] == "line"
    assert payload["charts"]["cumulative_growth"] is not None


def test_trends_empty_selection(data_ctx):
    filters = SalesFilters(store="Thane")
    payload = compute_trends(filters, prepare_context(filters, data_ctx))
    assert payload["daily"] == []
    assert payload["peak_day"] is None
    assert payload["charts"] == {"daily_trend": None, "cumulative_growth": None}


@pytest.mark.parametrize("view, top", [("store", "Bandra"), ("category", "Laptops")])
def test_performance(ctx, view, top):
    payload = compute_performance(SalesFilters(), ctx, view=view)
    assert payload["top"] == top
    assert payload["rows"][0]["key"] == top
    assert f"revenue_by_{view}" in payload["charts"]


def test_performance_unknown_view(ctx):
    with pytest.raises(ValueError):
        compute_performance(SalesFilters(), ctx, view="region")


def test_profitability(ctx):
    payload = compute_profitability(SalesFilters(), ctx)
    assert len(payload["points"]) == 5
    assert payload["excluded_points"] == 0
    margins = {row["category"]: row["profit_margin"] for row in payload["category_margins"]}
    assert margins["Audio"] == pytest.approx(30.0)
    assert payload["charts"]["revenue_vs_margin"]["mark"]["type"] == "circle"


def test_simulation_updates_session(ctx):
    session = SimulationSession(best_roi=1.0, best_budget=100_000)
    payload = compute_simulation(SalesFilters(), ctx, budget=500_000, session=session)
    assert payload["badge"] == "Needs Optimization"
    assert payload["achievement"] is False
    assert payload["session"]["improved"] is True
    assert payload["session"]["best_budget"] == 500_000
    assert session.best_roi == pytest.approx(payload["result"]["roi"])


def test_insights(ctx):
    payload = compute_insights(SalesFilters(), ctx)
    assert [i["id"] for i in payload["insights"]] == [
        "category-sales-profit",
        "day-of-week-comparison",
        "cumulative-growth",
    ]
    assert [r["title"] for r in payload["recommendations"]] == [
        "Inventory Optimization",
        "Bundling Strategy",
        "Premium Push",
        "Weekend Marketing",
    ]
    assert payload["weekend_lift"]["weekday_avg"] == pytest.approx(75000)
    assert "Laptops = 48.8% of revenue, 12% margin" in payload["insights"][0]["evidence"]
