"""Budget "what-if" simulator.

The projection is a fixed linear model: historical spend is assumed to be 4% of
revenue, the resulting return ratio is applied to the budget. The numbers are a
business simplification and are reproduced as-is.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sales_core.aggregation import ranked_breakdown, summarize
from sales_core.data import SalesRecord, format_number


HISTORICAL_SPEND_RATIO = 0.04


@dataclass(frozen=True)
class BudgetLimits:
    default: float = 500_000
    minimum: float = 50_000
    maximum: float = 10_000_000
    step: float = 50_000


@dataclass(frozen=True)
class SimulationResult:
    expected_revenue: float = 0.0
    expected_profit: float = 0.0
    roi: float = 0.0
    revenue_to_spend_ratio: float = 0.0
    profit_margin: float = 0.0


def simulate(records: Sequence[SalesRecord], budget: float) -> SimulationResult:
    if not records:
        return SimulationResult()

    kpis = summarize(records)
    total_revenue = kpis.total_revenue
    total_profit = kpis.total_profit

    average_roi = total_profit / (total_revenue * HISTORICAL_SPEND_RATIO) if total_revenue > 0 else 0.0
    investment_multiplier = average_roi / 100

    expected_profit = budget * investment_multiplier
    expected_revenue = budget + expected_profit

    roi = expected_profit / budget * 100 if budget > 0 else 0.0
    revenue_to_spend_ratio = expected_revenue / budget if budget > 0 else 0.0
    profit_margin = expected_profit / expected_revenue * 100 if expected_revenue > 0 else 0.0

    return SimulationResult(
        expected_revenue=expected_revenue,
        expected_profit=expected_profit,
        roi=roi,
        revenue_to_spend_ratio=revenue_to_spend_ratio,
        profit_margin=profit_margin,
    )


@dataclass
class SimulationSession:
    """Best ROI seen across simulate calls; owned by whoever drives the UI."""

    best_roi: float = 0.0
    best_budget: Optional[float] = None

    @property
    def best_move(self) -> str:
        if self.best_budget is None:
            return ""
        return f"₹{format_number(self.best_budget)} budget strategy"

    def record(self, budget: float, result: SimulationResult) -> bool:
        if result.roi > self.best_roi:
            self.best_roi = result.roi
            self.best_budget = budget
            return True
        return False

    def run(self, records: Sequence[SalesRecord], budget: float) -> SimulationResult:
        result = simulate(records, budget)
        self.record(budget, result)
        return result


def performance_badge(roi: float) -> str:
    if roi > 15:
        return "Smart Investor"
    if roi >= 8:
        return "Average Spender"
    return "Needs Optimization"


def _best_margin(records: Sequence[SalesRecord], dimension: str):
    rows = [r for r in ranked_breakdown(records, dimension) if not math.isnan(r.profit_margin)]
    if not rows:
        return None
    return max(rows, key=lambda r: r.profit_margin)


def simulation_insights(result: SimulationResult, records: Sequence[SalesRecord]) -> List[str]:
    insights: List[str] = []
    if result.roi > 15:
        insights.append("Excellent choice! This investment strategy shows strong potential returns.")
    elif result.roi < 8:
        insights.append("Consider adjusting your strategy - try different stores or product categories for better ROI.")

    store = _best_margin(records, "store")
    if store is not None:
        insights.append(
            f"{store.key} store shows the highest profit margin at {store.profit_margin:.1f}% - consider focusing your budget here."
        )

    category = _best_margin(records, "category")
    if category is not None:
        insights.append(
            f"{category.key} category offers {category.profit_margin:.1f}% profit margin - great for maximizing returns."
        )

    if result.roi > 12:
        insights.append("This strategy could be your 'Best Move of the Day' - keep experimenting with different filters!")
    return insights
