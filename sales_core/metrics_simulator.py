from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from sales_core.data import SalesRecord
from sales_core.filters import SalesFilters
from sales_core.simulator import SimulationSession, performance_badge, simulation_insights, simulate


def compute_simulation(
    filters: SalesFilters,
    ctx: Dict[str, Any],
    *,
    budget: float,
    session: Optional[SimulationSession] = None,
) -> Dict[str, Any]:
    filtered: List[SalesRecord] = ctx.get("filtered_records", []) or []
    session = session if session is not None else SimulationSession()
    result = simulate(filtered, budget)
    improved = session.record(budget, result)

    return {
        "filters": asdict(filters),
        "budget": budget,
        "result": asdict(result),
        "badge": performance_badge(result.roi),
        "insights": simulation_insights(result, filtered),
        "achievement": result.roi > 15,
        "session": {
            "best_roi": session.best_roi,
            "best_budget": session.best_budget,
            "best_move": session.best_move,
            "improved": improved,
        },
    }
