from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

from sales_core.aggregation import KPISummary
from sales_core.data import SalesRecord, dataset_profile
from sales_core.filters import SalesFilters


def compute_overview(filters: SalesFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: List[SalesRecord] = ctx.get("records", []) or []
    filtered: List[SalesRecord] = ctx.get("filtered_records", []) or []
    kpis: KPISummary = ctx.get("kpis") or KPISummary()
    filtered_kpis: KPISummary = ctx.get("filtered_kpis") or KPISummary()

    return {
        "filters": asdict(filters),
        "profile": dataset_profile(records),
        "kpis": asdict(kpis),
        "filtered_kpis": asdict(filtered_kpis),
        "row_counts": {"all": len(records), "filtered": len(filtered)},
    }
