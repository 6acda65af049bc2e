from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from sales_core.data import SalesRecord


ALL = "all"
DEFAULT_PROFIT_RANGE: Tuple[float, float] = (0.0, 100.0)
CATEGORICAL_FIELDS = {
    "store": "store_location",
    "category": "product_category",
    "month": "month",
    "day_of_week": "day_of_week",
}


@dataclass(frozen=True)
class SalesFilters:
    store: str = ALL
    category: str = ALL
    month: str = ALL
    day_of_week: str = ALL
    profit_range: Tuple[float, float] = DEFAULT_PROFIT_RANGE

    def __post_init__(self) -> None:
        object.__setattr__(self, "profit_range", _as_range(self.profit_range))

    @property
    def range_active(self) -> bool:
        # The full domain is the reset state and constrains nothing.
        return tuple(self.profit_range) != DEFAULT_PROFIT_RANGE

    def active_categoricals(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in CATEGORICAL_FIELDS if getattr(self, name) != ALL}

    def with_value(self, name: str, value: object) -> "SalesFilters":
        if name not in CATEGORICAL_FIELDS and name != "profit_range":
            raise ValueError(f"Unknown filter field: {name}")
        if name == "profit_range":
            value = _as_range(value)
        else:
            value = _as_choice(value)
        return replace(self, **{name: value})


def reset_filters() -> SalesFilters:
    return SalesFilters()


def _as_choice(value: object) -> str:
    if value is None:
        return ALL
    s = str(value).strip()
    if not s or s.lower() == ALL:
        return ALL
    return s


def _as_range(value: object) -> Tuple[float, float]:
    if not value or isinstance(value, str):
        return DEFAULT_PROFIT_RANGE
    try:
        low, high = (float(v) for v in value)  # type: ignore[union-attr]
    except (TypeError, ValueError):
        return DEFAULT_PROFIT_RANGE
    if math.isnan(low) or math.isnan(high):
        return DEFAULT_PROFIT_RANGE
    if low > high:
        low, high = high, low
    return (low, high)


def normalize_filters(raw: dict) -> SalesFilters:
    raw = raw or {}
    return SalesFilters(
        store=_as_choice(raw.get("store")),
        category=_as_choice(raw.get("category")),
        month=_as_choice(raw.get("month")),
        day_of_week=_as_choice(raw.get("day_of_week", raw.get("dayOfWeek"))),
        profit_range=_as_range(raw.get("profit_range", raw.get("profitRange"))),
    )


def matches(record: "SalesRecord", filters: SalesFilters) -> bool:
    for name, value in filters.active_categoricals().items():
        if getattr(record, CATEGORICAL_FIELDS[name]) != value:
            return False
    if filters.range_active:
        low, high = filters.profit_range
        margin = record.profit_margin
        if math.isnan(margin) or margin < low or margin > high:
            return False
    return True


def apply_filters(records: Sequence["SalesRecord"], filters: Optional[SalesFilters]) -> List["SalesRecord"]:
    if filters is None:
        return list(records)
    return [r for r in records if matches(r, filters)]


def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def filter_options(records: Sequence["SalesRecord"]) -> Dict[str, List[str]]:
    return {
        "stores": _distinct(r.store_location for r in records),
        "categories": _distinct(r.product_category for r in records),
        "months": _distinct(r.month for r in records),
        "days_of_week": _distinct(r.day_of_week for r in records),
    }
