from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

SALES_COLOR = "#004e92"
PROFIT_COLOR = "#00a896"
WEEKEND_COLOR = "#4286f4"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def rows_frame(rows: Iterable[object]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) if is_dataclass(r) else dict(r) for r in rows])
