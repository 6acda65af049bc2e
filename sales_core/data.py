from __future__ import annotations

import logging
import math
import re
from dataclasses import asdict, dataclass, field, fields
from datetime import date as Date
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from sales_core.filters import SalesFilters, apply_filters, filter_options, normalize_filters


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE = "mumbai_electronics_sales.csv"

NOT_AVAILABLE = "N/A"
CSV_COLUMNS = [
    "Date",
    "DayOfWeek",
    "StoreID",
    "StoreLocation",
    "ProductCategory",
    "UnitsSold",
    "TotalSales_INR",
    "Profit_INR",
]

Number = Union[int, float]

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: object) -> Number:
    """Read the leading integer of ``value``; NaN when there is none."""
    if value is None:
        return math.nan
    match = _INT_PREFIX.match(str(value))
    if not match:
        return math.nan
    return int(match.group(1))


def is_nan(value: object) -> bool:
    return isinstance(value, float) and math.isnan(value)


def parse_display_date(value: str) -> Optional[Date]:
    """Parse ``DD-MM-YYYY`` by reversing its components into (year, month, day)."""
    parts = (value or "").strip().split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in reversed(parts))
        return Date(year, month, day)
    except ValueError:
        return None


def week_number(day: Date) -> int:
    # Week 1 starts on 1 January; Jan 1's weekday counts from Sunday = 0.
    start = Date(day.year, 1, 1)
    days = (day - start).days
    return math.ceil((days + start.isoweekday() % 7 + 1) / 7)


def month_name(day: Date) -> str:
    return pd.Timestamp(day).month_name()


def safe_ratio(numerator: Number, denominator: Number, scale: float = 1.0) -> float:
    if is_nan(numerator) or is_nan(denominator) or denominator == 0:
        return math.nan
    return numerator / denominator * scale


@dataclass(frozen=True)
class SalesRecord:
    date: str
    day_of_week: str
    store_id: Number
    store_location: str
    product_category: str
    units_sold: Number
    total_sales_amount: Number
    profit_amount: Number
    parsed_date: Optional[Date] = field(init=False)
    month: Optional[str] = field(init=False)
    week_number: Optional[int] = field(init=False)
    profit_margin: float = field(init=False)
    revenue_per_unit: float = field(init=False)

    def __post_init__(self) -> None:
        parsed = parse_display_date(self.date)
        object.__setattr__(self, "parsed_date", parsed)
        object.__setattr__(self, "month", month_name(parsed) if parsed else None)
        object.__setattr__(self, "week_number", week_number(parsed) if parsed else None)
        object.__setattr__(self, "profit_margin", safe_ratio(self.profit_amount, self.total_sales_amount, 100.0))
        object.__setattr__(self, "revenue_per_unit", safe_ratio(self.total_sales_amount, self.units_sold))

    @property
    def is_valid(self) -> bool:
        numbers = (self.store_id, self.units_sold, self.total_sales_amount, self.profit_amount)
        return self.parsed_date is not None and not any(is_nan(v) for v in numbers)

    @property
    def sort_key(self) -> Tuple[bool, Date]:
        return (self.parsed_date is None, self.parsed_date or Date.min)


RECORD_COLUMNS = [f.name for f in fields(SalesRecord)]


# ---------------- Parsing ----------------
def parse_sales_line(line: str) -> SalesRecord:
    values = [v.strip() for v in line.split(",")]
    values += [""] * (len(CSV_COLUMNS) - len(values))
    return SalesRecord(
        date=values[0],
        day_of_week=values[1],
        store_id=parse_int(values[2]),
        store_location=values[3],
        product_category=values[4],
        units_sold=parse_int(values[5]),
        total_sales_amount=parse_int(values[6]),
        profit_amount=parse_int(values[7]),
    )


def parse_sales_csv(raw_text: str) -> List[SalesRecord]:
    body = [(no, line) for no, line in enumerate((raw_text or "").splitlines(), start=1) if line.strip()]
    if not body:
        return []
    records: List[SalesRecord] = []
    for line_no, line in body[1:]:
        record = parse_sales_line(line)
        if not record.is_valid:
            logger.warning("Malformed sales row at line %d: %r", line_no, line)
        records.append(record)
    return records


def records_to_frame(records: Iterable[SalesRecord]) -> pd.DataFrame:
    rows = [asdict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def as_number(value: object) -> Number:
    """Unwrap numpy scalars so payloads stay plain Python."""
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# ---------------- Formatting ----------------
def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_number(value: object, decimals: int = 0) -> str:
    if value is None or pd.isna(value):
        return NOT_AVAILABLE
    value = float(value)
    sign = "-" if value < 0 else ""
    whole, _, frac = f"{abs(value):.{decimals}f}".partition(".")
    text = _group_indian(whole)
    return f"{sign}{text}.{frac}" if frac else f"{sign}{text}"


def format_currency(value: object, decimals: int = 0) -> str:
    text = format_number(value, decimals)
    if text == NOT_AVAILABLE:
        return text
    if text.startswith("-"):
        return f"-₹{text[1:]}"
    return f"₹{text}"


def format_percent(value: object, decimals: int = 1) -> str:
    if value is None or pd.isna(value):
        return NOT_AVAILABLE
    return f"{float(value):.{decimals}f}%"


# ---------------- Profile ----------------
def dataset_profile(records: List[SalesRecord]) -> Dict[str, object]:
    dated = [r.parsed_date for r in records if r.parsed_date is not None]
    valid = sum(1 for r in records if r.is_valid)
    months: List[str] = []
    for r in sorted(records, key=lambda r: r.sort_key):
        if r.month and r.month not in months:
            months.append(r.month)
    return {
        "records": len(records),
        "columns": len(CSV_COLUMNS),
        "start_date": min(dated).isoformat() if dated else None,
        "end_date": max(dated).isoformat() if dated else None,
        "months": months,
        "valid_rows": valid,
        "invalid_rows": len(records) - valid,
        "valid_share": (valid / len(records)) if records else 0.0,
    }


# ---------------- Loaders ----------------
def get_source_files() -> List[Path]:
    path = DATA_DIR / DATA_FILE
    return [path] if path.exists() else []


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((f.name, f.stat().st_mtime) for f in files)


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    name = files_sig[0][0]
    raw_text = (DATA_DIR / name).read_text(encoding="utf-8")
    records = parse_sales_csv(raw_text)
    invalid_rows = sum(1 for r in records if not r.is_valid)
    logger.info("Loaded %d sales records from %s (%d invalid)", len(records), name, invalid_rows)
    return {
        "files": [n for n, _ in files_sig],
        "raw_text": raw_text,
        "records": records,
        "options": filter_options(records),
        "invalid_rows": invalid_rows,
    }


def empty_data_context() -> Dict[str, object]:
    return {"files": [], "raw_text": "", "records": [], "options": {}, "invalid_rows": 0}


def load_dashboard_data() -> Dict[str, object]:
    files = get_source_files()
    if not files:
        logger.warning("Sales data file %s not found in %s", DATA_FILE, DATA_DIR)
        return empty_data_context()
    return _load_dashboard_data_cached(file_signature(files))


def build_data_context(raw_text: str, name: str = "inline") -> Dict[str, object]:
    """Data context for CSV text that does not come from ``DATA_DIR``."""
    records = parse_sales_csv(raw_text)
    return {
        "files": [name],
        "raw_text": raw_text,
        "records": records,
        "options": filter_options(records),
        "invalid_rows": sum(1 for r in records if not r.is_valid),
    }


def prepare_context(filters: dict | SalesFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    from sales_core.aggregation import summarize

    records: List[SalesRecord] = list(data_ctx.get("records", []) or [])
    filt = filters if isinstance(filters, SalesFilters) else normalize_filters(filters or {})
    filtered = apply_filters(records, filt)
    return {
        "filters": filt,
        "records": records,
        "filtered_records": filtered,
        "kpis": summarize(records),
        "filtered_kpis": summarize(filtered),
        "invalid_rows": data_ctx.get("invalid_rows", 0),
    }
