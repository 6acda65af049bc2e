import pytest

from sales_core.data import parse_sales_line
from sales_core.filters import (
    ALL,
    SalesFilters,
    apply_filters,
    filter_options,
    normalize_filters,
    reset_filters,
)


def test_reset_filters_keep_everything(records):
    assert apply_filters(records, reset_filters()) == records
    assert apply_filters(records, None) == records


def test_categorical_filters_combine(records):
    filters = SalesFilters(store="Andheri")
    assert [r.product_category for r in apply_filters(records, filters)] == ["Smartphones", "Audio"]

    filters = filters.with_value("month", "August")
    assert len(apply_filters(records, filters)) == 2

    filters = filters.with_value("day_of_week", "Sunday")
    assert [r.date for r in apply_filters(records, filters)] == ["13-08-2023"]


def test_filtering_is_idempotent(records):
    filters = SalesFilters(category="Smartphones", profit_range=(10, 20))
    once = apply_filters(records, filters)
    assert apply_filters(once, filters) == once


def test_profit_range_is_inclusive(records):
    filters = SalesFilters(profit_range=(30, 40))
    assert [r.product_category for r in apply_filters(records, filters)] == ["Audio", "Accessories"]


def test_nan_margin_only_passes_inactive_range(records):
    zero = parse_sales_line("14-08-2023,Monday,1,Bandra,Audio,0,0,0")
    rows = records + [zero]
    assert zero in apply_filters(rows, reset_filters())
    assert zero not in apply_filters(rows, SalesFilters(profit_range=(0, 50)))


def test_unknown_value_matches_nothing(records):
    assert apply_filters(records, SalesFilters(store="Thane")) == []


def test_with_value_rejects_unknown_field():
    with pytest.raises(ValueError):
        SalesFilters().with_value("region", "West")


def test_with_value_resets_blank_to_all():
    filters = SalesFilters(store="Bandra").with_value("store", "")
    assert filters.store == ALL


def test_reversed_range_is_swapped_on_every_path(records):
    built = SalesFilters(profit_range=(60, 20))
    updated = SalesFilters().with_value("profit_range", (60, 20))
    assert built == updated
    assert built.profit_range == (20.0, 60.0)
    assert [r.product_category for r in apply_filters(records, built)] == ["Audio", "Accessories"]


def test_normalize_filters():
    filters = normalize_filters({"store": " Bandra ", "category": "ALL", "dayOfWeek": "Monday", "profitRange": [60, 20]})
    assert filters.store == "Bandra"
    assert filters.category == ALL
    assert filters.day_of_week == "Monday"
    assert filters.profit_range == (20.0, 60.0)
    assert normalize_filters({}) == SalesFilters()
    assert normalize_filters({"profit_range": "bad"}).profit_range == (0.0, 100.0)


def test_filter_options_keep_first_seen_order(records):
    options = filter_options(records)
    assert options["stores"] == ["Andheri", "Bandra", "Colaba"]
    assert options["categories"] == ["Smartphones", "Laptops", "Audio", "Accessories"]
    assert options["months"] == ["August", "July", "September"]
    assert options["days_of_week"] == ["Thursday", "Saturday", "Sunday", "Friday"]
