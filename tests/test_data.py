import logging
import math
from datetime import date

import pytest

from sales_core.data import (
    build_data_context,
    dataset_profile,
    format_currency,
    format_number,
    format_percent,
    parse_display_date,
    parse_int,
    parse_sales_csv,
    parse_sales_line,
    prepare_context,
    week_number,
)
from sales_core.filters import SalesFilters


class TestParseSalesLine:
    def test_derived_fields(self):
        record = parse_sales_line("10-08-2023,Thursday,3,Andheri,Smartphones,10,100000,15000")

        assert record.store_id == 3
        assert record.store_location == "Andheri"
        assert record.units_sold == 10
        assert record.parsed_date == date(2023, 8, 10)
        assert record.month == "August"
        assert record.week_number == 32
        assert record.profit_margin == pytest.approx(15.0)
        assert record.revenue_per_unit == pytest.approx(10000.0)
        assert record.is_valid

    def test_fields_are_trimmed(self):
        record = parse_sales_line(" 10-08-2023 , Thursday ,3, Andheri ,Audio , 2,100,30")
        assert record.day_of_week == "Thursday"
        assert record.store_location == "Andheri"
        assert record.product_category == "Audio"
        assert record.units_sold == 2

    def test_non_numeric_fields_become_nan(self):
        record = parse_sales_line("10-08-2023,Thursday,3,Andheri,Audio,abc,100,30")
        assert math.isnan(record.units_sold)
        assert math.isnan(record.revenue_per_unit)
        assert record.profit_margin == pytest.approx(30.0)
        assert not record.is_valid

    def test_numeric_prefix_is_kept(self):
        assert parse_int("12abc") == 12
        assert parse_int("-7") == -7
        assert math.isnan(parse_int(""))

    def test_zero_sales_gives_nan_ratios(self):
        record = parse_sales_line("10-08-2023,Thursday,3,Andheri,Audio,0,0,0")
        assert math.isnan(record.profit_margin)
        assert math.isnan(record.revenue_per_unit)

    def test_missing_fields_are_empty(self):
        record = parse_sales_line("10-08-2023,Thursday,3")
        assert record.store_location == ""
        assert math.isnan(record.profit_amount)

    def test_invalid_date(self):
        record = parse_sales_line("31-02-2023,Friday,1,Bandra,Audio,1,100,10")
        assert record.parsed_date is None
        assert record.month is None
        assert record.week_number is None
        assert not record.is_valid


class TestDates:
    def test_parse_display_date(self):
        assert parse_display_date("01-09-2023") == date(2023, 9, 1)
        assert parse_display_date("2023/09/01") is None
        assert parse_display_date("") is None

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2023, 1, 1), 1),
            (date(2023, 1, 7), 1),
            (date(2023, 1, 8), 2),
            (date(2023, 8, 10), 32),
            (date(2024, 1, 6), 1),
            (date(2024, 1, 7), 2),
            (date(2024, 12, 31), 53),
        ],
    )
    def test_week_number(self, day, expected):
        assert week_number(day) == expected

    def test_record_week_uses_its_own_year(self):
        # 1 January 2024 is a Monday, so the first Sunday opens week 2.
        saturday = parse_sales_line("06-01-2024,Saturday,1,Bandra,Audio,1,100,10")
        sunday = parse_sales_line("07-01-2024,Sunday,1,Bandra,Audio,1,100,10")
        assert saturday.week_number == 1
        assert sunday.week_number == 2


class TestParseSalesCsv:
    def test_header_skipped(self, records):
        assert len(records) == 5
        assert records[0].date == "10-08-2023"

    def test_blank_lines_skipped(self, sample_csv):
        padded = "\n" + sample_csv.replace("\n", "\n\n")
        assert len(parse_sales_csv(padded)) == 5

    def test_empty_input(self):
        assert parse_sales_csv("") == []
        assert parse_sales_csv("Date,DayOfWeek\n") == []

    def test_malformed_row_is_kept_and_logged(self, sample_csv, caplog):
        text = sample_csv + "bad-date,Monday,x,Andheri,Audio,1,100,10\n"
        with caplog.at_level(logging.WARNING, logger="sales_core.data"):
            records = parse_sales_csv(text)
        assert len(records) == 6
        assert not records[-1].is_valid
        assert "Malformed sales row at line 7" in caplog.text


class TestFormatting:
    def test_indian_grouping(self):
        assert format_currency(1234567) == "₹12,34,567"
        assert format_currency(999) == "₹999"
        assert format_currency(-1500) == "-₹1,500"
        assert format_number(100000) == "1,00,000"

    def test_not_available(self):
        assert format_currency(math.nan) == "N/A"
        assert format_percent(None) == "N/A"

    def test_percent(self):
        assert format_percent(15) == "15.0%"
        assert format_percent(12.345, 0) == "12%"


class TestContext:
    def test_profile(self, records):
        profile = dataset_profile(records)
        assert profile["records"] == 5
        assert profile["columns"] == 8
        assert profile["start_date"] == "2023-07-15"
        assert profile["end_date"] == "2023-09-01"
        assert profile["months"] == ["July", "August", "September"]
        assert profile["invalid_rows"] == 0

    def test_build_data_context(self, sample_csv):
        ctx = build_data_context(sample_csv)
        assert ctx["raw_text"] == sample_csv
        assert ctx["options"]["stores"] == ["Andheri", "Bandra", "Colaba"]

    def test_prepare_context_accepts_dict(self, data_ctx):
        ctx = prepare_context({"store": "Bandra"}, data_ctx)
        assert ctx["filters"] == SalesFilters(store="Bandra")
        assert len(ctx["filtered_records"]) == 2
        assert ctx["filtered_kpis"].total_revenue == 250000
        assert ctx["kpis"].total_revenue == 410000
