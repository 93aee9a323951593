"""
Date and number helpers
"""
import pytest

from app.utils.common import (
    generate_date_for_week,
    month_key,
    month_sort_key,
    parse_iso_date,
    parse_month_key,
    percent_change,
    previous_months,
    round_half_up,
    safe_div,
    share_percent,
    to_number,
)


class TestMonthKeys:
    def test_month_key_normalizes_case(self):
        assert month_key("november", 2025) == "November-2025"
        assert month_key("DECEMBER", "2024") == "December-2024"

    def test_parse_month_key(self):
        assert parse_month_key("November-2025") == (11, 2025)
        assert parse_month_key("march-2024") == (3, 2024)

    @pytest.mark.parametrize("bad", ["", "Smarch-2025", "November", "November-twenty"])
    def test_parse_month_key_rejects_malformed(self, bad):
        assert parse_month_key(bad) is None

    def test_month_sort_key_is_chronological(self):
        months = ["January-2026", "November-2025", "December-2025", "garbage"]
        assert sorted(months, key=month_sort_key) == [
            "garbage", "November-2025", "December-2025", "January-2026",
        ]

    def test_previous_months_crosses_year(self):
        assert previous_months("January", 2026) == [("December", 2025), ("November", 2025)]
        assert previous_months("march", "2025", n=1) == [("February", 2025)]

    def test_previous_months_unknown_name(self):
        with pytest.raises(ValueError):
            previous_months("Smarch", 2025)


class TestWeekDates:
    def test_first_sunday(self):
        # 1 Nov 2025 is a Saturday
        assert generate_date_for_week("Week 1", "November-2025") == "2025-11-02"

    def test_later_weeks(self):
        assert generate_date_for_week("Week 3", "November-2025") == "2025-11-16"

    def test_month_starting_on_sunday(self):
        assert generate_date_for_week("Week 1", "June-2025") == "2025-06-01"

    def test_unknown_week_label_is_week_one(self):
        assert generate_date_for_week("Harvest", "November-2025") == "2025-11-02"

    def test_malformed_month(self):
        assert generate_date_for_week("Week 1", "someday") == ""


class TestNumbers:
    @pytest.mark.parametrize("raw, expected", [
        (None, 0.0),
        ("", 0.0),
        ("abc", 0.0),
        ("1,250", 1250.0),
        (" 42 ", 42.0),
        (-5, 0.0),
        (float("nan"), 0.0),
        (True, 0.0),
        (7, 7.0),
    ])
    def test_to_number(self, raw, expected):
        assert to_number(raw) == expected

    def test_safe_div_zero(self):
        assert safe_div(10, 0) == 0.0
        assert safe_div(10, 4) == 2.5

    def test_share_percent_bounds(self):
        assert share_percent(1, 3) == 33.3
        assert share_percent(5, 0) == 0.0
        assert share_percent(150, 100) == 100.0

    @pytest.mark.parametrize("raw, expected", [(2.5, 3), (10.5, 11), (0.5, 1), (3.49, 3), (7, 7)])
    def test_round_half_up(self, raw, expected):
        assert round_half_up(raw) == expected

    def test_round_half_up_precision(self):
        assert round_half_up(4.25, 1) == 4.3
        assert share_percent(1, 16) == 6.3

    def test_percent_change(self):
        assert percent_change(0, 0) == 0.0
        assert percent_change(0, 50) == 100.0
        assert percent_change(200, 100) == -50.0

    def test_parse_iso_date(self):
        assert parse_iso_date("2025-11-02").isoformat() == "2025-11-02"
        assert parse_iso_date("2025-11-02T10:00:00Z").isoformat() == "2025-11-02"
        assert parse_iso_date("not a date") is None
        assert parse_iso_date("") is None
