"""
Wait Time Tracker - Holiday Calendar Unit Tests

Tests holiday lookup (US / FL via the holidays package), the high-impact
allow-list and the fixed peak-period calendar.
"""

import pytest
from datetime import date

from processor.holiday_calendar import (
    HolidayCalendar,
    check_peak_period,
    is_high_impact,
)


@pytest.fixture(scope="module")
def calendar():
    return HolidayCalendar(country='US', subdivision='FL')


class TestHolidayLookup:

    def test_independence_day_is_high_impact(self, calendar):
        info = calendar.check(date(2025, 7, 4))

        assert info.is_holiday is True
        assert info.holiday_name == "Independence Day"
        assert info.is_high_impact is True

    def test_ordinary_tuesday(self, calendar):
        info = calendar.check(date(2025, 10, 21))

        assert info.is_holiday is False
        assert info.holiday_name is None
        assert info.is_high_impact is False

    def test_thanksgiving_is_high_impact(self, calendar):
        info = calendar.check(date(2025, 11, 27))

        assert info.is_holiday is True
        assert "Thanksgiving" in info.holiday_name
        assert info.is_high_impact is True

    def test_holiday_names_list(self, calendar):
        assert "Christmas Day" in calendar.holiday_names(date(2025, 12, 25))
        assert calendar.holiday_names(date(2025, 10, 21)) == []

    def test_year_table_reused(self, calendar):
        calendar.check(date(2026, 1, 1))
        table = calendar._years[2026]
        calendar.check(date(2026, 7, 4))

        assert calendar._years[2026] is table


class TestHighImpact:

    @pytest.mark.parametrize("name", [
        "New Year's Day", "Memorial Day", "Labor Day", "Christmas Day",
        "Washington's Birthday", "Thanksgiving Day",
    ])
    def test_allow_listed(self, name):
        assert is_high_impact(name) is True

    def test_observed_suffix_stripped(self):
        assert is_high_impact("Independence Day (observed)") is True

    @pytest.mark.parametrize("name", [None, "", "Juneteenth National Independence Day", "Good Friday"])
    def test_not_high_impact(self, name):
        assert is_high_impact(name) is False


class TestPeakPeriods:

    @pytest.mark.parametrize("day,expected", [
        (date(2025, 12, 20), "Christmas/New Year Week"),
        (date(2025, 12, 31), "Christmas/New Year Week"),
        (date(2026, 1, 3), "Christmas/New Year Week"),
        (date(2025, 11, 25), "Thanksgiving Week"),
        (date(2025, 3, 10), "Spring Break"),
        (date(2025, 4, 20), "Spring Break"),
        (date(2025, 7, 1), "Summer Peak"),
        (date(2025, 2, 17), "Presidents' Day Week"),
    ])
    def test_inside_period(self, day, expected):
        info = check_peak_period(day)

        assert info.is_peak_period is True
        assert info.period_name == expected

    @pytest.mark.parametrize("day", [
        date(2025, 1, 4), date(2025, 4, 21), date(2025, 8, 16), date(2025, 10, 21), date(2025, 12, 19),
    ])
    def test_outside_periods(self, day):
        info = check_peak_period(day)

        assert info.is_peak_period is False
        assert info.period_name is None
