"""
Wait Time Tracker - Context Enricher Unit Tests

Calendar fields are park-local (America/New_York) while recorded_at stays
naive UTC.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import Mock
from freezegun import freeze_time

from collector.openmeteo_client import WeatherService
from models.context import WeatherSnapshot
from processor.context_enricher import ContextEnricher, sunday_based_weekday
from processor.holiday_calendar import HolidayCalendar


@pytest.fixture(scope="module")
def calendar():
    return HolidayCalendar(country='US', subdivision='FL')


@pytest.fixture
def enricher(calendar):
    return ContextEnricher(holiday_calendar=calendar, include_weather=False)


class TestSundayBasedWeekday:

    @pytest.mark.parametrize("day,expected", [
        (datetime(2025, 10, 19), 0),  # Sunday
        (datetime(2025, 10, 20), 1),  # Monday
        (datetime(2025, 10, 21), 2),  # Tuesday
        (datetime(2025, 10, 25), 6),  # Saturday
    ])
    def test_weekday_mapping(self, day, expected):
        assert sunday_based_weekday(day) == expected


class TestContextEnricher:

    def test_tuesday_afternoon(self, enricher):
        """18:00 UTC on 2025-10-21 is 2 PM Tuesday at the park."""
        context = enricher.build(datetime(2025, 10, 21, 18, 0))

        assert context.recorded_at == datetime(2025, 10, 21, 18, 0)
        assert context.day_of_week == 2
        assert context.hour == 14
        assert context.month == 10
        assert context.year == 2025
        assert context.week_of_year == 43
        assert context.is_weekend is False
        assert context.is_holiday is False
        assert context.is_peak_period is False
        assert context.is_busy_date is False
        assert context.weather is None

    def test_late_night_uses_local_date(self, enricher):
        """02:30 UTC Wednesday is still 10:30 PM Tuesday at the park."""
        context = enricher.build(datetime(2025, 10, 22, 2, 30))

        assert context.day_of_week == 2
        assert context.hour == 22

    def test_aware_input_normalized(self, enricher):
        context = enricher.build(datetime(2025, 7, 4, 16, 0, tzinfo=timezone.utc))

        assert context.recorded_at == datetime(2025, 7, 4, 16, 0)
        assert context.recorded_at.tzinfo is None
        assert context.hour == 12
        assert context.day_of_week == 5
        assert context.is_holiday is True
        assert context.holiday_name == "Independence Day"
        assert context.is_high_impact_holiday is True
        assert context.is_peak_period is True
        assert context.peak_period_name == "Summer Peak"
        assert context.is_busy_date is True

    def test_weekend(self, enricher):
        context = enricher.build(datetime(2025, 10, 25, 16, 0))  # Saturday noon local

        assert context.day_of_week == 6
        assert context.is_weekend is True

    @freeze_time("2025-10-21 18:00:00")
    def test_defaults_to_now(self, enricher):
        context = enricher.build()

        assert context.recorded_at == datetime(2025, 10, 21, 18, 0)
        assert context.hour == 14

    def test_weather_attached(self, calendar):
        weather = WeatherSnapshot(temperature=85, feels_like=91, humidity=71,
                                  weather_code=61, is_raining=True, description='Light Rain')
        service = Mock(spec=WeatherService)
        service.get_current_weather.return_value = weather
        enricher = ContextEnricher(weather_service=service, holiday_calendar=calendar)

        context = enricher.build(datetime(2025, 10, 21, 18, 0))

        assert context.weather == weather
        columns = context.snapshot_columns()
        assert columns['weather_temperature'] == 85
        assert columns['weather_is_raining'] is True

    def test_weather_unavailable_is_omitted(self, calendar):
        service = Mock(spec=WeatherService)
        service.get_current_weather.return_value = None
        enricher = ContextEnricher(weather_service=service, holiday_calendar=calendar)

        context = enricher.build(datetime(2025, 10, 21, 18, 0))

        assert context.weather is None
        assert context.snapshot_columns()['weather_code'] is None


class TestContextSerialization:

    def test_peak_context_fields(self, enricher):
        context = enricher.build(datetime(2025, 7, 4, 16, 0))

        assert context.peak_context() == {
            'day_of_week': 5,
            'hour': 12,
            'month': 7,
            'year': 2025,
            'is_weekend': False,
            'is_holiday': True,
            'holiday_name': "Independence Day",
        }

    def test_to_dict_includes_derived_flags(self, enricher):
        data = enricher.build(datetime(2025, 7, 4, 16, 0)).to_dict()

        assert data['recorded_at'] == '2025-07-04T16:00:00'
        assert data['is_busy_date'] is True
        assert data['peak_period_name'] == "Summer Peak"
        assert data['weather'] is None
