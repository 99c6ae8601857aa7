"""
Wait Time Tracker - Context Enricher
Builds the calendar, holiday and weather tags attached to every snapshot.
"""

from datetime import datetime
from typing import Optional

from collector.openmeteo_client import WeatherService, get_weather_service
from models.context import Context
from utils.timezone import to_local, to_naive_utc, utc_now
from processor.holiday_calendar import HolidayCalendar, check_peak_period


def sunday_based_weekday(moment: datetime) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return (moment.weekday() + 1) % 7


class ContextEnricher:
    """
    Produces a Context for an instant.

    Calendar fields use the park timezone. Weather is looked up through the
    shared WeatherService and omitted when unavailable.

    Args:
        weather_service: Weather lookup (defaults to the process-wide service)
        holiday_calendar: Holiday lookup (defaults to US/FL)
        include_weather: Set False to skip the weather lookup entirely
    """

    def __init__(self, weather_service: Optional[WeatherService] = None,
                 holiday_calendar: Optional[HolidayCalendar] = None,
                 include_weather: bool = True):
        self.weather_service = weather_service
        self.holiday_calendar = holiday_calendar or HolidayCalendar()
        self.include_weather = include_weather

    def build(self, now: Optional[datetime] = None) -> Context:
        """
        Build the Context for an instant.

        Args:
            now: Aware datetime or naive UTC (defaults to current time)

        Returns:
            Context whose recorded_at is naive UTC
        """
        recorded_at = to_naive_utc(now) if now is not None else utc_now()
        local = to_local(recorded_at)
        local_date = local.date()

        day_of_week = sunday_based_weekday(local)
        holiday = self.holiday_calendar.check(local_date)
        peak = check_peak_period(local_date)

        weather = None
        if self.include_weather:
            service = self.weather_service or get_weather_service()
            weather = service.get_current_weather()

        return Context(
            recorded_at=recorded_at,
            day_of_week=day_of_week,
            hour=local.hour,
            month=local.month,
            year=local.year,
            week_of_year=local.isocalendar()[1],
            is_weekend=day_of_week in (0, 6),
            is_holiday=holiday.is_holiday,
            holiday_name=holiday.holiday_name,
            is_high_impact_holiday=holiday.is_high_impact,
            is_peak_period=peak.is_peak_period,
            peak_period_name=peak.period_name,
            weather=weather,
        )
