"""
Wait Time Tracker - Holiday Calendar
Detects public holidays and fixed high-crowd periods for the park's region.

Holidays come from the `holidays` package (US / FL by default). Peak periods
are a fixed calendar independent of the holiday lookup.
"""

from dataclasses import dataclass
from datetime import date
from threading import Lock
from typing import Dict, List, Optional, Tuple

import holidays

from utils.config import HOLIDAY_COUNTRY, HOLIDAY_SUBDIVISION


# Holidays that reliably drive significantly higher waits
HIGH_IMPACT_HOLIDAYS = frozenset({
    "New Year's Day",
    "Martin Luther King Jr. Day",
    "Presidents' Day",
    "Washington's Birthday",
    "Memorial Day",
    "Independence Day",
    "Labor Day",
    "Columbus Day",
    "Veterans Day",
    "Thanksgiving",
    "Thanksgiving Day",
    "Christmas Day",
})

# (name, (start_month, start_day), (end_month, end_day)), inclusive.
# A range whose start is after its end wraps over the new year.
PEAK_PERIODS: List[Tuple[str, Tuple[int, int], Tuple[int, int]]] = [
    ("Christmas/New Year Week", (12, 20), (1, 3)),
    ("Thanksgiving Week", (11, 20), (11, 30)),
    ("Spring Break", (3, 10), (4, 20)),
    ("Summer Peak", (6, 15), (8, 15)),
    ("Presidents' Day Week", (2, 14), (2, 21)),
]

OBSERVED_SUFFIX = " (observed)"


@dataclass(frozen=True)
class HolidayInfo:
    """Result of a holiday lookup for one date."""
    is_holiday: bool
    holiday_name: Optional[str]
    is_high_impact: bool


@dataclass(frozen=True)
class PeakPeriodInfo:
    """Result of a peak-period lookup for one date."""
    is_peak_period: bool
    period_name: Optional[str]


def _in_range(day: date, start: Tuple[int, int], end: Tuple[int, int]) -> bool:
    key = (day.month, day.day)
    if start <= end:
        return start <= key <= end
    return key >= start or key <= end


def check_peak_period(day: date) -> PeakPeriodInfo:
    """
    Check whether a date falls inside a fixed high-crowd period.

    Args:
        day: Park-local calendar date

    Returns:
        PeakPeriodInfo with the first matching period name
    """
    for name, start, end in PEAK_PERIODS:
        if _in_range(day, start, end):
            return PeakPeriodInfo(is_peak_period=True, period_name=name)
    return PeakPeriodInfo(is_peak_period=False, period_name=None)


def is_high_impact(holiday_name: Optional[str]) -> bool:
    """Check a holiday name (observed or not) against the high-impact list."""
    if not holiday_name:
        return False
    if holiday_name.endswith(OBSERVED_SUFFIX):
        holiday_name = holiday_name[:-len(OBSERVED_SUFFIX)]
    return holiday_name in HIGH_IMPACT_HOLIDAYS


class HolidayCalendar:
    """
    Holiday lookup for a fixed country/subdivision.

    Year tables from the `holidays` package are built on first use and
    kept for the life of the process.
    """

    def __init__(self, country: str = HOLIDAY_COUNTRY, subdivision: Optional[str] = HOLIDAY_SUBDIVISION):
        self.country = country
        self.subdivision = subdivision or None
        self._years: Dict[int, holidays.HolidayBase] = {}
        self._lock = Lock()

    def _for_year(self, year: int) -> holidays.HolidayBase:
        with self._lock:
            table = self._years.get(year)
            if table is None:
                table = holidays.country_holidays(self.country, subdiv=self.subdivision, years=year)
                self._years[year] = table
            return table

    def holiday_names(self, day: date) -> List[str]:
        """All holiday names for a date (empty list if none)."""
        return self._for_year(day.year).get_list(day)

    def check(self, day: date) -> HolidayInfo:
        """
        Look up a date. The first matching holiday is treated as primary.

        Args:
            day: Park-local calendar date

        Returns:
            HolidayInfo
        """
        names = self.holiday_names(day)
        if not names:
            return HolidayInfo(is_holiday=False, holiday_name=None, is_high_impact=False)
        primary = names[0]
        return HolidayInfo(is_holiday=True, holiday_name=primary, is_high_impact=is_high_impact(primary))
