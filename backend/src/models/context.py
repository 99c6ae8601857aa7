"""
Wait Time Tracker - Context Value Objects
Temporal and environmental tags attached to every snapshot and peak record.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class WeatherSnapshot:
    """
    Current conditions at the park (Fahrenheit, rounded).

    Attributes:
        temperature: Air temperature
        feels_like: Apparent temperature
        humidity: Relative humidity percent
        weather_code: WMO weather interpretation code
        is_raining: True for drizzle/rain/shower/thunderstorm codes
        description: Human-readable condition for the code
    """
    temperature: int
    feels_like: int
    humidity: int
    weather_code: int
    is_raining: bool
    description: str = "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "feels_like": self.feels_like,
            "humidity": self.humidity,
            "weather_code": self.weather_code,
            "is_raining": self.is_raining,
            "description": self.description,
        }


@dataclass(frozen=True)
class Context:
    """
    Calendar and environmental tags for one instant.

    Calendar fields are derived from `recorded_at` expressed in the park
    timezone. `recorded_at` itself is naive UTC, the storage convention.
    """
    recorded_at: datetime
    day_of_week: int  # 0 = Sunday
    hour: int
    month: int
    year: int
    week_of_year: int
    is_weekend: bool
    is_holiday: bool
    holiday_name: Optional[str] = None
    is_high_impact_holiday: bool = False
    is_peak_period: bool = False
    peak_period_name: Optional[str] = None
    weather: Optional[WeatherSnapshot] = field(default=None)

    @property
    def is_busy_date(self) -> bool:
        """High-impact holiday or inside a peak period."""
        return self.is_high_impact_holiday or self.is_peak_period

    def snapshot_columns(self) -> Dict[str, Any]:
        """Column values for a WaitTimeSnapshot row."""
        weather = self.weather
        return {
            "day_of_week": self.day_of_week,
            "hour": self.hour,
            "month": self.month,
            "year": self.year,
            "week_of_year": self.week_of_year,
            "is_weekend": self.is_weekend,
            "is_holiday": self.is_holiday,
            "holiday_name": self.holiday_name,
            "weather_temperature": weather.temperature if weather else None,
            "weather_feels_like": weather.feels_like if weather else None,
            "weather_humidity": weather.humidity if weather else None,
            "weather_code": weather.weather_code if weather else None,
            "weather_is_raining": weather.is_raining if weather else None,
        }

    def peak_context(self) -> Dict[str, Any]:
        """JSON document stored with a ride's all-time peak."""
        return {
            "day_of_week": self.day_of_week,
            "hour": self.hour,
            "month": self.month,
            "year": self.year,
            "is_weekend": self.is_weekend,
            "is_holiday": self.is_holiday,
            "holiday_name": self.holiday_name,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.peak_context()
        data.update({
            "recorded_at": self.recorded_at.isoformat(),
            "week_of_year": self.week_of_year,
            "is_high_impact_holiday": self.is_high_impact_holiday,
            "is_peak_period": self.is_peak_period,
            "peak_period_name": self.peak_period_name,
            "is_busy_date": self.is_busy_date,
            "weather": self.weather.to_dict() if self.weather else None,
        })
        return data


def peak_context_from_snapshot(snapshot) -> Dict[str, Any]:
    """Rebuild the stored peak context from a persisted snapshot row."""
    return {
        "day_of_week": snapshot.day_of_week,
        "hour": snapshot.hour,
        "month": snapshot.month,
        "year": snapshot.year,
        "is_weekend": snapshot.is_weekend,
        "is_holiday": snapshot.is_holiday,
        "holiday_name": snapshot.holiday_name,
    }
