"""
Open-Meteo Weather API Client
===============================

Client for current conditions at the park from the Open-Meteo API
(no API key required), plus the cached best-effort weather lookup used by
context enrichment.

Features:
- API response validation
- Fahrenheit values rounded to whole degrees
- One quick retry on connection failures (read timeouts are not retried)
- Single-slot process-wide cache (10 minutes by default)
- Structured JSON logging

API Documentation: https://open-meteo.com/en/docs
"""

import requests
from typing import Dict, Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from models.context import WeatherSnapshot
from utils.cache import TTLCache
from utils.config import (
    PARK_TIMEZONE, UPSTREAM_TIMEOUT_SECONDS, WEATHER_CACHE_TTL_SECONDS,
    WEATHER_LATITUDE, WEATHER_LONGITUDE
)
from utils.logger import logger


# Drizzle, rain, freezing rain, rain showers, thunderstorm
RAIN_CODES = frozenset({51, 53, 55, 61, 63, 65, 66, 67, 80, 81, 82, 95, 96, 99})

WEATHER_DESCRIPTIONS = {
    0: 'Clear',
    1: 'Mostly Clear',
    2: 'Partly Cloudy',
    3: 'Cloudy',
    45: 'Foggy',
    48: 'Foggy',
    51: 'Light Drizzle',
    53: 'Drizzle',
    55: 'Heavy Drizzle',
    61: 'Light Rain',
    63: 'Rain',
    65: 'Heavy Rain',
    66: 'Freezing Rain',
    67: 'Heavy Freezing Rain',
    71: 'Light Snow',
    73: 'Snow',
    75: 'Heavy Snow',
    80: 'Light Showers',
    81: 'Showers',
    82: 'Heavy Showers',
    95: 'Thunderstorm',
    96: 'Thunderstorm w/ Hail',
    99: 'Severe Thunderstorm',
}


def get_weather_description(code: Optional[int]) -> str:
    """Human-readable condition for a WMO weather code."""
    return WEATHER_DESCRIPTIONS.get(code, 'Unknown')


def is_rain_code(code: Optional[int]) -> bool:
    return code in RAIN_CODES


class OpenMeteoClient:
    """Client for Open-Meteo current conditions.

    Usage:
        ```python
        client = OpenMeteoClient()
        current = client.fetch_current(latitude=28.3852, longitude=-81.5639)
        ```
    """

    BASE_URL = "https://api.open-meteo.com/v1/forecast"

    CURRENT_VARIABLES = [
        "temperature_2m",
        "apparent_temperature",
        "relative_humidity_2m",
        "weather_code",
    ]

    def __init__(self, timeout: int = UPSTREAM_TIMEOUT_SECONDS):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'WaitTimeTracker/1.0 (weather-context)'
        })

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=2),
        retry=retry_if_exception_type(requests.ConnectionError),
        reraise=True
    )
    def fetch_current(self, latitude: float, longitude: float) -> Dict:
        """Fetch current conditions for coordinates.

        Args:
            latitude: Latitude in decimal degrees
            longitude: Longitude in decimal degrees

        Returns:
            The `current` block of the API response

        Raises:
            requests.HTTPError: API returned error status
            requests.Timeout: API request timed out
            ValueError: Invalid API response structure
        """
        params = {
            'latitude': latitude,
            'longitude': longitude,
            'current': ','.join(self.CURRENT_VARIABLES),
            'temperature_unit': 'fahrenheit',
            'timezone': PARK_TIMEZONE,
        }

        response = self.session.get(self.BASE_URL, params=params, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        if not self._validate_response(data):
            raise ValueError(f"Invalid API response structure: {data}")

        return data['current']

    def _validate_response(self, response_data: Dict) -> bool:
        """Validate that every requested current variable is present."""
        if not isinstance(response_data, dict):
            return False

        current = response_data.get('current')
        if not isinstance(current, dict):
            logger.error("Weather response missing 'current' field")
            return False

        missing = [v for v in self.CURRENT_VARIABLES if current.get(v) is None]
        if missing:
            logger.error("Weather response missing variables", extra={'missing': missing})
            return False

        return True

    def parse_current(self, current: Dict) -> WeatherSnapshot:
        """Convert the API's current block into a WeatherSnapshot."""
        code = int(current['weather_code'])
        return WeatherSnapshot(
            temperature=int(round(current['temperature_2m'])),
            feels_like=int(round(current['apparent_temperature'])),
            humidity=int(round(current['relative_humidity_2m'])),
            weather_code=code,
            is_raining=is_rain_code(code),
            description=get_weather_description(code),
        )


class WeatherService:
    """
    Best-effort current weather at the park.

    Any failure is logged and yields None; callers simply omit weather.
    Successful lookups are cached for WEATHER_CACHE_TTL_SECONDS.
    """

    CACHE_KEY = 'current'

    def __init__(self, client: Optional[OpenMeteoClient] = None,
                 latitude: float = WEATHER_LATITUDE, longitude: float = WEATHER_LONGITUDE,
                 ttl_seconds: int = WEATHER_CACHE_TTL_SECONDS):
        self.client = client or OpenMeteoClient()
        self.latitude = latitude
        self.longitude = longitude
        self._cache = TTLCache(ttl_seconds=ttl_seconds)

    def get_current_weather(self) -> Optional[WeatherSnapshot]:
        return self._cache.get_or_compute(self.CACHE_KEY, self._fetch)

    def is_raining(self) -> bool:
        weather = self.get_current_weather()
        return weather.is_raining if weather else False

    def clear_cache(self) -> None:
        self._cache.invalidate()

    def _fetch(self) -> Optional[WeatherSnapshot]:
        try:
            current = self.client.fetch_current(self.latitude, self.longitude)
            weather = self.client.parse_current(current)
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            logger.warning("Weather lookup failed, continuing without weather", extra={
                'error': str(e),
                'error_type': type(e).__name__
            })
            return None

        logger.info("Weather fetched", extra={
            'temperature': weather.temperature,
            'weather_code': weather.weather_code
        })
        return weather


# Global instance and getter function
_weather_service: Optional[WeatherService] = None


def get_weather_service() -> WeatherService:
    """Get the process-wide WeatherService (single weather cache slot)."""
    global _weather_service
    if _weather_service is None:
        _weather_service = WeatherService()
    return _weather_service
