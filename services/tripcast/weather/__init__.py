"""
Weather package.

Provides the Tomorrow.io daily forecast client and the shared per-city
per-date forecast cache. Multiple trips share forecast rows -- city + date is
the cache key.
"""

from services.tripcast.weather.provider import DailyForecast, TomorrowWeatherProvider, WeatherProvider
from services.tripcast.weather.cache import ForecastCache

__all__ = [
    "DailyForecast",
    "TomorrowWeatherProvider",
    "WeatherProvider",
    "ForecastCache",
]
