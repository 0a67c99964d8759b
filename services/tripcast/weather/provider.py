"""
Tomorrow.io daily forecast client.

Endpoint:  GET https://api.tomorrow.io/v4/weather/forecast
Query:     location=<city>, timesteps=1d, units=imperial, apikey=<key>

The endpoint ignores the requested date range and always returns a fixed
window of daily timelines starting today, so callers get back only the days
that fall inside [start_date, end_date]:

  {
    "timelines": {
      "daily": [
        {"time": "2026-02-20T11:00:00Z",
         "values": {"temperatureMax": 75.51, "weatherCodeMax": 1000, ...}},
        ...
      ]
    }
  }

Every failure mode (timeout, network error, non-2xx, malformed body) is
raised as ProviderError so the fetch stage can classify it as transient.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Optional, Protocol

import httpx

from services.tripcast.config import settings
from services.tripcast.errors import ProviderError
from services.tripcast.weather.codes import describe_weather_code

logger = logging.getLogger(__name__)

# Response bodies quoted in errors and logs are clipped to this many chars.
_BODY_PREVIEW_CHARS = 500


@dataclass(frozen=True)
class DailyForecast:
    """One day of provider data, normalised to the forecasts table columns."""

    city: str
    date: date
    temperature_max: Optional[float] = None
    temperature_min: Optional[float] = None
    temperature_avg: Optional[float] = None
    temperature_apparent_max: Optional[float] = None
    temperature_apparent_min: Optional[float] = None
    temperature_apparent_avg: Optional[float] = None
    conditions: str = "Unknown"
    precipitation_probability: Optional[float] = None
    uv_index_max: Optional[int] = None

    def as_row(self) -> dict[str, Any]:
        return asdict(self)


class WeatherProvider(Protocol):
    async def fetch(self, city: str, start_date: date, end_date: date) -> list[DailyForecast]:
        ...


def _round1(value: Any) -> Optional[float]:
    if value is None:
        return None
    return round(float(value), 1)


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(round(float(value)))


def parse_daily_timelines(
    payload: Any,
    city: str,
    start_date: date,
    end_date: date,
) -> list[DailyForecast]:
    """
    Extract DailyForecast records from a Tomorrow.io forecast payload.

    Days outside [start_date, end_date] are dropped.

    Raises:
        ProviderError: the payload lacks ``timelines.daily`` or a day entry
                       cannot be parsed.
    """
    try:
        daily = payload["timelines"]["daily"]
    except (KeyError, TypeError) as exc:
        raise ProviderError(
            "Invalid API response structure: missing timelines.daily"
        ) from exc
    if not isinstance(daily, list):
        raise ProviderError("Invalid API response structure: timelines.daily is not a list")

    records: list[DailyForecast] = []
    for day in daily:
        try:
            day_date = date.fromisoformat(str(day["time"])[:10])
            values = day.get("values") or {}
            if not start_date <= day_date <= end_date:
                continue
            records.append(
                DailyForecast(
                    city=city,
                    date=day_date,
                    temperature_max=_round1(values.get("temperatureMax")),
                    temperature_min=_round1(values.get("temperatureMin")),
                    temperature_avg=_round1(values.get("temperatureAvg")),
                    temperature_apparent_max=_round1(values.get("temperatureApparentMax")),
                    temperature_apparent_min=_round1(values.get("temperatureApparentMin")),
                    temperature_apparent_avg=_round1(values.get("temperatureApparentAvg")),
                    conditions=describe_weather_code(values.get("weatherCodeMax")),
                    precipitation_probability=_round1(values.get("precipitationProbabilityMax")),
                    uv_index_max=_as_int(values.get("uvIndexMax")),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ProviderError(
                f"Invalid API response structure: bad daily entry ({exc})"
            ) from exc

    return records


class TomorrowWeatherProvider:
    """
    Tomorrow.io client.

    Usage:
        provider = TomorrowWeatherProvider(api_key="...")
        days = await provider.fetch("Boston", date(2026, 2, 20), date(2026, 2, 22))
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_key:   Tomorrow.io API key (WEATHER_API_KEY env var).
            base_url:  Forecast endpoint URL.
            timeout_s: Request timeout; expiry is reported as ProviderError.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._api_key = api_key if api_key is not None else settings.weather_api_key
        self._base_url = base_url or settings.weather_api_base_url
        self._timeout_s = timeout_s if timeout_s is not None else settings.weather_api_timeout_s
        self._transport = transport

    async def fetch(self, city: str, start_date: date, end_date: date) -> list[DailyForecast]:
        """Fetch daily forecasts for ``city`` limited to [start_date, end_date]."""
        if not self._api_key:
            logger.warning("WEATHER_API_KEY not set; request for city=%r will be rejected", city)

        params = {
            "location": city,
            "timesteps": "1d",
            "units": "imperial",
            "apikey": self._api_key,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.get(
                    self._base_url,
                    params=params,
                    headers={"accept": "application/json"},
                )
        except httpx.TimeoutException as exc:
            raise ProviderError(
                f"Weather API timed out after {self._timeout_s}s for city={city!r}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Failed to fetch weather data: {exc}") from exc

        if not resp.is_success:
            body = resp.text[:_BODY_PREVIEW_CHARS]
            logger.warning(
                "Weather API returned %d for city=%r: %s",
                resp.status_code,
                city,
                body[:200],
            )
            raise ProviderError(
                f"API returned {resp.status_code}: {body}",
                status_code=resp.status_code,
                body=body,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderError("Invalid API response structure: body is not JSON") from exc

        records = parse_daily_timelines(payload, city, start_date, end_date)
        logger.debug(
            "Weather API returned %d day(s) in range for city=%r %s..%s",
            len(records),
            city,
            start_date,
            end_date,
        )
        return records
