"""
ForecastProcessor -- resolve, refresh, and link the forecasts one trip needs.

Steps for a trip (city, start_date, end_date):
  1. required dates = every day in [start_date, end_date]
  2. cache lookup; split into fresh vs. needs-fetch (absent or stale)
  3. if anything needs fetching: ONE provider call for the whole window,
     drop days outside the window, ONE bulk upsert, commit
  4. re-read the cache; every required date must now resolve
  5. link each resolved forecast to the trip (idempotent), commit
  6. return forecasts ordered by date

The upsert and the links are committed separately. A crash in between leaves
fresh forecasts without links, which a re-run repairs: the second pass finds
everything fresh, skips the provider, and creates only the missing links.

Errors:
  ProviderError   -> ProcessingError(kind=TRANSIENT)   retried by stage 1
  SQLAlchemyError -> ProcessingError(kind=FATAL)
  unresolved date -> ProcessingError(kind=FATAL)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.tripcast.db.models import Forecast, Trip
from services.tripcast.errors import ErrorKind, ProcessingError, ProviderError
from services.tripcast.pipeline.links import TripLinkRegistry
from services.tripcast.weather.cache import ForecastCache
from services.tripcast.weather.provider import WeatherProvider

logger = logging.getLogger(__name__)


def date_range(start: date, end: date) -> Iterator[date]:
    """Every date from start to end inclusive."""
    for offset in range((end - start).days + 1):
        yield start + timedelta(days=offset)


class ForecastProcessor:
    def __init__(
        self,
        session: AsyncSession,
        provider: WeatherProvider,
        cache: ForecastCache | None = None,
        links: TripLinkRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session = session
        self._provider = provider
        self._cache = cache or ForecastCache(session)
        self._links = links or TripLinkRegistry(session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def process(self, trip: Trip) -> list[Forecast]:
        """Return the trip's forecasts, fetched/refreshed/linked as needed."""
        try:
            return await self._process(trip)
        except ProviderError as exc:
            await self._session.rollback()
            raise ProcessingError.from_provider(exc) from exc
        except SQLAlchemyError as exc:
            await self._session.rollback()
            raise ProcessingError.from_persistence(exc) from exc

    async def _process(self, trip: Trip) -> list[Forecast]:
        required = list(date_range(trip.start_date, trip.end_date))

        cached = await self._cache.lookup(trip.city, required)
        now = self._clock()
        needs_fetch = [
            d for d in required
            if d not in cached or not self._cache.is_fresh(cached[d], now)
        ]

        if needs_fetch:
            logger.info(
                "trip %s: %d/%d day(s) missing or stale for city=%r, fetching %s..%s",
                trip.id,
                len(needs_fetch),
                len(required),
                trip.city,
                trip.start_date,
                trip.end_date,
            )
            records = await self._provider.fetch(trip.city, trip.start_date, trip.end_date)
            rows = [
                {**record.as_row(), "city": trip.city}
                for record in records
                if trip.start_date <= record.date <= trip.end_date
            ]
            await self._cache.upsert_many(rows, now=now)
            await self._session.commit()
        else:
            logger.info(
                "trip %s: all %d day(s) fresh in cache for city=%r, skipping provider",
                trip.id,
                len(required),
                trip.city,
            )

        resolved = await self._cache.lookup(trip.city, required)
        unresolved = [d for d in required if d not in resolved]
        if unresolved:
            raise ProcessingError(
                f"Forecast cache missing {len(unresolved)} date(s) for city={trip.city!r} "
                f"after refresh: {', '.join(d.isoformat() for d in unresolved)}",
                kind=ErrorKind.FATAL,
            )

        forecasts = [resolved[d] for d in required]
        created = await self._links.link(trip.id, [f.id for f in forecasts])
        await self._session.commit()

        logger.info(
            "trip %s: %d forecast(s) resolved, %d new link(s)",
            trip.id,
            len(forecasts),
            created,
        )
        return forecasts
