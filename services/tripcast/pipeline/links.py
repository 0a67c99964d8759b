"""
Trip <-> forecast association.

A link row exists at most once per (trip, forecast). Links and
recommendations belong to the trip and go away with it; the forecast rows
they point at are shared cache entries and are never touched here.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.tripcast.db.engine import dialect_insert
from services.tripcast.db.models import Forecast, Recommendation, Trip, TripForecastLink

logger = logging.getLogger(__name__)


class TripLinkRegistry:
    """Never commits; the caller owns the transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def link(self, trip_id: str, forecast_ids: Iterable[str]) -> int:
        """
        Link forecasts to a trip, skipping pairs that are already linked.

        Safe to call repeatedly and concurrently for the same trip: duplicates
        are absorbed by the (trip_id, forecast_id) unique constraint.

        Returns the number of links newly created.
        """
        wanted = set(forecast_ids)
        if not wanted:
            return 0

        existing = await self._session.execute(
            select(TripForecastLink.forecast_id).where(
                TripForecastLink.trip_id == trip_id,
                TripForecastLink.forecast_id.in_(wanted),
            )
        )
        missing = wanted - set(existing.scalars().all())
        if not missing:
            return 0

        now = datetime.now(timezone.utc)
        insert = dialect_insert(self._session)
        stmt = insert(TripForecastLink).values(
            [
                {
                    "id": str(uuid.uuid4()),
                    "trip_id": trip_id,
                    "forecast_id": forecast_id,
                    "created_at": now,
                }
                for forecast_id in sorted(missing)
            ]
        ).on_conflict_do_nothing(index_elements=["trip_id", "forecast_id"])
        await self._session.execute(stmt)
        logger.debug("trip %s: linked %d forecast(s)", trip_id, len(missing))
        return len(missing)

    async def forecasts_for_trip(self, trip_id: str) -> list[Forecast]:
        """All forecasts linked to the trip, ordered by date ascending."""
        result = await self._session.execute(
            select(Forecast)
            .join(TripForecastLink, TripForecastLink.forecast_id == Forecast.id)
            .where(TripForecastLink.trip_id == trip_id)
            .order_by(Forecast.date)
        )
        return list(result.scalars().all())

    async def link_count(self, trip_id: str) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(TripForecastLink)
            .where(TripForecastLink.trip_id == trip_id)
        )
        return result.scalar() or 0

    async def delete_trip(self, trip_id: str) -> bool:
        """
        Delete a trip with its links and recommendations. Forecasts stay.

        Returns False if the trip did not exist.
        """
        trip = await self._session.get(Trip, trip_id)
        if trip is None:
            return False

        await self._session.execute(
            delete(TripForecastLink).where(TripForecastLink.trip_id == trip_id)
        )
        await self._session.execute(
            delete(Recommendation).where(Recommendation.trip_id == trip_id)
        )
        await self._session.delete(trip)
        await self._session.flush()
        logger.info("trip %s: deleted with links and recommendations", trip_id)
        return True
