"""
Forecast cache -- database-backed, keyed per city per date.

Multiple trips to the same city share a single forecast row per day, so a
second trip overlapping an earlier one costs zero provider calls while the
rows are fresh.

Freshness:   a row is fresh while  now - last_refreshed_at < window  (24h).
             A row refreshed exactly one window ago is stale.
Writes:      upsert_many() issues ONE  INSERT ... ON CONFLICT (city, date)
             DO UPDATE  statement, so a batch is either fully visible or not
             at all. Concurrent refreshers for the same key converge to a
             single row with the last write winning; the unique constraint is
             the arbiter, no application lock is taken.

The cache never commits. Transaction boundaries belong to the caller.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.tripcast.config import settings
from services.tripcast.db.engine import dialect_insert
from services.tripcast.db.models import Forecast

logger = logging.getLogger(__name__)

# Columns overwritten when an existing (city, date) row is refreshed.
_REFRESHABLE_COLUMNS = (
    "temperature_min",
    "temperature_max",
    "temperature_avg",
    "temperature_apparent_min",
    "temperature_apparent_max",
    "temperature_apparent_avg",
    "conditions",
    "precipitation_probability",
    "uv_index_max",
    "last_refreshed_at",
)


def _as_utc(ts: datetime) -> datetime:
    """Treat naive timestamps from the store as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


class ForecastCache:
    """
    Shared (city, date) forecast store.

    Usage:
        cache = ForecastCache(session)
        found = await cache.lookup("Boston", dates)
        stale = [d for d in dates if d not in found or not cache.is_fresh(found[d])]
        await cache.upsert_many(rows)
    """

    def __init__(
        self,
        session: AsyncSession,
        freshness_window: timedelta | None = None,
    ) -> None:
        self._session = session
        if freshness_window is None:
            freshness_window = timedelta(hours=settings.forecast_freshness_hours)
        self.freshness_window = freshness_window

    async def lookup(self, city: str, dates: Iterable[date]) -> dict[date, Forecast]:
        """Return the cached forecasts for ``city`` keyed by date. Missing dates are absent."""
        wanted = list(dates)
        if not wanted:
            return {}

        stmt = (
            select(Forecast)
            .where(Forecast.city == city, Forecast.date.in_(wanted))
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        found = {f.date: f for f in result.scalars().all()}
        logger.debug(
            "Forecast cache lookup city=%r: %d/%d date(s) present",
            city,
            len(found),
            len(wanted),
        )
        return found

    def is_fresh(self, forecast: Forecast, now: datetime | None = None) -> bool:
        """True while the row is younger than the freshness window."""
        now = now or datetime.now(timezone.utc)
        age = _as_utc(now) - _as_utc(forecast.last_refreshed_at)
        return age < self.freshness_window

    async def upsert_many(
        self,
        records: Iterable[dict[str, Any]],
        now: datetime | None = None,
    ) -> int:
        """
        Insert or refresh forecast rows keyed by (city, date) in one statement.

        Each record needs ``city`` and ``date`` plus any of the weather columns.
        ``last_refreshed_at`` is stamped with ``now`` on every row written.

        Returns the number of rows written.
        """
        now = now or datetime.now(timezone.utc)
        # PostgreSQL rejects a statement that touches the same conflict key twice.
        by_key: dict[tuple[str, date], dict[str, Any]] = {}
        for record in records:
            row = {col: record.get(col) for col in _REFRESHABLE_COLUMNS}
            row.update(
                id=str(uuid.uuid4()),
                city=record["city"],
                date=record["date"],
                last_refreshed_at=now,
                created_at=now,
            )
            by_key[(row["city"], row["date"])] = row

        rows = list(by_key.values())
        if not rows:
            return 0

        insert = dialect_insert(self._session)
        stmt = insert(Forecast).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["city", "date"],
            set_={col: stmt.excluded[col] for col in _REFRESHABLE_COLUMNS},
        )
        await self._session.execute(stmt)
        logger.debug("Forecast cache upserted %d row(s)", len(rows))
        return len(rows)
