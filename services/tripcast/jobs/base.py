"""
Shared plumbing for the two pipeline stages.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.tripcast.config import settings
from services.tripcast.db.models import Trip
from services.tripcast.jobs.runner import JobRunner
from services.tripcast.pipeline.state import TripStatus, can_transition, transition
from services.tripcast.weather.provider import WeatherProvider

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """
    Everything a stage needs, passed to the runner alongside the trip id.

    Stage 1 needs provider and runner; stage 2 only touches the database.
    """

    session_factory: async_sessionmaker
    provider: WeatherProvider | None = None
    runner: JobRunner | None = None
    freshness_window: timedelta = field(
        default_factory=lambda: timedelta(hours=settings.forecast_freshness_hours)
    )
    max_attempts: int = field(default_factory=lambda: settings.forecast_fetch_max_attempts)
    backoff_base_s: float = field(default_factory=lambda: settings.forecast_fetch_backoff_base_s)
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep


def skipped(trip_id: str, reason: str) -> dict[str, Any]:
    return {"trip_id": trip_id, "status": "skipped", "reason": reason}


async def mark_failed(session: AsyncSession, trip_id: str) -> None:
    """
    Roll back whatever the stage left behind and move the trip to failed.

    Runs in its own transaction so the status is durable before the stage
    re-raises. A trip that is gone or already terminal is left alone.
    """
    try:
        await session.rollback()
        trip = await session.get(Trip, trip_id, populate_existing=True)
        if trip is None:
            return
        if not can_transition(trip.status, TripStatus.FAILED):
            logger.warning(
                "trip %s: cannot mark failed from status=%s", trip_id, trip.status
            )
            return
        transition(trip, TripStatus.FAILED)
        await session.commit()
    except Exception:
        logger.error("trip %s: could not record failed status", trip_id, exc_info=True)
