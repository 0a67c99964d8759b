"""
Stage 1 -- fetch, cache, and link a trip's forecasts.

Flow for one trip:
  pending -> processing (committed before any provider I/O)
  ForecastProcessor.process(), retried on TRANSIENT errors with exponential
  backoff (3 attempts by default)
  success: schedule stage 2, status stays processing
  failure: status -> failed (own transaction), error re-raised to the runner

Redelivery of the same job is safe: a trip already processing is picked up
where it stands, a trip in a terminal status is skipped.

Entry point:
    async def run_forecast_fetch(ctx, trip_id)

Manual re-run:
    python -m services.tripcast.jobs.forecast_fetch <trip_id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from services.tripcast.db.models import Trip
from services.tripcast.jobs.base import PipelineContext, mark_failed, skipped
from services.tripcast.jobs.recommendation_analysis import run_recommendation_analysis
from services.tripcast.jobs.retry import is_retryable, retry_with_backoff
from services.tripcast.observability import FORECAST_FETCH_EVENT, instrument
from services.tripcast.pipeline.forecast_processor import ForecastProcessor
from services.tripcast.pipeline.state import TripStatus, is_terminal, transition
from services.tripcast.weather.cache import ForecastCache

logger = logging.getLogger(__name__)


async def _fetch_with_retry(
    ctx: PipelineContext, session: AsyncSession, trip_id: str
) -> list | None:
    """Returns None if the trip was deleted while attempts were in flight."""

    @retry_with_backoff(
        max_attempts=ctx.max_attempts,
        base_delay=ctx.backoff_base_s,
        retry_if=is_retryable,
        sleep=ctx.sleep,
    )
    async def attempt() -> list | None:
        # A failed attempt rolls back and expires the trip; reload it.
        trip = await session.get(Trip, trip_id, populate_existing=True)
        if trip is None:
            return None
        processor = ForecastProcessor(
            session,
            ctx.provider,
            cache=ForecastCache(session, ctx.freshness_window),
        )
        return await processor.process(trip)

    return await attempt()


async def run_forecast_fetch(ctx: PipelineContext, trip_id: str) -> dict[str, Any]:
    """
    Run stage 1 for one trip.

    Returns:
        {"trip_id": ..., "status": "success", "forecasts": int}
        or {"trip_id": ..., "status": "skipped", "reason": ...}
    """
    logger.info("forecast_fetch: starting for trip=%s", trip_id)

    async with ctx.session_factory() as session:
        trip = await session.get(Trip, trip_id)
        if trip is None:
            logger.warning("forecast_fetch: trip=%s no longer exists, skipping", trip_id)
            return skipped(trip_id, "not_found")
        if is_terminal(trip.status):
            logger.info(
                "forecast_fetch: trip=%s already %s, skipping", trip_id, trip.status
            )
            return skipped(trip_id, trip.status)

        try:
            with instrument(FORECAST_FETCH_EVENT, trip_id):
                if trip.status == TripStatus.PENDING:
                    transition(trip, TripStatus.PROCESSING)
                    await session.commit()

                forecasts = await _fetch_with_retry(ctx, session, trip_id)
                if forecasts is None:
                    logger.warning(
                        "forecast_fetch: trip=%s deleted during fetch, skipping", trip_id
                    )
                    return skipped(trip_id, "not_found")
                logger.info(
                    "forecast_fetch: fetched %d forecast(s) for trip=%s",
                    len(forecasts),
                    trip_id,
                )
                ctx.runner.perform_later(run_recommendation_analysis, ctx, trip_id)
        except Exception as exc:
            logger.error(
                "forecast_fetch: failed for trip=%s: %s", trip_id, exc, exc_info=True
            )
            await mark_failed(session, trip_id)
            raise

    return {"trip_id": trip_id, "status": "success", "forecasts": len(forecasts)}


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

async def main(argv: list[str] | None = None) -> None:
    """Re-run stage 1 (and then stage 2) for a trip outside the API process."""
    from services.tripcast.db.engine import standalone_session
    from services.tripcast.jobs.runner import InProcessJobRunner
    from services.tripcast.weather.provider import TomorrowWeatherProvider

    parser = argparse.ArgumentParser(description="Fetch and link forecasts for a trip.")
    parser.add_argument("trip_id")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    runner = InProcessJobRunner()
    async with standalone_session() as factory:
        ctx = PipelineContext(
            session_factory=factory,
            provider=TomorrowWeatherProvider(),
            runner=runner,
        )
        result = await run_forecast_fetch(ctx, args.trip_id)
        await runner.drain()
    print(f"forecast_fetch complete: {result}")


if __name__ == "__main__":
    asyncio.run(main())
