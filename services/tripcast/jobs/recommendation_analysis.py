"""
Stage 2 -- turn a trip's linked forecasts into clothing recommendations.

Only runs for trips in processing (stage 1 succeeded). Writes exactly one
Recommendation per category and flips the trip to ready in the same commit,
so a trip is never seen with a partial set.

Zero linked forecasts here means stage 1 reported success without linking
anything. That is raised as ValidationInvariantViolation and the trip is
marked failed. No error in this stage is retried by policy.

Entry point:
    async def run_recommendation_analysis(ctx, trip_id)

Manual re-run:
    python -m services.tripcast.jobs.recommendation_analysis <trip_id>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

from services.tripcast.db.models import Recommendation, Trip
from services.tripcast.errors import ValidationInvariantViolation
from services.tripcast.jobs.base import PipelineContext, mark_failed, skipped
from services.tripcast.observability import ANALYSIS_EVENT, instrument
from services.tripcast.pipeline.clothing_analyzer import ClothingAnalyzer
from services.tripcast.pipeline.links import TripLinkRegistry
from services.tripcast.pipeline.state import TripStatus, transition

logger = logging.getLogger(__name__)


async def run_recommendation_analysis(ctx: PipelineContext, trip_id: str) -> dict[str, Any]:
    """
    Run stage 2 for one trip.

    Returns:
        {"trip_id": ..., "status": "success", "recommendations": 5}
        or {"trip_id": ..., "status": "skipped", "reason": ...}
    """
    logger.info("recommendation_analysis: starting for trip=%s", trip_id)

    async with ctx.session_factory() as session:
        trip = await session.get(Trip, trip_id)
        if trip is None:
            logger.warning(
                "recommendation_analysis: trip=%s no longer exists, skipping", trip_id
            )
            return skipped(trip_id, "not_found")
        if trip.status != TripStatus.PROCESSING:
            logger.info(
                "recommendation_analysis: trip=%s is %s, not processing; skipping",
                trip_id,
                trip.status,
            )
            return skipped(trip_id, trip.status)

        try:
            with instrument(ANALYSIS_EVENT, trip_id):
                forecasts = await TripLinkRegistry(session).forecasts_for_trip(trip_id)
                if not forecasts:
                    raise ValidationInvariantViolation(
                        f"No forecasts linked to trip {trip_id} after a successful fetch stage"
                    )

                recommendations = ClothingAnalyzer(forecasts).analyze()
                session.add_all(
                    Recommendation(trip_id=trip_id, category=category, details=details)
                    for category, details in recommendations.items()
                )
                transition(trip, TripStatus.READY)
                await session.commit()
        except Exception as exc:
            logger.error(
                "recommendation_analysis: failed for trip=%s: %s",
                trip_id,
                exc,
                exc_info=True,
            )
            await mark_failed(session, trip_id)
            raise

    logger.info(
        "recommendation_analysis: trip=%s ready with %d recommendation(s)",
        trip_id,
        len(recommendations),
    )
    return {
        "trip_id": trip_id,
        "status": "success",
        "recommendations": len(recommendations),
    }


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

async def main(argv: list[str] | None = None) -> None:
    """Re-run stage 2 for a trip outside the API process."""
    from services.tripcast.db.engine import standalone_session

    parser = argparse.ArgumentParser(description="Build clothing recommendations for a trip.")
    parser.add_argument("trip_id")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    async with standalone_session() as factory:
        ctx = PipelineContext(session_factory=factory)
        result = await run_recommendation_analysis(ctx, args.trip_id)
    print(f"recommendation_analysis complete: {result}")


if __name__ == "__main__":
    asyncio.run(main())
