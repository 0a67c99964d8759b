"""
Stage timing events.

Each pipeline stage runs inside ``instrument(event, trip_id)``, which emits one
structured log record when the block exits:

    trip.forecast_fetch trip_id=... duration_ms=412 outcome=ok

The record also carries ``event``, ``trip_id``, ``duration_ms`` and ``outcome``
as ``extra`` fields for JSON log formatters.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger("tripcast.events")

FORECAST_FETCH_EVENT = "trip.forecast_fetch"
ANALYSIS_EVENT = "trip.analysis_duration"


@contextmanager
def instrument(event: str, trip_id: str) -> Iterator[None]:
    start_ts = time.monotonic()
    outcome = "error"
    try:
        yield
        outcome = "ok"
    finally:
        duration_ms = int((time.monotonic() - start_ts) * 1000)
        logger.info(
            "%s trip_id=%s duration_ms=%d outcome=%s",
            event,
            trip_id,
            duration_ms,
            outcome,
            extra={
                "event": event,
                "trip_id": trip_id,
                "duration_ms": duration_ms,
                "outcome": outcome,
            },
        )
