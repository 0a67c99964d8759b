"""
Trip status state machine.

    pending ──> processing ──> ready
                         └───> failed

ready and failed are terminal. Status never moves backward and never skips
processing.
"""

from __future__ import annotations

import enum
import logging

from services.tripcast.db.models import Trip
from services.tripcast.errors import InvalidTransition

logger = logging.getLogger(__name__)


class TripStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"


TRANSITIONS: dict[TripStatus, frozenset[TripStatus]] = {
    TripStatus.PENDING: frozenset({TripStatus.PROCESSING}),
    TripStatus.PROCESSING: frozenset({TripStatus.READY, TripStatus.FAILED}),
    TripStatus.READY: frozenset(),
    TripStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def can_transition(current: str, target: str) -> bool:
    return TripStatus(target) in TRANSITIONS[TripStatus(current)]


def is_terminal(status: str) -> bool:
    return TripStatus(status) in TERMINAL_STATUSES


def transition(trip: Trip, target: TripStatus) -> None:
    """Move ``trip`` to ``target`` or raise InvalidTransition. Does not flush."""
    current = trip.status
    if not can_transition(current, target):
        raise InvalidTransition(current, TripStatus(target).value)
    trip.status = TripStatus(target).value
    logger.info("trip %s: status %s -> %s", trip.id, current, trip.status)
