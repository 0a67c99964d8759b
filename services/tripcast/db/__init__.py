"""
SQLAlchemy async database module.

Re-exports engine, session, and model utilities for the tripcast service.
"""

from services.tripcast.db.engine import (
    create_engine,
    create_schema,
    dialect_insert,
    get_db,
    standalone_session,
)
from services.tripcast.db.models import (
    Base,
    Trip,
    Forecast,
    TripForecastLink,
    Recommendation,
    TRIP_STATUSES,
    RECOMMENDATION_CATEGORIES,
)

__all__ = [
    "create_engine",
    "create_schema",
    "dialect_insert",
    "standalone_session",
    "get_db",
    "Base",
    "Trip",
    "Forecast",
    "TripForecastLink",
    "Recommendation",
    "TRIP_STATUSES",
    "RECOMMENDATION_CATEGORIES",
]
