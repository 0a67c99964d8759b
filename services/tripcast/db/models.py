"""
SQLAlchemy DeclarativeBase models for trips, the shared forecast cache,
the trip <-> forecast join, and clothing recommendations.

Ownership:
  Trip owns its Recommendations and TripForecastLinks.
  Forecasts are shared across trips and are never deleted with a trip.

The (city, date) unique constraint on forecasts is the only arbiter of
concurrent cache refreshes. Nothing in the application locks around it.
"""

import uuid as _uuid
import datetime as dt
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


TRIP_STATUSES = ("pending", "processing", "ready", "failed")
RECOMMENDATION_CATEGORIES = ("outerwear", "tops", "bottoms", "footwear", "accessories")

TripStatusEnum = Enum(*TRIP_STATUSES, name="trip_status")
RecommendationCategoryEnum = Enum(*RECOMMENDATION_CATEGORIES, name="recommendation_category")


def _new_id() -> str:
    return str(_uuid.uuid4())


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Base(DeclarativeBase):
    pass


class Trip(Base):
    __tablename__ = "trips"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    city: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(TripStatusEnum, default="pending", index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class Forecast(Base):
    __tablename__ = "forecasts"
    __table_args__ = (UniqueConstraint("city", "date", name="uq_forecasts_city_date"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    city: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    temperature_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temperature_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temperature_avg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temperature_apparent_min: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temperature_apparent_max: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temperature_apparent_avg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    conditions: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    precipitation_probability: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    uv_index_max: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    last_refreshed_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class TripForecastLink(Base):
    __tablename__ = "trip_forecasts"
    __table_args__ = (
        UniqueConstraint("trip_id", "forecast_id", name="uq_trip_forecasts_trip_forecast"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    trip_id: Mapped[str] = mapped_column(
        String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    forecast_id: Mapped[str] = mapped_column(
        String, ForeignKey("forecasts.id", ondelete="RESTRICT"), nullable=False
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Recommendation(Base):
    __tablename__ = "recommendations"
    __table_args__ = (
        UniqueConstraint("trip_id", "category", name="uq_recommendations_trip_category"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    trip_id: Mapped[str] = mapped_column(
        String, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category: Mapped[str] = mapped_column(RecommendationCategoryEnum, nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
