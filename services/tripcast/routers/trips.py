"""
Trips router -- the record-keeping shell around the forecast pipeline.

Endpoints:
  POST   /trips             -- create a pending trip and schedule stage 1
  GET    /trips             -- list trips, newest first
  GET    /trips/{trip_id}   -- trip with its linked forecasts and recommendations
  DELETE /trips/{trip_id}   -- delete trip, its links and recommendations
                               (shared forecasts are kept)

Validation (create):
  - city non-empty after trimming
  - end_date >= start_date
  - 1 <= duration_days <= 14, duration_days = end_date - start_date + 1
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.tripcast.db.models import Forecast, Recommendation, Trip
from services.tripcast.db.engine import get_db
from services.tripcast.jobs.forecast_fetch import run_forecast_fetch
from services.tripcast.pipeline.clothing_analyzer import CATEGORIES
from services.tripcast.pipeline.links import TripLinkRegistry
from services.tripcast.pipeline.state import TripStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])

MIN_TRIP_DAYS = 1
MAX_TRIP_DAYS = 14

_NOT_FOUND = {
    "success": False,
    "error": {"code": "NOT_FOUND", "message": "Trip not found."},
}


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class TripCreateRequest(BaseModel):
    city: str
    start_date: date
    end_date: date

    @field_validator("city")
    @classmethod
    def city_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("city must not be empty")
        return v

    @model_validator(mode="after")
    def dates_in_range(self) -> "TripCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        duration = (self.end_date - self.start_date).days + 1
        if not MIN_TRIP_DAYS <= duration <= MAX_TRIP_DAYS:
            raise ValueError(
                f"Trip duration must be between {MIN_TRIP_DAYS} and {MAX_TRIP_DAYS} days "
                f"(currently {duration} days)"
            )
        return self


class TripEnvelope(BaseModel):
    success: bool
    data: dict
    requestId: str


class TripListEnvelope(BaseModel):
    success: bool
    data: list[dict]
    requestId: str


# ---------------------------------------------------------------------------
# Serialisers
# ---------------------------------------------------------------------------


def _trip_to_dict(trip: Trip) -> dict[str, Any]:
    return {
        "id": trip.id,
        "city": trip.city,
        "startDate": trip.start_date.isoformat(),
        "endDate": trip.end_date.isoformat(),
        "durationDays": trip.duration_days,
        "status": trip.status,
    }


def _forecast_to_dict(forecast: Forecast) -> dict[str, Any]:
    return {
        "date": forecast.date.isoformat(),
        "conditions": forecast.conditions,
        "temperatureMin": forecast.temperature_min,
        "temperatureMax": forecast.temperature_max,
        "temperatureAvg": forecast.temperature_avg,
        "apparentMin": forecast.temperature_apparent_min,
        "apparentMax": forecast.temperature_apparent_max,
        "apparentAvg": forecast.temperature_apparent_avg,
        "precipitationProbability": forecast.precipitation_probability,
        "uvIndexMax": forecast.uv_index_max,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=TripEnvelope)
async def create_trip(
    body: TripCreateRequest,
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> TripEnvelope:
    """Persist a pending trip and hand it to the forecast pipeline."""
    trip = Trip(
        city=body.city,
        start_date=body.start_date,
        end_date=body.end_date,
        status=TripStatus.PENDING.value,
    )
    session.add(trip)
    await session.commit()

    request.app.state.job_runner.perform_later(
        run_forecast_fetch, request.app.state.pipeline, trip.id
    )
    logger.info("trip %s: created for city=%r, stage 1 scheduled", trip.id, trip.city)

    return TripEnvelope(
        success=True,
        data=_trip_to_dict(trip),
        requestId=request.state.request_id,
    )


@router.get("", response_model=TripListEnvelope)
async def list_trips(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> TripListEnvelope:
    result = await session.execute(select(Trip).order_by(Trip.created_at.desc()))
    return TripListEnvelope(
        success=True,
        data=[_trip_to_dict(t) for t in result.scalars().all()],
        requestId=request.state.request_id,
    )


@router.get("/{trip_id}", response_model=TripEnvelope)
async def get_trip(
    trip_id: str,
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> TripEnvelope:
    trip = await session.get(Trip, trip_id)
    if trip is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)

    forecasts = await TripLinkRegistry(session).forecasts_for_trip(trip_id)

    # Recommendations are only surfaced as the complete batch written with ready.
    recommendations: dict[str, str] = {}
    if trip.status == TripStatus.READY:
        result = await session.execute(
            select(Recommendation).where(Recommendation.trip_id == trip_id)
        )
        by_category = {r.category: r.details for r in result.scalars().all()}
        recommendations = {c: by_category[c] for c in CATEGORIES if c in by_category}

    data = _trip_to_dict(trip)
    data["forecasts"] = [_forecast_to_dict(f) for f in forecasts]
    data["recommendations"] = recommendations
    return TripEnvelope(success=True, data=data, requestId=request.state.request_id)


@router.delete("/{trip_id}", response_model=TripEnvelope)
async def delete_trip(
    trip_id: str,
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> TripEnvelope:
    deleted = await TripLinkRegistry(session).delete_trip(trip_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    await session.commit()
    return TripEnvelope(
        success=True,
        data={"id": trip_id, "deleted": True},
        requestId=request.state.request_id,
    )
