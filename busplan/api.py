"""HTTP API exposing timetables, current walk and walk history on demand."""

import datetime as dt
from typing import List, Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from busplan.config import settings
from busplan.data_sources import build_data_source
from busplan.day_plan import build_day_plan_with_weather
from busplan.errors import BusPlanError
from busplan.timetable import Route, build_timetable_for_route
from busplan.walk_service import get_current_walk, get_walk_history
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="busplan/api")

router = APIRouter()
DATA_SOURCE = build_data_source(settings)

MAX_HISTORY_DAYS = 92


class TripResponse(BaseModel):
    """Serialized trip."""
    route: str
    arrival_primary: str
    arrival_secondary: str
    recommended: bool
    temperatureC: Optional[float] = None


class WalkFields(BaseModel):
    """Walking-time model outputs shared by current and daily samples."""
    condition: str
    walkingTimeMinutes: float
    walkingTimeSeconds: int
    weatherIndex: int
    tempBucketIndex: int
    segmentIndex: int


class CurrentWalkResponse(WalkFields):
    """Current conditions and walking time."""
    temperatureC: float


class DailyWalkResponse(WalkFields):
    """One day of walk history."""
    date: str
    avgTemperatureC: float


class WalkHistoryResponse(BaseModel):
    """Walk history for the last N days."""
    days: int
    items: List[DailyWalkResponse]


def _server_error(endpoint: str, exc: Exception) -> HTTPException:
    """Log an upstream failure and convert it into a 500."""
    logger.error(f"Error in {endpoint}: {exc}")
    return HTTPException(status_code=500, detail="Internal server error")


def _parse_route(route: str) -> Route:
    try:
        return Route(route)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown route: {route}")


@router.get("/timetable/{route}", response_model=List[TripResponse], response_model_exclude_none=True)
def get_timetable(route: str):
    """Full day's trips for a route, recomputed from current walking time."""
    parsed = _parse_route(route)
    try:
        walk = get_current_walk(DATA_SOURCE, settings)
        trips = build_timetable_for_route(parsed, walk.estimate.whole_minutes(), class_end=settings.class_end)
    except BusPlanError as exc:
        raise _server_error(f"/timetable/{route}", exc)
    return [trip.to_payload() for trip in trips]


@router.get("/current-walk", response_model=CurrentWalkResponse)
def current_walk():
    """Current temperature, condition and walking time."""
    try:
        sample = get_current_walk(DATA_SOURCE, settings)
    except BusPlanError as exc:
        raise _server_error("/current-walk", exc)
    return sample.to_payload()


@router.get("/walk-history", response_model=WalkHistoryResponse)
def walk_history(days: int = Query(default=settings.history_days, ge=1, le=MAX_HISTORY_DAYS)):
    """Daily average temperature, condition and walking time for the last ``days`` days."""
    try:
        history = get_walk_history(days, DATA_SOURCE, settings)
    except BusPlanError as exc:
        raise _server_error("/walk-history", exc)
    return history.to_payload()


@router.get("/day-plan", response_model=List[TripResponse], response_model_exclude_none=True)
def day_plan(date: Optional[dt.date] = None):
    """Pre-chosen trips around class end with the nearest-hour temperature attached."""
    day = date or dt.datetime.now(ZoneInfo(settings.timezone)).date()
    try:
        trips = build_day_plan_with_weather(day, DATA_SOURCE, settings)
    except BusPlanError as exc:
        raise _server_error("/day-plan", exc)
    return [trip.to_payload() for trip in trips]
