"""
Calendar HTTP routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from workout_calendar.database import get_db
from workout_calendar.exceptions import StorageException, FreeRestDayUnavailableException
from workout_calendar.repositories.key_value_repository import KeyValueRepository
from workout_calendar.schemas import (
    GridResponse, CalendarStats, CompleteTodayRequest,
    BackfillResponse, FreeRestDayResponse
)
from workout_calendar.services.calendar_store import CalendarStore
from workout_calendar.services.grid_service import GridService
from workout_calendar.services.orchestrator import OwnProfileMode

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


def get_profile(db: Session = Depends(get_db)) -> OwnProfileMode:
    """Own-profile engine over the local SQLite store"""
    return OwnProfileMode(CalendarStore(KeyValueRepository(db)))


@router.get("/grid", response_model=GridResponse)
def get_display_grid(
    live_rest: Optional[bool] = Query(None),
    profile: OwnProfileMode = Depends(get_profile)
):
    """Get the 28-day calendar grid ending on this week's Saturday."""
    cells = profile.get_display_grid(live_override=live_rest)
    return GridResponse(cells=cells, month_label=GridService.month_label(cells))


@router.get("/stats", response_model=CalendarStats)
def get_stats(profile: OwnProfileMode = Depends(get_profile)):
    """Get total workouts, longest streak and current streak."""
    return profile.get_stats()


@router.post("/today", status_code=status.HTTP_204_NO_CONTENT)
def mark_today_completed(
    request: CompleteTodayRequest,
    profile: OwnProfileMode = Depends(get_profile)
):
    """Mark today as a completed workout or rest day."""
    try:
        profile.mark_today_completed(request.is_rest_day, free_rest=request.free_rest)
    except FreeRestDayUnavailableException as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StorageException as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/today", status_code=status.HTTP_204_NO_CONTENT)
def unmark_today_completed(profile: OwnProfileMode = Depends(get_profile)):
    """Un-complete today. Past days cannot be changed."""
    try:
        profile.unmark_today_completed()
    except StorageException as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/backfill", response_model=BackfillResponse)
def trigger_backfill(
    sessions: List[Dict[str, Any]],
    profile: OwnProfileMode = Depends(get_profile)
):
    """Merge remote workout sessions into days with no local record."""
    try:
        merged = profile.trigger_backfill(sessions)
    except StorageException as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return BackfillResponse(merged=merged)


@router.get("/free-rest", response_model=FreeRestDayResponse)
def get_free_rest_day(profile: OwnProfileMode = Depends(get_profile)):
    """Check whether this week's free rest day is still available."""
    return FreeRestDayResponse(available=profile.is_free_rest_day_available())
