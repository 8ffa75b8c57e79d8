from pydantic import BaseModel, Field, ConfigDict
from enum import Enum
from typing import Any, List, Optional


class DayRecord(BaseModel):
    """Persisted activity status for one calendar day.

    Serialized with camelCase aliases, e.g.
    {"completed": true, "isRestDay": false, "timestamp": "..."}
    """
    model_config = ConfigDict(populate_by_name=True)

    completed: bool = True
    is_rest_day: bool = Field(default=False, alias="isRestDay")
    # Cosmetic only, never read by streak math. Omitted from the blob unless set.
    is_free_rest_day: Optional[bool] = Field(default=None, alias="isFreeRestDay")
    timestamp: str

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class RemoteSession(BaseModel):
    """Completed workout session as returned by the backend history query"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    completed_at: Optional[str] = Field(default=None, alias="completedAt")
    type: Optional[str] = None
    exercises: Optional[List[Any]] = None
    day_name: Optional[str] = Field(default=None, alias="dayName")


class CellStatus(str, Enum):
    """Display classification of a grid cell."""

    FUTURE = "future"
    TODAY = "today"
    WORKOUT = "workout"
    REST = "rest"
    FREE_REST = "free_rest"
    EMPTY = "empty"


class DisplayCell(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    has_workout: bool = Field(default=False, alias="hasWorkout")
    is_rest_day: bool = Field(default=False, alias="isRestDay")
    is_free_rest_day: bool = Field(default=False, alias="isFreeRestDay")
    is_today: bool = Field(default=False, alias="isToday")
    is_future: bool = Field(default=False, alias="isFuture")
    day: int  # Day of month
    month: int  # 0-11
    day_of_week: int = Field(alias="dayOfWeek")  # 0 = Sunday
    status: CellStatus = CellStatus.EMPTY


class CalendarStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_workouts: int = Field(default=0, alias="totalWorkouts")
    longest_streak: int = Field(default=0, alias="longestStreak")
    current_streak: int = Field(default=0, alias="currentStreak")


class CalendarSnapshot(BaseModel):
    """Grid and stats derived together from one read of the calendar"""
    model_config = ConfigDict(populate_by_name=True)

    cells: List[DisplayCell]
    month_label: str = Field(alias="monthLabel")
    stats: CalendarStats


# API schemas
class CompleteTodayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_rest_day: bool = Field(default=False, alias="isRestDay")
    free_rest: bool = Field(default=False, alias="freeRest")


class GridResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cells: List[DisplayCell]
    month_label: str = Field(alias="monthLabel")


class BackfillResponse(BaseModel):
    merged: int


class FreeRestDayResponse(BaseModel):
    available: bool
