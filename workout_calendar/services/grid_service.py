"""
Grid service.
Projects calendar records onto the fixed 4-week, Sunday-aligned display grid.
"""
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional

from workout_calendar.constants import GRID_DAYS, DAYS_PER_WEEK, MONTH_NAMES, REST_DAY_NAME
from workout_calendar.schemas import DayRecord, DisplayCell, CellStatus
from workout_calendar.services.date_service import DateService


class GridService:
    """Service for building the calendar display grid"""

    @staticmethod
    def project(
        records: Mapping[str, DayRecord],
        today: date,
        live_today_override: Optional[bool] = None
    ) -> List[DisplayCell]:
        """
        Build the 28 display cells ending on the Saturday of today's week.

        The last row is always the current Sunday-Saturday week. For today's
        cell, live_today_override (in-progress rest/workout state not yet
        saved) replaces the stored rest flag when given.

        Args:
            records: Date key -> DayRecord
            today: Local date to treat as today
            live_today_override: True/False to force today's rest flag

        Returns:
            Cells in ascending date order
        """
        week_end = DateService.end_of_week(today)
        start = week_end - timedelta(days=GRID_DAYS - 1)
        today_key = DateService.to_key(today)

        cells = []
        for offset in range(GRID_DAYS):
            current = start + timedelta(days=offset)
            key = DateService.to_key(current)
            record = records.get(key)
            is_today = key == today_key

            has_workout = record is not None
            is_rest_day = bool(record and record.is_rest_day)
            is_free_rest_day = bool(record and record.is_free_rest_day)

            if is_today and live_today_override is not None:
                is_rest_day = live_today_override
                is_free_rest_day = is_free_rest_day and live_today_override

            cell = DisplayCell(
                date=key,
                has_workout=has_workout,
                is_rest_day=is_rest_day,
                is_free_rest_day=is_free_rest_day,
                is_today=is_today,
                is_future=current > today,
                day=current.day,
                month=current.month - 1,
                day_of_week=DateService.day_of_week(current)
            )
            cell.status = GridService.classify(cell)
            cells.append(cell)

        return cells

    @staticmethod
    def classify(cell: DisplayCell) -> CellStatus:
        """Pick the single display status for a cell"""
        if cell.is_future:
            return CellStatus.FUTURE
        if cell.has_workout:
            if cell.is_free_rest_day:
                return CellStatus.FREE_REST
            if cell.is_rest_day:
                return CellStatus.REST
            return CellStatus.WORKOUT
        if cell.is_today:
            return CellStatus.TODAY
        return CellStatus.EMPTY

    @staticmethod
    def rows(cells: List[DisplayCell]) -> List[List[DisplayCell]]:
        """Split cells into week rows of 7"""
        return [cells[i:i + DAYS_PER_WEEK] for i in range(0, len(cells), DAYS_PER_WEEK)]

    @staticmethod
    def month_label(cells: List[DisplayCell]) -> str:
        """Month name of the window, e.g. 'Oct' or 'Sep - Oct'"""
        if not cells:
            return ""
        first = MONTH_NAMES[cells[0].month]
        last = MONTH_NAMES[cells[-1].month]
        if first == last:
            return first
        return f"{first} - {last}"

    @staticmethod
    def live_rest_override(todays_workout: Optional[Dict[str, Any]]) -> Optional[bool]:
        """
        Derive today's live rest flag from the active plan entry.

        Returns:
            None when there is no active plan entry
        """
        if not todays_workout:
            return None
        if todays_workout.get("isRest"):
            return True
        exercises = todays_workout.get("exercises")
        return (
            exercises is not None
            and len(exercises) == 0
            and todays_workout.get("dayName") == REST_DAY_NAME
        )
