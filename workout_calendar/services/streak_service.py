"""
Streak service.
Derives workout totals and streaks from calendar records.

Rules:
- Rest days never count as workouts.
- Any recorded day (workout or rest) keeps a streak alive.
- A day with no record breaks it.
- Only workout days add to a streak's length.
"""
from datetime import date, timedelta
from typing import List, Mapping, Set

from workout_calendar.schemas import CalendarStats, DayRecord
from workout_calendar.services.date_service import DateService

# The current streak is broken once the last activity is this many days old
STREAK_BREAK_DAYS = 2


class StreakService:
    """Service for streak and total calculations"""

    @staticmethod
    def compute_stats(records: Mapping[str, DayRecord], today: date) -> CalendarStats:
        """
        Compute totals and streaks as of today.

        Args:
            records: Date key -> DayRecord (keys must be canonical)
            today: Local date to measure the current streak from

        Returns:
            CalendarStats
        """
        workout_keys = {key for key, record in records.items() if not record.is_rest_day}
        activity_dates = sorted(DateService.parse_key(key) for key in records)
        workout_dates = {DateService.parse_key(key) for key in workout_keys}

        return CalendarStats(
            total_workouts=len(workout_keys),
            longest_streak=StreakService.longest_streak(activity_dates, workout_dates),
            current_streak=StreakService.current_streak(activity_dates, workout_dates, today)
        )

    @staticmethod
    def longest_streak(activity_dates: List[date], workout_dates: Set[date]) -> int:
        """
        Longest run of workouts across consecutive active days.

        Args:
            activity_dates: All active days, ascending
            workout_dates: Subset of activity_dates that were workouts
        """
        longest = 0
        span_workouts = 0
        previous = None

        for current in activity_dates:
            is_workout = 1 if current in workout_dates else 0

            if previous is None:
                span_workouts = is_workout
            else:
                day_diff = DateService.days_between(previous, current)
                if day_diff == 0:
                    continue
                if day_diff == 1:
                    span_workouts += is_workout
                else:
                    longest = max(longest, span_workouts)
                    span_workouts = is_workout

            previous = current

        return max(longest, span_workouts)

    @staticmethod
    def current_streak(activity_dates: List[date], workout_dates: Set[date], today: date) -> int:
        """
        Workouts in the unbroken run of active days ending at the latest one.

        The run only counts if the latest activity was today or yesterday.
        A rest day yesterday therefore keeps the streak alive today.
        """
        if not activity_dates:
            return 0

        most_recent = activity_dates[-1]
        if DateService.days_between(most_recent, today) >= STREAK_BREAK_DAYS:
            return 0

        active = set(activity_dates)
        streak = 0
        check_date = most_recent
        while check_date in active:
            if check_date in workout_dates:
                streak += 1
            check_date -= timedelta(days=1)

        return streak
