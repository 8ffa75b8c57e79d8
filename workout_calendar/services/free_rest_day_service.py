"""
Free rest day service.
Tracks the one free rest day allowed per week (weeks start on Sunday).
"""
import logging
from datetime import date
from typing import Callable, Optional

from workout_calendar.constants import FREE_REST_DAY_STORAGE_KEY
from workout_calendar.exceptions import StorageException, InvalidDateKeyException
from workout_calendar.services.date_service import DateService

logger = logging.getLogger("workout_calendar.free_rest_day")


class FreeRestDayService:
    """Weekly free rest day allowance, stored as the last-used date key"""

    def __init__(self, kv, clock: Optional[Callable[[], date]] = None):
        self.kv = kv
        self.clock = clock or DateService.today

    def last_used(self) -> Optional[str]:
        """Date key of the last free rest day, or None if never used"""
        return self.kv.get(FREE_REST_DAY_STORAGE_KEY)

    def is_available(self, today: Optional[date] = None) -> bool:
        """
        Check if a free rest day can be taken this week.

        Available when never used, or when the last use falls in an earlier
        Sunday-starting week. Read failures answer False.
        """
        today = today or self.clock()
        try:
            last_used = self.last_used()
        except StorageException as e:
            logger.error(f"Error checking free rest day availability: {e}")
            return False

        if not last_used:
            return True

        try:
            last_used_date = DateService.parse_key(last_used)
        except InvalidDateKeyException as e:
            logger.warning(f"Ignoring corrupt free rest day usage: {e}")
            return True

        current_week_start = DateService.start_of_week(today)
        last_used_week_start = DateService.start_of_week(last_used_date)
        return last_used_week_start < current_week_start

    def use(self, today: Optional[date] = None) -> None:
        """Record today as the free rest day for this week"""
        key = DateService.to_key(today or self.clock())
        self.kv.set(FREE_REST_DAY_STORAGE_KEY, key)
        logger.info(f"Free rest day used on {key}")

    def clear_for_today(self, today: Optional[date] = None) -> bool:
        """
        Give the allowance back if it was spent today.

        Returns:
            True if the usage was cleared
        """
        key = DateService.to_key(today or self.clock())
        if self.last_used() != key:
            return False
        self.kv.remove(FREE_REST_DAY_STORAGE_KEY)
        logger.info(f"Free rest day usage for {key} cleared")
        return True
