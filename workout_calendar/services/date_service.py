"""
Date key service.
Converts between calendar dates and canonical YYYY-MM-DD keys in local time.
"""
import re
from datetime import datetime, timedelta, date, timezone
from typing import Union

from workout_calendar.exceptions import InvalidDateKeyException

DATE_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
# Fractional seconds after hh:mm:ss, any number of digits
FRACTION_PATTERN = re.compile(r"(:\d{2})\.(\d+)")


def _six_digit_fraction(match: "re.Match") -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


class DateService:
    """Service for date key operations"""

    @staticmethod
    def today() -> date:
        """Local calendar date right now"""
        return datetime.now().date()

    @staticmethod
    def today_key() -> str:
        """Key for the local calendar date right now"""
        return DateService.to_key(DateService.today())

    @staticmethod
    def to_key(value: Union[date, datetime]) -> str:
        """
        Convert a date or datetime into a YYYY-MM-DD key.

        Aware datetimes are first converted to the local timezone, so the key
        always names the local calendar day. The time of day is dropped before
        formatting.

        Args:
            value: Date or datetime to convert

        Returns:
            Canonical date key
        """
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone()
            value = value.date()
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"

    @staticmethod
    def parse_key(key: str) -> date:
        """
        Parse a YYYY-MM-DD key back into a local calendar date.

        Raises:
            InvalidDateKeyException: If key is not a canonical date key
        """
        match = DATE_KEY_PATTERN.match(key) if isinstance(key, str) else None
        if not match:
            raise InvalidDateKeyException(key)
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            raise InvalidDateKeyException(key)

    @staticmethod
    def is_valid_key(key: str) -> bool:
        try:
            DateService.parse_key(key)
        except InvalidDateKeyException:
            return False
        return True

    @staticmethod
    def timestamp_to_key(timestamp: str) -> str:
        """
        Convert an ISO-8601 instant into the local date key it falls on.

        Timestamps without an offset are treated as UTC, which is what the
        backend emits.

        Raises:
            ValueError: If timestamp is not a parseable ISO-8601 string
        """
        if not isinstance(timestamp, str):
            raise ValueError(f"Timestamp must be a string, got {type(timestamp).__name__}")
        value = timestamp.strip()
        if value.endswith("Z") or value.endswith("z"):
            value = value[:-1] + "+00:00"
        # fromisoformat before 3.11 only takes 3 or 6 fraction digits
        value = FRACTION_PATTERN.sub(_six_digit_fraction, value, count=1)
        instant = datetime.fromisoformat(value)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return DateService.to_key(instant)

    @staticmethod
    def days_between(earlier: date, later: date) -> int:
        """Whole calendar days from earlier to later (negative if reversed)"""
        return (later - earlier).days

    @staticmethod
    def day_of_week(target_date: date) -> int:
        """Day of week with Sunday = 0 ... Saturday = 6"""
        return (target_date.weekday() + 1) % 7

    @staticmethod
    def start_of_week(target_date: date) -> date:
        """Sunday on or before target_date"""
        return target_date - timedelta(days=DateService.day_of_week(target_date))

    @staticmethod
    def end_of_week(target_date: date) -> date:
        """Saturday on or after target_date"""
        return target_date + timedelta(days=6 - DateService.day_of_week(target_date))

    @staticmethod
    def retention_cutoff_key(today: date, retention_days: int) -> str:
        """Oldest key still inside the retention window"""
        return DateService.to_key(today - timedelta(days=retention_days))
