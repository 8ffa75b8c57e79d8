"""
Tests for DateService.

Tests cover:
1. Local date keys from dates and datetimes
2. Parsing and validating keys
3. Converting backend timestamps to local days
4. Week boundaries
"""
import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

from workout_calendar.exceptions import InvalidDateKeyException
from workout_calendar.services.date_service import DateService


class TestToKey:
    """Tests for to_key and today_key"""

    def test_formats_with_zero_padding(self):
        """Month and day should be zero padded"""
        assert DateService.to_key(date(2026, 3, 7)) == "2026-03-07"

    def test_drops_time_of_day(self):
        """Naive datetimes keep their own calendar day"""
        assert DateService.to_key(datetime(2026, 3, 7, 23, 59, 59)) == "2026-03-07"
        assert DateService.to_key(datetime(2026, 3, 7, 0, 0, 1)) == "2026-03-07"

    def test_aware_datetime_uses_local_day(self):
        """Aware datetimes are converted to local time first"""
        instant = datetime(2026, 3, 7, 12, 0, 0, tzinfo=timezone.utc)
        expected = instant.astimezone().date()

        assert DateService.to_key(instant) == expected.isoformat()

    def test_today_uses_local_clock(self):
        """Today should come from the local wall clock"""
        with patch('workout_calendar.services.date_service.datetime') as mock_dt:
            mock_dt.now.return_value = datetime(2026, 1, 30, 23, 30, 0)
            result = DateService.today()

        assert result == date(2026, 1, 30)

    def test_today_key_matches_today(self):
        assert DateService.today_key() == DateService.to_key(DateService.today())


class TestParseKey:
    """Tests for parse_key and is_valid_key"""

    def test_round_trips_to_same_day(self):
        assert DateService.parse_key("2026-02-28") == date(2026, 2, 28)

    @pytest.mark.parametrize("bad", ["2026-2-28", "2026-02-30", "", "20260228", "2026-02-28T00:00", None])
    def test_rejects_non_canonical_keys(self, bad):
        """Anything other than a real YYYY-MM-DD day is rejected"""
        with pytest.raises(InvalidDateKeyException):
            DateService.parse_key(bad)
        assert DateService.is_valid_key(bad) is False

    def test_valid_key(self):
        assert DateService.is_valid_key("2024-02-29") is True


class TestTimestampToKey:
    """Tests for timestamp_to_key"""

    def test_zulu_timestamp(self):
        """Trailing Z is read as UTC"""
        expected = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc).astimezone().date()

        assert DateService.timestamp_to_key("2026-01-20T12:00:00.000Z") == expected.isoformat()

    def test_naive_timestamp_treated_as_utc(self):
        expected = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc).astimezone().date()

        assert DateService.timestamp_to_key("2026-01-20T12:00:00") == expected.isoformat()

    def test_offset_timestamp(self):
        """Offsets are honoured before converting to local time"""
        instant = datetime(2026, 1, 20, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        expected = instant.astimezone().date()

        assert DateService.timestamp_to_key("2026-01-20T23:30:00-05:00") == expected.isoformat()

    @pytest.mark.parametrize("timestamp", [
        "2026-01-20T12:00:00.5Z",
        "2026-01-20T12:00:00.12Z",
        "2026-01-20T12:00:00.1234+00:00",
        "2026-01-20T12:00:00.123456789Z",
    ])
    def test_any_fraction_length(self, timestamp):
        """Fractional seconds of any length are accepted"""
        expected = datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc).astimezone().date()

        assert DateService.timestamp_to_key(timestamp) == expected.isoformat()

    @pytest.mark.parametrize("bad", ["yesterday", "2026-13-01T00:00:00Z", "", 12345])
    def test_malformed_timestamp_raises_value_error(self, bad):
        with pytest.raises(ValueError):
            DateService.timestamp_to_key(bad)


class TestWeekBoundaries:
    """Tests for Sunday-based week helpers"""

    def test_day_of_week_sunday_is_zero(self):
        assert DateService.day_of_week(date(2026, 1, 4)) == 0  # Sunday
        assert DateService.day_of_week(date(2026, 1, 10)) == 6  # Saturday

    def test_start_and_end_of_week(self):
        wednesday = date(2026, 1, 28)

        assert DateService.start_of_week(wednesday) == date(2026, 1, 25)
        assert DateService.end_of_week(wednesday) == date(2026, 1, 31)

    def test_saturday_is_its_own_week_end(self):
        saturday = date(2026, 1, 31)

        assert DateService.end_of_week(saturday) == saturday
        assert DateService.start_of_week(saturday) == date(2026, 1, 25)

    def test_retention_cutoff_key(self):
        assert DateService.retention_cutoff_key(date(2026, 3, 1), 60) == "2025-12-31"
