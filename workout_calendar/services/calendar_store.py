"""
Calendar store.
Owns the persisted mapping of date key -> DayRecord, stored as one JSON blob.
This is the only writer of durable calendar state.
"""
import json
import logging
from datetime import datetime, date, timezone
from typing import Callable, Dict, Mapping, Optional

from pydantic import ValidationError

from workout_calendar.constants import CALENDAR_STORAGE_KEY, RETENTION_DAYS
from workout_calendar.exceptions import StorageException
from workout_calendar.schemas import DayRecord
from workout_calendar.services.date_service import DateService

logger = logging.getLogger("workout_calendar.store")


class CalendarStore:
    """
    Per-day completion records kept on the device.

    All operations are synchronous: they return once the key-value
    repository call has finished and are not awaited. Only the remote
    session query in the orchestrator is async.
    """

    def __init__(
        self,
        kv,
        retention_days: int = RETENTION_DAYS,
        clock: Optional[Callable[[], date]] = None
    ):
        """
        Args:
            kv: Key-value repository (get/set/remove on strings)
            retention_days: Entries older than this many days are pruned
            clock: Returns the local "today"; defaults to the system clock
        """
        self.kv = kv
        self.retention_days = retention_days
        self.clock = clock or DateService.today

    def today_key(self) -> str:
        return DateService.to_key(self.clock())

    # ==================== Reads ====================

    def get(self) -> Dict[str, DayRecord]:
        """
        Get all records inside the retention window.

        Read failures degrade to an empty calendar. Expired entries are only
        filtered here; they leave persistence on the next write.
        """
        try:
            records = self._read_all()
        except StorageException as e:
            logger.error(f"Error getting calendar data: {e}")
            return {}
        return self._within_retention(records)

    def has(self, key: str) -> bool:
        return key in self.get()

    def is_today_completed(self) -> bool:
        return self.has(self.today_key())

    # ==================== Writes ====================

    def set_today(self, is_rest_day: bool, is_free_rest_day: bool = False) -> DayRecord:
        """
        Create or replace today's record.

        Raises:
            StorageException: If the calendar cannot be read or written
        """
        records = self._within_retention(self._read_all())
        today = self.today_key()

        record = DayRecord(
            completed=True,
            is_rest_day=is_rest_day,
            is_free_rest_day=True if is_free_rest_day else None,
            timestamp=datetime.now(timezone.utc).isoformat()
        )
        records[today] = record
        self._write_all(records)

        logger.info(f"Marked {today} completed (rest_day={is_rest_day}, free_rest={is_free_rest_day})")
        return record

    def unset_today(self, key: Optional[str] = None) -> bool:
        """
        Remove today's record (un-complete).

        Past days are finalized history, so any key other than today's is
        ignored without touching persistence.

        Args:
            key: Date key the caller wants removed; defaults to today

        Returns:
            True if a record was removed

        Raises:
            StorageException: If the calendar cannot be read or written
        """
        today = self.today_key()
        if key is not None and key != today:
            logger.warning(f"Refusing to unset finalized day {key} (today is {today})")
            return False

        records = self._within_retention(self._read_all())
        if today not in records:
            return False

        del records[today]
        self._write_all(records)
        logger.info(f"Unmarked {today}")
        return True

    def insert_missing(self, candidates: Mapping[str, DayRecord]) -> int:
        """
        Insert records for keys that have none yet.

        Existing keys are never overwritten and keys outside the retention
        window are ignored. Nothing is written when nothing is inserted.

        Returns:
            Number of records inserted

        Raises:
            StorageException: If the calendar cannot be read or written
        """
        records = self._within_retention(self._read_all())
        cutoff = self._cutoff_key()

        inserted = 0
        for key, record in candidates.items():
            if key in records or key < cutoff:
                continue
            records[key] = record
            inserted += 1

        if inserted:
            self._write_all(records)
        return inserted

    def prune(self) -> int:
        """
        Drop expired entries from persistence.

        Returns:
            Number of entries removed
        """
        records = self._read_all()
        kept = self._within_retention(records)
        dropped = len(records) - len(kept)
        if dropped:
            self._write_all(kept)
            logger.info(f"Pruned {dropped} calendar entries older than {self._cutoff_key()}")
        return dropped

    def clear(self) -> None:
        """Remove all calendar data"""
        self.kv.remove(CALENDAR_STORAGE_KEY)
        logger.info("Calendar data cleared")

    # ==================== Internals ====================

    def _cutoff_key(self) -> str:
        return DateService.retention_cutoff_key(self.clock(), self.retention_days)

    def _within_retention(self, records: Dict[str, DayRecord]) -> Dict[str, DayRecord]:
        cutoff = self._cutoff_key()
        return {key: record for key, record in records.items() if key >= cutoff}

    def _read_all(self) -> Dict[str, DayRecord]:
        """Read and decode the whole blob. Storage errors propagate."""
        raw = self.kv.get(CALENDAR_STORAGE_KEY)
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Calendar blob is not valid JSON, ignoring it: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Calendar blob is a {type(data).__name__}, expected an object")
            return {}

        records = {}
        for key, value in data.items():
            if not DateService.is_valid_key(key):
                logger.warning(f"Dropping calendar entry with invalid key {key!r}")
                continue
            try:
                records[key] = DayRecord.model_validate(value)
            except ValidationError as e:
                logger.warning(f"Dropping malformed calendar entry {key}: {e}")
        return records

    def _write_all(self, records: Mapping[str, DayRecord]) -> None:
        payload = {key: record.to_storage() for key, record in records.items()}
        try:
            blob = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise StorageException("serialize", str(e)) from e
        self.kv.set(CALENDAR_STORAGE_KEY, blob)
