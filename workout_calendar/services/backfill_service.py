"""
Backfill service.
Merges remote-confirmed workout sessions into the local calendar, additive only.
"""
import logging
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import ValidationError

from workout_calendar.constants import REST_DAY_TYPE, REST_DAY_NAME
from workout_calendar.schemas import DayRecord, RemoteSession
from workout_calendar.services.calendar_store import CalendarStore
from workout_calendar.services.date_service import DateService

logger = logging.getLogger("workout_calendar.backfill")

SessionLike = Union[RemoteSession, Dict[str, Any]]


class BackfillService:
    """Stateless reconciler between backend history and the local store"""

    def __init__(self, store: CalendarStore):
        self.store = store

    @staticmethod
    def is_rest_session(session: RemoteSession) -> bool:
        """
        A session is a rest day if typed as one, or if it is an empty
        session named "Rest Day".
        """
        if session.type == REST_DAY_TYPE:
            return True
        return (
            session.exercises is not None
            and len(session.exercises) == 0
            and session.day_name == REST_DAY_NAME
        )

    @staticmethod
    def sessions_to_records(
        sessions: Iterable[SessionLike],
        skip_key: Optional[str] = None
    ) -> Dict[str, DayRecord]:
        """
        Convert remote sessions into day records keyed by local date.

        Sessions without completedAt are ignored. Sessions that fail to parse
        are skipped individually. When several sessions land on the same day
        the first one wins.

        Args:
            sessions: Remote sessions (models or raw dicts)
            skip_key: Date key to leave out entirely

        Returns:
            Mapping of date key -> DayRecord
        """
        records: Dict[str, DayRecord] = {}

        for raw in sessions:
            try:
                session = raw if isinstance(raw, RemoteSession) else RemoteSession.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed remote session: {e}")
                continue

            if not session.completed_at:
                continue

            try:
                key = DateService.timestamp_to_key(session.completed_at)
            except ValueError as e:
                logger.warning(f"Skipping session with bad completedAt {session.completed_at!r}: {e}")
                continue

            if key == skip_key or key in records:
                continue

            records[key] = DayRecord(
                completed=True,
                is_rest_day=BackfillService.is_rest_session(session),
                timestamp=session.completed_at
            )

        return records

    def merge(self, sessions: Iterable[SessionLike]) -> int:
        """
        Insert remote history for days the local calendar has no record of.

        Today is always skipped because local writes may be newer than the
        backend snapshot. Running this twice with the same input leaves the
        store unchanged the second time.

        Returns:
            Number of days added

        Raises:
            StorageException: If the calendar cannot be read or written
        """
        today = self.store.today_key()
        candidates = self.sessions_to_records(sessions, skip_key=today)
        merged = self.store.insert_missing(candidates)
        logger.info(f"Backfill merged {merged} of {len(candidates)} remote days")
        return merged
