"""
Pytest fixtures for workout calendar tests.
"""
import json
import pytest
from datetime import date, timedelta
from typing import Dict, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from workout_calendar.constants import CALENDAR_STORAGE_KEY
from workout_calendar import models  # noqa: F401  registers tables
from workout_calendar.database import Base
from workout_calendar.exceptions import StorageException
from workout_calendar.services.calendar_store import CalendarStore
from workout_calendar.services.date_service import DateService

# Wednesday; the grid for this day runs Sun 2026-01-04 .. Sat 2026-01-31
TODAY = date(2026, 1, 28)


def key(days_ago: int, today: date = TODAY) -> str:
    """Date key for N days before today"""
    return DateService.to_key(today - timedelta(days=days_ago))


def workout(timestamp: str = "2026-01-01T10:00:00+00:00") -> dict:
    return {"completed": True, "isRestDay": False, "timestamp": timestamp}


def rest(timestamp: str = "2026-01-01T10:00:00+00:00") -> dict:
    return {"completed": True, "isRestDay": True, "timestamp": timestamp}


def seed(kv, entries: dict) -> None:
    """Write a raw calendar blob"""
    kv.set(CALENDAR_STORAGE_KEY, json.dumps(entries))


def read_blob(kv) -> dict:
    raw = kv.get(CALENDAR_STORAGE_KEY)
    return json.loads(raw) if raw else {}


class InMemoryKeyValueRepository:
    """Dict-backed string store with the KeyValueRepository interface"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FailingKeyValueRepository(InMemoryKeyValueRepository):
    """
    In-memory store that can be told to fail reads or writes.

    fail_reads / fail_writes apply to every key; fail_read_keys /
    fail_write_keys limit failures to the listed keys.
    """

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.fail_read_keys = set()
        self.fail_write_keys = set()

    def _read_fails(self, key):
        return self.fail_reads or key in self.fail_read_keys

    def _write_fails(self, key):
        return self.fail_writes or key in self.fail_write_keys

    def get(self, key):
        if self._read_fails(key):
            raise StorageException("read", "disk unavailable")
        return super().get(key)

    def set(self, key, value):
        if self._write_fails(key):
            raise StorageException("write", "disk full")
        super().set(key, value)

    def remove(self, key):
        if self._write_fails(key):
            raise StorageException("remove", "disk full")
        super().remove(key)


class FakeSessionSource:
    """Remote session query returning canned sessions or raising"""

    def __init__(self, sessions=None, error=None):
        self.sessions = sessions if sessions is not None else []
        self.error = error
        self.calls = []

    async def list_workout_sessions(self, user_id):
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return self.sessions


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def kv():
    return FailingKeyValueRepository()


@pytest.fixture
def store(kv):
    return CalendarStore(kv, retention_days=60, clock=lambda: TODAY)


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
