"""
Tests for BackfillService.

Tests cover:
1. Rest day classification
2. Session to record conversion
3. Merge rules: today skipped, history never overwritten, idempotent
"""
import pytest
from datetime import date, datetime, time, timedelta, timezone

from workout_calendar.exceptions import StorageException
from workout_calendar.schemas import RemoteSession
from workout_calendar.services.backfill_service import BackfillService
from workout_calendar.tests.conftest import TODAY, key, workout, rest, seed, read_blob


def completed_at(day: date) -> str:
    """UTC timestamp that falls at local noon on the given day"""
    instant = datetime.combine(day, time(12, 0)).astimezone(timezone.utc)
    return instant.isoformat().replace("+00:00", "Z")


def session(days_ago: int, **overrides) -> dict:
    data = {
        "completedAt": completed_at(TODAY - timedelta(days=days_ago)),
        "type": "split",
        "exercises": [{"name": "Squat"}],
        "dayName": "Leg Day",
    }
    data.update(overrides)
    return data


class TestIsRestSession:
    """Tests for is_rest_session"""

    def test_rest_day_type(self):
        assert BackfillService.is_rest_session(RemoteSession(type="rest_day", exercises=[{"x": 1}])) is True

    def test_empty_rest_day_name(self):
        assert BackfillService.is_rest_session(RemoteSession(exercises=[], day_name="Rest Day")) is True

    def test_named_rest_day_with_exercises_is_workout(self):
        assert BackfillService.is_rest_session(RemoteSession(exercises=[{"x": 1}], day_name="Rest Day")) is False

    def test_empty_session_with_other_name_is_workout(self):
        assert BackfillService.is_rest_session(RemoteSession(exercises=[], day_name="Push")) is False

    def test_missing_exercises_is_workout(self):
        assert BackfillService.is_rest_session(RemoteSession(day_name="Rest Day")) is False


class TestSessionsToRecords:
    """Tests for sessions_to_records"""

    def test_converts_to_local_day_keys(self):
        records = BackfillService.sessions_to_records([session(3), session(4, type="rest_day")])

        assert set(records) == {key(3), key(4)}
        assert records[key(3)].is_rest_day is False
        assert records[key(4)].is_rest_day is True
        assert records[key(3)].timestamp == session(3)["completedAt"]

    def test_null_completed_at_is_ignored(self):
        records = BackfillService.sessions_to_records([session(3, completedAt=None)])

        assert records == {}

    def test_bad_records_are_skipped_individually(self):
        """One malformed session must not abort the batch"""
        records = BackfillService.sessions_to_records([
            session(1, completedAt="not a timestamp"),
            session(2, exercises="oops"),
            session(3),
        ])

        assert set(records) == {key(3)}

    def test_first_session_of_a_day_wins(self):
        records = BackfillService.sessions_to_records([
            session(2, type="rest_day"),
            session(2),
        ])

        assert records[key(2)].is_rest_day is True

    def test_skip_key(self):
        records = BackfillService.sessions_to_records([session(0), session(1)], skip_key=key(0))

        assert set(records) == {key(1)}

    def test_accepts_models(self):
        records = BackfillService.sessions_to_records([RemoteSession.model_validate(session(5))])

        assert set(records) == {key(5)}


class TestMerge:
    """Tests for merge"""

    def test_adds_missing_history(self, store, kv):
        merged = BackfillService(store).merge([session(1), session(2, type="rest_day")])

        records = store.get()
        assert merged == 2
        assert records[key(1)].is_rest_day is False
        assert records[key(2)].is_rest_day is True

    def test_today_is_never_clobbered(self, store, kv):
        """Local today wins over any remote session dated today"""
        seed(kv, {key(0): rest("local")})

        BackfillService(store).merge([session(0)])

        assert read_blob(kv)[key(0)] == rest("local")

    def test_today_is_not_created_by_backfill(self, store):
        BackfillService(store).merge([session(0)])

        assert store.is_today_completed() is False

    def test_history_is_append_only(self, store, kv):
        seed(kv, {key(1): workout("local"), key(2): rest("local")})

        BackfillService(store).merge([session(1, type="rest_day"), session(2), session(3)])

        blob = read_blob(kv)
        assert blob[key(1)] == workout("local")
        assert blob[key(2)] == rest("local")
        assert key(3) in blob

    def test_idempotent(self, store, kv):
        sessions = [session(1), session(4, type="rest_day"), session(0)]
        service = BackfillService(store)

        service.merge(sessions)
        first = read_blob(kv)
        merged_again = service.merge(sessions)

        assert merged_again == 0
        assert read_blob(kv) == first

    def test_write_failure_propagates(self, store, kv):
        kv.fail_writes = True

        with pytest.raises(StorageException):
            BackfillService(store).merge([session(1)])
