"""
Reconciliation orchestrator.

One instance lives for one mounted profile calendar. Two disjoint read modes:
- OwnProfileMode: reads the local calendar, backfills from the backend once.
- ViewerMode: reads another user's history from the backend only.

The session source is any object with
    async list_workout_sessions(user_id) -> list of sessions
"""
import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from workout_calendar.exceptions import StorageException, FreeRestDayUnavailableException
from workout_calendar.schemas import CalendarSnapshot, CalendarStats, DayRecord, DisplayCell
from workout_calendar.services.backfill_service import BackfillService
from workout_calendar.services.calendar_store import CalendarStore
from workout_calendar.services.date_service import DateService
from workout_calendar.services.free_rest_day_service import FreeRestDayService
from workout_calendar.services.grid_service import GridService
from workout_calendar.services.streak_service import StreakService

logger = logging.getLogger("workout_calendar.orchestrator")

SnapshotListener = Callable[[CalendarSnapshot], None]


class ViewState(str, Enum):
    """Lifecycle of a mounted calendar view."""

    UNINITIALIZED = "uninitialized"
    LOCAL_READY = "local_ready"
    RECONCILED = "reconciled"


class ProfileView:
    """Shared state for one mounted profile calendar"""

    def __init__(
        self,
        user_id: Optional[str],
        session_source=None,
        clock: Optional[Callable[[], date]] = None,
        on_change: Optional[SnapshotListener] = None
    ):
        self.user_id = user_id
        self.session_source = session_source
        self.clock = clock or DateService.today
        self.on_change = on_change
        self.state = ViewState.UNINITIALIZED
        self.snapshot: Optional[CalendarSnapshot] = None
        self.mounted = True
        self.in_flight = False

    def unmount(self) -> None:
        """Stop publishing; results arriving later are discarded"""
        self.mounted = False

    @staticmethod
    def build_snapshot(
        records: Mapping[str, DayRecord],
        today: date,
        live_override: Optional[bool] = None
    ) -> CalendarSnapshot:
        cells = GridService.project(records, today, live_override)
        return CalendarSnapshot(
            cells=cells,
            month_label=GridService.month_label(cells),
            stats=StreakService.compute_stats(records, today)
        )

    def _publish(self, snapshot: CalendarSnapshot) -> None:
        self.snapshot = snapshot
        if self.on_change:
            self.on_change(snapshot)


class OwnProfileMode(ProfileView):
    """Local-first calendar for the signed-in user"""

    def __init__(
        self,
        store: CalendarStore,
        user_id: Optional[str] = None,
        session_source=None,
        free_rest_days: Optional[FreeRestDayService] = None,
        on_change: Optional[SnapshotListener] = None
    ):
        super().__init__(user_id, session_source, store.clock, on_change)
        self.store = store
        self.backfill = BackfillService(store)
        self.free_rest_days = free_rest_days or FreeRestDayService(store.kv, clock=store.clock)
        self.backfill_attempted = False

    # ==================== Lifecycle ====================

    async def activate(self, live_override: Optional[bool] = None) -> Optional[CalendarSnapshot]:
        """First display: local calendar immediately, then a one-time backfill"""
        return await self.refresh(live_override, include_backend=True)

    async def refresh(
        self,
        live_override: Optional[bool] = None,
        include_backend: bool = False
    ) -> Optional[CalendarSnapshot]:
        """
        Recompute grid and stats from the local calendar.

        Requests arriving while a pass is running are dropped. The backend is
        only consulted when include_backend is set and no backfill has been
        attempted for this view yet.

        Returns:
            Latest snapshot, or None if the request was dropped
        """
        if not self.mounted:
            return None
        if self.in_flight:
            logger.debug("Refresh already in flight, dropping request")
            return None

        self.in_flight = True
        try:
            snapshot = self.build_snapshot(self.store.get(), self.clock(), live_override)
            self._publish(snapshot)
            if self.state is ViewState.UNINITIALIZED:
                self.state = ViewState.LOCAL_READY

            if include_backend and not self.backfill_attempted:
                reconciled = await self._backfill_once(live_override)
                if reconciled is not None:
                    snapshot = reconciled
            return snapshot
        finally:
            self.in_flight = False

    async def _backfill_once(self, live_override: Optional[bool]) -> Optional[CalendarSnapshot]:
        if self.session_source is None or self.user_id is None:
            return None

        # One attempt per view, successful or not
        self.backfill_attempted = True
        try:
            sessions = await self.session_source.list_workout_sessions(self.user_id)
        except Exception as e:
            logger.error(f"Backfill fetch failed for user {self.user_id}, keeping local data: {e}")
            return None

        if not self.mounted:
            logger.info("View unmounted during backfill, discarding result")
            return None
        if not isinstance(sessions, (list, tuple)):
            logger.warning(f"Backfill returned {type(sessions).__name__}, expected a list")
            return None

        try:
            self.backfill.merge(sessions)
        except StorageException as e:
            logger.error(f"Backfill merge failed, keeping local data: {e}")
            return None

        self.state = ViewState.RECONCILED
        snapshot = self.build_snapshot(self.store.get(), self.clock(), live_override)
        self._publish(snapshot)
        return snapshot

    # ==================== Engine API ====================

    def get_display_grid(
        self,
        today: Optional[date] = None,
        live_override: Optional[bool] = None
    ) -> List[DisplayCell]:
        return GridService.project(self.store.get(), today or self.clock(), live_override)

    def get_stats(self, today: Optional[date] = None) -> CalendarStats:
        return StreakService.compute_stats(self.store.get(), today or self.clock())

    def mark_today_completed(self, is_rest_day: bool = False, free_rest: bool = False) -> DayRecord:
        """
        Record today as completed.

        A free rest day is always a rest day and spends this week's allowance.

        Raises:
            FreeRestDayUnavailableException: If the allowance is already spent
            StorageException: If the record could not be saved
        """
        if not free_rest:
            return self.store.set_today(is_rest_day)

        today = self.clock()
        if not self.free_rest_days.is_available(today):
            raise FreeRestDayUnavailableException()

        # Spend the allowance first so a saved free rest day is never left unpaid
        self.free_rest_days.use(today)
        try:
            return self.store.set_today(True, is_free_rest_day=True)
        except StorageException:
            self._refund_free_rest_day(today)
            raise

    def unmark_today_completed(self) -> bool:
        """
        Remove today's record and return a free rest day spent today.

        The result reflects the calendar record only. Failing to return the
        allowance is logged, not raised.

        Raises:
            StorageException: If the record could not be removed
        """
        removed = self.store.unset_today()
        self._refund_free_rest_day(self.clock())
        return removed

    def _refund_free_rest_day(self, today: date) -> None:
        try:
            self.free_rest_days.clear_for_today(today)
        except StorageException as e:
            logger.error(f"Could not return free rest day for {DateService.to_key(today)}: {e}")

    def trigger_backfill(self, sessions: Iterable[Union[Dict[str, Any], Any]]) -> int:
        """Merge the given remote sessions now, bypassing the once-per-view guard"""
        return self.backfill.merge(sessions)

    def is_free_rest_day_available(self) -> bool:
        return self.free_rest_days.is_available(self.clock())


class ViewerMode(ProfileView):
    """Another user's calendar, read from the backend only"""

    async def activate(self) -> Optional[CalendarSnapshot]:
        return await self.refresh()

    async def refresh(self) -> Optional[CalendarSnapshot]:
        """
        Fetch the user's sessions and recompute.

        A failed fetch shows an empty calendar.
        """
        if not self.mounted:
            return None
        if self.in_flight:
            logger.debug("Refresh already in flight, dropping request")
            return None

        self.in_flight = True
        try:
            records = await self._remote_records()
            if not self.mounted:
                logger.info("View unmounted during fetch, discarding result")
                return None

            if records is None:
                records = {}
            else:
                self.state = ViewState.RECONCILED

            snapshot = self.build_snapshot(records, self.clock())
            self._publish(snapshot)
            return snapshot
        finally:
            self.in_flight = False

    async def _remote_records(self) -> Optional[Dict[str, DayRecord]]:
        if self.session_source is None or self.user_id is None:
            return None
        try:
            sessions = await self.session_source.list_workout_sessions(self.user_id)
        except Exception as e:
            logger.error(f"Error fetching calendar for user {self.user_id}: {e}")
            return None
        if not isinstance(sessions, (list, tuple)):
            return None
        return BackfillService.sessions_to_records(sessions)


def open_profile_view(
    viewer_id: Optional[str],
    profile_user_id: Optional[str],
    store: CalendarStore,
    session_source=None,
    on_change: Optional[SnapshotListener] = None
) -> Union[OwnProfileMode, ViewerMode]:
    """
    Pick the read mode for a profile calendar.

    The local store is only involved when viewers look at their own profile.
    """
    if viewer_id is not None and viewer_id == profile_user_id:
        return OwnProfileMode(
            store,
            user_id=profile_user_id,
            session_source=session_source,
            on_change=on_change
        )
    return ViewerMode(profile_user_id, session_source, on_change=on_change)
