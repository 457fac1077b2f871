"""Dashboard view model: session gate, cycle history and "start new cycle".

State machine::

    initializing -> loading -> idle_with_data | idle_empty

Notifications are transient overlays and never move the state.  One view
model is built per request and is only mutated by its own operations.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from cyclesync.models.auth import AuthContext, Session
from cyclesync.models.cycles import Cycle
from cyclesync.result import Err, ErrorKind
from cyclesync.services.cycles import CycleRepository
from cyclesync.views.navigation import Navigator
from cyclesync.views.notifications import NotificationSink
from cyclesync.views.session_guard import DEFAULT_AUTH_PATH, SessionGuard

EMPTY_MESSAGE = "No cycles recorded yet."
SUCCESS_MESSAGE = "New cycle started!"


class ViewState(str, Enum):
    initializing = "initializing"
    loading = "loading"
    idle_with_data = "idle_with_data"
    idle_empty = "idle_empty"


class DashboardView:
    def __init__(
        self,
        repository: CycleRepository,
        notifier: NotificationSink,
        navigator: Navigator,
        *,
        auth_path: str = DEFAULT_AUTH_PATH,
        today: date | None = None,
    ) -> None:
        self._repository = repository
        self._notifier = notifier
        self._guard = SessionGuard(navigator, auth_path)
        self._activated = False
        self.cycles: list[Cycle] = []
        self.loading = True
        self.selected_date = today or date.today()

    @property
    def state(self) -> ViewState:
        if not self._activated:
            return ViewState.initializing
        if self.loading:
            return ViewState.loading
        return ViewState.idle_with_data if self.cycles else ViewState.idle_empty

    @property
    def empty_message(self) -> str:
        return EMPTY_MESSAGE

    def _notify_error(self, error: Err) -> None:
        # missing identity is a silent no-op
        if error.kind is ErrorKind.remote_failure:
            self._notifier.notify("Error", error.message, "destructive")

    def admit(self, session: Session | None) -> bool:
        """Run the session guard without loading anything.

        Returns False when the guard redirected.
        """
        if not self._guard.check(session):
            return False
        self._activated = True
        return True

    async def activate(self, session: Session | None, identity: AuthContext | None) -> bool:
        """Run the session guard, then load the history.

        Returns False when the guard redirected and nothing was fetched.
        """
        if not self.admit(session):
            return False
        await self.fetch_cycles(identity)
        return True

    async def fetch_cycles(self, identity: AuthContext | None) -> None:
        self._activated = True
        self.loading = True
        try:
            result = await self._repository.list_for_user(identity)
            if isinstance(result, Err):
                self._notify_error(result)
            else:
                self.cycles = result.data
        finally:
            self.loading = False

    async def start_new_cycle(
        self, identity: AuthContext | None, selected_date: date | None = None
    ) -> bool:
        """Insert a cycle for the selected date and refresh the history.

        Returns True if a record was inserted.
        """
        if selected_date is not None:
            self.selected_date = selected_date
        result = await self._repository.create(identity, self.selected_date)
        if isinstance(result, Err):
            self._notify_error(result)
            return False

        self._notifier.notify("Success", SUCCESS_MESSAGE)
        await self.fetch_cycles(identity)
        return True
