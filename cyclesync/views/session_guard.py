"""Gate views behind an authenticated session."""

from __future__ import annotations

import logging

from cyclesync.models.auth import Session
from cyclesync.views.navigation import Navigator

logger = logging.getLogger("cyclesync.auth")

DEFAULT_AUTH_PATH = "/auth"


class SessionGuard:
    """Send visitors without a session to the auth entry point."""

    def __init__(self, navigator: Navigator, auth_path: str = DEFAULT_AUTH_PATH) -> None:
        self._navigator = navigator
        self._auth_path = auth_path

    def check(self, session: Session | None) -> bool:
        """Return True if the view may proceed; otherwise redirect."""
        if session is not None:
            return True
        logger.debug("No session, redirecting to %s", self._auth_path)
        self._navigator.navigate(self._auth_path)
        return False
