"""Identity and session models for the hosted auth service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from cyclesync.models.base import CycleSyncBase


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user identity threaded explicitly into data access."""

    user_id: str
    access_token: str
    email: str | None = None


class User(CycleSyncBase):
    id: str
    email: str | None = None


class Session(CycleSyncBase):
    """An authenticated principal's active login state.

    ``refreshed`` is True when the tokens were renewed while resolving the
    session, so the caller knows to write them back to the client.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    user_id: str | None = None
    user: User | None = None
    refreshed: bool = Field(default=False, exclude=True)

    def is_expired(self, margin_seconds: int = 0) -> bool:
        if self.expires_at is None:
            return False
        now = datetime.now(timezone.utc).timestamp()
        return self.expires_at.timestamp() - margin_seconds <= now

    @classmethod
    def from_auth_session(cls, auth_session: Any) -> Session:
        """Build a session from the auth client's session object."""
        auth_user = getattr(auth_session, "user", None)
        user = (
            User(id=str(auth_user.id), email=getattr(auth_user, "email", None))
            if auth_user is not None
            else None
        )
        expires_at = None
        if getattr(auth_session, "expires_at", None):
            expires_at = datetime.fromtimestamp(int(auth_session.expires_at), tz=timezone.utc)
        elif getattr(auth_session, "expires_in", None):
            now = datetime.now(timezone.utc).timestamp()
            expires_at = datetime.fromtimestamp(
                now + int(auth_session.expires_in), tz=timezone.utc
            )
        return cls(
            access_token=auth_session.access_token,
            refresh_token=auth_session.refresh_token,
            expires_at=expires_at,
            user_id=user.id if user else None,
            user=user,
        )
