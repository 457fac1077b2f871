"""Supabase Auth wrapper built on the official ``supabase`` async client.

Sessions are kept client-side as an access/refresh token pair.  Resolving the
current session decodes the access token locally (no signature check, the
token is only trusted by the remote services that verify it) and asks the
auth service for a refresh when it is about to expire.  Resolving the current
*user* always asks the auth service, so a revoked token yields no user.

The underlying client is shared by every request, so each call passes the
caller's tokens explicitly and never relies on the client's stored session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
import jwt as pyjwt
from supabase import AsyncClient
from supabase import AuthError as SupabaseAuthError

from cyclesync.config import Settings, get_settings
from cyclesync.models.auth import Session, User

logger = logging.getLogger("cyclesync.auth")


class AuthError(Exception):
    """The auth service rejected a request. ``message`` is user-facing."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @classmethod
    def wrap(cls, exc: Exception) -> AuthError:
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        status = getattr(exc, "status", None)
        return cls(message, status if isinstance(status, int) and status else None)


def decode_session(access_token: str, refresh_token: str | None = None) -> Session | None:
    """Build a Session from a stored access token without verifying it.

    Returns None when the token is not a decodable JWT or carries a
    malformed ``exp`` claim.
    """
    try:
        claims = pyjwt.decode(
            access_token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except pyjwt.InvalidTokenError as exc:
        logger.debug("Discarding undecodable access token: %s", exc)
        return None

    exp = claims.get("exp")
    try:
        expires_at = datetime.fromtimestamp(int(exp), tz=timezone.utc) if exp else None
    except (TypeError, ValueError, OverflowError, OSError):
        logger.debug("Discarding access token with malformed exp claim: %r", exp)
        return None
    return Session(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
        user_id=claims.get("sub"),
    )


class SupabaseAuth:
    """Async facade over ``AsyncClient.auth`` returning app-level models."""

    def __init__(
        self,
        client: AsyncClient,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._http_client = http_client

    @staticmethod
    def _credentials(email: str, password: str) -> dict[str, Any]:
        return {"email": email, "password": password}

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        logger.info("Signing in %s", email)
        try:
            response = await self._client.auth.sign_in_with_password(
                self._credentials(email, password)
            )
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            raise AuthError.wrap(exc) from exc
        if response.session is None:
            raise AuthError("Sign-in did not return a session")
        return Session.from_auth_session(response.session)

    async def sign_up(self, email: str, password: str) -> Session | None:
        """Register a new user.

        Returns the new session, or None when the project requires email
        confirmation before the first sign-in.
        """
        logger.info("Signing up %s", email)
        try:
            response = await self._client.auth.sign_up(self._credentials(email, password))
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            raise AuthError.wrap(exc) from exc
        if response.session is None:
            return None
        return Session.from_auth_session(response.session)

    async def refresh_session(self, refresh_token: str) -> Session:
        try:
            response = await self._client.auth.refresh_session(refresh_token)
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            raise AuthError.wrap(exc) from exc
        if response.session is None:
            raise AuthError("Refresh did not return a session")
        session = Session.from_auth_session(response.session)
        session.refreshed = True
        return session

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session owning ``access_token``."""
        try:
            await self._client.auth.admin.sign_out(access_token)
        except SupabaseAuthError as exc:
            # already expired or revoked
            if getattr(exc, "status", None) == 401:
                return
            raise AuthError.wrap(exc) from exc
        except httpx.HTTPError as exc:
            raise AuthError.wrap(exc) from exc

    # ------------------------------------------------------------------
    # Current state
    # ------------------------------------------------------------------

    async def get_session(
        self, access_token: str | None, refresh_token: str | None = None
    ) -> Session | None:
        """Return the current session, refreshing it if it has expired."""
        if not access_token:
            return None
        session = decode_session(access_token, refresh_token)
        if session is None:
            return None
        if not session.is_expired(self._settings.session_refresh_margin_seconds):
            return session
        if not refresh_token:
            return None
        try:
            return await self.refresh_session(refresh_token)
        except AuthError as exc:
            logger.info("Session refresh failed: %s", exc.message)
            return None

    async def get_user(self, access_token: str) -> User | None:
        """Ask the auth service who owns ``access_token``; None if nobody."""
        try:
            response = await self._client.auth.get_user(access_token)
        except (SupabaseAuthError, httpx.HTTPError) as exc:
            logger.info("Auth service rejected token: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return User(id=str(response.user.id), email=response.user.email)

    async def health(self) -> bool:
        """Check the auth service's ``/health`` endpoint."""
        headers = {"apikey": self._settings.supabase_anon_key}
        try:
            if self._http_client:
                response = await self._http_client.get(
                    f"{self._settings.auth_url}/health", headers=headers
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(
                        f"{self._settings.auth_url}/health", headers=headers
                    )
        except httpx.HTTPError as exc:
            logger.warning("Auth health check failed: %s", exc)
            return False
        return response.status_code < 400
