"""Supabase session middleware.

Resolves the session from the ``Authorization`` header or the session
cookies on every request and sets ``request.state.session``.  It never
rejects a request: routes decide what a missing session means (the dashboard
redirects, the JSON API answers 401).  Refreshed tokens are written back to
the cookies; cookies that no longer resolve to a session are cleared.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from cyclesync.config import Settings, get_settings
from cyclesync.models.auth import Session

logger = logging.getLogger("cyclesync.auth")

# Paths that never need a session
SKIP_PATHS: set[str] = {
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
}


def set_session_cookies(response: Response, session: Session, settings: Settings) -> None:
    response.set_cookie(
        settings.access_token_cookie,
        session.access_token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    if session.refresh_token:
        response.set_cookie(
            settings.refresh_token_cookie,
            session.refresh_token,
            httponly=True,
            secure=settings.cookie_secure,
            samesite="lax",
        )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.access_token_cookie)
    response.delete_cookie(settings.refresh_token_cookie)


class SupabaseSessionMiddleware(BaseHTTPMiddleware):
    """Populate request.state.session from the stored Supabase tokens."""

    def __init__(self, app: Any, settings: Settings | None = None) -> None:
        super().__init__(app)
        self._settings = settings or get_settings()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.session = None
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        auth = getattr(request.app.state, "auth", None)
        bearer = None
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            bearer = auth_header.removeprefix("Bearer ").strip()

        access_token = bearer or request.cookies.get(self._settings.access_token_cookie)
        refresh_token = None if bearer else request.cookies.get(self._settings.refresh_token_cookie)

        session: Session | None = None
        if auth is not None and access_token:
            session = await auth.get_session(access_token, refresh_token)
        request.state.session = session

        response = await call_next(request)

        # Routes that set or clear cookies themselves (sign-in, sign-out) win
        if getattr(request.state, "session_cookies_handled", False) or bearer:
            return response
        if session is not None and session.refreshed:
            logger.debug("Writing refreshed session cookies")
            set_session_cookies(response, session, self._settings)
        elif session is None and access_token:
            clear_session_cookies(response, self._settings)
        return response
