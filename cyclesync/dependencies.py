"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from cyclesync.config import Settings, get_settings
from cyclesync.models.auth import AuthContext, Session
from cyclesync.services.base import DataStore
from cyclesync.services.cycles import CycleRepository
from cyclesync.services.supabase_auth import SupabaseAuth


def get_app_settings(request: Request) -> Settings:
    """Settings the app was built with (falls back to the environment)."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_auth(request: Request) -> SupabaseAuth:
    """The auth collaborator created in the app lifespan."""
    return request.app.state.auth


def get_store(request: Request) -> DataStore:
    return request.app.state.store


def get_repository(store: Annotated[DataStore, Depends(get_store)]) -> CycleRepository:
    return CycleRepository(store)


def get_session(request: Request) -> Session | None:
    """The session resolved by ``SupabaseSessionMiddleware``, if any."""
    return getattr(request.state, "session", None)


async def get_identity(
    session: Annotated[Session | None, Depends(get_session)],
    auth: Annotated[SupabaseAuth, Depends(get_auth)],
) -> AuthContext | None:
    """Resolve the user behind the session once per request.

    Returns None when there is no session or the auth service no longer
    recognises its token.
    """
    if session is None:
        return None
    user = await auth.get_user(session.access_token)
    if user is None:
        return None
    return AuthContext(user_id=user.id, access_token=session.access_token, email=user.email)


async def require_identity(
    identity: Annotated[AuthContext | None, Depends(get_identity)],
) -> AuthContext:
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity


# Annotated shortcuts for route signatures
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Auth = Annotated[SupabaseAuth, Depends(get_auth)]
CurrentSession = Annotated[Session | None, Depends(get_session)]
OptionalUser = Annotated[AuthContext | None, Depends(get_identity)]
CurrentUser = Annotated[AuthContext, Depends(require_identity)]
Store = Annotated[DataStore, Depends(get_store)]
Repository = Annotated[CycleRepository, Depends(get_repository)]
