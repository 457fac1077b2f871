"""Shared fixtures: settings, an in-memory data store and a fake auth service."""

from __future__ import annotations

import os

# The app module builds an app at import time and needs credentials
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-test-key")

import itertools
from datetime import date
from typing import Any

import httpx
import pytest
import pytest_asyncio

from cyclesync.config import Settings, load_settings
from cyclesync.main import create_app
from cyclesync.models.auth import AuthContext, Session, User
from cyclesync.services.base import DataStore, DataStoreError
from cyclesync.services.cycles import CycleRepository
from cyclesync.services.supabase_auth import AuthError

TEST_USER_ID = "6f1c2a8e-0d1b-4a57-9a6e-1f2b3c4d5e6f"
OTHER_USER_ID = "0a9b8c7d-6e5f-4a3b-2c1d-0e9f8a7b6c5d"
TEST_TOKEN = "token-user"
OTHER_TOKEN = "token-other"


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class InMemoryStore(DataStore):
    """DataStore that keeps rows in memory and enforces owner-only access.

    Set ``fail_select`` / ``fail_insert`` to a message to make the next
    calls raise DataStoreError.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_select: str | None = None
        self.fail_insert: str | None = None
        self._ids = itertools.count(1)

    def seed(self, user_id: str, *start_dates: str) -> None:
        for start in start_dates:
            self.tables.setdefault("cycles", []).append(
                {"id": next(self._ids), "user_id": user_id, "start_date": start}
            )

    def rows(self, table: str = "cycles") -> list[dict[str, Any]]:
        return list(self.tables.get(table, []))

    async def select(
        self,
        table: str,
        *,
        identity: AuthContext,
        eq: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        self.calls.append(("select", table))
        if self.fail_select:
            raise DataStoreError(self.fail_select)
        rows = [
            dict(r)
            for r in self.tables.get(table, [])
            if r["user_id"] == identity.user_id
            and all(r.get(k) == v for k, v in (eq or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda r: r[order_by], reverse=descending)
        return rows

    async def insert_one(
        self,
        table: str,
        record: dict[str, Any],
        *,
        identity: AuthContext,
    ) -> dict[str, Any] | None:
        self.calls.append(("insert", table))
        if self.fail_insert:
            raise DataStoreError(self.fail_insert)
        if record.get("user_id") != identity.user_id:
            raise DataStoreError("new row violates row-level security policy")
        row = {"id": next(self._ids), **record}
        self.tables.setdefault(table, []).append(row)
        return dict(row)


class FakeAuth:
    """Stands in for SupabaseAuth with a fixed token -> user table."""

    def __init__(self) -> None:
        self.users = {
            TEST_TOKEN: User(id=TEST_USER_ID, email="ada@example.com"),
            OTHER_TOKEN: User(id=OTHER_USER_ID, email="grace@example.com"),
        }
        self.passwords = {"ada@example.com": ("correct-horse", TEST_TOKEN)}
        self.refresh_tokens = {"good-refresh": TEST_TOKEN}
        self.revoked: set[str] = set()
        self.signed_out: list[str] = []
        self.healthy = True

    async def get_session(
        self, access_token: str | None, refresh_token: str | None = None
    ) -> Session | None:
        if not access_token:
            return None
        if access_token == "expired-token":
            new_token = self.refresh_tokens.get(refresh_token or "")
            if new_token is None:
                return None
            return Session(
                access_token=new_token,
                refresh_token="rotated-refresh",
                user_id=self.users[new_token].id,
                refreshed=True,
            )
        if access_token not in self.users and access_token not in self.revoked:
            return None
        return Session(access_token=access_token, refresh_token=refresh_token)

    async def get_user(self, access_token: str) -> User | None:
        if access_token in self.revoked:
            return None
        return self.users.get(access_token)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        expected = self.passwords.get(email)
        if expected is None or expected[0] != password:
            raise AuthError("Invalid login credentials", 400)
        return Session(access_token=expected[1], refresh_token="fresh-refresh")

    async def sign_up(self, email: str, password: str) -> Session | None:
        if email in self.passwords:
            raise AuthError("User already registered", 422)
        self.passwords[email] = (password, "unconfirmed")
        return None

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    async def health(self) -> bool:
        return self.healthy


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return load_settings(
        supabase_url="https://project.supabase.test",
        supabase_anon_key="anon-test-key",
        _env_file=None,
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def repository(store: InMemoryStore) -> CycleRepository:
    return CycleRepository(store)


@pytest.fixture
def identity() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID, access_token=TEST_TOKEN, email="ada@example.com")


@pytest.fixture
def session() -> Session:
    return Session(access_token=TEST_TOKEN, user_id=TEST_USER_ID)


@pytest.fixture
def app(settings: Settings, store: InMemoryStore, fake_auth: FakeAuth):
    application = create_app(settings)
    # ASGITransport does not run the lifespan, so wire collaborators directly
    application.state.auth = fake_auth
    application.state.store = store
    return application


@pytest_asyncio.fixture
async def client(app) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def signed_in_client(app, settings: Settings) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        cookies={settings.access_token_cookie: TEST_TOKEN},
    ) as c:
        yield c


@pytest.fixture
def today() -> date:
    return date.today()
