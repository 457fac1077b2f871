"""Direct Postgres data store with Supabase RLS context.

Used instead of PostgREST when ``SUPABASE_DB_URL`` is configured. Every
transaction switches to the ``authenticated`` role and sets
``request.jwt.claims`` so that Supabase row-level security policies
(``auth.uid()``) see the same identity PostgREST would.

Uses ``asyncpg`` with a module-level pool, initialized once at app startup.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import asyncpg

from cyclesync.config import Settings, get_settings
from cyclesync.models.auth import AuthContext
from cyclesync.services.base import DataStore, DataStoreError, check_identifier

logger = logging.getLogger("cyclesync.store")

_pool: asyncpg.Pool | None = None


async def init_pool(settings: Settings | None = None) -> asyncpg.Pool:
    """Create the asyncpg connection pool. Call once at app startup."""
    global _pool
    s = settings or get_settings()
    if not s.supabase_db_url:
        raise RuntimeError("SUPABASE_DB_URL is not configured")
    _pool = await asyncpg.create_pool(
        s.supabase_db_url,
        min_size=1,
        max_size=10,
        command_timeout=s.request_timeout_seconds,
    )
    logger.info("Database pool initialized (min=1, max=10)")
    return _pool


async def close_pool() -> None:
    """Drain the pool. Call at app shutdown."""
    global _pool
    if _pool:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")


def get_pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("Database pool not initialized — call init_pool() first")
    return _pool


@asynccontextmanager
async def get_connection(
    identity: AuthContext | None = None,
) -> AsyncGenerator[asyncpg.Connection, None]:
    """Acquire a connection with RLS claims set for ``identity``.

    Usage::

        async with get_connection(identity) as conn:
            rows = await conn.fetch("SELECT * FROM cycles")

    ``set_config(..., true)`` is transaction-local, so the claims disappear
    when the connection is returned to the pool.
    """
    pool = get_pool()
    async with pool.acquire() as conn:
        async with conn.transaction():
            if identity:
                claims = {"sub": identity.user_id, "role": "authenticated"}
                if identity.email:
                    claims["email"] = identity.email
                await conn.execute("SET LOCAL ROLE authenticated")
                await conn.execute(
                    "SELECT set_config('request.jwt.claims', $1, true)",
                    json.dumps(claims),
                )
            yield conn


class PostgresStore(DataStore):
    """DataStore backed by the shared asyncpg pool."""

    async def select(
        self,
        table: str,
        *,
        identity: AuthContext,
        eq: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        conditions = []
        params: list[Any] = []
        for idx, (column, value) in enumerate((eq or {}).items(), start=1):
            conditions.append(f'"{check_identifier(column)}" = ${idx}')
            params.append(value)

        query = f'SELECT * FROM "{check_identifier(table)}"'
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        if order_by:
            direction = "DESC" if descending else "ASC"
            query += f' ORDER BY "{check_identifier(order_by)}" {direction}'

        try:
            async with get_connection(identity) as conn:
                rows = await conn.fetch(query, *params)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            logger.warning("Postgres select on %s failed: %s", table, exc)
            raise DataStoreError(str(exc), code=getattr(exc, "sqlstate", None)) from exc
        return [dict(r) for r in rows]

    async def insert_one(
        self,
        table: str,
        record: dict[str, Any],
        *,
        identity: AuthContext,
    ) -> dict[str, Any] | None:
        # json_populate_record lets Postgres coerce text values (e.g. ISO dates)
        # into the column types; only the given columns are inserted so
        # defaults still apply to the rest.
        name = check_identifier(table)
        columns = ", ".join(f'"{check_identifier(c)}"' for c in record)
        query = (
            f'INSERT INTO "{name}" ({columns}) '
            f'SELECT {columns} FROM json_populate_record(NULL::"{name}", $1::json) '
            "RETURNING *"
        )

        try:
            async with get_connection(identity) as conn:
                row = await conn.fetchrow(query, json.dumps(record, default=str))
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            logger.warning("Postgres insert into %s failed: %s", table, exc)
            raise DataStoreError(str(exc), code=getattr(exc, "sqlstate", None)) from exc
        return dict(row) if row else None

    async def ping(self) -> bool:
        try:
            async with get_pool().acquire() as conn:
                await conn.fetchval("SELECT 1")
        except Exception as exc:
            logger.warning("Database probe failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        await close_pool()
