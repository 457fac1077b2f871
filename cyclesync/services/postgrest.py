"""Supabase REST data store on the official ``supabase`` async client.

Every query is sent with the user's access token as the bearer token, so the
project's row-level security policies see the caller's identity.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from postgrest import APIError
from supabase import AsyncClient

from cyclesync.models.auth import AuthContext
from cyclesync.services.base import DataStore, DataStoreError, check_identifier

logger = logging.getLogger("cyclesync.store")


def _store_error(exc: Exception) -> DataStoreError:
    """Translate a client or transport failure into a DataStoreError."""
    if isinstance(exc, APIError):
        return DataStoreError(exc.message or str(exc), code=exc.code)
    if isinstance(exc, ValueError):
        # 2xx with a body that is not JSON (proxy or gateway page)
        return DataStoreError("Unexpected response from the data service")
    return DataStoreError(str(exc) or exc.__class__.__name__)


class PostgrestStore(DataStore):
    """DataStore backed by ``AsyncClient.postgrest``."""

    def __init__(
        self,
        client: AsyncClient,
        anon_key: str,
        health_table: str = "cycles",
    ) -> None:
        self._client = client
        self._anon_key = anon_key
        self._health_table = health_table

    def _table(self, table: str, identity: AuthContext | None) -> Any:
        token = identity.access_token if identity else self._anon_key
        # auth() sets a header on the shared client; build and send in one step
        return self._client.postgrest.auth(token).from_(check_identifier(table))

    async def select(
        self,
        table: str,
        *,
        identity: AuthContext,
        eq: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        filters = [(check_identifier(c), v) for c, v in (eq or {}).items()]
        order = check_identifier(order_by) if order_by else None

        query = self._table(table, identity).select("*")
        for column, value in filters:
            query = query.eq(column, value)
        if order:
            query = query.order(order, desc=descending)
        try:
            response = await query.execute()
        except (APIError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Select on %s failed: %s", table, exc)
            raise _store_error(exc) from exc
        return list(response.data or [])

    async def insert_one(
        self,
        table: str,
        record: dict[str, Any],
        *,
        identity: AuthContext,
    ) -> dict[str, Any] | None:
        query = self._table(table, identity).insert(record)
        try:
            response = await query.execute()
        except (APIError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Insert into %s failed: %s", table, exc)
            raise _store_error(exc) from exc
        rows = response.data
        if isinstance(rows, list):
            return rows[0] if rows else None
        return rows or None

    async def ping(self) -> bool:
        try:
            await self._table(self._health_table, None).select("id").limit(1).execute()
        except (APIError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Data store ping failed: %s", exc)
            return False
        return True
