"""Data-store contract shared by the PostgREST and direct-Postgres backends.

Both backends are scoped to the caller's identity: the remote row-level
security policy only exposes rows whose ``user_id`` matches the identity, and
callers still pass an explicit equality filter.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from cyclesync.models.auth import AuthContext

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DataStoreError(Exception):
    """A remote query failed. ``message`` is safe to show to the user."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


def check_identifier(name: str) -> str:
    """Reject table/column names that are not plain SQL identifiers."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name


class DataStore(ABC):
    """Generic query interface against a named collection."""

    @abstractmethod
    async def select(
        self,
        table: str,
        *,
        identity: AuthContext,
        eq: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Return rows matching every equality condition in ``eq``.

        Raises:
            DataStoreError: On any remote failure.
        """

    @abstractmethod
    async def insert_one(
        self,
        table: str,
        record: dict[str, Any],
        *,
        identity: AuthContext,
    ) -> dict[str, Any] | None:
        """Insert one record and return the stored row when available.

        Raises:
            DataStoreError: On any remote failure.
        """

    async def ping(self) -> bool:
        """Lightweight connectivity probe for the health endpoint."""
        return True

    async def close(self) -> None:
        return None
