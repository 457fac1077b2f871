"""Cycle repository: identity-scoped create/read against the ``cycles`` table.

Operations never raise for remote failures; they return ``Ok`` or ``Err`` and
leave notification to the presentation layer.
"""

from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError

from cyclesync.formatting import format_iso_date
from cyclesync.models.auth import AuthContext
from cyclesync.models.cycles import Cycle
from cyclesync.result import Err, ErrorKind, Ok, Result
from cyclesync.services.base import DataStore, DataStoreError

logger = logging.getLogger("cyclesync.cycles")

CYCLES_TABLE = "cycles"
MALFORMED_ROW_MESSAGE = "Received a malformed cycle record"


class CycleRepository:
    def __init__(self, store: DataStore, table: str = CYCLES_TABLE) -> None:
        self._store = store
        self._table = table

    async def list_for_user(self, identity: AuthContext | None) -> Result[list[Cycle]]:
        """Return the user's cycles, newest ``start_date`` first."""
        if identity is None:
            return Err(ErrorKind.missing_identity)
        try:
            rows = await self._store.select(
                self._table,
                identity=identity,
                eq={"user_id": identity.user_id},
                order_by="start_date",
                descending=True,
            )
        except DataStoreError as exc:
            return Err(ErrorKind.remote_failure, exc.message)

        try:
            cycles = [Cycle.model_validate(row) for row in rows]
        except ValidationError as exc:
            logger.warning("Malformed rows in %s: %s", self._table, exc)
            return Err(ErrorKind.remote_failure, MALFORMED_ROW_MESSAGE)
        # newest first regardless of backend
        cycles.sort(key=lambda c: c.start_date, reverse=True)
        return Ok(cycles)

    async def create(
        self, identity: AuthContext | None, start_date: date
    ) -> Result[Cycle | None]:
        """Insert a new cycle starting on ``start_date``.

        No uniqueness is enforced; repeated calls insert repeated rows.
        """
        if identity is None:
            return Err(ErrorKind.missing_identity)
        record = {"user_id": identity.user_id, "start_date": format_iso_date(start_date)}
        try:
            row = await self._store.insert_one(self._table, record, identity=identity)
        except DataStoreError as exc:
            return Err(ErrorKind.remote_failure, exc.message)

        logger.info("Cycle started on %s for user %s", record["start_date"], identity.user_id)
        if not row:
            return Ok(None)
        try:
            return Ok(Cycle.model_validate(row))
        except ValidationError as exc:
            # the insert itself succeeded
            logger.warning("Malformed row returned by insert into %s: %s", self._table, exc)
            return Ok(None)
