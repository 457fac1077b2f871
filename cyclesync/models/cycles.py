"""Pydantic models for menstrual cycle records."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import Field, field_validator

from cyclesync.models.base import CycleSyncBase


class CycleCreate(CycleSyncBase):
    start_date: date = Field(default_factory=date.today)


class Cycle(CycleSyncBase):
    """One user-reported cycle start, as stored in the ``cycles`` table."""

    id: int | str
    user_id: str
    start_date: date
    created_at: datetime | None = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _uuid_to_str(cls, value: Any) -> Any:
        # asyncpg hands back uuid.UUID, PostgREST hands back strings
        if isinstance(value, uuid.UUID):
            return str(value)
        return value
