"""JSON endpoints for menstrual cycle records."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from cyclesync.dependencies import CurrentUser, Repository
from cyclesync.models.cycles import Cycle, CycleCreate
from cyclesync.result import Err

router = APIRouter(prefix="/cycles", tags=["cycles"])


def _http_error(error: Err) -> HTTPException:
    return HTTPException(status_code=502, detail=error.message or "Data store request failed")


@router.get("", response_model=list[Cycle])
async def list_cycles(user: CurrentUser, repository: Repository) -> Any:
    """The user's cycles, newest start date first."""
    result = await repository.list_for_user(user)
    if isinstance(result, Err):
        raise _http_error(result)
    return result.data


@router.post("", response_model=Cycle | None, status_code=201)
async def create_cycle(user: CurrentUser, body: CycleCreate, repository: Repository) -> Any:
    result = await repository.create(user, body.start_date)
    if isinstance(result, Err):
        raise _http_error(result)
    return result.data
