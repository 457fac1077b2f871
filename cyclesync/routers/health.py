"""Health check endpoint — public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from cyclesync.dependencies import AppSettings, Auth, Store

router = APIRouter(tags=["system"])
logger = logging.getLogger("cyclesync.health")


@router.get("/health")
async def health_check(
    settings: AppSettings, auth: Auth, store: Store
) -> dict:
    """Liveness probe. Returns 200 if the process is up.

    Also probes the hosted auth service and the data store.
    """
    auth_ok = await auth.health()
    store_ok = await store.ping()
    if not (auth_ok and store_ok):
        logger.warning("Health check degraded (auth=%s, store=%s)", auth_ok, store_ok)

    return {
        "status": "healthy" if auth_ok and store_ok else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "auth": "reachable" if auth_ok else "unreachable",
        "database": "connected" if store_ok else "unreachable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
