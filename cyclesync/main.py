"""CycleSync — FastAPI application entry point.

Run locally:
    uvicorn cyclesync.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from cyclesync.config import Settings, get_settings
from cyclesync.middleware.security import SecurityHeadersMiddleware
from cyclesync.middleware.session import SupabaseSessionMiddleware
from cyclesync.routers import auth, cycles, dashboard, health, home
from cyclesync.services.base import DataStore
from cyclesync.services.postgres import PostgresStore, init_pool
from cyclesync.services.postgrest import PostgrestStore
from cyclesync.services.supabase_auth import SupabaseAuth

logger = logging.getLogger("cyclesync")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- Lifespan ----------

async def create_supabase_client(settings: Settings) -> AsyncClient:
    """Server-side client: no stored sessions, no background refresh."""
    options: dict = {"auto_refresh_token": False, "persist_session": False}
    if settings.request_timeout_seconds is not None:
        options["postgrest_client_timeout"] = settings.request_timeout_seconds
    return await acreate_client(
        settings.supabase_url,
        settings.supabase_anon_key,
        options=AsyncClientOptions(**options),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting %s v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    http_client = httpx.AsyncClient()
    supabase = await create_supabase_client(settings)
    app.state.auth = SupabaseAuth(supabase, settings, http_client=http_client)

    store: DataStore
    if settings.supabase_db_url:
        await init_pool(settings)
        store = PostgresStore()
        logger.info("Using direct Postgres data store")
    else:
        store = PostgrestStore(supabase, settings.supabase_anon_key)
        logger.info("Using Supabase REST data store at %s", settings.supabase_url)
    app.state.store = store

    yield

    await store.close()
    await http_client.aclose()
    logger.info("%s shut down", settings.app_name)


# ---------- App factory ----------

def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app.  Missing Supabase configuration is fatal here."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Menstrual cycle tracking backed by a hosted Supabase project.",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ---------- Middleware (last added is outermost) ----------

    app.add_middleware(SupabaseSessionMiddleware, settings=settings)
    app.add_middleware(
        SecurityHeadersMiddleware, hsts=settings.environment == "production"
    )

    # ---------- Pages ----------
    app.include_router(health.router)
    app.include_router(home.router)
    app.include_router(auth.router)
    app.include_router(dashboard.router)

    # ---------- API v1 routes ----------
    app.include_router(cycles.router, prefix="/api/v1")

    return app


app = create_app()
