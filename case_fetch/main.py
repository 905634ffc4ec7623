"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from case_fetch.config import get_settings
from case_fetch.infrastructure.database import Base, engine
from case_fetch.application.services import QueueScheduler
from case_fetch.infrastructure.dependencies import (
    get_court_data_client,
    get_fetch_config_store,
    get_fetch_dispatcher,
    get_sse_manager,
)
from case_fetch.infrastructure.logging.log_config import setup_logging
from case_fetch.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists() -> None:
    """Create the PostgreSQL database if it does not yet exist.

    Connects to the default ``postgres`` maintenance database, checks for the
    target database name, and issues ``CREATE DATABASE`` when missing.
    """
    from urllib.parse import urlparse

    import asyncpg

    settings = get_settings()
    if not settings.database_url.startswith("postgresql"):
        return
    parsed = urlparse(settings.database_url)
    db_name = parsed.path.lstrip("/")
    if not db_name:
        return

    maintenance_url = settings.database_url.rsplit("/", 1)[0] + "/postgres"

    try:
        conn = await asyncpg.connect(maintenance_url)
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1", db_name
            )
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
            else:
                logger.debug("Database '%s' already exists", db_name)
        finally:
            await conn.close()
    except Exception as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, start the queue scheduler."""
    settings = get_settings()
    setup_logging()

    # 1. Ensure the PostgreSQL database exists (auto-create if missing)
    await _ensure_database_exists()

    # 2. Create all database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 3. Start the periodic dispatcher trigger
    scheduler: QueueScheduler | None = None
    if settings.scheduler_enabled:
        scheduler = QueueScheduler(
            dispatcher=get_fetch_dispatcher(),
            config_store=get_fetch_config_store(),
            interval_seconds=settings.dispatch_interval_seconds,
            batch_size=settings.dispatch_batch_size,
        )
        await scheduler.start()
    else:
        logger.info("Queue scheduler disabled — dispatch only via POST /api/v1/queue/process")

    yield

    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    await get_sse_manager().shutdown()
    await get_court_data_client().close()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "case_fetch.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
