"""
app.py

Responsibility: Creates the FastAPI application and manages the lifespan of
shared resources — the httpx client, the activity log, the sync scheduler
and the configuration file watcher.
Does NOT: contain reconciliation logic or route handlers beyond /health.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from routes.api_routes import router as api_router
from scheduler import create_scheduler
from services.log_service import LogService
from settings import Settings
from watcher import create_observer


def configure_logging(level: str) -> None:
    """Configures root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Starts shared resources on startup and releases them on shutdown.

    Settings are validated here so a malformed environment fails fast.
    """
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.log_service = LogService()
    app.state.sync_lock = asyncio.Lock()
    app.state.last_report = None
    app.state.scheduler = None

    if settings.sync_scheduler_enabled:
        scheduler = create_scheduler(
            app.state.http_client,
            app.state.log_service,
            app.state,
            interval_seconds=settings.sync_interval_seconds,
        )
        scheduler.start()
        app.state.scheduler = scheduler

    observer = None
    # NOTE: Inline APP_CONFIG has no file to watch.
    if not settings.app_config and os.path.isdir(os.path.dirname(os.path.abspath(settings.app_config_path))):
        observer = create_observer(settings.app_config_path)
        observer.start()

    app.state.log_service.log("Tunnel DNS sync started.")
    try:
        yield
    finally:
        if observer is not None:
            observer.stop()
            observer.join()
        if app.state.scheduler is not None:
            app.state.scheduler.shutdown(wait=False)
        await app.state.http_client.aclose()


app = FastAPI(title="Tunnel DNS Sync", lifespan=lifespan)
app.include_router(api_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
