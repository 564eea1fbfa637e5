"""
scheduler.py

Responsibility: Sets up the APScheduler AsyncIOScheduler that triggers the
tunnel DNS sync cycle periodically, and wires collaborators for one cycle.
Does NOT: contain reconciliation logic or HTTP calls directly — those are
delegated entirely to SyncService and CloudflareClient.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from exceptions import ConfigurationError
from models import CycleReport
from providers.cloudflare_client import CloudflareClient
from repositories.config_repository import ConfigRepository
from services.config_service import ConfigService
from services.log_service import LogService
from services.sync_service import SyncService
from settings import Settings

logger = logging.getLogger(__name__)

# Job ID used to identify the sync job in APScheduler
_JOB_ID = "tunnel_dns_sync"


# ---------------------------------------------------------------------------
# Cycle wiring
# ---------------------------------------------------------------------------


async def run_sync_once(
    http_client: httpx.AsyncClient,
    log_service: LogService,
    settings: Settings | None = None,
) -> CycleReport:
    """
    Loads settings and configuration, then runs one full sync cycle.

    Settings and the configuration document are read fresh on every call,
    so no credential or config state outlives the cycle.

    Args:
        http_client: The long-lived shared httpx.AsyncClient.
        log_service: Receives the cycle's activity entries.
        settings: Pre-loaded settings; read from the environment when None.

    Returns:
        The CycleReport of the completed cycle.

    Raises:
        ConfigurationError: If settings or the configuration document are
            invalid, or no API token is configured. No tunnel is processed.
    """
    settings = settings or Settings.from_env()
    if not settings.cloudflare_api_token:
        raise ConfigurationError("CLOUDFLARE_API_TOKEN is not set")

    config = ConfigService(ConfigRepository(settings)).get_sync_config()

    provider = CloudflareClient(http_client=http_client, api_token=settings.cloudflare_api_token)
    sync_service = SyncService(provider, log_service, cycle_timeout=settings.sync_cycle_timeout_seconds)
    return await sync_service.run_sync_cycle(config)


async def _sync_job(http_client: httpx.AsyncClient, log_service: LogService, state: Any) -> None:
    """
    APScheduler job: runs one sync cycle and stores its report.

    A configuration failure aborts this cycle and is logged; the next tick
    runs normally.

    Args:
        http_client: The shared httpx.AsyncClient from app.state.
        log_service: The shared LogService from app.state.
        state: app.state; provides sync_lock and receives last_report.
    """
    logger.debug("Tunnel DNS sync job triggered.")
    async with state.sync_lock:
        try:
            report = await run_sync_once(http_client, log_service)
        except ConfigurationError as exc:
            log_service.log(f"Sync cycle aborted, configuration error: {exc}", level="ERROR")
            return
    state.last_report = report


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_scheduler(
    http_client: httpx.AsyncClient,
    log_service: LogService,
    state: Any,
    interval_seconds: int = 3600,
) -> AsyncIOScheduler:
    """
    Creates and returns a configured AsyncIOScheduler with the sync job.

    The job runs immediately on startup (next_run_time=now) and then at the
    configured interval.

    Args:
        http_client: The shared httpx.AsyncClient to pass into the job.
        log_service: The shared LogService to pass into the job.
        state: app.state; provides sync_lock and receives last_report.
        interval_seconds: Seconds between sync cycles (default hourly).

    Returns:
        A configured but not yet started AsyncIOScheduler.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _sync_job,
        trigger="interval",
        seconds=interval_seconds,
        id=_JOB_ID,
        kwargs={"http_client": http_client, "log_service": log_service, "state": state},
        # NOTE: next_run_time=now triggers the first cycle immediately on startup
        # rather than waiting a full interval before the first run.
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,
        coalesce=True,
    )
    logger.info("Tunnel DNS sync job scheduled — interval: %ds.", interval_seconds)
    return scheduler
