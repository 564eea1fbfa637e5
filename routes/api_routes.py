"""
routes/api_routes.py

Responsibility: JSON API endpoints for health checks, the last cycle's
report, the recent activity log, and triggering a sync cycle on demand.
Does NOT: contain reconciliation logic or call Cloudflare directly.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from dependencies import get_config_service, get_log_service, get_sync_lock, get_sync_service
from exceptions import ConfigurationError
from models import CycleReport
from services.config_service import ConfigService
from services.log_service import LogService
from services.sync_service import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _report_payload(report: CycleReport) -> dict[str, Any]:
    payload = dataclasses.asdict(report)
    payload["ok"] = report.ok
    return payload


@router.get("/health/json")
async def health_json(request: Request) -> dict[str, Any]:
    """
    Returns service health plus whether the background scheduler is running.

    Args:
        request: The incoming FastAPI request.
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "ok",
        "scheduler_running": bool(scheduler is not None and scheduler.running),
    }


@router.get("/status")
async def get_status(request: Request) -> dict[str, Any]:
    """
    Returns the report of the most recent completed sync cycle.

    Returns:
        {"last_cycle": <report>} or {"last_cycle": null} before the first cycle.
    """
    report: CycleReport | None = getattr(request.app.state, "last_report", None)
    return {"last_cycle": _report_payload(report) if report is not None else None}


@router.get("/logs/recent")
async def get_recent_logs(
    limit: int = Query(default=50, ge=1, le=500),
    level: str | None = Query(default=None),
    log_service: LogService = Depends(get_log_service),
) -> list[dict[str, Any]]:
    """
    Returns recent activity log entries, newest first.

    Args:
        limit: Maximum number of entries.
        level: Optional severity filter, e.g. "ERROR".
        log_service: The shared activity log.
    """
    entries = log_service.get_by_level(level, limit) if level else log_service.get_recent(limit)
    return [dataclasses.asdict(e) for e in entries]


@router.post("/sync")
async def trigger_sync(
    request: Request,
    config_service: ConfigService = Depends(get_config_service),
    sync_service: SyncService = Depends(get_sync_service),
    sync_lock: asyncio.Lock = Depends(get_sync_lock),
    log_service: LogService = Depends(get_log_service),
) -> dict[str, Any]:
    """
    Runs one sync cycle immediately and returns its report.

    Raises:
        HTTPException: 409 while another cycle is running, 422 when the
            configuration document is invalid.
    """
    if sync_lock.locked():
        raise HTTPException(status_code=409, detail="A sync cycle is already running")

    try:
        config = config_service.get_sync_config()
    except ConfigurationError as exc:
        log_service.log(f"Manual sync aborted, configuration error: {exc}", level="ERROR")
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    async with sync_lock:
        logger.info("Manual sync cycle triggered via API.")
        report = await sync_service.run_sync_cycle(config)

    request.app.state.last_report = report
    return _report_payload(report)
