"""
dependencies.py

Responsibility: Declares all FastAPI Depends() provider functions for
settings, services and the DNS provider used by the route handlers.
Does NOT: contain business logic or HTTP handlers.
"""

from __future__ import annotations

import asyncio

import httpx
from fastapi import Depends, HTTPException, Request

from exceptions import ConfigurationError
from providers.cloudflare_client import CloudflareClient
from providers.dns_provider import DNSProvider
from repositories.config_repository import ConfigRepository
from services.config_service import ConfigService
from services.log_service import LogService
from services.sync_service import SyncService
from settings import Settings

# ---------------------------------------------------------------------------
# Infrastructure: shared app-level resources
# ---------------------------------------------------------------------------


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Returns the shared httpx.AsyncClient stored on app.state.

    The client is created once during the FastAPI lifespan and reused for
    all requests to avoid connection-pool overhead.
    """
    return request.app.state.http_client


def get_log_service(request: Request) -> LogService:
    """Returns the application-wide LogService stored on app.state."""
    return request.app.state.log_service


def get_sync_lock(request: Request) -> asyncio.Lock:
    """Returns the lock that keeps scheduled and manual cycles from overlapping."""
    return request.app.state.sync_lock


def get_settings() -> Settings:
    """
    Reads settings from the environment on every request so a changed
    variable takes effect without a restart.

    Raises:
        HTTPException: 422 if a setting is malformed.
    """
    try:
        return Settings.from_env()
    except ConfigurationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------


def get_config_service(settings: Settings = Depends(get_settings)) -> ConfigService:
    """
    Provides a ConfigService reading from the configured document location.

    Args:
        settings: The current settings injected by get_settings.
    """
    return ConfigService(ConfigRepository(settings))


def get_dns_provider(
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> DNSProvider:
    """
    Provides a CloudflareClient initialised with the current API token.

    Raises:
        HTTPException: 503 if no API token is configured.
    """
    if not settings.cloudflare_api_token:
        raise HTTPException(status_code=503, detail="CLOUDFLARE_API_TOKEN is not set")
    return CloudflareClient(http_client=http_client, api_token=settings.cloudflare_api_token)


def get_sync_service(
    provider: DNSProvider = Depends(get_dns_provider),
    log_service: LogService = Depends(get_log_service),
    settings: Settings = Depends(get_settings),
) -> SyncService:
    """
    Provides a SyncService wired to the DNS provider and shared LogService.

    Args:
        provider: The DNSProvider injected by get_dns_provider.
        log_service: The shared LogService.
        settings: Supplies the cycle timeout.
    """
    return SyncService(provider, log_service, cycle_timeout=settings.sync_cycle_timeout_seconds)
