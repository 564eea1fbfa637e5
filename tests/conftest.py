"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All HTTP fixtures use respx.mock and all sync tests use FakeProvider —
no real network calls are made in any test.
"""

from __future__ import annotations

import asyncio
import itertools
import os

import httpx
import pytest
import respx

from exceptions import DnsProviderError
from providers.dns_provider import DnsRecord, TunnelConnection

# ---------------------------------------------------------------------------
# Keep the app lifespan quiet: no scheduler, no watcher on a real directory
# ---------------------------------------------------------------------------

os.environ.setdefault("SYNC_SCHEDULER_ENABLED", "false")
os.environ.setdefault("APP_CONFIG_PATH", "/nonexistent/tunnel-dns-sync/config.json")


# ---------------------------------------------------------------------------
# In-memory DNSProvider
# ---------------------------------------------------------------------------


class FakeProvider:
    """
    In-memory DNSProvider that records every call in order.

    Each write logs a "*_start" and a "*_done" event with a yield to the event
    loop in between, so concurrent writes interleave the way real network
    calls would and ordering properties can be asserted on `events`.
    """

    def __init__(self) -> None:
        self.connections: dict[str, list[TunnelConnection]] = {}
        self.records: dict[str, list[DnsRecord]] = {}
        self.events: list[tuple[str, str]] = []
        self.fail_connections: set[str] = set()
        self.hang_connections: set[str] = set()
        self.crash_connections: set[str] = set()
        self.fail_list: set[tuple[str, str]] = set()
        self.fail_create: set[str] = set()
        self.fail_delete: set[str] = set()
        self._ids = itertools.count(1)

    # -- setup helpers ------------------------------------------------------

    def add_connections(self, tunnel_id: str, *origin_ips: str | None) -> None:
        conns = self.connections.setdefault(tunnel_id, [])
        for ip in origin_ips:
            conns.append(TunnelConnection(client_id=f"client-{len(conns)}", origin_ip=ip))

    def add_record(self, zone_id: str, name: str, record_type: str, content: str, record_id: str | None = None) -> DnsRecord:
        record = DnsRecord(
            id=record_id or f"rec{next(self._ids)}",
            name=name,
            type=record_type,
            content=content,
            ttl=60,
            proxied=False,
            zone_id=zone_id,
        )
        self.records.setdefault(zone_id, []).append(record)
        return record

    def contents(self, zone_id: str, name: str, record_type: str) -> set[str]:
        return {
            r.content
            for r in self.records.get(zone_id, [])
            if r.name == name and r.type == record_type
        }

    def writes(self) -> list[tuple[str, str]]:
        return [e for e in self.events if not e[0].startswith("list")]

    # -- DNSProvider --------------------------------------------------------

    async def list_connections(self, tunnel_id: str, account_id: str):
        self.events.append(("list_connections", tunnel_id))
        if tunnel_id in self.hang_connections:
            await asyncio.Event().wait()
        if tunnel_id in self.crash_connections:
            raise RuntimeError(f"unexpected crash for {tunnel_id}")
        if tunnel_id in self.fail_connections:
            raise DnsProviderError(f"connections unavailable for {tunnel_id}")
        for conn in self.connections.get(tunnel_id, []):
            await asyncio.sleep(0)
            yield conn

    async def list_records(self, zone_id: str, name: str, record_type: str) -> list[DnsRecord]:
        self.events.append(("list_records", f"{name}/{record_type}"))
        await asyncio.sleep(0)
        if (name, record_type) in self.fail_list:
            raise DnsProviderError(f"cannot list {name}/{record_type}")
        return [r for r in self.records.get(zone_id, []) if r.name == name and r.type == record_type]

    async def create_record(self, zone_id, name, record_type, content, ttl=60, proxied=False) -> DnsRecord:
        self.events.append(("create_start", content))
        await asyncio.sleep(0)
        if content in self.fail_create:
            self.events.append(("create_failed", content))
            raise DnsProviderError(f"create {content} rejected")
        record = DnsRecord(
            id=f"rec{next(self._ids)}",
            name=name,
            type=record_type,
            content=content,
            ttl=ttl,
            proxied=proxied,
            zone_id=zone_id,
        )
        self.records.setdefault(zone_id, []).append(record)
        self.events.append(("create_done", content))
        return record

    async def delete_record(self, zone_id: str, record_id: str) -> None:
        self.events.append(("delete_start", record_id))
        await asyncio.sleep(0)
        if record_id in self.fail_delete:
            self.events.append(("delete_failed", record_id))
            raise DnsProviderError(f"delete {record_id} rejected")
        self.records[zone_id] = [r for r in self.records.get(zone_id, []) if r.id != record_id]
        self.events.append(("delete_done", record_id))


@pytest.fixture()
def fake_provider() -> FakeProvider:
    """Yields an empty FakeProvider for each test."""
    return FakeProvider()


# ---------------------------------------------------------------------------
# HTTP mock fixture: intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client
