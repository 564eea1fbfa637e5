"""
models.py

Responsibility: Defines the value objects that flow through one sync cycle:
the typed configuration, the per-tunnel IP sets, reconciliation targets,
diffs, and the reports produced for the status endpoint.
Does NOT: make HTTP calls, read configuration files, or perform any I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from providers.dns_provider import DnsRecord

# Record types this application is allowed to manage
RECORD_TYPES: tuple[str, ...] = ("A", "AAAA")

# Every managed record is written with this TTL (seconds) and proxying off
RECORD_TTL = 60


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ZoneConfig(BaseModel):
    """Domains of one zone and the record types managed for each."""

    # domain -> record types, e.g. {"sub.example.com": ["A", "AAAA"]}
    records: dict[str, list[Literal["A", "AAAA"]]] = Field(default_factory=dict)


class TunnelDefinition(BaseModel):
    """Zones whose records follow one tunnel's origin IPs."""

    zones: dict[str, ZoneConfig] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """
    Shape of the JSON configuration document.

    Unknown keys are ignored so the document can carry comments or fields
    for other tools.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    account_id: str = Field(min_length=1)
    tunnels: dict[str, TunnelDefinition]

    def to_sync_config(self) -> SyncConfig:
        """Freezes the validated document into the SyncConfig the engine consumes."""
        return SyncConfig(
            account_id=self.account_id,
            tunnels={
                tunnel_id: {
                    zone_id: {domain: frozenset(types) for domain, types in zone.records.items()}
                    for zone_id, zone in tunnel.zones.items()
                }
                for tunnel_id, tunnel in self.tunnels.items()
            },
        )


@dataclass(frozen=True)
class SyncConfig:
    """
    Validated form of the tunnel configuration document.

    tunnels maps tunnel ID -> zone ID -> domain -> allowed record types.
    The record type set per domain is an allow-list: a type that is not
    listed is never reconciled for that domain.
    """

    account_id: str
    tunnels: dict[str, dict[str, dict[str, frozenset[str]]]]


# ---------------------------------------------------------------------------
# Cycle values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActiveIpSet:
    """Distinct origin IPs of one tunnel, split by address family."""

    ipv4: frozenset[str] = frozenset()
    ipv6: frozenset[str] = frozenset()

    def for_type(self, record_type: str) -> frozenset[str]:
        """Returns the IP subset matching a DNS record type (A -> IPv4, AAAA -> IPv6)."""
        return self.ipv4 if record_type == "A" else self.ipv6


@dataclass(frozen=True)
class SyncTarget:
    """One reconciliation unit: a (zone, domain, record type) and its desired IPs."""

    zone_id: str
    domain: str
    record_type: str
    desired_ips: frozenset[str]
    # Owning tunnel, carried for log context only
    tunnel_id: str = ""

    def describe(self) -> str:
        where = f"{self.domain}/{self.record_type} (zone {self.zone_id})"
        return f"Tunnel {self.tunnel_id}: {where}" if self.tunnel_id else where


@dataclass(frozen=True)
class RecordDiff:
    """
    Creations and deletions needed to make one target's records match its
    desired IPs. Both sides come from the same snapshot of current records.
    """

    to_create: frozenset[str]
    to_delete: tuple[DnsRecord, ...]

    @property
    def is_empty(self) -> bool:
        return not self.to_create and not self.to_delete


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@dataclass
class TargetResult:
    """
    Outcome of reconciling one SyncTarget.

    status is one of:
        "unchanged"   — records already matched, no writes issued
        "applied"     — every create/delete succeeded
        "partial"     — at least one write failed
        "list_failed" — current records could not be read; target skipped
    """

    zone_id: str
    domain: str
    record_type: str
    status: str
    created: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class TunnelReport:
    """Outcome of one tunnel's part of a cycle."""

    tunnel_id: str
    # "ok", "failed" or "incomplete" (abandoned at the cycle deadline)
    status: str = "ok"
    ipv4: list[str] = field(default_factory=list)
    ipv6: list[str] = field(default_factory=list)
    targets: list[TargetResult] = field(default_factory=list)
    error: str | None = None


@dataclass
class CycleReport:
    """Summary of one full reconciliation cycle across all tunnels."""

    started_at: datetime
    finished_at: datetime | None = None
    tunnels: list[TunnelReport] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(
            t.status == "ok" and all(r.status in ("unchanged", "applied") for r in t.targets)
            for t in self.tunnels
        )
