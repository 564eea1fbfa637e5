"""
providers/dns_provider.py

Responsibility: Defines the DNSProvider Protocol and the value objects it
returns (DnsRecord, TunnelConnection).
Does NOT: make HTTP calls, read configuration, or implement any provider logic.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Value objects: stable shapes returned by all DNSProvider implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsRecord:
    """
    Represents a single DNS A/AAAA record as returned by a DNSProvider.

    Re-fetched fresh for every reconciliation; never cached across cycles.
    """

    # Provider-assigned unique identifier, needed only for deletion
    id: str

    # Fully-qualified DNS name, e.g. "sub.example.com"
    name: str

    # "A" or "AAAA"
    type: str

    # The IP address stored in the record
    content: str

    ttl: int = 1
    proxied: bool = False
    zone_id: str = ""


@dataclass(frozen=True)
class TunnelConnection:
    """
    One live connection reported by a tunnel.

    origin_ip may be None when the provider omits it; such connections are
    skipped by the collector rather than treated as an error.
    """

    client_id: str
    origin_ip: str | None
    colo_name: str = ""


# ---------------------------------------------------------------------------
# Abstract interface: the provider operations the sync engine depends on
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Abstract protocol for tunnel connection lookup and DNS record management.

    The sync services depend on this abstraction, never on a concrete
    implementation. CloudflareClient satisfies it in production; tests use
    an in-memory fake.
    """

    def list_connections(self, tunnel_id: str, account_id: str) -> AsyncIterator[TunnelConnection]:
        """
        Streams every live connection of a tunnel.

        Args:
            tunnel_id: The tunnel's UUID.
            account_id: The account that owns the tunnel.

        Yields:
            TunnelConnection instances, one per underlying connection.

        Raises:
            DnsProviderError: If the API call fails at any point of the stream.
        """
        ...

    async def list_records(self, zone_id: str, name: str, record_type: str) -> list[DnsRecord]:
        """
        Returns every record of the given type whose name matches exactly.

        Args:
            zone_id: The provider-assigned zone identifier.
            name: The fully-qualified DNS name.
            record_type: "A" or "AAAA".

        Returns:
            A list of DnsRecord instances, possibly empty.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def create_record(
        self,
        zone_id: str,
        name: str,
        record_type: str,
        content: str,
        ttl: int = 60,
        proxied: bool = False,
    ) -> DnsRecord:
        """
        Creates a new record in the given zone.

        Returns:
            The newly created DnsRecord.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...

    async def delete_record(self, zone_id: str, record_id: str) -> None:
        """
        Deletes a DNS record from the given zone.

        Raises:
            DnsProviderError: If the API call fails.
        """
        ...
