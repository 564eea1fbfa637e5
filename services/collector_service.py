"""
services/collector_service.py

Responsibility: Collects the distinct origin IP addresses currently carrying
traffic for a tunnel and splits them into IPv4 and IPv6 sets.
Does NOT: read or write DNS records, or decide which records to manage.
"""

from __future__ import annotations

import ipaddress
import logging

from exceptions import CollectionError, DnsProviderError
from models import ActiveIpSet
from providers.dns_provider import DNSProvider

logger = logging.getLogger(__name__)


def classify_ip(address: str) -> tuple[str, str] | None:
    """
    Classifies an address string by family.

    Args:
        address: An address as reported by the provider.

    Returns:
        ("A", canonical) for IPv4, ("AAAA", canonical) for IPv6, or None when
        the string is not a valid IP address. canonical is the compressed
        text form, so equivalent spellings collapse to one value.
    """
    try:
        ip = ipaddress.ip_address(address.strip())
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv4Address):
        return "A", str(ip)
    return "AAAA", str(ip)


class ConnectionCollector:
    """
    Builds the ActiveIpSet of a tunnel from its live connections.

    The provider's connection stream is consumed to exhaustion before any
    result is returned; a failure part-way through raises CollectionError
    so a reconciliation never runs against a truncated connection list.

    Collaborators:
        - DNSProvider: supplies the tunnel's connection stream
    """

    def __init__(self, provider: DNSProvider) -> None:
        self._provider = provider

    async def collect(self, tunnel_id: str, account_id: str) -> ActiveIpSet:
        """
        Returns the distinct origin IPs of a tunnel, split by family.

        Connections without an origin IP and addresses that are neither IPv4
        nor IPv6 are skipped.

        Args:
            tunnel_id: The tunnel's UUID.
            account_id: The account that owns the tunnel.

        Returns:
            An ActiveIpSet; both sets may be empty.

        Raises:
            CollectionError: If the connection stream cannot be read completely.
        """
        origin_ips: set[str] = set()
        try:
            async for conn in self._provider.list_connections(tunnel_id, account_id):
                if conn.origin_ip:
                    origin_ips.add(conn.origin_ip)
        except DnsProviderError as exc:
            raise CollectionError(tunnel_id, str(exc)) from exc

        ipv4: set[str] = set()
        ipv6: set[str] = set()
        for address in origin_ips:
            classified = classify_ip(address)
            if classified is None:
                logger.debug("Tunnel %s: dropping unparseable origin IP %r.", tunnel_id, address)
                continue
            family, canonical = classified
            (ipv4 if family == "A" else ipv6).add(canonical)

        logger.debug(
            "Tunnel %s: %d IPv4 and %d IPv6 origin(s) active.", tunnel_id, len(ipv4), len(ipv6)
        )
        return ActiveIpSet(ipv4=frozenset(ipv4), ipv6=frozenset(ipv6))
