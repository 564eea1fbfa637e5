"""
services/record_diff.py

Responsibility: Computes which records must be created and which must be
deleted so that one (zone, domain, type) publishes exactly a desired IP set.
Does NOT: call the DNS provider or log; it is a pure function.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable

from models import RecordDiff
from providers.dns_provider import DnsRecord


def _canonical(address: str) -> str:
    """Returns the compressed text form of an IP, or the input unchanged if it is not one."""
    try:
        return str(ipaddress.ip_address(address.strip()))
    except ValueError:
        return address


def diff_records(current: Iterable[DnsRecord], desired: Iterable[str]) -> RecordDiff:
    """
    Compares the current records of a target against its desired IPs.

    Matching is by content (in canonical IP form), never by record identity,
    so an IP is either created or has its record deleted, never both.

    An empty desired set deletes every current record. This is how a tunnel
    with no live connections of a family stops being advertised, and must
    not be short-circuited into a no-op.

    Records with empty content are left untouched.

    Args:
        current: The records the provider returned for the target.
        desired: The IPs that should be published; duplicates collapse.

    Returns:
        A RecordDiff with the IPs to create and the records to delete.
    """
    wanted = {_canonical(ip) for ip in desired}
    current = [r for r in current if r.content]
    published = {_canonical(r.content) for r in current}

    return RecordDiff(
        to_create=frozenset(wanted - published),
        to_delete=tuple(r for r in current if _canonical(r.content) not in wanted),
    )
