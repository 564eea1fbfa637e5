"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError

    from models import SyncTarget


class ConfigurationError(Exception):
    """
    Raised when settings or the tunnel configuration document are missing,
    unparseable, or structurally invalid.

    Fatal to the whole sync cycle: no tunnel is processed.
    """

    @classmethod
    def from_validation_error(cls, source: str, exc: ValidationError) -> ConfigurationError:
        """
        Summarises a pydantic ValidationError as a ConfigurationError.

        Only the first problem is reported, with its dotted location, e.g.
        "tunnels.t1.zones.z1.records.sub.example.com.0".

        Args:
            source: What was being validated, e.g. "configuration document".
            exc: The error raised by pydantic.
        """
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first["loc"])
        detail = f"{where}: {first['msg']}" if where else first["msg"]
        extra = exc.error_count() - 1
        suffix = f" (and {extra} more problem(s))" if extra else ""
        return cls(f"Invalid {source}: {detail}{suffix}")


class DnsProviderError(Exception):
    """
    Raised by any DNSProvider implementation when a provider API call fails.

    Includes a human-readable message describing the failure. The sync
    services wrap it into one of the more specific errors below.
    """


class CollectionError(Exception):
    """
    Raised by ConnectionCollector when a tunnel's connections cannot be
    enumerated completely. Fatal to that tunnel only.
    """

    def __init__(self, tunnel_id: str, message: str) -> None:
        super().__init__(f"Tunnel {tunnel_id}: {message}")
        self.tunnel_id = tunnel_id


class ListError(Exception):
    """
    Raised by RecordReconciler when the current records for a target cannot
    be read. Fatal to that target only; it is retried next cycle.
    """

    def __init__(self, target: SyncTarget, message: str) -> None:
        super().__init__(f"{target.describe()}: {message}")
        self.target = target


class WriteError(Exception):
    """
    Raised for a single failed create or delete call.

    `subject` is the IP being created or the id of the record being deleted.
    Never aborts sibling writes.
    """

    def __init__(self, target: SyncTarget, action: str, subject: str, message: str) -> None:
        super().__init__(f"{target.describe()}: failed to {action} {subject}: {message}")
        self.target = target
        self.action = action
        self.subject = subject
