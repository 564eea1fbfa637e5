"""
services/reconciler_service.py

Responsibility: Brings the records of one SyncTarget in line with its desired
IPs — lists current records, diffs them, then creates before it deletes.
Does NOT: collect tunnel connections, iterate configuration, or catch errors
beyond a single write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from exceptions import DnsProviderError, ListError, WriteError
from models import RECORD_TTL, SyncTarget, TargetResult
from providers.dns_provider import DnsRecord, DNSProvider
from services.log_service import LogService
from services.record_diff import diff_records

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class RecordReconciler:
    """
    Applies the diff of one SyncTarget against the DNS provider.

    Every creation is awaited (successfully or not) before the first
    deletion is issued, so rotating an IP never leaves the domain without
    records. Writes within one phase run concurrently and a failed write
    does not stop its siblings; the next cycle recomputes the diff from
    provider state and retries.

    Collaborators:
        - DNSProvider: lists, creates and deletes records
        - LogService: receives one entry per write and per failure
    """

    def __init__(self, provider: DNSProvider, log_service: LogService) -> None:
        self._provider = provider
        self._log = log_service

    async def reconcile(self, target: SyncTarget) -> TargetResult:
        """
        Reconciles one (zone, domain, record type).

        In the steady state this is one list call and no writes.

        Args:
            target: The target and its desired IP set.

        Returns:
            A TargetResult describing the writes performed.

        Raises:
            ListError: If the current records cannot be read.
        """
        try:
            current = await self._provider.list_records(target.zone_id, target.domain, target.record_type)
        except DnsProviderError as exc:
            raise ListError(target, str(exc)) from exc

        diff = diff_records(current, target.desired_ips)
        result = TargetResult(
            zone_id=target.zone_id,
            domain=target.domain,
            record_type=target.record_type,
            status="unchanged",
        )

        if diff.is_empty:
            logger.debug("No changes needed for %s record %s.", target.record_type, target.domain)
            return result

        if not target.desired_ips:
            # NOTE: Zero live connections of this family removes every record.
            logger.warning(
                "%s has no active %s origins; removing %d record(s).",
                target.describe(),
                "IPv4" if target.record_type == "A" else "IPv6",
                len(diff.to_delete),
            )

        result.created = await self._run_phase(sorted(diff.to_create), lambda ip: self._create(target, ip), result)
        # Deletions start only once every creation above has settled
        result.deleted = await self._run_phase(diff.to_delete, lambda r: self._delete(target, r), result)

        result.status = "partial" if result.failed else "applied"
        return result

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _run_phase(
        self,
        items: Iterable[_T],
        write: Callable[[_T], Awaitable[str]],
        result: TargetResult,
    ) -> list[str]:
        """
        Runs one batch of writes concurrently and waits for all of them.

        Args:
            items: The IPs to create or records to delete.
            write: Coroutine factory performing one write; returns its subject.
            result: Collects the subjects of failed writes.

        Returns:
            The subjects of the writes that succeeded.

        Raises:
            Exception: Any error other than WriteError, once the batch settles.
        """
        outcomes = await asyncio.gather(*(write(item) for item in items), return_exceptions=True)

        succeeded: list[str] = []
        unexpected: BaseException | None = None
        for outcome in outcomes:
            if isinstance(outcome, WriteError):
                self._log.log(str(outcome), level="ERROR")
                result.failed.append(outcome.subject)
            elif isinstance(outcome, BaseException):
                unexpected = unexpected or outcome
            else:
                succeeded.append(outcome)

        if unexpected is not None:
            raise unexpected
        return succeeded

    async def _create(self, target: SyncTarget, ip: str) -> str:
        self._log.log(f"Creating {target.record_type} record for {target.domain} -> {ip}")
        try:
            await self._provider.create_record(
                target.zone_id,
                target.domain,
                target.record_type,
                ip,
                ttl=RECORD_TTL,
                proxied=False,
            )
        except DnsProviderError as exc:
            raise WriteError(target, "create", ip, str(exc)) from exc
        return ip

    async def _delete(self, target: SyncTarget, record: DnsRecord) -> str:
        self._log.log(
            f"Deleting {target.record_type} record for {target.domain} -> {record.content} (id {record.id})"
        )
        try:
            await self._provider.delete_record(target.zone_id, record.id)
        except DnsProviderError as exc:
            raise WriteError(target, "delete", record.id, str(exc)) from exc
        return record.content
