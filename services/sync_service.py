"""
services/sync_service.py

Responsibility: Orchestrates one reconciliation cycle — for every configured
tunnel, collects its active origin IPs and reconciles each declared
(zone, domain, record type) against them.
Does NOT: parse configuration, make HTTP calls directly, or schedule itself.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from exceptions import CollectionError, ListError
from models import RECORD_TYPES, ActiveIpSet, CycleReport, SyncConfig, SyncTarget, TargetResult, TunnelReport
from providers.dns_provider import DNSProvider
from services.collector_service import ConnectionCollector
from services.log_service import LogService
from services.reconciler_service import RecordReconciler

logger = logging.getLogger(__name__)

# Upper bound for one whole cycle; hung provider calls are abandoned after this
DEFAULT_CYCLE_TIMEOUT = 600.0


def build_targets(
    zones: dict[str, dict[str, frozenset[str]]],
    active: ActiveIpSet,
    tunnel_id: str = "",
) -> list[SyncTarget]:
    """
    Expands one tunnel's zone/domain/type declarations into SyncTargets.

    A gets the IPv4 subset, AAAA the IPv6 subset. Types not declared for a
    domain produce no target.

    Args:
        zones: zone ID -> domain -> declared record types.
        active: The tunnel's active origin IPs.
        tunnel_id: The owning tunnel, named in every log entry for its targets.

    Returns:
        The targets in configuration order.
    """
    targets: list[SyncTarget] = []
    for zone_id, domains in zones.items():
        for domain, record_types in domains.items():
            for record_type in RECORD_TYPES:
                if record_type not in record_types:
                    continue
                targets.append(
                    SyncTarget(
                        zone_id=zone_id,
                        domain=domain,
                        record_type=record_type,
                        desired_ips=active.for_type(record_type),
                        tunnel_id=tunnel_id,
                    )
                )
    return targets


class SyncService:
    """
    Runs the tunnel -> DNS reconciliation cycle.

    Tunnels are processed concurrently and in isolation: a failure in one
    tunnel (collection error or anything unexpected) is logged and recorded
    in the report without affecting the others. Within a tunnel, targets
    are fanned out concurrently; a ListError only skips its own target.

    Collaborators:
        - DNSProvider: any implementation (e.g. CloudflareClient)
        - ConnectionCollector: yields each tunnel's active IPs
        - RecordReconciler: applies each target's diff
        - LogService: UI-visible activity entries
    """

    def __init__(
        self,
        provider: DNSProvider,
        log_service: LogService,
        cycle_timeout: float = DEFAULT_CYCLE_TIMEOUT,
    ) -> None:
        """
        Initialises the service with all required collaborators.

        Args:
            provider: Any DNSProvider implementation.
            log_service: Receives activity entries for the cycle.
            cycle_timeout: Seconds after which unfinished tunnels are abandoned.
        """
        self._collector = ConnectionCollector(provider)
        self._reconciler = RecordReconciler(provider, log_service)
        self._log = log_service
        self._cycle_timeout = cycle_timeout

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def run_sync_cycle(self, config: SyncConfig) -> CycleReport:
        """
        Runs one reconciliation cycle across every configured tunnel.

        Tunnels still running when the cycle timeout expires are cancelled
        and reported as "incomplete"; the next cycle picks them up again.

        Args:
            config: The validated tunnel configuration.

        Returns:
            A CycleReport with one TunnelReport per configured tunnel.
        """
        report = CycleReport(started_at=datetime.now(timezone.utc))
        self._log.log(f"Sync cycle started for {len(config.tunnels)} tunnel(s).")

        tasks: dict[asyncio.Task[TunnelReport], TunnelReport] = {}
        for tunnel_id, zones in config.tunnels.items():
            tunnel_report = TunnelReport(tunnel_id=tunnel_id)
            task = asyncio.create_task(self._sync_tunnel(config.account_id, zones, tunnel_report))
            tasks[task] = tunnel_report

        if tasks:
            try:
                _, pending = await asyncio.wait(list(tasks), timeout=self._cycle_timeout)
            except asyncio.CancelledError:
                for task in tasks:
                    task.cancel()
                raise

            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            for task, tunnel_report in tasks.items():
                if task in pending:
                    tunnel_report.status = "incomplete"
                    tunnel_report.error = f"Abandoned after {self._cycle_timeout:g}s cycle timeout"
                    self._log.log(
                        f"Tunnel {tunnel_report.tunnel_id}: sync incomplete, cycle timeout reached.",
                        level="WARNING",
                    )
                elif task.cancelled():
                    tunnel_report.status = "incomplete"
                    tunnel_report.error = "Cancelled"
                elif (exc := task.exception()) is not None:
                    tunnel_report.status = "failed"
                    tunnel_report.error = str(exc)
                    logger.error("Error processing tunnel %s", tunnel_report.tunnel_id, exc_info=exc)
                    self._log.log(f"Error processing tunnel {tunnel_report.tunnel_id}: {exc}", level="ERROR")
                report.tunnels.append(tunnel_report)

        report.finished_at = datetime.now(timezone.utc)
        self._log.log(self._summarise(report), level="INFO" if report.ok else "WARNING")
        return report

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _sync_tunnel(
        self,
        account_id: str,
        zones: dict[str, dict[str, frozenset[str]]],
        tunnel_report: TunnelReport,
    ) -> TunnelReport:
        """
        Collects one tunnel's IPs and reconciles all of its targets.

        Args:
            account_id: The account owning the tunnel.
            zones: The tunnel's zone/domain/type declarations.
            tunnel_report: Filled in place as work completes.

        Returns:
            The same TunnelReport.
        """
        tunnel_id = tunnel_report.tunnel_id
        logger.info("Processing tunnel: %s", tunnel_id)

        try:
            active = await self._collector.collect(tunnel_id, account_id)
        except CollectionError as exc:
            tunnel_report.status = "failed"
            tunnel_report.error = str(exc)
            self._log.log(f"Could not collect connections: {exc}", level="ERROR")
            return tunnel_report

        tunnel_report.ipv4 = sorted(active.ipv4)
        tunnel_report.ipv6 = sorted(active.ipv6)

        targets = build_targets(zones, active, tunnel_id)
        outcomes = await asyncio.gather(
            *(self._sync_target(target) for target in targets),
            return_exceptions=True,
        )

        unexpected: BaseException | None = None
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                unexpected = unexpected or outcome
            else:
                tunnel_report.targets.append(outcome)

        if unexpected is not None:
            raise unexpected
        return tunnel_report

    async def _sync_target(self, target: SyncTarget) -> TargetResult:
        try:
            return await self._reconciler.reconcile(target)
        except ListError as exc:
            self._log.log(f"Skipping {exc}", level="ERROR")
            return TargetResult(
                zone_id=target.zone_id,
                domain=target.domain,
                record_type=target.record_type,
                status="list_failed",
                error=str(exc),
            )

    @staticmethod
    def _summarise(report: CycleReport) -> str:
        """Builds the one-line cycle summary written to the activity log."""
        targets = [r for t in report.tunnels for r in t.targets]
        parts = [f"{len(report.tunnels)} tunnel(s), {len(targets)} target(s) checked"]

        created = sum(len(r.created) for r in targets)
        deleted = sum(len(r.deleted) for r in targets)
        failed_writes = sum(len(r.failed) for r in targets)
        skipped = sum(1 for r in targets if r.status == "list_failed")
        failed_tunnels = sum(1 for t in report.tunnels if t.status != "ok")

        if created:
            parts.append(f"{created} created")
        if deleted:
            parts.append(f"{deleted} deleted")
        if failed_writes:
            parts.append(f"{failed_writes} write(s) failed")
        if skipped:
            parts.append(f"{skipped} target(s) skipped")
        if failed_tunnels:
            parts.append(f"{failed_tunnels} tunnel(s) failed or incomplete")
        return "Sync cycle complete: " + ", ".join(parts) + "."
