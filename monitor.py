"""
monitor.py

Responsibility: Runs the periodic availability sweep over all hosts: marks
hosts offline when their heartbeat is stale, raises low-disk alerts, and logs
aggregate statistics. Scheduling uses an APScheduler AsyncIOScheduler.
Does NOT: process heartbeats, touch DNS, or format notification messages.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from db.database import SessionFactory
from db.models import Host, as_utc, utcnow
from repositories.host_repository import HostRepository
from repositories.node_repository import NodeRepository
from services.config_service import MonitorSettings
from services.host_service import HostService
from services.notification_service import TelegramNotifier

logger = logging.getLogger(__name__)

# Job ID used to identify the sweep job in APScheduler
_JOB_ID = "availability_sweep"

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class HostHealthState:
    """Derived per sweep; never stored."""

    # None when the host has never sent a heartbeat
    seconds_since_heartbeat: float | None
    # None when disk totals are unknown
    disk_usage_percent: float | None


@dataclass
class SweepReport:
    hosts_checked: int = 0
    marked_offline: list[str] = field(default_factory=list)
    low_disk: list[str] = field(default_factory=list)
    notifications_sent: int = 0
    errors: list[str] = field(default_factory=list)


def evaluate_health(host: Host, now: datetime) -> HostHealthState:
    """
    Computes a host's heartbeat age and disk usage.

    Args:
        host: The stored Host row.
        now: The sweep's reference time (aware UTC).

    Returns:
        A HostHealthState.
    """
    since = None
    if host.last_heartbeat is not None:
        since = (as_utc(now) - as_utc(host.last_heartbeat)).total_seconds()

    usage = None
    if host.disk_total and host.disk_total > 0 and host.disk_used is not None:
        usage = host.disk_used / host.disk_total * 100

    return HostHealthState(seconds_since_heartbeat=since, disk_usage_percent=usage)


class AvailabilityMonitor:
    """
    Periodic host health sweep.

    Per host and per sweep:
      - heartbeat older than heartbeat_timeout and status != "offline"
        → status persisted as "offline", one offline alert (if enabled).
        The stored status is the only memory between sweeps, so the alert
        fires again only after a new heartbeat brings the host back online.
      - disk usage >= disk_threshold → one low-disk alert (if enabled) on
        every sweep while the condition holds; no de-duplication.

    A failure evaluating one host is logged and does not stop the sweep.

    Collaborators:
        - SessionFactory: opens a fresh DB session per sweep
        - TelegramNotifier: optional alert transport
        - AsyncIOScheduler: fixed-interval trigger, first run immediately
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        settings: MonitorSettings,
        notifier: TelegramNotifier | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings
        self._notifier = notifier
        self._clock = clock
        self._scheduler: AsyncIOScheduler | None = None

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """
        Schedules the sweep and starts the scheduler.

        The first sweep runs immediately, then every check_interval seconds.
        Must be called from within the running event loop.
        """
        if self.is_running:
            logger.warning("Availability monitor is already running.")
            return

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self.sweep,
            trigger="interval",
            seconds=self._settings.check_interval,
            id=_JOB_ID,
            # NOTE: next_run_time=now triggers the first sweep immediately on
            # startup rather than waiting a full interval.
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,  # Prevent overlapping sweeps
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(
            "Availability monitor started: interval: %ds, heartbeat timeout: %ds.",
            self._settings.check_interval, self._settings.heartbeat_timeout,
        )

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Availability monitor stopped.")

    # ---------------------------------------------------------------------------
    # Sweep
    # ---------------------------------------------------------------------------

    async def sweep(self) -> SweepReport:
        """
        Evaluates every host once.

        Returns:
            A SweepReport summarising transitions, alerts and errors.
        """
        report = SweepReport()
        now = self._clock()
        logger.debug("Running availability sweep.")

        with self._session_factory() as session:
            host_repo = HostRepository(session)
            for host in host_repo.list_all():
                host_name = host.name
                report.hosts_checked += 1
                try:
                    await self._check_host(host_repo, host, now, report)
                except Exception as exc:
                    session.rollback()
                    report.errors.append(host_name)
                    logger.exception("Failed to evaluate host %s: %s", host_name, exc)

            self._log_statistics(session)

        if report.marked_offline or report.low_disk or report.errors:
            logger.info(
                "Sweep complete: %d host(s), %d marked offline, %d low disk, %d error(s).",
                report.hosts_checked, len(report.marked_offline),
                len(report.low_disk), len(report.errors),
            )
        return report

    async def _check_host(
        self,
        host_repo: HostRepository,
        host: Host,
        now: datetime,
        report: SweepReport,
    ) -> None:
        state = evaluate_health(host, now)
        settings = self._settings

        stale = (
            state.seconds_since_heartbeat is None
            or state.seconds_since_heartbeat > settings.heartbeat_timeout
        )
        if stale and host.status != "offline":
            logger.warning("Host offline detected: %s", host.name)
            last_heartbeat = host.last_heartbeat
            host_repo.update_status(host, "offline")
            report.marked_offline.append(host.name)

            if settings.notify_on_host_offline and self._notifier is not None:
                if await self._notifier.notify_host_offline(host.name, last_heartbeat):
                    report.notifications_sent += 1

        usage = state.disk_usage_percent
        if usage is not None and usage >= settings.disk_threshold:
            logger.warning("Low disk space: %s (%.1f%%)", host.name, usage)
            report.low_disk.append(host.name)

            if settings.notify_on_low_disk and self._notifier is not None:
                if await self._notifier.notify_low_disk(host.name, usage, host.disk_total):
                    report.notifications_sent += 1

    @staticmethod
    def _log_statistics(session: Session) -> None:
        try:
            node_stats = NodeRepository(session).get_stats()
            host_stats = HostService(HostRepository(session)).get_stats()
        except Exception as exc:
            logger.error("Failed to collect statistics: %s", exc)
            return

        logger.debug(
            "System statistics: nodes=%d active=%d users=%d traffic=%d hosts=%d online=%d offline=%d",
            node_stats.total_nodes, node_stats.active_nodes, node_stats.total_users,
            node_stats.total_traffic_used, host_stats.total_hosts,
            host_stats.online_hosts, host_stats.offline_hosts,
        )
