"""
services/host_service.py

Responsibility: Applies host heartbeats to the store and summarises host
state.
Does NOT: decide offline transitions (see monitor.py) or send notifications.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from db.models import Host, utcnow
from repositories.host_repository import HostRepository

logger = logging.getLogger(__name__)


class HostHeartbeat(BaseModel):
    """Status report posted by an agent running on a host."""

    name: str
    ip: Optional[str] = None
    ipv6: Optional[str] = None
    cpu_usage: Optional[float] = None
    memory_used: Optional[int] = None
    memory_total: Optional[int] = None
    disk_used: Optional[int] = None
    disk_total: Optional[int] = None
    upload_total: Optional[int] = None
    download_total: Optional[int] = None
    uptime: Optional[int] = None


@dataclass
class HostStats:
    total_hosts: int = 0
    online_hosts: int = 0
    offline_hosts: int = 0
    unknown_hosts: int = 0
    total_traffic_upload: int = 0
    total_traffic_download: int = 0


class HostService:
    """
    Business-level API over HostRepository.

    Collaborators:
        - HostRepository: handles all database access
    """

    def __init__(self, host_repo: HostRepository) -> None:
        self._repo = host_repo

    def process_heartbeat(self, heartbeat: HostHeartbeat) -> Host:
        """
        Records a heartbeat, creating the host on first contact.

        The host is marked online and last_heartbeat is stamped with now.
        Only fields present in the heartbeat overwrite stored values.

        Args:
            heartbeat: The agent's status report.

        Returns:
            The saved Host.
        """
        now = utcnow()
        host = self._repo.get_by_name(heartbeat.name)
        if host is None:
            logger.info("Auto-creating new host from heartbeat: %s", heartbeat.name)
            host = Host(name=heartbeat.name, created_at=now)

        for key, value in heartbeat.model_dump(exclude={"name"}, exclude_none=True).items():
            setattr(host, key, value)

        host.status = "online"
        host.last_heartbeat = now
        saved = self._repo.save(host)
        logger.debug("Processed heartbeat for host: %s", saved.name)
        return saved

    def list_hosts(self) -> list[Host]:
        return self._repo.list_all()

    def get_stats(self) -> HostStats:
        """
        Counts hosts per status and sums their traffic.

        Returns:
            A HostStats instance.
        """
        stats = HostStats()
        for host in self._repo.list_all():
            stats.total_hosts += 1
            if host.status == "online":
                stats.online_hosts += 1
            elif host.status == "offline":
                stats.offline_hosts += 1
            else:
                stats.unknown_hosts += 1
            stats.total_traffic_upload += host.upload_total or 0
            stats.total_traffic_download += host.download_total or 0
        return stats
