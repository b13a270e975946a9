"""
db/models.py

Responsibility: Defines all SQLModel table models used by the application.
Does NOT: contain business logic, repositories, or session management.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Returns value as an aware UTC datetime.

    SQLite keeps no offset, so rows read back may be naive; those are UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# AppConfig: single-row application configuration table
# ---------------------------------------------------------------------------


class AppConfig(SQLModel, table=True):
    """
    Stores the application's runtime configuration as a single DB row.

    Only one row is expected; it is seeded from environment variables on
    first load and read back by ConfigRepository.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    # "cloudflare", "godaddy" or "namecheap"; see providers.factory
    dns_provider: str = Field(default="cloudflare")

    # Provider API token (Cloudflare) or API key (other vendors)
    dns_api_token: str = Field(default="")

    # Secondary credential for vendors that need a key pair
    dns_api_secret: str = Field(default="")

    # Static zone ID; when empty the zone is looked up per domain
    dns_zone_id: str = Field(default="")

    # Reconciliation queue tuning
    queue_concurrency: int = Field(default=1)
    queue_interval: float = Field(default=1.0)

    # Root directory holding xray/ and nginx/ template folders
    template_dir: str = Field(default="templates")

    telegram_bot_token: str = Field(default="")
    telegram_chat_id: str = Field(default="")

    notify_on_host_offline: bool = Field(default=True)
    notify_on_low_disk: bool = Field(default=True)

    # Disk usage percentage at or above which a low-disk alert fires
    disk_threshold: float = Field(default=90.0)

    # Seconds without heartbeat before a host is considered offline
    heartbeat_timeout: int = Field(default=300)

    # Seconds between availability monitor sweeps
    monitor_interval: int = Field(default=60)


# ---------------------------------------------------------------------------
# Host: a VPS machine reporting heartbeats
# ---------------------------------------------------------------------------


class Host(SQLModel, table=True):
    """
    A physical or virtual machine that nodes may run on.

    Created or refreshed by HostService on every heartbeat; status is
    flipped to "offline" by the AvailabilityMonitor.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    name: str = Field(unique=True, index=True)
    ip: str = Field(default="")
    ipv6: Optional[str] = Field(default=None)

    region: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)
    isp: Optional[str] = Field(default=None)

    cpu_cores: int = Field(default=0)
    cpu_usage: Optional[float] = Field(default=None)

    # Memory in MB, disk in GB
    memory_total: int = Field(default=0)
    memory_used: Optional[int] = Field(default=None)
    disk_total: int = Field(default=0)
    disk_used: Optional[int] = Field(default=None)

    # Cumulative traffic counters in bytes
    upload_total: int = Field(default=0)
    download_total: int = Field(default=0)

    # "online", "offline" or "unknown"
    status: str = Field(default="unknown", index=True)
    uptime: Optional[int] = Field(default=None)
    last_heartbeat: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Node: a proxy server instance registered by a panel
# ---------------------------------------------------------------------------


class Node(SQLModel, table=True):
    """
    A proxy node as produced by a panel adapter.

    additional_ports and proxy_config are stored as raw text and parsed
    when a NodeConfigContext is built.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    panel_type: str = Field(default="")
    panel_node_id: int = Field(default=0)
    panel_url: str = Field(default="")

    name: str
    host_id: Optional[int] = Field(default=None, foreign_key="host.id")

    domain: Optional[str] = Field(default=None)
    port: int

    # Comma-separated list, e.g. "8443,2053"
    additional_ports: Optional[str] = Field(default=None)

    # v2ray, xray, vless, trojan, ...
    proxy_type: str

    # JSON-encoded proxy settings
    proxy_config: Optional[str] = Field(default=None)

    is_active: bool = Field(default=True)
    traffic_used: int = Field(default=0)
    user_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# DnsRecord: last reconciled DNS state per node
# ---------------------------------------------------------------------------


class DnsRecord(SQLModel, table=True):
    """
    The desired-state DNS record for a node, as last written to the provider.

    One row per node in the simple case; upserted by DnsRecordRepository
    after every successful provider update.
    """

    id: Optional[int] = Field(default=None, primary_key=True)

    node_id: int = Field(foreign_key="node.id", index=True)
    domain: str
    # "A", "AAAA" or "CNAME"
    type: str
    value: str

    is_active: bool = Field(default=True)
    last_checked_at: Optional[datetime] = Field(default=None)
    last_updated_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
