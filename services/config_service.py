"""
services/config_service.py

Responsibility: Provides a clean, business-level API for reading
application configuration. Delegates all persistence to ConfigRepository.
Does NOT: make HTTP calls, build providers, or interact with the workers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from repositories.config_repository import ConfigRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DnsSettings:
    provider: str
    api_token: str
    api_secret: str
    zone_id: str


@dataclass(frozen=True)
class QueueSettings:
    concurrency: int
    interval: float


@dataclass(frozen=True)
class NotificationSettings:
    bot_token: str
    chat_id: str


@dataclass(frozen=True)
class MonitorSettings:
    heartbeat_timeout: int
    check_interval: int
    notify_on_host_offline: bool
    notify_on_low_disk: bool
    disk_threshold: float


class ConfigService:
    """
    High-level API for reading application configuration.

    Groups the flat AppConfig row into per-component settings objects so
    each worker receives only what it needs.

    Collaborators:
        - ConfigRepository: handles all database access
    """

    def __init__(self, config_repo: ConfigRepository) -> None:
        """
        Initialises the service with a config repository.

        Args:
            config_repo: An initialised ConfigRepository for the current session.
        """
        self._repo = config_repo

    # ---------------------------------------------------------------------------
    # Read operations
    # ---------------------------------------------------------------------------

    async def get_dns_settings(self) -> DnsSettings:
        """
        Returns the DNS provider name, credentials, and optional zone ID.

        Returns:
            A DnsSettings instance.
        """
        config = self._repo.load()
        return DnsSettings(
            provider=config.dns_provider,
            api_token=config.dns_api_token,
            api_secret=config.dns_api_secret,
            zone_id=config.dns_zone_id,
        )

    async def get_queue_settings(self) -> QueueSettings:
        config = self._repo.load()
        return QueueSettings(
            concurrency=max(1, config.queue_concurrency),
            interval=max(0.0, config.queue_interval),
        )

    async def get_notification_settings(self) -> NotificationSettings:
        config = self._repo.load()
        return NotificationSettings(
            bot_token=config.telegram_bot_token,
            chat_id=config.telegram_chat_id,
        )

    async def get_monitor_settings(self) -> MonitorSettings:
        """
        Returns the availability monitor's thresholds and toggles.

        Returns:
            A MonitorSettings instance.
        """
        config = self._repo.load()
        return MonitorSettings(
            heartbeat_timeout=config.heartbeat_timeout,
            check_interval=config.monitor_interval,
            notify_on_host_offline=config.notify_on_host_offline,
            notify_on_low_disk=config.notify_on_low_disk,
            disk_threshold=config.disk_threshold,
        )

    async def get_template_dir(self) -> str:
        config = self._repo.load()
        return config.template_dir
