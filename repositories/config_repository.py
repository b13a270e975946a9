"""
repositories/config_repository.py

Responsibility: Provides low-level read/write access to the AppConfig table
in SQLite via SQLModel, seeding it from environment variables.
Does NOT: contain business logic, provider construction, or HTTP concerns.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from sqlmodel import Session, select

from db.models import AppConfig

logger = logging.getLogger(__name__)


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    try:
        return int(value) if value else default
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %s.", key, value, default)
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    try:
        return float(value) if value else default
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s.", key, value, default)
        return default


def env_defaults() -> dict[str, Any]:
    """
    Returns the AppConfig seed values, read from the environment.

    Single source of truth for all config keys and their fallbacks. Read at
    call time so a fresh process (or a test) picks up the current env.

    Returns:
        A dict of AppConfig field names to values.
    """
    return {
        "dns_provider": os.getenv("DNS_PROVIDER", "cloudflare"),
        "dns_api_token": os.getenv("CLOUDFLARE_API_TOKEN", ""),
        "dns_api_secret": os.getenv("DNS_API_SECRET", ""),
        "dns_zone_id": os.getenv("CLOUDFLARE_ZONE_ID", ""),
        "queue_concurrency": _env_int("DNS_QUEUE_CONCURRENCY", 1),
        # Milliseconds in the environment, seconds in the table
        "queue_interval": _env_float("DNS_QUEUE_INTERVAL", 1000.0) / 1000.0,
        "template_dir": os.getenv("TEMPLATE_DIR", "templates"),
        "telegram_bot_token": os.getenv("TELEGRAM_BOT_TOKEN", ""),
        "telegram_chat_id": os.getenv("TELEGRAM_CHAT_ID", ""),
        "notify_on_host_offline": _env_bool("NOTIFY_ON_HOST_OFFLINE", True),
        "notify_on_low_disk": _env_bool("NOTIFY_ON_LOW_DISK", True),
        "disk_threshold": _env_float("DISK_THRESHOLD", 90.0),
        "heartbeat_timeout": _env_int("HEARTBEAT_TIMEOUT", 300),
        "monitor_interval": _env_int("MONITOR_INTERVAL", 60),
    }


class ConfigRepository:
    """
    Manages persistence of the single AppConfig row in the database.

    Collaborators:
        - Session: SQLModel DB session injected at construction time
    """

    def __init__(self, session: Session) -> None:
        """
        Initialises the repository with an active DB session.

        Args:
            session: An open SQLModel Session.
        """
        self._session = session

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    def load(self) -> AppConfig:
        """
        Returns the single AppConfig row, creating it from env defaults if absent.

        Returns:
            The AppConfig ORM instance (never None).
        """
        statement = select(AppConfig)
        config = self._session.exec(statement).first()

        if config is None:
            logger.info("No AppConfig row found: seeding from environment.")
            config = AppConfig(**env_defaults())
            self._session.add(config)
            self._session.commit()
            self._session.refresh(config)

        return config
