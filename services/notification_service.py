"""
services/notification_service.py

Responsibility: Delivers operator alerts through the Telegram Bot API.
Does NOT: decide when an alert is due, retry failed deliveries, or queue
messages.
"""

from __future__ import annotations

import html
import json
import logging
from datetime import datetime
from typing import Any

import httpx

from db.models import as_utc

logger = logging.getLogger(__name__)

_TELEGRAM_BASE = "https://api.telegram.org"

_LEVEL_EMOJI = {
    "error": "🚨",
    "warning": "⚠️",
    "info": "ℹ️",
}


class TelegramNotifier:
    """
    Sends formatted notifications to a single Telegram chat.

    Every failure (disabled, HTTP error, API error) is logged and reported as
    False; nothing is raised to the caller and nothing is retried.

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        bot_token: str,
        chat_id: str,
        timeout: float = 10.0,
    ) -> None:
        """
        Initialises the notifier.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            bot_token: Telegram bot token. Empty disables delivery.
            chat_id: Target chat ID. Empty disables delivery.
            timeout: Per-request timeout in seconds.
        """
        self._client = http_client
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

        if not self.is_enabled():
            logger.warning("Telegram notifications disabled (missing credentials).")

    def is_enabled(self) -> bool:
        return bool(self._bot_token and self._chat_id)

    async def send(
        self,
        title: str,
        level: str = "info",
        body: str = "",
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """
        Sends one notification message.

        Args:
            title: Short headline, rendered in bold.
            level: "info", "warning" or "error"; selects the leading emoji.
            body: Message text. May contain Telegram HTML markup.
            metadata: Optional key/value details rendered as a <pre> block.

        Returns:
            True if Telegram confirmed delivery, False otherwise.
        """
        if not self.is_enabled():
            logger.debug("Telegram notification skipped (disabled): %s", title)
            return False

        url = f"{_TELEGRAM_BASE}/bot{self._bot_token}/sendMessage"
        payload = {
            "chat_id": self._chat_id,
            "text": format_message(title, level, body, metadata),
            "parse_mode": "HTML",
        }

        try:
            response = await self._client.post(url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Telegram API error %s sending '%s': %s",
                exc.response.status_code, title, exc.response.text,
            )
            return False
        except (httpx.RequestError, ValueError) as exc:
            logger.error("Failed to send Telegram notification '%s': %s", title, exc)
            return False

        if not data.get("ok"):
            logger.error("Telegram API rejected '%s': %s", title, data.get("description"))
            return False

        logger.info("Telegram notification sent: %s", title)
        return True

    # ---------------------------------------------------------------------------
    # Alert helpers
    # ---------------------------------------------------------------------------

    async def notify_host_offline(self, host_name: str, last_heartbeat: datetime | None = None) -> bool:
        metadata = None
        if last_heartbeat is not None:
            metadata = {"last_heartbeat": as_utc(last_heartbeat).isoformat()}
        return await self.send(
            title="Host Offline",
            level="error",
            body=f"Host <b>{html.escape(host_name)}</b> is offline",
            metadata=metadata,
        )

    async def notify_low_disk(self, host_name: str, usage_percent: float, disk_total: int) -> bool:
        return await self.send(
            title="Low Disk Space",
            level="warning",
            body=(
                f"Host <b>{html.escape(host_name)}</b> has low disk space: "
                f"<b>{usage_percent:.1f}%</b> used"
            ),
            metadata={"disk_used": f"{usage_percent:.1f}%", "disk_total": f"{disk_total} GB"},
        )

    async def notify_dns_update_failed(self, domain: str, error: str) -> bool:
        return await self.send(
            title="DNS Update Failed",
            level="error",
            body=f"Failed to update DNS record for <b>{html.escape(domain)}</b>",
            metadata={"error": error},
        )


def format_message(
    title: str,
    level: str,
    body: str,
    metadata: dict[str, Any] | None = None,
) -> str:
    """
    Renders a notification as Telegram HTML.

    Args:
        title: Headline text (escaped).
        level: Severity; unknown levels fall back to the info emoji.
        body: Message text (passed through as HTML).
        metadata: Optional details; values are JSON-encoded and escaped.

    Returns:
        The message text for the sendMessage call.
    """
    emoji = _LEVEL_EMOJI.get(level, _LEVEL_EMOJI["info"])
    text = ""
    if title:
        text += f"{emoji} <b>{html.escape(title)}</b>\n\n"
    text += body

    if metadata:
        lines = "".join(
            f"{html.escape(str(key))}: {html.escape(json.dumps(value, default=str))}\n"
            for key, value in metadata.items()
        )
        text += f"\n\n<b>Details:</b>\n<pre>{lines}</pre>"

    return text
