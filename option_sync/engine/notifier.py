"""Telegram notification of option table changes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from ..config import NotifierConfig
from ..errors import NotificationError

MAX_MESSAGE_LENGTH = 4096


class TelegramNotifier:
    """Send one-line messages through the Telegram Bot API.

    Delivery is fire-and-forget: failures are logged and reported as ``False``,
    never raised to the caller and never retried.
    """

    def __init__(
        self,
        config: NotifierConfig,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("option_sync.notifier")
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.config.configured

    def render(self, now: datetime | None = None, **context: Any) -> str:
        """Fill the message template; a broken template raises ``NotificationError``."""

        moment = now or datetime.now(timezone.utc)
        try:
            return self.config.message_template.format(timestamp=moment.isoformat(), **context)
        except (KeyError, IndexError, ValueError) as exc:
            raise NotificationError(f"Cannot render message template: {exc!r}") from exc

    def notify_change(self, now: datetime | None = None, **context: Any) -> bool:
        """Render the template and send it; every failure is logged and reported as ``False``."""

        try:
            text = self.render(now=now, **context)
        except NotificationError as exc:
            self.logger.error("notification_failed", error=str(exc))
            return False
        return self.notify(text)

    def notify(self, text: str) -> bool:
        if not self.enabled:
            self.logger.error("notification_not_configured", reason="Telegram bot token or chat ID not configured")
            return False
        try:
            self._send(text)
        except NotificationError as exc:
            self.logger.error("notification_failed", error=str(exc))
            return False
        self.logger.info("notification_sent", chat_id=self.config.chat_id)
        return True

    def _send(self, text: str) -> None:
        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[: MAX_MESSAGE_LENGTH - 15] + "\n...[truncated]"
        url = f"{self.config.api_base.rstrip('/')}/bot{self.config.bot_token}/sendMessage"
        try:
            with httpx.Client(timeout=self.config.timeout, transport=self._transport) as client:
                response = client.post(url, data={"chat_id": self.config.chat_id, "text": text})
        except httpx.HTTPError as exc:
            raise NotificationError(f"Telegram request failed: {exc}") from exc
        if response.status_code >= 400:
            raise NotificationError(f"Telegram responded {response.status_code}: {response.text}")


__all__ = ["MAX_MESSAGE_LENGTH", "TelegramNotifier"]
