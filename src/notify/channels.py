"""Notification channels — Telegram and Discord delivery."""

from __future__ import annotations

import abc
import datetime
from typing import Any

import aiohttp
import structlog

from src.core.config import DiscordConfig, TelegramConfig
from src.notify.types import AlertMessage, Severity

logger = structlog.get_logger(__name__)

_TELEGRAM_API = "https://api.telegram.org"

_DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=15)

# Discord embed colours keyed by severity.
_DISCORD_COLORS: dict[Severity, int] = {
    Severity.OK: 0x2ECC71,       # green
    Severity.INFO: 0x3498DB,     # blue
    Severity.WARNING: 0xF39C12,  # orange
    Severity.ERROR: 0xE67E22,    # dark orange
    Severity.CRITICAL: 0xE74C3C, # red
}


class NotificationChannel(abc.ABC):
    """Base class for alert delivery channels."""

    @abc.abstractmethod
    async def send(self, msg: AlertMessage) -> bool:
        """Send an alert message. Returns True on success."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release resources (HTTP sessions, etc.)."""


class _HttpChannel(NotificationChannel):
    """Shared lazy aiohttp session handling."""

    def __init__(self) -> None:
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=_DEFAULT_TIMEOUT)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


class TelegramChannel(_HttpChannel):
    """Delivers alerts via the Telegram Bot API ``sendMessage`` method."""

    def __init__(self, config: TelegramConfig) -> None:
        super().__init__()
        self._token = config.bot_token.get_secret_value()
        self._chat_id = config.chat_id
        self._parse_mode = config.parse_mode

    async def send(self, msg: AlertMessage) -> bool:
        url = f"{_TELEGRAM_API}/bot{self._token}/sendMessage"
        payload: dict[str, Any] = {
            "chat_id": self._chat_id,
            "text": msg.text,
        }
        if self._parse_mode:
            payload["parse_mode"] = self._parse_mode

        try:
            session = self._get_session()
            async with session.post(url, json=payload) as resp:
                result = await resp.json(content_type=None)
                if resp.status == 200 and isinstance(result, dict) and result.get("ok"):
                    logger.debug("telegram_sent", level=msg.level, title=msg.title)
                    return True
                description = result.get("description") if isinstance(result, dict) else None
                logger.warning(
                    "telegram_send_failed",
                    status=resp.status,
                    description=description,
                )
                return False
        except Exception:
            logger.exception("telegram_send_error", chat_id=self._chat_id)
            return False


class DiscordChannel(_HttpChannel):
    """Delivers alerts via a Discord webhook with colour-coded embeds."""

    def __init__(self, config: DiscordConfig) -> None:
        super().__init__()
        self._webhook_url = config.webhook_url.get_secret_value()

    async def send(self, msg: AlertMessage) -> bool:
        embed: dict[str, Any] = {
            "title": msg.title,
            "color": _DISCORD_COLORS.get(msg.severity, 0x95A5A6),
            "timestamp": datetime.datetime.fromtimestamp(
                msg.timestamp, datetime.UTC,
            ).isoformat(),
            "fields": [
                {"name": "For", "value": msg.target_name or "Unnamed", "inline": True},
                {"name": "Resolved", "value": "yes" if msg.resolved else "no", "inline": True},
                *(
                    {"name": k, "value": v or "-", "inline": True}
                    for k, v in msg.fields.items()
                ),
            ],
        }
        if msg.url.startswith("http"):
            embed["url"] = msg.url

        payload = {"embeds": [embed]}

        try:
            session = self._get_session()
            async with session.post(self._webhook_url, json=payload) as resp:
                if resp.status in (200, 204):
                    return True
                body = await resp.text()
                logger.warning(
                    "discord_send_failed",
                    status=resp.status,
                    body=body[:200],
                )
                return False
        except Exception:
            logger.exception("discord_send_error")
            return False
