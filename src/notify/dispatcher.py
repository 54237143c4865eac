"""AlertNotifier — renders fired alerts and fans them out to channels."""

from __future__ import annotations

import structlog

from src.core.types import AlertEvent
from src.notify.channels import NotificationChannel
from src.notify.formatters import format_alert
from src.notify.types import AlertMessage

logger = structlog.get_logger(__name__)


class AlertNotifier:
    """Delivers a debounced alert to every configured channel.

    A failing channel is logged and skipped; it never prevents delivery to
    the remaining channels and never raises back into the caller.
    """

    def __init__(
        self,
        channels: list[NotificationChannel] | None = None,
        base_url: str = "",
    ) -> None:
        self._channels: list[NotificationChannel] = channels or []
        self._base_url = base_url

    @property
    def channels(self) -> list[NotificationChannel]:
        return list(self._channels)

    async def notify(self, event: AlertEvent) -> bool:
        """Format and send *event*. True if at least one channel accepted it."""
        msg = format_alert(event, self._base_url)
        logger.info(
            "alert_formatted",
            level=msg.level,
            title=msg.title,
            url=msg.url,
            resolved=msg.resolved,
        )
        return await self.send(msg)

    async def send(self, msg: AlertMessage) -> bool:
        if not self._channels:
            logger.warning("no_channels_configured", title=msg.title)
            return False

        delivered = False
        for ch in self._channels:
            try:
                ok = await ch.send(msg)
            except Exception:
                logger.exception(
                    "channel_dispatch_error",
                    channel=type(ch).__name__,
                    title=msg.title,
                )
                continue
            delivered = delivered or ok
        return delivered

    # ── Lifecycle ───────────────────────────────────────────────

    async def close(self) -> None:
        for ch in self._channels:
            try:
                await ch.close()
            except Exception:
                logger.exception("channel_close_error", channel=type(ch).__name__)
