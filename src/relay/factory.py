"""Convenience factory for wiring the relay stack."""

from __future__ import annotations

import asyncio

from src.core.config import Settings
from src.debounce.engine import CoalescingEngine
from src.notify.channels import DiscordChannel, NotificationChannel, TelegramChannel
from src.notify.dispatcher import AlertNotifier


def create_notifier(settings: Settings) -> AlertNotifier:
    """Build an AlertNotifier with every enabled channel."""
    channels: list[NotificationChannel] = []

    if settings.telegram.enabled:
        channels.append(TelegramChannel(settings.telegram))

    if settings.discord.enabled:
        channels.append(DiscordChannel(settings.discord))

    return AlertNotifier(channels=channels, base_url=settings.komodo.base_url)


def create_relay_stack(
    settings: Settings,
    loop: asyncio.AbstractEventLoop | None = None,
) -> tuple[CoalescingEngine, AlertNotifier]:
    """Build the coalescing engine and the notifier it fires into.

    Returns:
        (engine, notifier)
    """
    notifier = create_notifier(settings)
    engine = CoalescingEngine(
        notify=notifier.notify,
        window_secs=settings.debounce.window_secs,
        max_pending=settings.debounce.max_pending,
        healthy_state=settings.debounce.healthy_state,
        loop=loop,
    )
    return engine, notifier
