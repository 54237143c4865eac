"""Outbound notification — message rendering and chat delivery."""

from src.notify.channels import DiscordChannel, NotificationChannel, TelegramChannel
from src.notify.dispatcher import AlertNotifier
from src.notify.formatters import format_alert, target_url
from src.notify.types import AlertMessage, Severity

__all__ = [
    "AlertMessage",
    "AlertNotifier",
    "DiscordChannel",
    "NotificationChannel",
    "Severity",
    "TelegramChannel",
    "format_alert",
    "target_url",
]
