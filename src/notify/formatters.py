"""Pure functions that render AlertEvents into chat messages."""

from __future__ import annotations

import re

import structlog

from src.core.types import AlertEvent
from src.notify.types import AlertMessage, Severity

logger = structlog.get_logger(__name__)

# ── Level mappings ──────────────────────────────────────────────

DEFAULT_EMOJI = "ℹ️"

LEVEL_EMOJI: dict[str, str] = {
    "CRITICAL": "🔴",
    "ERROR": "🚨",
    "WARNING": "⚠️",
    "INFO": "ℹ️",
    "OK": "✅",
}

_LEVEL_SEVERITY: dict[str, Severity] = {
    "CRITICAL": Severity.CRITICAL,
    "ERROR": Severity.ERROR,
    "WARNING": Severity.WARNING,
    "INFO": Severity.INFO,
    "OK": Severity.OK,
}

# Komodo UI path segment per target type.
TARGET_PATHS: dict[str, str] = {
    "stack": "stacks",
    "server": "servers",
    "alerter": "alerters",
    "deployment": "deployments",
    "build": "builds",
    "repo": "repos",
    "procedure": "procedures",
    "action": "actions",
    "builder": "builders",
    "template": "templates",
    "sync": "syncs",
}

RESOLVED_EMOJI = "✅"
UNRESOLVED_EMOJI = "❌"

# Characters with meaning in Telegram's legacy Markdown mode.
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def md_escape(text: str) -> str:
    """Backslash-escape legacy Markdown control characters."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def link_text(text: str) -> str:
    """Make *text* safe inside a Markdown link label.

    Telegram ignores backslash escapes within an entity, so brackets are
    swapped for parentheses instead.
    """
    return text.replace("[", "(").replace("]", ")")


def level_emoji(level: str) -> str:
    emoji = LEVEL_EMOJI.get(level.upper())
    if emoji is None:
        logger.info("unknown_alert_level", level=level)
        return DEFAULT_EMOJI
    return emoji


def severity_for(level: str) -> Severity:
    return _LEVEL_SEVERITY.get(level.upper(), Severity.INFO)


def target_url(base_url: str, target_type: str, target_id: str) -> str:
    """Deep link to the target in the platform UI, or the base URL."""
    base = base_url.rstrip("/")
    segment = TARGET_PATHS.get(target_type)
    if segment is None:
        logger.info("unknown_target_type", target_type=target_type)
        return base
    return f"{base}/{segment}/{target_id}"


# ── Formatters ──────────────────────────────────────────────────


def format_alert(event: AlertEvent, base_url: str = "") -> AlertMessage:
    """Convert an AlertEvent into a Markdown AlertMessage.

    Layout::

        🔴 CRITICAL - ServerUnreachable
        *For*: [web-1 (server)](https://komodo.example/servers/abc)
        *Resolved*: ❌
    """
    level = event.level or "Unknown"
    event_type = event.event_type or "Unknown Type"
    url = target_url(base_url, event.target.type, event.target.id)
    resolved_emoji = RESOLVED_EMOJI if event.resolved else UNRESOLVED_EMOJI

    title = f"{level_emoji(level)} {level} - {event_type}"
    text = (
        f"{md_escape(title)}\n"
        f"*For*: [{link_text(event.name)} ({link_text(event.target.type)})]({url})\n"
        f"*Resolved*: {resolved_emoji}\n"
    )

    fields: dict[str, str] = {
        "target_type": event.target.type,
        "target_id": event.target.id,
    }
    if event.is_state_transition:
        fields["from"] = event.from_state
        fields["to"] = event.to_state

    return AlertMessage(
        severity=severity_for(level),
        level=level,
        title=title,
        text=text,
        url=url,
        target_name=event.name,
        resolved=event.resolved,
        fields=fields,
    )
