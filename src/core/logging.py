"""Structured logging setup using structlog.

Every record carries ``service`` so relay output can be told apart from other
containers, and credential-bearing values never reach the log stream.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

from src.core.config import get_settings

SERVICE_NAME = "alert-relay"

# Third-party loggers that are too chatty at the relay's default level.
_NOISY_LOGGERS = ("aiohttp.access", "asyncio")

_SECRET_KEYS = frozenset({"api_key", "bot_token", "webhook_url", "token"})
_REDACTED = "***"

# ``api_key=...`` in request URLs and Telegram ``/bot<token>/`` path segments.
_SECRET_IN_TEXT = re.compile(r"(api_key=)[^&\s\"']+|(/bot)[^/\s\"']+")


def _mask_text(text: str) -> str:
    return _SECRET_IN_TEXT.sub(lambda m: (m.group(1) or m.group(2)) + _REDACTED, text)


def redact_secrets(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Mask credential fields and credentials embedded in URLs."""
    for key, value in event_dict.items():
        if key in _SECRET_KEYS:
            event_dict[key] = _REDACTED
        elif isinstance(value, str):
            event_dict[key] = _mask_text(value)
    return event_dict


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
    service: str = SERVICE_NAME,
) -> None:
    """Configure structlog with JSON or console renderer.

    Stdlib records (aiohttp, asyncio) go through the same processors, so the
    relay emits one uniform, redacted stream on stderr.

    Args:
        level: Log level override (e.g. "DEBUG"). Uses config if None.
        fmt: Renderer format override ("json" or "console"). Uses config if None.
        service: Value bound as ``service`` on every record.
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.logging.level).upper(), logging.INFO)
    log_format = fmt or settings.logging.format

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False,
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
