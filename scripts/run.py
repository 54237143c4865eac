#!/usr/bin/env python3
"""Relay entrypoint — serves the alert webhook and debounces to chat.

Usage::

    # Run with default config
    python scripts/run.py

    # Custom config file
    python scripts/run.py --config config/settings.yaml

    # Override log level
    python scripts/run.py --log-level DEBUG

Secrets may also come from the environment: ``API_KEY_SECRET``,
``TELEGRAM_BOT_TOKEN``, ``TELEGRAM_CHAT_ID``, ``DISCORD_WEBHOOK_URL`` and
``KOMODO_URL`` override the corresponding YAML values.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys

# Ensure project root is on sys.path so `src` is importable.
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

import structlog
from pydantic import SecretStr

from src.core.config import Settings, load_settings
from src.core.exceptions import ConfigError
from src.core.logging import setup_logging
from src.relay.factory import create_relay_stack
from src.relay.server import start_relay_server

logger = structlog.get_logger(__name__)


def apply_env_overrides(settings: Settings, environ: dict[str, str] | None = None) -> Settings:
    """Return a copy of *settings* with environment secrets applied."""
    env = os.environ if environ is None else environ

    server = settings.server
    if env.get("API_KEY_SECRET"):
        server = server.model_copy(update={"api_key": SecretStr(env["API_KEY_SECRET"])})

    komodo = settings.komodo
    if env.get("KOMODO_URL"):
        komodo = komodo.model_copy(update={"base_url": env["KOMODO_URL"]})

    telegram = settings.telegram
    if env.get("TELEGRAM_BOT_TOKEN"):
        telegram = telegram.model_copy(
            update={"bot_token": SecretStr(env["TELEGRAM_BOT_TOKEN"])},
        )
    if env.get("TELEGRAM_CHAT_ID"):
        telegram = telegram.model_copy(update={"chat_id": env["TELEGRAM_CHAT_ID"]})
    from_env = bool(env.get("TELEGRAM_BOT_TOKEN") or env.get("TELEGRAM_CHAT_ID"))
    if from_env and telegram.bot_token.get_secret_value() and telegram.chat_id:
        telegram = telegram.model_copy(update={"enabled": True})

    discord = settings.discord
    if env.get("DISCORD_WEBHOOK_URL"):
        discord = discord.model_copy(
            update={"enabled": True, "webhook_url": SecretStr(env["DISCORD_WEBHOOK_URL"])},
        )

    return settings.model_copy(
        update={
            "server": server,
            "komodo": komodo,
            "telegram": telegram,
            "discord": discord,
        },
    )


async def run(args: argparse.Namespace) -> int:
    """Start the relay and run until interrupted."""
    settings = apply_env_overrides(load_settings(args.config))
    setup_logging(level=args.log_level)

    try:
        engine, notifier = create_relay_stack(settings)
    except ConfigError as exc:
        logger.error("invalid_config", error=str(exc))
        return 1

    if not notifier.channels:
        logger.warning("no_channels_enabled")

    logger.info(
        "relay_starting",
        window_secs=settings.debounce.window_secs,
        max_pending=settings.debounce.max_pending,
        telegram=settings.telegram.enabled,
        discord=settings.discord.enabled,
    )

    runner = await start_relay_server(
        engine,
        host=settings.server.host,
        port=args.port or settings.server.port,
        api_key=settings.server.api_key.get_secret_value(),
        path=settings.server.path,
        cors_origin=settings.server.cors_origin,
    )

    # ── Wait for shutdown signal ─────────────────────────────────
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows: signal handlers not supported on ProactorEventLoop
            pass

    try:
        await stop_event.wait()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")

    # ── Graceful shutdown ────────────────────────────────────────
    logger.info("relay_shutting_down")

    await runner.cleanup()
    snap = engine.snapshot()
    await engine.close()
    await notifier.close()

    logger.info("relay_stopped", **snap)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Alert webhook relay with debouncing")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level override (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listen port override",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
