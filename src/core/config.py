"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class ServerConfig(BaseModel):
    """Inbound webhook server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    path: str = "/"
    api_key: SecretStr = SecretStr("")
    cors_origin: str = "*"


class DebounceConfig(BaseModel):
    """Alert coalescing configuration."""

    window_secs: int = 60
    max_pending: int = 1000
    healthy_state: str = "running"


class KomodoConfig(BaseModel):
    """Source platform settings used to build deep links in messages."""

    base_url: str = ""


class TelegramConfig(BaseModel):
    """Telegram Bot API delivery."""

    enabled: bool = False
    bot_token: SecretStr = SecretStr("")
    chat_id: str = ""
    parse_mode: str = "Markdown"


class DiscordConfig(BaseModel):
    """Discord webhook delivery."""

    enabled: bool = False
    webhook_url: SecretStr = SecretStr("")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    server: ServerConfig = ServerConfig()
    debounce: DebounceConfig = DebounceConfig()
    komodo: KomodoConfig = KomodoConfig()
    telegram: TelegramConfig = TelegramConfig()
    discord: DiscordConfig = DiscordConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
