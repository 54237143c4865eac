"""Tests for the entrypoint's environment overrides."""

from __future__ import annotations

from pydantic import SecretStr

from scripts.run import apply_env_overrides
from src.core.config import Settings, TelegramConfig


class TestEnvOverrides:
    def test_no_env_leaves_settings(self) -> None:
        settings = Settings()
        result = apply_env_overrides(settings, environ={})
        assert result.server.api_key.get_secret_value() == ""
        assert result.telegram.enabled is False
        assert result.discord.enabled is False

    def test_secrets_from_env(self) -> None:
        result = apply_env_overrides(Settings(), environ={
            "API_KEY_SECRET": "hook",
            "TELEGRAM_BOT_TOKEN": "123:abc",
            "TELEGRAM_CHAT_ID": "-100",
            "KOMODO_URL": "https://komodo.example",
        })
        assert result.server.api_key.get_secret_value() == "hook"
        assert result.telegram.bot_token.get_secret_value() == "123:abc"
        assert result.telegram.chat_id == "-100"
        assert result.telegram.enabled is True
        assert result.komodo.base_url == "https://komodo.example"

    def test_token_without_chat_stays_disabled(self) -> None:
        result = apply_env_overrides(Settings(), environ={"TELEGRAM_BOT_TOKEN": "123:abc"})
        assert result.telegram.enabled is False

    def test_env_completes_yaml_telegram(self) -> None:
        settings = Settings(telegram=TelegramConfig(chat_id="42"))
        result = apply_env_overrides(settings, environ={"TELEGRAM_BOT_TOKEN": "t"})
        assert result.telegram.enabled is True
        assert result.telegram.chat_id == "42"

    def test_discord_from_env(self) -> None:
        result = apply_env_overrides(Settings(), environ={"DISCORD_WEBHOOK_URL": "https://d/h"})
        assert result.discord.enabled is True
        assert result.discord.webhook_url == SecretStr("https://d/h")

    def test_original_not_mutated(self) -> None:
        settings = Settings()
        apply_env_overrides(settings, environ={"API_KEY_SECRET": "x"})
        assert settings.server.api_key.get_secret_value() == ""

    def test_yaml_disabled_telegram_kept_without_env(self) -> None:
        settings = Settings(
            telegram=TelegramConfig(enabled=False, bot_token=SecretStr("t"), chat_id="42"),
        )
        result = apply_env_overrides(settings, environ={})
        assert result.telegram.enabled is False
