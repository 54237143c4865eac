"""Tests for the relay factory — wiring logic with various config combinations."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from src.core.config import (
    DebounceConfig,
    DiscordConfig,
    KomodoConfig,
    Settings,
    TelegramConfig,
)
from src.core.exceptions import ConfigError
from src.debounce.engine import CoalescingEngine
from src.notify.channels import DiscordChannel, TelegramChannel
from src.notify.dispatcher import AlertNotifier
from src.relay.factory import create_notifier, create_relay_stack


def _settings(**kw: object) -> Settings:
    return Settings(**kw)  # type: ignore[arg-type]


class TestNotifierWiring:
    def test_no_channels_enabled(self) -> None:
        notifier = create_notifier(_settings())
        assert isinstance(notifier, AlertNotifier)
        assert notifier.channels == []

    def test_telegram_enabled(self) -> None:
        notifier = create_notifier(_settings(
            telegram=TelegramConfig(enabled=True, bot_token=SecretStr("tok"), chat_id="1"),
        ))
        assert len(notifier.channels) == 1
        assert isinstance(notifier.channels[0], TelegramChannel)

    def test_both_enabled(self) -> None:
        notifier = create_notifier(_settings(
            telegram=TelegramConfig(enabled=True, bot_token=SecretStr("tok"), chat_id="1"),
            discord=DiscordConfig(enabled=True, webhook_url=SecretStr("https://d/hook")),
        ))
        kinds = [type(ch) for ch in notifier.channels]
        assert kinds == [TelegramChannel, DiscordChannel]

    def test_base_url_passed(self) -> None:
        notifier = create_notifier(_settings(komodo=KomodoConfig(base_url="https://k")))
        assert notifier._base_url == "https://k"


class TestStackWiring:
    def test_engine_uses_debounce_config(self) -> None:
        engine, notifier = create_relay_stack(_settings(
            debounce=DebounceConfig(window_secs=15, max_pending=7),
        ))
        assert isinstance(engine, CoalescingEngine)
        assert isinstance(notifier, AlertNotifier)
        assert engine.window_secs == 15
        assert engine.max_pending == 7

    def test_invalid_window(self) -> None:
        with pytest.raises(ConfigError):
            create_relay_stack(_settings(debounce=DebounceConfig(window_secs=0)))
