"""Tests for notification channels — HTTP mocking, error handling, session management."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from pydantic import SecretStr

from src.core.config import DiscordConfig, TelegramConfig
from src.notify.channels import DiscordChannel, TelegramChannel
from src.notify.types import AlertMessage, Severity


# ── Helpers ─────────────────────────────────────────────────────


def _msg(**kw: object) -> AlertMessage:
    defaults: dict[str, object] = {
        "severity": Severity.CRITICAL,
        "level": "CRITICAL",
        "title": "🔴 CRITICAL - ServerUnreachable",
        "text": "🔴 CRITICAL - ServerUnreachable\n*For*: [web1 (server)](https://k/servers/a)\n",
        "url": "https://k/servers/a",
        "target_name": "web1",
        "timestamp": 1000.0,
    }
    defaults.update(kw)
    return AlertMessage(**defaults)  # type: ignore[arg-type]


def _tg_config(**kw: object) -> TelegramConfig:
    defaults: dict[str, object] = {
        "enabled": True,
        "bot_token": SecretStr("fake-token"),
        "chat_id": "12345",
    }
    defaults.update(kw)
    return TelegramConfig(**defaults)  # type: ignore[arg-type]


def _dc_config(**kw: object) -> DiscordConfig:
    defaults: dict[str, object] = {
        "enabled": True,
        "webhook_url": SecretStr("https://discord.com/api/webhooks/fake"),
    }
    defaults.update(kw)
    return DiscordConfig(**defaults)  # type: ignore[arg-type]


def _mock_response(status: int = 200, json_body: object = None, text: str = "ok") -> AsyncMock:
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_body if json_body is not None else {"ok": True})
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


def _mock_session(resp: AsyncMock | None = None, error: Exception | None = None) -> MagicMock:
    session = MagicMock()
    if error is not None:
        session.post = MagicMock(side_effect=error)
    else:
        session.post = MagicMock(return_value=resp)
    session.closed = False
    session.close = AsyncMock()
    return session


# ── TelegramChannel ────────────────────────────────────────────


class TestTelegramChannel:
    async def test_send_success(self) -> None:
        ch = TelegramChannel(_tg_config())
        session = _mock_session(_mock_response(200, {"ok": True}))
        ch._session = session

        result = await ch.send(_msg())
        assert result is True
        session.post.assert_called_once()
        call_args = session.post.call_args
        assert call_args[0][0] == "https://api.telegram.org/botfake-token/sendMessage"
        payload = call_args[1]["json"]
        assert payload["chat_id"] == "12345"
        assert payload["parse_mode"] == "Markdown"
        assert payload["text"].startswith("🔴 CRITICAL")

    async def test_api_not_ok(self) -> None:
        ch = TelegramChannel(_tg_config())
        ch._session = _mock_session(
            _mock_response(400, {"ok": False, "description": "Bad Request: can't parse entities"}),
        )
        assert await ch.send(_msg()) is False

    async def test_status_200_but_not_ok(self) -> None:
        ch = TelegramChannel(_tg_config())
        ch._session = _mock_session(_mock_response(200, {"ok": False}))
        assert await ch.send(_msg()) is False

    async def test_non_json_body(self) -> None:
        ch = TelegramChannel(_tg_config())
        ch._session = _mock_session(_mock_response(502, "Bad Gateway"))
        assert await ch.send(_msg()) is False

    async def test_send_exception(self) -> None:
        ch = TelegramChannel(_tg_config())
        ch._session = _mock_session(error=ConnectionError("timeout"))
        assert await ch.send(_msg()) is False

    async def test_parse_mode_can_be_disabled(self) -> None:
        ch = TelegramChannel(_tg_config(parse_mode=""))
        session = _mock_session(_mock_response())
        ch._session = session
        await ch.send(_msg())
        assert "parse_mode" not in session.post.call_args[1]["json"]

    async def test_close_session(self) -> None:
        ch = TelegramChannel(_tg_config())
        session = _mock_session(_mock_response())
        ch._session = session
        await ch.close()
        session.close.assert_awaited_once()
        assert ch._session is None

    async def test_close_without_session(self) -> None:
        ch = TelegramChannel(_tg_config())
        await ch.close()  # should not raise


# ── DiscordChannel ─────────────────────────────────────────────


class TestDiscordChannel:
    async def test_send_success(self) -> None:
        ch = DiscordChannel(_dc_config())
        session = _mock_session(_mock_response(204))
        ch._session = session

        assert await ch.send(_msg()) is True
        call_args = session.post.call_args
        assert call_args[0][0] == "https://discord.com/api/webhooks/fake"
        embed = call_args[1]["json"]["embeds"][0]
        assert embed["title"] == "🔴 CRITICAL - ServerUnreachable"
        assert embed["url"] == "https://k/servers/a"
        assert embed["color"] == 0xE74C3C

    async def test_transition_fields_in_embed(self) -> None:
        ch = DiscordChannel(_dc_config())
        session = _mock_session(_mock_response(204))
        ch._session = session

        await ch.send(_msg(fields={"from": "running", "to": "unhealthy"}))
        embed = session.post.call_args[1]["json"]["embeds"][0]
        fields = {f["name"]: f["value"] for f in embed["fields"]}
        assert fields["from"] == "running"
        assert fields["to"] == "unhealthy"
        assert fields["For"] == "web1"
        assert embed["timestamp"] == "1970-01-01T00:16:40+00:00"

    async def test_relative_url_omitted(self) -> None:
        ch = DiscordChannel(_dc_config())
        session = _mock_session(_mock_response(200))
        ch._session = session
        await ch.send(_msg(url="/servers/a"))
        embed = session.post.call_args[1]["json"]["embeds"][0]
        assert "url" not in embed

    async def test_send_failure_status(self) -> None:
        ch = DiscordChannel(_dc_config())
        ch._session = _mock_session(_mock_response(429, text="rate limited"))
        assert await ch.send(_msg()) is False

    async def test_send_exception(self) -> None:
        ch = DiscordChannel(_dc_config())
        ch._session = _mock_session(error=ConnectionError("boom"))
        assert await ch.send(_msg()) is False
