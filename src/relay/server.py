"""Webhook server — receives alerts over HTTP and feeds the coalescing engine.

Runs as an ``aiohttp`` web server. Exposes:
- ``POST <path>?api_key=...`` → admit one alert, respond with the decision
- ``OPTIONS <path>``          → CORS preflight
- ``GET /health``             → engine counters and table size
"""

from __future__ import annotations

import hmac
import json
from typing import Any

import structlog
from aiohttp import web
from pydantic import ValidationError

from src.core.types import AlertEvent
from src.debounce.engine import CoalescingEngine

logger = structlog.get_logger(__name__)

ENGINE_KEY = web.AppKey("engine", CoalescingEngine)
API_KEY = web.AppKey("api_key", str)
CORS_ORIGIN_KEY = web.AppKey("cors_origin", str)

_ALLOWED_METHODS = "POST, OPTIONS"
_ALLOWED_HEADERS = "Content-Type"
_PREFLIGHT_MAX_AGE = "86400"


def _check_api_key(request: web.Request, expected: str) -> bool:
    """Validate the ``api_key`` query parameter in constant time."""
    provided = request.query.get("api_key", "")
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


def _json_error(status: int, error: str) -> web.Response:
    return web.json_response({"success": False, "error": error}, status=status)


@web.middleware
async def _cors_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    """Attach CORS headers to every response."""
    response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = request.app[CORS_ORIGIN_KEY]
    response.headers["Access-Control-Allow-Methods"] = _ALLOWED_METHODS
    response.headers["Access-Control-Allow-Headers"] = _ALLOWED_HEADERS
    return response


async def _handle_webhook_path(request: web.Request) -> web.Response:
    if request.method == "OPTIONS":
        return web.Response(headers={"Access-Control-Max-Age": _PREFLIGHT_MAX_AGE})
    if request.method != "POST":
        return web.Response(status=405, text="This endpoint requires a POST request")
    return await _handle_alert(request)


async def _handle_alert(request: web.Request) -> web.Response:
    logger.info("webhook_received", remote=request.remote, path=request.path)

    expected = request.app[API_KEY]
    if expected and not _check_api_key(request, expected):
        logger.warning("webhook_auth_failed", remote=request.remote)
        return _json_error(401, "Unauthorized: Invalid or missing API key")

    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("webhook_invalid_json", remote=request.remote)
        return _json_error(400, "Request body must be valid JSON")

    if not isinstance(body, dict):
        return _json_error(400, "Request body must be a JSON object")

    try:
        event = AlertEvent.model_validate(body)
    except ValidationError as exc:
        logger.warning("webhook_invalid_alert", errors=exc.error_count())
        return _json_error(400, "Request body is not a valid alert")

    try:
        result = request.app[ENGINE_KEY].schedule_alert(event)
    except Exception as exc:
        logger.exception("webhook_processing_error")
        return _json_error(500, str(exc))

    return web.json_response({"success": True, **result})


async def _handle_health(request: web.Request) -> web.Response:
    engine = request.app[ENGINE_KEY]
    return web.json_response({"status": "ok", **engine.snapshot()})


def create_relay_app(
    engine: CoalescingEngine,
    api_key: str = "",
    path: str = "/",
    cors_origin: str = "*",
) -> web.Application:
    """Create the aiohttp web application."""
    app = web.Application(middlewares=[_cors_middleware])
    app[ENGINE_KEY] = engine
    app[API_KEY] = api_key
    app[CORS_ORIGIN_KEY] = cors_origin
    app.router.add_get("/health", _handle_health)
    app.router.add_route("*", path, _handle_webhook_path)
    return app


async def start_relay_server(
    engine: CoalescingEngine,
    host: str = "0.0.0.0",
    port: int = 8080,
    api_key: str = "",
    path: str = "/",
    cors_origin: str = "*",
) -> web.AppRunner:
    """Start the webhook server. Returns the runner for cleanup."""
    if not api_key:
        logger.warning("webhook_auth_disabled")
    app = create_relay_app(engine, api_key=api_key, path=path, cors_origin=cors_origin)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("relay_server_started", host=host, port=port, path=path)
    return runner
