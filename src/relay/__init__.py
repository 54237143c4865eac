"""HTTP relay surface — webhook server and stack wiring."""

from src.relay.factory import create_notifier, create_relay_stack
from src.relay.server import create_relay_app, start_relay_server

__all__ = [
    "create_notifier",
    "create_relay_app",
    "create_relay_stack",
    "start_relay_server",
]
