"""Telegram messaging gateway."""

from .client import TelegramClient, TelegramError, build_send_payload
from .poller import UpdatePoller, dispatch_update
from .updates import TelegramUpdate, to_inbound

__all__ = [
    "TelegramClient",
    "TelegramError",
    "TelegramUpdate",
    "UpdatePoller",
    "build_send_payload",
    "dispatch_update",
    "to_inbound",
]
