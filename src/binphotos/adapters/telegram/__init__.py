"""Public interface for the Telegram poll-bot adapter."""

from __future__ import annotations

from .client import TelegramAPIError, TelegramBot
from .poller import TelegramUpdatePoller
from .schema import UpdatePayload
from .translator import callback_data, decode_update, parse_callback_data

__all__ = [
    "TelegramAPIError",
    "TelegramBot",
    "TelegramUpdatePoller",
    "UpdatePayload",
    "callback_data",
    "decode_update",
    "parse_callback_data",
]
