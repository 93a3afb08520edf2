"""Public interface for the OneBot group-chat adapter."""

from __future__ import annotations

from .client import OneBotAPIError, OneBotClient
from .translator import decode_message, encode_content, plain_text, reply_target

__all__ = [
    "OneBotAPIError",
    "OneBotClient",
    "decode_message",
    "encode_content",
    "plain_text",
    "reply_target",
]
