"""Strongly-typed inbound events.

Adapters decode raw bot payloads into exactly one of these at their boundary,
so the engine never inspects provider JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import VoteChoice


@dataclass(frozen=True, slots=True)
class ChatReplyEvent:
    """A group-chat message that replies to an earlier message."""

    channel_id: int
    reply_to_message_id: str
    voter_id: str
    text: str


@dataclass(frozen=True, slots=True)
class PollClosedEvent:
    poll_id: str
    voter_counts: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class PollAnswerEvent:
    poll_id: str
    voter_id: str
    option_ids: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class CallbackEvent:
    token: str
    choice: VoteChoice
    voter_id: str | None = None
    callback_id: str | None = None


@dataclass(frozen=True, slots=True)
class BinQueryEvent:
    """A ``bin <digits>`` chat command; ``group_id`` is None for private chats."""

    bin: str
    user_id: int
    group_id: int | None = None


type VoteEvent = ChatReplyEvent | PollClosedEvent | PollAnswerEvent | CallbackEvent
