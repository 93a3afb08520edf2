"""Ports for the chat channels votes arrive through and notifications leave by."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from binphotos.domain.model import CardMetadata


@dataclass(frozen=True, slots=True)
class TextSegment:
    text: str


@dataclass(frozen=True, slots=True)
class ImageSegment:
    data: bytes


type Segment = TextSegment | ImageSegment
type ChatContent = str | Sequence[Segment]


@dataclass(frozen=True, slots=True)
class SentPoll:
    channel_id: str
    message_id: int
    poll_id: str


@runtime_checkable
class GroupChat(Protocol):
    async def broadcast(self, channel_id: int, content: ChatContent) -> str | None:
        """Send to a group and return the new message id, if the bot reported one."""
        ...


@runtime_checkable
class DirectReply(Protocol):
    async def reply(self, *, user_id: int, group_id: int | None, content: ChatContent) -> None: ...


@runtime_checkable
class PollBot(Protocol):
    async def send_poll(
        self,
        channel_id: str,
        question: str,
        options: Sequence[str],
    ) -> SentPoll: ...

    async def stop_poll(self, channel_id: str, message_id: int) -> None: ...

    async def send_inline_approval(self, channel_id: str, content: str, token: str) -> int: ...

    async def answer_callback(self, callback_id: str, text: str | None = None) -> None: ...


@runtime_checkable
class AdminNotifier(Protocol):
    async def notify(self, channel_id: int, text: str, preview_images: Sequence[bytes]) -> None: ...


@runtime_checkable
class CardLookup(Protocol):
    async def fetch_metadata(self, bin_: str) -> CardMetadata: ...


@runtime_checkable
class ImageSource(Protocol):
    async def fetch_image(self, url: str) -> bytes: ...
