"""Translate OneBot message frames into engine events, and chat content into segments."""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import TYPE_CHECKING

from pydantic import ValidationError

from binphotos.domain.errors import MalformedEvent
from binphotos.domain.events import BinQueryEvent, ChatReplyEvent
from binphotos.domain.ports.messaging import ImageSegment, TextSegment
from binphotos.domain.query import parse_bin_query

from .schema import MessageEventPayload

if TYPE_CHECKING:
    from binphotos.domain.ports.messaging import ChatContent

type OneBotEvent = ChatReplyEvent | BinQueryEvent


def plain_text(event: MessageEventPayload) -> str:
    if isinstance(event.message, str):
        return event.message
    if event.message:
        return "".join(
            str(segment.data.get("text", ""))
            for segment in event.message
            if segment.type == "text"
        )
    return event.raw_message or ""


def reply_target(event: MessageEventPayload) -> str | None:
    if event.reply is not None and event.reply.message_id is not None:
        return str(event.reply.message_id)
    if isinstance(event.message, list):
        for segment in event.message:
            if segment.type != "reply":
                continue
            target = segment.data.get("id") or segment.data.get("message_id")
            if target is not None:
                return str(target)
    return None


def decode_message(payload: MessageEventPayload | Mapping[str, object]) -> list[OneBotEvent]:
    """Return the events a message frame carries; non-message frames carry none."""

    try:
        event = (
            payload
            if isinstance(payload, MessageEventPayload)
            else MessageEventPayload.model_validate(payload)
        )
    except ValidationError as exc:
        raise MalformedEvent(f"Undecodable OneBot event: {exc}") from exc

    if event.post_type != "message" or event.user_id is None:
        return []

    text = plain_text(event)
    events: list[OneBotEvent] = []
    target = reply_target(event)
    if event.message_type == "group" and event.group_id is not None and target is not None:
        events.append(
            ChatReplyEvent(
                channel_id=event.group_id,
                reply_to_message_id=target,
                voter_id=str(event.user_id),
                text=text,
            )
        )

    bin_ = parse_bin_query(text)
    if bin_ is not None and event.message_type in ("group", "private"):
        events.append(
            BinQueryEvent(
                bin=bin_,
                user_id=event.user_id,
                group_id=event.group_id if event.message_type == "group" else None,
            )
        )
    return events


def encode_content(content: ChatContent) -> str | list[dict[str, object]]:
    if isinstance(content, str):
        return content
    segments: list[dict[str, object]] = []
    for segment in content:
        if isinstance(segment, TextSegment):
            segments.append({"type": "text", "data": {"text": segment.text}})
        elif isinstance(segment, ImageSegment):
            encoded = base64.b64encode(segment.data).decode("ascii")
            segments.append({"type": "image", "data": {"file": f"base64://{encoded}"}})
    return segments
