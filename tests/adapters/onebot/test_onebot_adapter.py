from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import pytest

from binphotos.adapters.onebot import (
    OneBotAPIError,
    OneBotClient,
    decode_message,
    encode_content,
    reply_target,
)
from binphotos.adapters.onebot.schema import MessageEventPayload
from binphotos.config.onebot import OneBotConfig
from binphotos.domain.errors import MalformedEvent
from binphotos.domain.events import BinQueryEvent, ChatReplyEvent
from binphotos.domain.ports.messaging import ImageSegment, TextSegment

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.adapters.onebot.translator import OneBotEvent

type Responder = Callable[[dict[str, object]], dict[str, object] | None]


def _group_message(text: str, *, reply_to: int | None = None) -> dict[str, object]:
    segments: list[dict[str, object]] = []
    if reply_to is not None:
        segments.append({"type": "reply", "data": {"id": str(reply_to)}})
    segments.append({"type": "text", "data": {"text": text}})
    return {
        "post_type": "message",
        "message_type": "group",
        "group_id": 100,
        "user_id": 42,
        "message": segments,
    }


async def _ignore(event: OneBotEvent) -> None:
    del event


class FakeWebSocket:
    """Answers every action frame through the client's own frame dispatcher."""

    def __init__(self, client: OneBotClient, responder: Responder) -> None:
        self.closed = False
        self.frames: list[dict[str, object]] = []
        self._client = client
        self._responder = responder

    async def send_str(self, data: str) -> None:
        frame = json.loads(data)
        self.frames.append(frame)
        response = self._responder(frame)
        if response is None:
            return
        raw = json.dumps({**response, "echo": frame["echo"]})
        asyncio.get_running_loop().call_soon(self._client.dispatch_frame, raw, _ignore)


def _connected(responder: Responder, *, timeout: float = 1.0) -> tuple[OneBotClient, FakeWebSocket]:
    client = OneBotClient(
        config=OneBotConfig(
            ws_url="ws://127.0.0.1:3001",
            admin_group_ids=(100,),
            call_timeout_seconds=timeout,
        )
    )
    ws = FakeWebSocket(client, responder)
    client._ws = ws  # type: ignore[assignment]  # noqa: SLF001
    return client, ws


def _ok(message_id: int = 123) -> Responder:
    return lambda frame: {"status": "ok", "retcode": 0, "data": {"message_id": message_id}}


def test_reply_target_prefers_reply_field_then_segments() -> None:
    with_field = MessageEventPayload.model_validate(
        {"post_type": "message", "reply": {"message_id": 9}, "message": "approve"}
    )
    with_segment = MessageEventPayload.model_validate(_group_message("approve", reply_to=8))

    assert reply_target(with_field) == "9"
    assert reply_target(with_segment) == "8"


def test_group_reply_becomes_vote_event() -> None:
    events = decode_message(_group_message(" approve ", reply_to=1001))

    assert events == [
        ChatReplyEvent(channel_id=100, reply_to_message_id="1001", voter_id="42", text=" approve ")
    ]


def test_bin_command_in_group_and_private_chat() -> None:
    private = {
        "post_type": "message",
        "message_type": "private",
        "user_id": 42,
        "message": "bin 411111",
    }

    assert decode_message(_group_message("bin 411111")) == [
        BinQueryEvent(bin="411111", user_id=42, group_id=100)
    ]
    assert decode_message(private) == [BinQueryEvent(bin="411111", user_id=42, group_id=None)]


def test_non_message_frames_carry_no_events() -> None:
    assert decode_message({"post_type": "meta_event", "meta_event_type": "heartbeat"}) == []
    assert decode_message(_group_message("hello")) == []


def test_undecodable_frame_is_malformed() -> None:
    with pytest.raises(MalformedEvent):
        decode_message({"message": "no post type"})


def test_encode_content() -> None:
    assert encode_content("plain") == "plain"
    assert encode_content([TextSegment("hi"), ImageSegment(b"\x00\x01")]) == [
        {"type": "text", "data": {"text": "hi"}},
        {"type": "image", "data": {"file": "base64://AAE="}},
    ]


@pytest.mark.asyncio
async def test_broadcast_returns_message_id() -> None:
    client, ws = _connected(_ok(555))

    message_id = await client.broadcast(100, "vote please")

    assert message_id == "555"
    assert ws.frames[0]["action"] == "send_msg"
    assert ws.frames[0]["params"] == {
        "message_type": "group",
        "group_id": 100,
        "message": "vote please",
    }


@pytest.mark.asyncio
async def test_private_reply_targets_the_user() -> None:
    client, ws = _connected(_ok())

    await client.reply(user_id=42, group_id=None, content="BIN: 411111")

    params = ws.frames[0]["params"]
    assert isinstance(params, dict)
    assert params["message_type"] == "private"
    assert params["user_id"] == 42


@pytest.mark.asyncio
async def test_rejected_action_raises() -> None:
    client, _ = _connected(lambda frame: {"status": "failed", "retcode": 1200, "wording": "muted"})

    with pytest.raises(OneBotAPIError, match="muted"):
        await client.broadcast(100, "x")


@pytest.mark.asyncio
async def test_unanswered_action_times_out() -> None:
    client, _ = _connected(lambda frame: None, timeout=0.05)

    with pytest.raises(OneBotAPIError, match="timed out"):
        await client.broadcast(100, "x")


@pytest.mark.asyncio
async def test_call_without_connection_fails_fast() -> None:
    client = OneBotClient(config=OneBotConfig(ws_url="ws://127.0.0.1:3001", admin_group_ids=()))

    assert not client.connected
    with pytest.raises(OneBotAPIError, match="not connected"):
        await client.broadcast(100, "x")


@pytest.mark.asyncio
async def test_notify_sends_text_then_each_image_and_tolerates_image_failures() -> None:
    failing_image = encode_content([ImageSegment(b"b")])

    def responder(frame: dict[str, object]) -> dict[str, object]:
        params = frame["params"]
        assert isinstance(params, dict)
        if params["message"] == failing_image:
            return {"status": "failed", "retcode": 100, "msg": "image too large"}
        return {"status": "ok", "data": {"message_id": 1}}

    client, ws = _connected(responder)

    await client.notify(100, "New BIN stored:", [b"a", b"b", b"c"])

    messages = [frame["params"]["message"] for frame in ws.frames]  # type: ignore[index]
    assert messages[0] == "New BIN stored:"
    assert len(messages) == 4


@pytest.mark.asyncio
async def test_message_frames_are_dispatched_to_the_handler() -> None:
    client, _ = _connected(_ok())
    received: list[OneBotEvent] = []

    async def handler(event: OneBotEvent) -> None:
        received.append(event)

    client.dispatch_frame(json.dumps(_group_message("reject", reply_to=7)), handler)
    client.dispatch_frame("not json", handler)
    client.dispatch_frame(json.dumps({"post_type": "notice"}), handler)
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert received == [
        ChatReplyEvent(channel_id=100, reply_to_message_id="7", voter_id="42", text="reject")
    ]
