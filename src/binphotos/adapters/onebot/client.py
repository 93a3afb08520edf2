"""OneBot v11 WebSocket client: group broadcasts, replies and inbound events.

Actions are sent as ``{"action", "params", "echo"}`` frames and matched to their
responses by ``echo``. Any other frame is an event and is decoded into engine
events that are dispatched as background tasks, so a handler that itself calls
an action never blocks the reader that has to deliver its response.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from logging import getLogger
from typing import TYPE_CHECKING

import aiohttp
from pydantic import ValidationError

from binphotos.domain.errors import AdapterUnavailable, MalformedEvent
from binphotos.domain.ports.messaging import ImageSegment

from .schema import ActionResponse
from .translator import decode_message, encode_content

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from binphotos.config.onebot import OneBotConfig
    from binphotos.domain.ports.messaging import ChatContent

    from .translator import OneBotEvent

log = getLogger(__name__)

type EventHandler = Callable[[OneBotEvent], Awaitable[object]]


class OneBotAPIError(AdapterUnavailable):
    """Raised when an action cannot be sent or the implementation rejects it."""


class OneBotClient:
    def __init__(
        self,
        *,
        config: OneBotConfig,
        session_factory: Callable[[], aiohttp.ClientSession] | None = None,
    ) -> None:
        self._config = config
        self._session_factory = session_factory or aiohttp.ClientSession
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._pending: dict[str, asyncio.Future[ActionResponse]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def call(self, action: str, params: dict[str, object]) -> ActionResponse:
        ws = self._ws
        if ws is None or ws.closed:
            raise OneBotAPIError(f"OneBot {action}: not connected")

        echo = uuid.uuid4().hex
        future: asyncio.Future[ActionResponse] = asyncio.get_running_loop().create_future()
        self._pending[echo] = future
        try:
            await ws.send_str(json.dumps({"action": action, "params": params, "echo": echo}))
            response = await asyncio.wait_for(future, timeout=self._config.call_timeout_seconds)
        except TimeoutError as exc:
            raise OneBotAPIError(f"OneBot {action} timed out") from exc
        except (aiohttp.ClientError, ConnectionError) as exc:
            raise OneBotAPIError(f"OneBot {action} failed: {exc}") from exc
        finally:
            self._pending.pop(echo, None)

        if not response.ok:
            raise OneBotAPIError(f"OneBot {action} rejected: {response.error_text}")
        return response

    async def send_group(self, group_id: int, content: ChatContent) -> ActionResponse:
        return await self.call(
            "send_msg",
            {"message_type": "group", "group_id": group_id, "message": encode_content(content)},
        )

    async def broadcast(self, channel_id: int, content: ChatContent) -> str | None:
        response = await self.send_group(channel_id, content)
        return response.message_id

    async def notify(self, channel_id: int, text: str, preview_images: Sequence[bytes]) -> None:
        await self.send_group(channel_id, text)
        for data in preview_images:
            try:
                await self.send_group(channel_id, [ImageSegment(data)])
            except OneBotAPIError as exc:
                log.warning("Preview image to group %s failed: %s", channel_id, exc)

    async def reply(self, *, user_id: int, group_id: int | None, content: ChatContent) -> None:
        if group_id is not None:
            await self.send_group(group_id, content)
            return
        await self.call(
            "send_msg",
            {"message_type": "private", "user_id": user_id, "message": encode_content(content)},
        )

    def dispatch_frame(self, raw: str, handler: EventHandler) -> None:
        """Resolve an action response or schedule the events a frame carries."""

        try:
            frame = json.loads(raw)
        except ValueError:
            log.debug("Ignoring non-JSON frame")
            return
        if not isinstance(frame, dict):
            return

        echo = frame.get("echo")
        if isinstance(echo, str) and echo in self._pending:
            future = self._pending[echo]
            if future.done():
                return
            try:
                future.set_result(ActionResponse.model_validate(frame))
            except ValidationError as exc:
                future.set_exception(OneBotAPIError(f"Malformed action response: {exc}"))
            return

        if frame.get("post_type") != "message":
            return
        try:
            events = decode_message(frame)
        except MalformedEvent as exc:
            log.warning("Discarding OneBot message: %s", exc)
            return
        for event in events:
            task = asyncio.create_task(self._handle(handler, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def run(self, handler: EventHandler) -> None:
        """Stay connected, reconnecting after a fixed delay, until cancelled."""

        headers: dict[str, str] = {}
        if self._config.access_token:
            headers["Authorization"] = f"Bearer {self._config.access_token}"

        async with self._session_factory() as session:
            while True:
                try:
                    async with session.ws_connect(self._config.ws_url, headers=headers) as ws:
                        self._ws = ws
                        log.info("Connected to OneBot at %s", self._config.ws_url)
                        async for message in ws:
                            if message.type is aiohttp.WSMsgType.TEXT:
                                self.dispatch_frame(message.data, handler)
                            elif message.type is aiohttp.WSMsgType.ERROR:
                                log.warning("OneBot socket error: %s", ws.exception())
                                break
                except (aiohttp.ClientError, OSError) as exc:
                    log.warning("OneBot connection failed: %s", exc)
                finally:
                    self._ws = None
                    self._fail_pending()
                log.info(
                    "OneBot disconnected; reconnecting in %.0fs",
                    self._config.reconnect_delay_seconds,
                )
                await asyncio.sleep(self._config.reconnect_delay_seconds)

    async def _handle(self, handler: EventHandler, event: OneBotEvent) -> None:
        try:
            await handler(event)
        except AdapterUnavailable as exc:
            log.warning("Handling %s failed: %s", type(event).__name__, exc)
        except Exception:
            log.exception("Unexpected error handling %s", type(event).__name__)

    def _fail_pending(self) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(OneBotAPIError("OneBot connection closed"))
        self._pending.clear()
