"""Telegram Bot API client for polls and inline approvals."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from binphotos.adapters.http_resilience import ResilientClient
from binphotos.domain.errors import AdapterUnavailable
from binphotos.domain.model import VoteChoice
from binphotos.domain.ports.messaging import SentPoll

from .schema import ApiResponse, MessagePayload, UpdatePayload
from .translator import callback_data

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from binphotos.config.http_resilience import ResilienceConfig
    from binphotos.config.telegram import TelegramConfig

log = getLogger(__name__)

ALLOWED_UPDATES = ("poll", "poll_answer", "callback_query")
# headroom on top of the server-side long-poll timeout
_LONG_POLL_GRACE_SECONDS = 10.0

_UPDATES = TypeAdapter(list[UpdatePayload])


class TelegramAPIError(AdapterUnavailable):
    """Raised when the Bot API is unreachable or answers ``ok: false``."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class TelegramBot:
    def __init__(
        self,
        *,
        config: TelegramConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    async def send_poll(self, channel_id: str, question: str, options: Sequence[str]) -> SentPoll:
        result = await self._call(
            "sendPoll",
            {
                "chat_id": channel_id,
                "question": question,
                "options": list(options),
                "is_anonymous": False,
                "allows_multiple_answers": True,
            },
        )
        message = self._message(result, "sendPoll")
        if message.poll is None:
            raise TelegramAPIError("sendPoll returned a message without a poll")
        return SentPoll(channel_id=channel_id, message_id=message.message_id, poll_id=message.poll.id)

    async def stop_poll(self, channel_id: str, message_id: int) -> None:
        await self._call("stopPoll", {"chat_id": channel_id, "message_id": message_id})

    async def send_inline_approval(self, channel_id: str, content: str, token: str) -> int:
        keyboard = [
            [
                {"text": "Approve", "callback_data": callback_data(VoteChoice.APPROVE, token)},
                {"text": "Reject", "callback_data": callback_data(VoteChoice.REJECT, token)},
            ]
        ]
        result = await self._call(
            "sendMessage",
            {
                "chat_id": channel_id,
                "text": content,
                "reply_markup": {"inline_keyboard": keyboard},
            },
        )
        return self._message(result, "sendMessage").message_id

    async def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        payload: dict[str, object] = {"callback_query_id": callback_id}
        if text:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def get_updates(self, offset: int | None = None) -> list[UpdatePayload]:
        payload: dict[str, object] = {
            "timeout": self._config.long_poll_seconds,
            "allowed_updates": list(ALLOWED_UPDATES),
        }
        if offset is not None:
            payload["offset"] = offset
        result = await self._call(
            "getUpdates",
            payload,
            timeout=self._config.long_poll_seconds + _LONG_POLL_GRACE_SECONDS,
        )
        try:
            return _UPDATES.validate_python(result or [])
        except ValidationError as exc:
            raise TelegramAPIError(f"Unexpected getUpdates payload: {exc}") from exc

    async def _call(
        self,
        method: str,
        payload: dict[str, object],
        *,
        timeout: float | None = None,
    ) -> object:
        try:
            async with self._client_factory(self._resilience) as client:
                if timeout is None:
                    response = await client.post(method, json=payload)
                else:
                    response = await client.post(method, json=payload, timeout=timeout)
        except httpx.HTTPError as exc:
            raise TelegramAPIError(f"Telegram {method} failed: {exc}") from exc

        try:
            body = ApiResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TelegramAPIError(
                f"Telegram {method} returned an unreadable body (HTTP {response.status_code})"
            ) from exc
        if not body.ok:
            log.error("Telegram %s error %s: %s", method, body.error_code, body.description)
            raise TelegramAPIError(
                f"Telegram {method} failed: {body.description or 'unknown error'}",
                code=body.error_code,
            )
        return body.result

    @staticmethod
    def _message(result: object, method: str) -> MessagePayload:
        try:
            return MessagePayload.model_validate(result)
        except ValidationError as exc:
            raise TelegramAPIError(f"Unexpected {method} result: {exc}") from exc
