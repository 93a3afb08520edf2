"""Decode Telegram updates into the engine's typed vote events."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import ValidationError

from binphotos.domain.errors import MalformedEvent
from binphotos.domain.events import (
    CallbackEvent,
    PollAnswerEvent,
    PollClosedEvent,
)
from binphotos.domain.model import VoteChoice

from .schema import CallbackQueryPayload, PollAnswerPayload, PollPayload, UpdatePayload

_CALLBACK_CHOICES = {"approve": VoteChoice.APPROVE, "reject": VoteChoice.REJECT}

type TelegramEvent = PollClosedEvent | PollAnswerEvent | CallbackEvent


def callback_data(choice: VoteChoice, token: str) -> str:
    return f"{choice}:{token}"


def parse_callback_data(data: str | None) -> tuple[VoteChoice, str]:
    if not data or ":" not in data:
        raise MalformedEvent(f"Unrecognised callback data: {data!r}")
    prefix, token = data.split(":", 1)
    choice = _CALLBACK_CHOICES.get(prefix)
    if choice is None or not token:
        raise MalformedEvent(f"Unrecognised callback data: {data!r}")
    return choice, token


def _poll_closed(poll: PollPayload) -> PollClosedEvent | None:
    # open-poll updates only report running counts
    if not poll.is_closed:
        return None
    return PollClosedEvent(
        poll_id=poll.id,
        voter_counts=tuple(option.voter_count for option in poll.options),
    )


def _poll_answer(answer: PollAnswerPayload) -> PollAnswerEvent:
    if answer.user is None:
        raise MalformedEvent(f"Poll answer for {answer.poll_id} has no user")
    return PollAnswerEvent(
        poll_id=answer.poll_id,
        voter_id=str(answer.user.id),
        option_ids=tuple(answer.option_ids),
    )


def _callback(query: CallbackQueryPayload) -> CallbackEvent:
    choice, token = parse_callback_data(query.data)
    return CallbackEvent(
        token=token,
        choice=choice,
        voter_id=str(query.from_.id),
        callback_id=query.id,
    )


def decode_update(payload: UpdatePayload | Mapping[str, object]) -> TelegramEvent | None:
    """Return the event an update carries, or None when it carries nothing to act on.

    Raises :class:`MalformedEvent` for payloads that cannot be decoded.
    """

    try:
        update = (
            payload if isinstance(payload, UpdatePayload) else UpdatePayload.model_validate(payload)
        )
    except ValidationError as exc:
        raise MalformedEvent(f"Undecodable Telegram update: {exc}") from exc

    if update.poll_answer is not None:
        return _poll_answer(update.poll_answer)
    if update.callback_query is not None:
        return _callback(update.callback_query)
    if update.poll is not None:
        return _poll_closed(update.poll)
    return None
