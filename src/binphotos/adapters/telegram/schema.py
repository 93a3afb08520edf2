"""Pydantic models for the subset of the Telegram Bot API the poll bot uses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TelegramBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserPayload(TelegramBaseModel):
    id: int
    is_bot: bool = False
    username: str | None = None


class ChatPayload(TelegramBaseModel):
    id: int


class PollOptionPayload(TelegramBaseModel):
    text: str
    voter_count: int = 0


class PollPayload(TelegramBaseModel):
    id: str
    question: str = ""
    options: list[PollOptionPayload] = Field(default_factory=list)
    is_closed: bool = False
    total_voter_count: int = 0


class PollAnswerPayload(TelegramBaseModel):
    poll_id: str
    user: UserPayload | None = None
    option_ids: list[int] = Field(default_factory=list)


class MessagePayload(TelegramBaseModel):
    message_id: int
    chat: ChatPayload
    poll: PollPayload | None = None


class CallbackQueryPayload(TelegramBaseModel):
    id: str
    from_: UserPayload = Field(alias="from")
    data: str | None = None
    message: MessagePayload | None = None


class UpdatePayload(TelegramBaseModel):
    update_id: int
    poll: PollPayload | None = None
    poll_answer: PollAnswerPayload | None = None
    callback_query: CallbackQueryPayload | None = None


class ApiResponse(TelegramBaseModel):
    ok: bool
    result: object = None
    description: str | None = None
    error_code: int | None = None
