"""Pydantic models for OneBot v11 frames: API responses and message events."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class OneBotBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SegmentPayload(OneBotBaseModel):
    type: str
    data: dict[str, object] = Field(default_factory=dict)


class ReplyPayload(OneBotBaseModel):
    message_id: int | str | None = None


class MessageEventPayload(OneBotBaseModel):
    post_type: str
    message_type: str | None = None
    user_id: int | None = None
    group_id: int | None = None
    message: str | list[SegmentPayload] = ""
    raw_message: str | None = None
    reply: ReplyPayload | None = None


class ActionResponse(OneBotBaseModel):
    status: str = "failed"
    retcode: int | None = None
    data: dict[str, object] | None = None
    echo: str | None = None
    msg: str | None = None
    wording: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in {"ok", "async"}

    @property
    def error_text(self) -> str:
        return self.wording or self.msg or f"retcode {self.retcode}"

    @property
    def message_id(self) -> str | None:
        if not self.data:
            return None
        value = self.data.get("message_id")
        return str(value) if value is not None else None
