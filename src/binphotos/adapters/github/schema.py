"""Pydantic models describing the GitHub issues API payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field


class GitHubBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class IssuePayload(GitHubBaseModel):
    number: int
    title: str = ""
    body: str | None = None
    state: str = "open"
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # present only on pull requests, which the issues endpoint also lists
    pull_request: dict[str, object] | None = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None


class ErrorPayload(GitHubBaseModel):
    message: str = ""
    documentation_url: str | None = Field(default=None)
