"""Port for the issue tracker submissions come from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class TrackerIssue:
    number: int
    title: str
    body: str | None
    state: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.state.lower() == "open"

    @property
    def text(self) -> str:
        return f"{self.title or ''}\n\n{self.body or ''}"


@runtime_checkable
class IssueTracker(Protocol):
    owner: str
    repo: str

    async def list_open_issues(self) -> list[TrackerIssue]: ...

    async def close_issue(self, number: int) -> None: ...

    async def comment(self, number: int, text: str) -> None: ...

    def issue_url(self, number: int) -> str: ...
