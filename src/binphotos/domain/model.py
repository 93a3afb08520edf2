"""Value objects and records for submissions, votes and decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Final

# Reserved poll option. Selecting it overrides every other choice.
REJECT_OPTION: Final[str] = "REJECT"


class Outcome(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"


class VoteChoice(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"


class StrategyKind(StrEnum):
    GROUP_CHAT = "group_chat"
    POLL = "poll"
    SINGLE_LINK = "single_link"


@dataclass(frozen=True, slots=True)
class SubmissionRef:
    """Identity of a submission: the tracker issue it was parsed from."""

    owner: str
    repo: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


@dataclass(frozen=True, slots=True)
class Submission:
    ref: SubmissionRef
    bin: str | None
    candidate_urls: tuple[str, ...] = ()
    title: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SeenIssue:
    """Snapshot of a tracker issue recorded the first time ingest sees it."""

    submission: Submission
    body: str | None = None
    state: str | None = None
    updated_at: datetime | None = None
    seen_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def ref(self) -> SubmissionRef:
        return self.submission.ref


@dataclass(frozen=True, slots=True)
class VoteTotals:
    approve: int = 0
    reject: int = 0

    @property
    def total(self) -> int:
        return self.approve + self.reject


@dataclass(frozen=True, slots=True)
class Decision:
    submission: SubmissionRef
    bin: str | None
    outcome: Outcome
    strategy: StrategyKind
    selected_urls: tuple[str, ...] = ()
    totals: VoteTotals | None = None

    @property
    def approved(self) -> bool:
        return self.outcome is Outcome.APPROVED


@dataclass(slots=True)
class PollRecord:
    poll_id: str
    submission: SubmissionRef
    bin: str | None
    channel_id: str
    prompt_message_id: int
    options: tuple[str, ...]
    finalized: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def has_reject_option(self) -> bool:
        return bool(self.options) and self.options[-1] == REJECT_OPTION


@dataclass(frozen=True, slots=True)
class ApprovalToken:
    token: str
    submission: SubmissionRef
    bin: str | None
    url: str
    channel_id: str
    message_id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass(frozen=True, slots=True)
class ApprovedUrlsResult:
    ok: bool
    first_insertion: bool


@dataclass(frozen=True, slots=True)
class CardMetadata:
    """Card-metadata fields shown in query replies and admin notifications."""

    bin: str | None = None
    brand: str | None = None
    type: str | None = None
    category: str | None = None
    issuer: str | None = None
    country: str | None = None
    issuer_phone: str | None = None
    issuer_url: str | None = None
