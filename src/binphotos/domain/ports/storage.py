"""Ports for persisting submission, poll, token and photo state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from binphotos.domain.model import (
        ApprovalToken,
        ApprovedUrlsResult,
        Outcome,
        PollRecord,
        SeenIssue,
        SubmissionRef,
    )


@runtime_checkable
class SeenIssueRepository(Protocol):
    def exists(self, ref: SubmissionRef) -> bool: ...

    def get(self, ref: SubmissionRef) -> SeenIssue | None: ...

    def mark_seen(self, issue: SeenIssue) -> bool:
        """Insert the issue if new; return whether it already existed."""
        ...

    def mark_decided(self, ref: SubmissionRef, outcome: Outcome) -> bool:
        """Atomically record the submission's decision; True only for the first caller."""
        ...

    def decided_outcome(self, ref: SubmissionRef) -> str | None: ...


@runtime_checkable
class PollRecordRepository(Protocol):
    def put(self, record: PollRecord) -> None: ...

    def get(self, poll_id: str) -> PollRecord | None: ...

    def for_submission(self, ref: SubmissionRef) -> Sequence[PollRecord]: ...

    def finalize(self, poll_id: str) -> bool:
        """Flip ``finalized`` to true; return whether this call flipped it."""
        ...


@runtime_checkable
class ApprovalTokenRepository(Protocol):
    def put(self, token: ApprovalToken) -> None: ...

    def get(self, token: str) -> ApprovalToken | None: ...

    def delete(self, token: str) -> bool: ...


@runtime_checkable
class BinPhotoRepository(Protocol):
    def set_approved_urls(self, bin_: str, urls: Sequence[str]) -> ApprovedUrlsResult: ...

    def get_urls(self, bin_: str) -> tuple[str, ...]: ...


@runtime_checkable
class NotificationMarkerRepository(Protocol):
    def try_mark_notified(self, bin_: str) -> bool:
        """Atomic check-and-set; True exactly once per BIN."""
        ...


@dataclass(slots=True)
class StorageRepositories:
    issues: SeenIssueRepository
    polls: PollRecordRepository
    tokens: ApprovalTokenRepository
    bin_photos: BinPhotoRepository
    notifications: NotificationMarkerRepository


@runtime_checkable
class StorageUnitOfWork(Protocol):
    """Transaction boundary around the storage repositories."""

    @property
    def repositories(self) -> StorageRepositories: ...

    def __enter__(self) -> StorageUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


type UnitOfWorkFactory = Callable[[], StorageUnitOfWork]
