"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, select, update

from binphotos.adapters.sqlalchemy.mappings import (
    admin_notification_table,
    approval_token_table,
    bin_photo_table,
    poll_record_table,
    seen_issue_table,
)
from binphotos.domain.model import (
    ApprovalToken,
    ApprovedUrlsResult,
    PollRecord,
    SeenIssue,
    Submission,
    SubmissionRef,
)
from binphotos.domain.urls import dedupe_urls

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import ColumnElement, CursorResult, Executable, Row
    from sqlalchemy.orm import Session

    from binphotos.domain.model import Outcome


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _rowcount(session: Session, stmt: Executable) -> int:
    result = cast("CursorResult[object]", session.execute(stmt))
    return result.rowcount


def _ref_clause(ref: SubmissionRef) -> tuple[ColumnElement[bool], ...]:
    table = seen_issue_table
    return (table.c.owner == ref.owner, table.c.repo == ref.repo, table.c.number == ref.number)


class SqlAlchemySeenIssueRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def exists(self, ref: SubmissionRef) -> bool:
        stmt = select(seen_issue_table.c.number).where(*_ref_clause(ref))
        return self.session.execute(stmt).first() is not None

    def get(self, ref: SubmissionRef) -> SeenIssue | None:
        row = self.session.execute(select(seen_issue_table).where(*_ref_clause(ref))).first()
        if row is None:
            return None
        return SeenIssue(
            submission=Submission(
                ref=ref,
                bin=row.bin,
                candidate_urls=row.candidate_urls,
                title=row.title,
                created_at=row.created_at,
            ),
            body=row.body,
            state=row.state,
            updated_at=row.updated_at,
            seen_at=row.seen_at,
        )

    def mark_seen(self, issue: SeenIssue) -> bool:
        submission = issue.submission
        stmt = (
            seen_issue_table.insert()
            .prefix_with("OR IGNORE")
            .values(
                owner=submission.ref.owner,
                repo=submission.ref.repo,
                number=submission.ref.number,
                title=submission.title,
                body=issue.body,
                state=issue.state,
                bin=submission.bin,
                candidate_urls=submission.candidate_urls,
                created_at=submission.created_at,
                updated_at=issue.updated_at,
                seen_at=issue.seen_at,
            )
        )
        return _rowcount(self.session, stmt) == 0

    def mark_decided(self, ref: SubmissionRef, outcome: Outcome) -> bool:
        now = _now()
        # decisions may be taken for submissions that never went through ingest
        self.session.execute(
            seen_issue_table.insert()
            .prefix_with("OR IGNORE")
            .values(owner=ref.owner, repo=ref.repo, number=ref.number, candidate_urls=(), seen_at=now)
        )
        stmt = (
            update(seen_issue_table)
            .where(*_ref_clause(ref))
            .where(seen_issue_table.c.decided_outcome.is_(None))
            .values(decided_outcome=str(outcome), decided_at=now)
        )
        return _rowcount(self.session, stmt) == 1

    def decided_outcome(self, ref: SubmissionRef) -> str | None:
        stmt = select(seen_issue_table.c.decided_outcome).where(*_ref_clause(ref))
        return self.session.execute(stmt).scalar_one_or_none()


def _poll_from_row(row: Row[Any]) -> PollRecord:
    return PollRecord(
        poll_id=row.poll_id,
        submission=SubmissionRef(owner=row.owner, repo=row.repo, number=row.number),
        bin=row.bin,
        channel_id=row.channel_id,
        prompt_message_id=row.prompt_message_id,
        options=row.options,
        finalized=bool(row.finalized),
        created_at=row.created_at,
    )


class SqlAlchemyPollRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def put(self, record: PollRecord) -> None:
        self.session.execute(
            poll_record_table.insert().values(
                poll_id=record.poll_id,
                owner=record.submission.owner,
                repo=record.submission.repo,
                number=record.submission.number,
                bin=record.bin,
                channel_id=record.channel_id,
                prompt_message_id=record.prompt_message_id,
                options=record.options,
                finalized=record.finalized,
                created_at=record.created_at,
            )
        )

    def get(self, poll_id: str) -> PollRecord | None:
        stmt = select(poll_record_table).where(poll_record_table.c.poll_id == poll_id)
        row = self.session.execute(stmt).first()
        return _poll_from_row(row) if row is not None else None

    def for_submission(self, ref: SubmissionRef) -> list[PollRecord]:
        table = poll_record_table
        stmt = (
            select(table)
            .where(table.c.owner == ref.owner, table.c.repo == ref.repo, table.c.number == ref.number)
            .order_by(table.c.created_at)
        )
        return [_poll_from_row(row) for row in self.session.execute(stmt)]

    def finalize(self, poll_id: str) -> bool:
        stmt = (
            update(poll_record_table)
            .where(poll_record_table.c.poll_id == poll_id)
            .where(poll_record_table.c.finalized == False)  # noqa: E712
            .values(finalized=True)
        )
        return _rowcount(self.session, stmt) == 1


class SqlAlchemyApprovalTokenRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def put(self, token: ApprovalToken) -> None:
        self.session.execute(
            approval_token_table.insert().values(
                token=token.token,
                owner=token.submission.owner,
                repo=token.submission.repo,
                number=token.submission.number,
                bin=token.bin,
                url=token.url,
                channel_id=token.channel_id,
                message_id=token.message_id,
                created_at=token.created_at,
            )
        )

    def get(self, token: str) -> ApprovalToken | None:
        stmt = select(approval_token_table).where(approval_token_table.c.token == token)
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        return ApprovalToken(
            token=row.token,
            submission=SubmissionRef(owner=row.owner, repo=row.repo, number=row.number),
            bin=row.bin,
            url=row.url,
            channel_id=row.channel_id,
            message_id=row.message_id,
            created_at=row.created_at,
        )

    def delete(self, token: str) -> bool:
        stmt = delete(approval_token_table).where(approval_token_table.c.token == token)
        return _rowcount(self.session, stmt) == 1


class SqlAlchemyBinPhotoRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def set_approved_urls(self, bin_: str, urls: Sequence[str]) -> ApprovedUrlsResult:
        """Replace the BIN's URL set; ``first_insertion`` is true when no set existed."""

        cleaned = dedupe_urls(url.strip() for url in urls if url and url.strip())
        if not cleaned:
            return ApprovedUrlsResult(ok=False, first_insertion=False)
        now = _now()
        inserted = _rowcount(
            self.session,
            bin_photo_table.insert()
            .prefix_with("OR IGNORE")
            .values(bin=bin_, urls=cleaned, updated_at=now),
        )
        if inserted:
            return ApprovedUrlsResult(ok=True, first_insertion=True)
        self.session.execute(
            update(bin_photo_table)
            .where(bin_photo_table.c.bin == bin_)
            .values(urls=cleaned, updated_at=now)
        )
        return ApprovedUrlsResult(ok=True, first_insertion=False)

    def get_urls(self, bin_: str) -> tuple[str, ...]:
        stmt = select(bin_photo_table.c.urls).where(bin_photo_table.c.bin == bin_)
        urls = self.session.execute(stmt).scalar_one_or_none()
        return tuple(urls) if urls else ()


class SqlAlchemyNotificationMarkerRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def try_mark_notified(self, bin_: str) -> bool:
        stmt = (
            admin_notification_table.insert()
            .prefix_with("OR IGNORE")
            .values(bin=bin_, notified_at=_now())
        )
        return _rowcount(self.session, stmt) == 1


if TYPE_CHECKING:
    from binphotos.domain.ports.storage import (
        ApprovalTokenRepository,
        BinPhotoRepository,
        NotificationMarkerRepository,
        PollRecordRepository,
        SeenIssueRepository,
    )

    _session_stub = cast("Session", object())
    _issues_check: SeenIssueRepository = SqlAlchemySeenIssueRepository(_session_stub)
    _polls_check: PollRecordRepository = SqlAlchemyPollRecordRepository(_session_stub)
    _tokens_check: ApprovalTokenRepository = SqlAlchemyApprovalTokenRepository(_session_stub)
    _photos_check: BinPhotoRepository = SqlAlchemyBinPhotoRepository(_session_stub)
    _marker_check: NotificationMarkerRepository = SqlAlchemyNotificationMarkerRepository(
        _session_stub
    )
