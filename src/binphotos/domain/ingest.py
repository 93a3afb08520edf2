"""Turn newly seen tracker issues into submissions and start their votes."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import AdapterUnavailable, StorageFailure
from .model import SeenIssue, Submission, SubmissionRef
from .urls import parse_submission_text

if TYPE_CHECKING:
    from .ports.storage import UnitOfWorkFactory
    from .ports.tracker import IssueTracker, TrackerIssue
    from .voting.engine import ReconciliationEngine

log = getLogger(__name__)


def build_submission(owner: str, repo: str, issue: TrackerIssue) -> Submission:
    parsed = parse_submission_text(issue.text)
    return Submission(
        ref=SubmissionRef(owner=owner, repo=repo, number=issue.number),
        bin=parsed.bin,
        candidate_urls=parsed.candidate_urls,
        title=issue.title,
        created_at=issue.created_at,
    )


class SubmissionIngest:
    def __init__(
        self,
        *,
        tracker: IssueTracker,
        unit_of_work_factory: UnitOfWorkFactory,
        engine: ReconciliationEngine,
    ) -> None:
        self._tracker = tracker
        self._uow_factory = unit_of_work_factory
        self._engine = engine

    async def tick(self) -> list[Submission]:
        """Process every open issue not seen before; return the new submissions."""

        try:
            issues = await self._tracker.list_open_issues()
        except AdapterUnavailable as exc:
            log.warning("Listing open issues failed, retrying next tick: %s", exc)
            return []

        fresh: list[Submission] = []
        for issue in issues:
            submission = build_submission(self._tracker.owner, self._tracker.repo, issue)
            try:
                if not self._mark_seen(issue, submission):
                    continue
            except StorageFailure:
                log.exception("Recording %s as seen failed; retrying next tick", submission.ref)
                continue

            log.info(
                "New submission %s: bin=%s urls=%d",
                submission.ref,
                submission.bin,
                len(submission.candidate_urls),
            )
            fresh.append(submission)
            await self._engine.start(submission)
        return fresh

    def _mark_seen(self, issue: TrackerIssue, submission: Submission) -> bool:
        with self._uow_factory() as uow:
            issues = uow.repositories.issues
            if issues.exists(submission.ref):
                return False
            already = issues.mark_seen(
                SeenIssue(
                    submission=submission,
                    body=issue.body,
                    state=issue.state,
                    updated_at=issue.updated_at,
                )
            )
            uow.commit()
        return not already
