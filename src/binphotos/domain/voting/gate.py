"""The single exit every finalized strategy passes its decision through."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.errors import StorageFailure

if TYPE_CHECKING:
    from binphotos.domain.model import Decision, SubmissionRef
    from binphotos.domain.ports.storage import UnitOfWorkFactory
    from binphotos.domain.publisher import OutcomePublisher, PublishReport

log = getLogger(__name__)


class DecisionGate:
    """Record the submission's decision once, then hand it to the publisher.

    Several strategies (a group-chat session and one poll per chat) may serve
    the same submission. Only the first to flip the persisted marker publishes.
    """

    def __init__(self, *, unit_of_work_factory: UnitOfWorkFactory, publisher: OutcomePublisher):
        self._uow_factory = unit_of_work_factory
        self._publisher = publisher

    def decided(self, ref: SubmissionRef) -> str | None:
        """The outcome already recorded for ``ref``, or None while it is still open."""

        try:
            with self._uow_factory() as uow:
                return uow.repositories.issues.decided_outcome(ref)
        except StorageFailure:
            log.exception("Could not read decision marker for %s", ref)
            return None

    async def emit(self, decision: Decision) -> PublishReport | None:
        try:
            with self._uow_factory() as uow:
                first = uow.repositories.issues.mark_decided(
                    decision.submission, decision.outcome
                )
                uow.commit()
        except StorageFailure:
            log.exception("Could not record decision for %s; not publishing", decision.submission)
            return None

        if not first:
            log.info(
                "Submission %s already decided; dropping %s decision",
                decision.submission,
                decision.strategy,
            )
            return None

        log.info(
            "Decision for %s via %s: %s (%d urls)",
            decision.submission,
            decision.strategy,
            decision.outcome,
            len(decision.selected_urls),
        )
        return await self._publisher.publish(decision)
