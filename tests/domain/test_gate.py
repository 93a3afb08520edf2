from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from binphotos.domain.model import Decision, Outcome, StrategyKind
from binphotos.domain.voting.gate import DecisionGate
from tests.helpers.fakes import FailingUnitOfWork, RecordingPublisher

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from binphotos.domain.model import SubmissionRef


def _decision(ref: SubmissionRef, strategy: StrategyKind, outcome: Outcome) -> Decision:
    urls = ("https://img.example/a.jpg",) if outcome is Outcome.APPROVED else ()
    return Decision(
        submission=ref,
        bin="411111",
        outcome=outcome,
        strategy=strategy,
        selected_urls=urls,
    )


@pytest.mark.asyncio
async def test_only_the_first_decision_is_published(
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    ref: SubmissionRef,
) -> None:
    publisher = RecordingPublisher()
    gate = DecisionGate(unit_of_work_factory=uow_factory, publisher=publisher)  # type: ignore[arg-type]
    poll = _decision(ref, StrategyKind.POLL, Outcome.APPROVED)
    group = _decision(ref, StrategyKind.GROUP_CHAT, Outcome.REJECTED)

    report = await gate.emit(poll)
    dropped = await gate.emit(group)

    assert report is not None
    assert report.stored
    assert dropped is None
    assert publisher.published == [poll]
    with uow_factory() as uow:
        assert uow.repositories.issues.decided_outcome(ref) == Outcome.APPROVED


@pytest.mark.asyncio
async def test_marker_write_failure_publishes_nothing(ref: SubmissionRef) -> None:
    publisher = RecordingPublisher()
    gate = DecisionGate(unit_of_work_factory=FailingUnitOfWork, publisher=publisher)  # type: ignore[arg-type]

    assert await gate.emit(_decision(ref, StrategyKind.POLL, Outcome.APPROVED)) is None
    assert publisher.published == []
