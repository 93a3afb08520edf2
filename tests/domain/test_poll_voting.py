from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from binphotos.domain.events import PollAnswerEvent, PollClosedEvent
from binphotos.domain.model import REJECT_OPTION, Outcome, StrategyKind, Submission
from binphotos.domain.voting.gate import DecisionGate
from binphotos.domain.voting.locks import KeyedLocks
from binphotos.domain.voting.poll import PollVoting, option_labels
from tests.helpers.fakes import FakePollBot, RecordingPublisher

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from binphotos.domain.model import PollRecord, SubmissionRef

CHATS = ("-100", "-200")
URL_A = "https://img.example/a.jpg"
URL_B = "https://cdn.example/b.png"


@pytest.fixture
def bot() -> FakePollBot:
    return FakePollBot()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def voting(
    bot: FakePollBot,
    publisher: RecordingPublisher,
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> PollVoting:
    return PollVoting(
        bot=bot,
        channel_ids=CHATS,
        unit_of_work_factory=uow_factory,
        gate=DecisionGate(unit_of_work_factory=uow_factory, publisher=publisher),  # type: ignore[arg-type]
        locks=KeyedLocks(),
        max_urls=9,
    )


async def _open(voting: PollVoting, submission: Submission) -> list[PollRecord]:
    records = await voting.start(submission)
    assert len(records) == len(CHATS)
    return records


def test_option_labels_use_hosts_and_reject_label() -> None:
    assert option_labels((URL_A, URL_B, REJECT_OPTION)) == [
        "1. img.example",
        "2. cdn.example",
        "Reject all",
    ]


@pytest.mark.asyncio
async def test_start_sends_one_poll_per_chat_and_persists_records(
    voting: PollVoting,
    bot: FakePollBot,
    two_url_submission: Submission,
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    records = await _open(voting, two_url_submission)

    assert [chat for chat, _, _ in bot.polls] == list(CHATS)
    assert bot.polls[0][2] == ["1. img.example", "2. cdn.example", "Reject all"]
    for record in records:
        assert record.options == (URL_A, URL_B, REJECT_OPTION)
        assert record.has_reject_option
        with uow_factory() as uow:
            stored = uow.repositories.polls.get(record.poll_id)
        assert stored is not None
        assert not stored.finalized
        assert stored.submission == two_url_submission.ref


@pytest.mark.asyncio
async def test_start_caps_candidates_and_keeps_reject_last(
    voting: PollVoting,
    bot: FakePollBot,
    ref: SubmissionRef,
) -> None:
    urls = tuple(f"https://img.example/{index}.jpg" for index in range(12))
    records = await voting.start(Submission(ref=ref, bin="411111", candidate_urls=urls))

    assert len(records[0].options) == 10
    assert records[0].options[-1] == REJECT_OPTION
    assert records[0].options[:9] == urls[:9]
    assert len(bot.polls[0][2]) == 10


@pytest.mark.asyncio
async def test_start_with_failing_bot_opens_nothing(
    voting: PollVoting,
    bot: FakePollBot,
    two_url_submission: Submission,
) -> None:
    bot.fail_send = True

    assert await voting.start(two_url_submission) == []


@pytest.mark.asyncio
async def test_first_answer_finalizes_and_stops_every_poll(
    voting: PollVoting,
    bot: FakePollBot,
    publisher: RecordingPublisher,
    two_url_submission: Submission,
) -> None:
    first, second = await _open(voting, two_url_submission)

    decision = await voting.on_poll_answer(
        PollAnswerEvent(poll_id=first.poll_id, voter_id="42", option_ids=(0,))
    )

    assert decision is not None
    assert decision.outcome is Outcome.APPROVED
    assert decision.strategy is StrategyKind.POLL
    assert decision.selected_urls == (URL_A,)
    assert sorted(bot.stopped) == sorted(
        [(first.channel_id, first.prompt_message_id), (second.channel_id, second.prompt_message_id)]
    )
    assert publisher.published == [decision]


@pytest.mark.asyncio
async def test_events_after_finalization_are_no_ops(
    voting: PollVoting,
    bot: FakePollBot,
    publisher: RecordingPublisher,
    two_url_submission: Submission,
) -> None:
    first, second = await _open(voting, two_url_submission)
    await voting.on_poll_answer(PollAnswerEvent(poll_id=first.poll_id, voter_id="42", option_ids=(1,)))
    stops = len(bot.stopped)

    late_answer = await voting.on_poll_answer(
        PollAnswerEvent(poll_id=first.poll_id, voter_id="43", option_ids=(2,))
    )
    sibling_answer = await voting.on_poll_answer(
        PollAnswerEvent(poll_id=second.poll_id, voter_id="44", option_ids=(0,))
    )
    closed = await voting.on_poll_closed(
        PollClosedEvent(poll_id=first.poll_id, voter_counts=(0, 1, 0))
    )

    assert late_answer is None
    assert sibling_answer is None
    assert closed is None
    assert len(bot.stopped) == stops
    assert len(publisher.published) == 1


@pytest.mark.asyncio
async def test_choosing_reject_alongside_a_photo_rejects(
    voting: PollVoting,
    publisher: RecordingPublisher,
    two_url_submission: Submission,
) -> None:
    first, _ = await _open(voting, two_url_submission)

    decision = await voting.on_poll_answer(
        PollAnswerEvent(poll_id=first.poll_id, voter_id="42", option_ids=(0, 2))
    )

    assert decision is not None
    assert decision.outcome is Outcome.REJECTED
    assert decision.selected_urls == ()
    assert publisher.published == [decision]


@pytest.mark.asyncio
async def test_empty_answer_is_ignored(
    voting: PollVoting,
    bot: FakePollBot,
    two_url_submission: Submission,
) -> None:
    first, _ = await _open(voting, two_url_submission)

    assert await voting.on_poll_answer(
        PollAnswerEvent(poll_id=first.poll_id, voter_id="42", option_ids=())
    ) is None
    assert bot.stopped == []


@pytest.mark.asyncio
async def test_closed_poll_tally_decides_and_stops_only_siblings(
    voting: PollVoting,
    bot: FakePollBot,
    two_url_submission: Submission,
) -> None:
    first, second = await _open(voting, two_url_submission)

    decision = await voting.on_poll_closed(
        PollClosedEvent(poll_id=first.poll_id, voter_counts=(2, 1, 0))
    )

    assert decision is not None
    assert decision.outcome is Outcome.APPROVED
    assert decision.selected_urls == (URL_A, URL_B)
    assert bot.stopped == [(second.channel_id, second.prompt_message_id)]


@pytest.mark.asyncio
async def test_stop_poll_failure_does_not_block_the_decision(
    voting: PollVoting,
    bot: FakePollBot,
    publisher: RecordingPublisher,
    two_url_submission: Submission,
) -> None:
    first, _ = await _open(voting, two_url_submission)
    bot.fail_stop = True

    decision = await voting.on_poll_answer(
        PollAnswerEvent(poll_id=first.poll_id, voter_id="42", option_ids=(1,))
    )

    assert decision is not None
    assert decision.selected_urls == (URL_B,)
    assert publisher.published == [decision]


@pytest.mark.asyncio
async def test_unknown_poll_is_ignored(voting: PollVoting) -> None:
    assert await voting.on_poll_answer(
        PollAnswerEvent(poll_id="nope", voter_id="42", option_ids=(0,))
    ) is None
    assert await voting.on_poll_closed(PollClosedEvent(poll_id="nope", voter_counts=(1,))) is None


@pytest.mark.asyncio
async def test_racing_answer_and_close_events_decide_once(
    publisher: RecordingPublisher,
    uow_factory: Callable[[], SqlAlchemyUnitOfWork],
    two_url_submission: Submission,
) -> None:
    class SlowStopBot(FakePollBot):
        async def stop_poll(self, channel_id: str, message_id: int) -> None:
            await asyncio.sleep(0)
            await super().stop_poll(channel_id, message_id)

    bot = SlowStopBot()
    voting = PollVoting(
        bot=bot,
        channel_ids=CHATS,
        unit_of_work_factory=uow_factory,
        gate=DecisionGate(unit_of_work_factory=uow_factory, publisher=publisher),  # type: ignore[arg-type]
        locks=KeyedLocks(),
        max_urls=9,
    )
    first, second = await _open(voting, two_url_submission)

    results = await asyncio.gather(
        voting.on_poll_answer(PollAnswerEvent(poll_id=first.poll_id, voter_id="1", option_ids=(0,))),
        voting.on_poll_closed(PollClosedEvent(poll_id=first.poll_id, voter_counts=(0, 3, 0))),
        voting.on_poll_answer(PollAnswerEvent(poll_id=second.poll_id, voter_id="2", option_ids=(2,))),
        voting.on_poll_answer(PollAnswerEvent(poll_id=first.poll_id, voter_id="3", option_ids=(1,))),
    )

    decisions = [result for result in results if result is not None]
    assert len(decisions) == 1
    assert decisions[0].selected_urls == (URL_A,)
    assert publisher.published == decisions
    assert sorted(bot.stopped) == sorted(
        [(first.channel_id, first.prompt_message_id), (second.channel_id, second.prompt_message_id)]
    )
