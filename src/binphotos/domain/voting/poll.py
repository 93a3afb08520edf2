"""Poll-bot voting: the first decisive signal on a poll wins.

Both a ``poll_answer`` (first respondent) and a closed-poll tally can decide a
record. Whichever arrives first finalizes it through :meth:`PollVoting.finalize`;
everything after that is a no-op because ``finalized`` is checked, under the
submission lock, before any side effect.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.errors import AdapterUnavailable, StorageFailure, UnknownKey
from binphotos.domain.model import REJECT_OPTION, Decision, PollRecord, StrategyKind
from binphotos.domain.urls import host_label

from .tally import chosen_from_counts, select_options

if TYPE_CHECKING:
    from collections.abc import Sequence

    from binphotos.domain.events import PollAnswerEvent, PollClosedEvent
    from binphotos.domain.model import Submission, SubmissionRef
    from binphotos.domain.ports.messaging import PollBot
    from binphotos.domain.ports.storage import UnitOfWorkFactory

    from .gate import DecisionGate
    from .locks import KeyedLocks

log = getLogger(__name__)

REJECT_LABEL = "Reject all"


def option_labels(options: Sequence[str]) -> list[str]:
    labels: list[str] = []
    for index, option in enumerate(options, start=1):
        if option == REJECT_OPTION:
            labels.append(REJECT_LABEL)
        else:
            labels.append(f"{index}. {host_label(option)}")
    return labels


class PollVoting:
    def __init__(
        self,
        *,
        bot: PollBot,
        channel_ids: Sequence[str],
        unit_of_work_factory: UnitOfWorkFactory,
        gate: DecisionGate,
        locks: KeyedLocks[SubmissionRef],
        max_urls: int,
    ) -> None:
        self._bot = bot
        self._channel_ids = tuple(channel_ids)
        self._uow_factory = unit_of_work_factory
        self._gate = gate
        self._locks = locks
        self._max_urls = max_urls

    @property
    def enabled(self) -> bool:
        return bool(self._channel_ids)

    async def start(self, submission: Submission) -> list[PollRecord]:
        ref = submission.ref
        options = (*submission.candidate_urls[: self._max_urls], REJECT_OPTION)
        question = f"Issue #{ref.number} BIN {submission.bin or '?'}: which photos match?"
        labels = option_labels(options)

        records: list[PollRecord] = []
        async with self._locks.hold(ref):
            for channel_id in self._channel_ids:
                try:
                    sent = await self._bot.send_poll(channel_id, question, labels)
                except AdapterUnavailable as exc:
                    log.warning("Poll for %s not sent to %s: %s", ref, channel_id, exc)
                    continue
                record = PollRecord(
                    poll_id=sent.poll_id,
                    submission=ref,
                    bin=submission.bin,
                    channel_id=sent.channel_id,
                    prompt_message_id=sent.message_id,
                    options=options,
                )
                try:
                    with self._uow_factory() as uow:
                        uow.repositories.polls.put(record)
                        uow.commit()
                except StorageFailure:
                    log.exception("Poll %s for %s could not be persisted", sent.poll_id, ref)
                    continue
                records.append(record)

        if records:
            log.info("Opened %d poll(s) for %s with %d option(s)", len(records), ref, len(options))
        else:
            log.error("No poll could be opened for %s", ref)
        return records

    async def on_poll_answer(self, event: PollAnswerEvent) -> Decision | None:
        if not event.option_ids:
            # a retracted vote carries no choice
            log.debug("Empty answer on poll %s from %s ignored", event.poll_id, event.voter_id)
            return None
        log.info(
            "First answer candidate on poll %s from %s: %s",
            event.poll_id,
            event.voter_id,
            list(event.option_ids),
        )
        return await self.finalize(event.poll_id, event.option_ids, stop_own_poll=True)

    async def on_poll_closed(self, event: PollClosedEvent) -> Decision | None:
        return await self.finalize(
            event.poll_id,
            chosen_from_counts(event.voter_counts),
            stop_own_poll=False,
        )

    async def finalize(
        self,
        poll_id: str,
        chosen_indices: Sequence[int],
        *,
        stop_own_poll: bool,
    ) -> Decision | None:
        try:
            record = self._load(poll_id)
        except UnknownKey as exc:
            log.debug("%s; event ignored", exc)
            return None
        if record is None or record.finalized:
            return None

        async with self._locks.hold(record.submission):
            try:
                with self._uow_factory() as uow:
                    polls = uow.repositories.polls
                    current = polls.get(poll_id)
                    if current is None or current.finalized or not polls.finalize(poll_id):
                        return None
                    siblings: list[PollRecord] = []
                    for sibling in polls.for_submission(current.submission):
                        if sibling.poll_id != poll_id and polls.finalize(sibling.poll_id):
                            siblings.append(sibling)
                    uow.commit()
            except StorageFailure:
                log.exception("Could not finalize poll %s", poll_id)
                return None

            outcome, urls = select_options(current.options, chosen_indices)
            decision = Decision(
                submission=current.submission,
                bin=current.bin,
                outcome=outcome,
                strategy=StrategyKind.POLL,
                selected_urls=urls,
            )
            log.info(
                "Poll %s finalized for %s: %s, picked=%d",
                poll_id,
                current.submission,
                outcome,
                len(urls),
            )

            to_stop = [*siblings, current] if stop_own_poll else siblings
            for stale in to_stop:
                await self._stop(stale)

            await self._gate.emit(decision)
            return decision

    def _load(self, poll_id: str) -> PollRecord | None:
        try:
            with self._uow_factory() as uow:
                record = uow.repositories.polls.get(poll_id)
        except StorageFailure:
            log.exception("Could not load poll %s", poll_id)
            return None
        if record is None:
            raise UnknownKey("poll", poll_id)
        return record

    async def _stop(self, record: PollRecord) -> None:
        try:
            await self._bot.stop_poll(record.channel_id, record.prompt_message_id)
        except AdapterUnavailable as exc:
            log.warning(
                "stopPoll failed for poll %s (chat=%s, message=%s): %s",
                record.poll_id,
                record.channel_id,
                record.prompt_message_id,
                exc,
            )
