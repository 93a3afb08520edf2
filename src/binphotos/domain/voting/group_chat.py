"""Group-chat voting: prompts broadcast to admin groups, votes by reply.

A session is ``Open`` until its deadline passes. A tie (including no votes at
all) buys exactly one extension; the next expiry always finalizes, and since
approval needs a strict majority a tie that survives the extension rejects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.clock import utcnow
from binphotos.domain.errors import AdapterUnavailable
from binphotos.domain.images import fetch_images
from binphotos.domain.model import Decision, Outcome, StrategyKind, VoteChoice, VoteTotals
from binphotos.domain.ports.messaging import ImageSegment, Segment, TextSegment

from .tally import parse_vote_text, tally

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime, timedelta

    from binphotos.config.voting import VotingConfig
    from binphotos.domain.clock import Clock
    from binphotos.domain.events import ChatReplyEvent
    from binphotos.domain.model import Submission, SubmissionRef
    from binphotos.domain.ports.messaging import GroupChat, ImageSource
    from binphotos.domain.publisher import PublishReport

    from .gate import DecisionGate
    from .locks import KeyedLocks

log = getLogger(__name__)


class SessionStep(StrEnum):
    WAIT = "wait"
    EXTEND = "extend"
    FINALIZE = "finalize"


@dataclass(slots=True)
class VoteSession:
    submission: Submission
    deadline_at: datetime
    extended: bool = False
    finalized: bool = False
    votes: dict[str, VoteChoice] = field(default_factory=dict)
    channels: set[int] = field(default_factory=set)
    prompt_message_ids: set[str] = field(default_factory=set)

    @property
    def ref(self) -> SubmissionRef:
        return self.submission.ref

    def record(self, voter_id: str, choice: VoteChoice) -> bool:
        if self.finalized:
            return False
        # last write wins: a voter may change their mind until finalization
        self.votes[voter_id] = choice
        return True

    def totals(self) -> VoteTotals:
        return tally(self.votes)

    def is_due(self, now: datetime) -> bool:
        return not self.finalized and now >= self.deadline_at

    def advance(self, now: datetime, extension: timedelta) -> SessionStep:
        if not self.is_due(now):
            return SessionStep.WAIT
        totals = self.totals()
        # approve == reject also covers the no-votes case
        if totals.approve == totals.reject and not self.extended:
            self.extended = True
            self.deadline_at = now + extension
            return SessionStep.EXTEND
        self.finalized = True
        return SessionStep.FINALIZE

    def decision(self) -> Decision:
        totals = self.totals()
        approved = totals.approve > totals.reject
        return Decision(
            submission=self.ref,
            bin=self.submission.bin,
            outcome=Outcome.APPROVED if approved else Outcome.REJECTED,
            strategy=StrategyKind.GROUP_CHAT,
            selected_urls=self.submission.candidate_urls if approved else (),
            totals=totals,
        )


class SessionTable:
    """Active sessions keyed by submission, plus prompt-message routing."""

    def __init__(self) -> None:
        self._sessions: dict[SubmissionRef, VoteSession] = {}
        self._routes: dict[str, SubmissionRef] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, ref: object) -> bool:
        return ref in self._sessions

    def get(self, ref: SubmissionRef) -> VoteSession | None:
        return self._sessions.get(ref)

    def add(self, session: VoteSession) -> None:
        self._sessions[session.ref] = session

    def bind(self, session: VoteSession, message_id: str) -> None:
        session.prompt_message_ids.add(message_id)
        self._routes[message_id] = session.ref

    def route(self, message_id: str) -> VoteSession | None:
        ref = self._routes.get(message_id)
        return self._sessions.get(ref) if ref is not None else None

    def release(self, ref: SubmissionRef) -> VoteSession | None:
        session = self._sessions.pop(ref, None)
        if session is not None:
            for message_id in session.prompt_message_ids:
                self._routes.pop(message_id, None)
        return session

    def due(self, now: datetime) -> list[VoteSession]:
        return [session for session in self._sessions.values() if session.is_due(now)]


class GroupChatVoting:
    def __init__(
        self,
        *,
        chat: GroupChat,
        channel_ids: Sequence[int],
        gate: DecisionGate,
        locks: KeyedLocks[SubmissionRef],
        config: VotingConfig,
        issue_url: Callable[[SubmissionRef], str],
        images: ImageSource | None = None,
        clock: Clock = utcnow,
        table: SessionTable | None = None,
    ) -> None:
        self._chat = chat
        self._channel_ids = tuple(channel_ids)
        self._gate = gate
        self._locks = locks
        self._config = config
        self._issue_url = issue_url
        self._images = images
        self._clock = clock
        self.table = table or SessionTable()

    @property
    def enabled(self) -> bool:
        return bool(self._channel_ids)

    async def start(self, submission: Submission) -> VoteSession | None:
        if not self.enabled:
            return None
        ref = submission.ref
        async with self._locks.hold(ref):
            existing = self.table.get(ref)
            if existing is not None:
                return existing

            session = VoteSession(
                submission=submission,
                deadline_at=self._clock() + self._config.vote_deadline,
            )
            self.table.add(session)
            content = await self._build_prompt(submission)
            for channel_id in self._channel_ids:
                try:
                    message_id = await self._chat.broadcast(channel_id, content)
                except AdapterUnavailable as exc:
                    log.warning("Vote prompt for %s not delivered to %s: %s", ref, channel_id, exc)
                    continue
                if message_id is None:
                    log.warning("Group %s returned no message id for %s", channel_id, ref)
                    continue
                session.channels.add(channel_id)
                self.table.bind(session, message_id)

            if not session.prompt_message_ids:
                self.table.release(ref)
                log.error("Vote prompt for %s reached no group; session dropped", ref)
                return None

            log.info(
                "Group vote for %s opened in %d group(s), deadline %s",
                ref,
                len(session.channels),
                session.deadline_at.isoformat(),
            )
            return session

    async def record_reply(self, event: ChatReplyEvent) -> bool:
        choice = parse_vote_text(event.text)
        if choice is None:
            return False
        session = self.table.route(event.reply_to_message_id)
        if session is None:
            log.debug("Reply to untracked message %s ignored", event.reply_to_message_id)
            return False
        async with self._locks.hold(session.ref):
            recorded = session.record(event.voter_id, choice)
        if recorded:
            log.info("Vote on %s: %s -> %s", session.ref, event.voter_id, choice)
        return recorded

    async def sweep(self, now: datetime | None = None) -> list[Decision]:
        """Extend or finalize every session whose deadline has passed."""

        current = now or self._clock()
        decisions: list[Decision] = []
        for session in self.table.due(current):
            async with self._locks.hold(session.ref):
                if self.table.get(session.ref) is not session:
                    continue
                settled = self._gate.decided(session.ref)
                if settled is not None:
                    # another strategy already published; stay silent in the groups
                    session.finalized = True
                    self.table.release(session.ref)
                    log.info("Group vote for %s closed; already decided (%s)", session.ref, settled)
                    continue
                step = session.advance(current, self._config.vote_extension)
                if step is SessionStep.EXTEND:
                    await self._announce_extension(session)
                    continue
                if step is SessionStep.WAIT:
                    continue

                self.table.release(session.ref)
                decision = session.decision()
                report = await self._gate.emit(decision)
                if report is None:
                    log.info("Group result for %s not announced; it was not published", session.ref)
                    continue
                await self._announce_result(session, decision, report)
                decisions.append(decision)
        return decisions

    async def _build_prompt(self, submission: Submission) -> list[Segment]:
        ref = submission.ref
        minutes = int(self._config.vote_deadline.total_seconds() // 60)
        segments: list[Segment] = [
            TextSegment(f"New photo submission: issue #{ref.number}, please review\n"),
            TextSegment(f"{self._issue_url(ref)}\n\n"),
        ]
        if submission.bin:
            segments.append(TextSegment(f"BIN: {submission.bin}\n"))

        urls = submission.candidate_urls[: self._config.prompt_image_limit]
        downloads = await fetch_images(self._images, urls)
        for url, data in zip(urls, downloads, strict=True):
            segments.append(TextSegment(f"[{url} ]\n"))
            if data:
                segments.append(ImageSegment(data))
            else:
                segments.append(TextSegment("(image download failed)\n"))

        segments.append(
            TextSegment(
                f"\nReply to this message with approve or reject within {minutes} minutes "
                "(only replies to this message are counted)."
            )
        )
        return segments

    async def _announce_extension(self, session: VoteSession) -> None:
        channel_id = min(session.channels, default=None)
        if channel_id is None:
            return
        minutes = int(self._config.vote_extension.total_seconds() // 60)
        text = f"Vote on issue #{session.ref.number} is tied or empty; extended by {minutes} minutes."
        try:
            await self._chat.broadcast(channel_id, text)
        except AdapterUnavailable as exc:
            log.warning("Extension notice for %s failed: %s", session.ref, exc)
        log.info("Group vote for %s extended until %s", session.ref, session.deadline_at)

    async def _announce_result(
        self,
        session: VoteSession,
        decision: Decision,
        report: PublishReport,
    ) -> None:
        totals = decision.totals or VoteTotals()
        stored_bin = decision.bin if report.stored else None
        text = "\n".join(
            (
                f"Voting finished for issue #{session.ref.number}. BIN stored: {stored_bin or 'none'}",
                f"Result: {'approved' if decision.approved else 'rejected'}",
                f"Total={totals.total}",
                f"Reject={totals.reject}",
                f"Approve={totals.approve}",
            )
        )
        for channel_id in sorted(session.channels):
            try:
                await self._chat.broadcast(channel_id, text)
            except AdapterUnavailable as exc:
                log.warning("Result for %s not delivered to %s: %s", session.ref, channel_id, exc)
