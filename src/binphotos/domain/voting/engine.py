"""Route submissions to strategies and inbound events to the strategy that owns them."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.events import (
    CallbackEvent,
    ChatReplyEvent,
    PollAnswerEvent,
    PollClosedEvent,
)
from binphotos.domain.model import StrategyKind

if TYPE_CHECKING:
    from datetime import datetime

    from binphotos.domain.events import VoteEvent
    from binphotos.domain.model import Decision, Submission

    from .group_chat import GroupChatVoting
    from .poll import PollVoting
    from .single_link import SingleLinkApproval

log = getLogger(__name__)


class ReconciliationEngine:
    """Start the strategies a submission qualifies for and dispatch votes to them."""

    def __init__(
        self,
        *,
        group_chat: GroupChatVoting | None = None,
        polls: PollVoting | None = None,
        single_link: SingleLinkApproval | None = None,
    ) -> None:
        self.group_chat = group_chat
        self.polls = polls
        self.single_link = single_link

    def strategies_for(self, submission: Submission) -> list[StrategyKind]:
        if not submission.bin or not submission.candidate_urls:
            return []
        if len(submission.candidate_urls) == 1:
            if self.single_link is not None and self.single_link.enabled:
                return [StrategyKind.SINGLE_LINK]
            # without an operator channel a lone photo still goes to the groups
            if self.group_chat is not None and self.group_chat.enabled:
                return [StrategyKind.GROUP_CHAT]
            return []

        kinds: list[StrategyKind] = []
        if self.polls is not None and self.polls.enabled:
            kinds.append(StrategyKind.POLL)
        if self.group_chat is not None and self.group_chat.enabled:
            kinds.append(StrategyKind.GROUP_CHAT)
        return kinds

    async def start(self, submission: Submission) -> list[StrategyKind]:
        kinds = self.strategies_for(submission)
        if not kinds:
            log.info(
                "No strategy for %s (bin=%s, urls=%d)",
                submission.ref,
                submission.bin,
                len(submission.candidate_urls),
            )
            return []

        started: list[StrategyKind] = []
        for kind in kinds:
            match kind:
                case StrategyKind.SINGLE_LINK if self.single_link is not None:
                    ok = await self.single_link.start(submission) is not None
                case StrategyKind.POLL if self.polls is not None:
                    ok = bool(await self.polls.start(submission))
                case StrategyKind.GROUP_CHAT if self.group_chat is not None:
                    ok = await self.group_chat.start(submission) is not None
                case _:
                    ok = False
            if ok:
                started.append(kind)
        log.info("Started %s for %s", [str(kind) for kind in started], submission.ref)
        return started

    async def handle(self, event: VoteEvent) -> Decision | None:
        if isinstance(event, ChatReplyEvent):
            if self.group_chat is not None:
                await self.group_chat.record_reply(event)
            return None
        if isinstance(event, PollAnswerEvent):
            return await self.polls.on_poll_answer(event) if self.polls is not None else None
        if isinstance(event, PollClosedEvent):
            return await self.polls.on_poll_closed(event) if self.polls is not None else None
        if isinstance(event, CallbackEvent):
            if self.single_link is None:
                return None
            return await self.single_link.on_callback(event)
        log.debug("Unhandled event %r", event)
        return None

    async def sweep(self, now: datetime | None = None) -> list[Decision]:
        if self.group_chat is None:
            return []
        return await self.group_chat.sweep(now)
