"""Single-link approval: one candidate URL, one inline yes/no from the operator."""

from __future__ import annotations

import secrets
from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.errors import AdapterUnavailable, StorageFailure, UnknownKey
from binphotos.domain.model import ApprovalToken, Decision, Outcome, StrategyKind, VoteChoice

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.domain.events import CallbackEvent
    from binphotos.domain.model import Submission, SubmissionRef
    from binphotos.domain.ports.messaging import PollBot
    from binphotos.domain.ports.storage import UnitOfWorkFactory

    from .gate import DecisionGate
    from .locks import KeyedLocks

log = getLogger(__name__)


def _new_token() -> str:
    return secrets.token_urlsafe(16)


class SingleLinkApproval:
    def __init__(
        self,
        *,
        bot: PollBot,
        channel_id: str | None,
        unit_of_work_factory: UnitOfWorkFactory,
        gate: DecisionGate,
        locks: KeyedLocks[SubmissionRef],
        issue_url: Callable[[SubmissionRef], str],
        operator_id: str | None = None,
        token_factory: Callable[[], str] = _new_token,
    ) -> None:
        self._bot = bot
        self._channel_id = channel_id
        self._uow_factory = unit_of_work_factory
        self._gate = gate
        self._locks = locks
        self._issue_url = issue_url
        self._operator_id = operator_id
        self._token_factory = token_factory

    @property
    def enabled(self) -> bool:
        return self._channel_id is not None

    async def start(self, submission: Submission) -> ApprovalToken | None:
        if self._channel_id is None or not submission.candidate_urls:
            return None
        ref = submission.ref
        url = submission.candidate_urls[0]
        token_value = self._token_factory()
        content = "\n".join(
            (
                f"Issue #{ref.number}: single photo for BIN {submission.bin or '?'}",
                self._issue_url(ref),
                url,
                "Approve this photo?",
            )
        )

        async with self._locks.hold(ref):
            try:
                message_id = await self._bot.send_inline_approval(
                    self._channel_id, content, token_value
                )
            except AdapterUnavailable as exc:
                log.warning("Approval request for %s not sent: %s", ref, exc)
                return None

            token = ApprovalToken(
                token=token_value,
                submission=ref,
                bin=submission.bin,
                url=url,
                channel_id=self._channel_id,
                message_id=message_id,
            )
            try:
                with self._uow_factory() as uow:
                    uow.repositories.tokens.put(token)
                    uow.commit()
            except StorageFailure:
                log.exception("Approval token for %s could not be persisted", ref)
                return None

        log.info("Single-link approval requested for %s", ref)
        return token

    async def on_callback(self, event: CallbackEvent) -> Decision | None:
        if self._operator_id is not None and event.voter_id != self._operator_id:
            log.warning("Callback from non-operator %s ignored", event.voter_id)
            await self._answer(event, "Not allowed")
            return None

        try:
            token = self._load(event.token)
        except UnknownKey as exc:
            log.debug("%s; callback ignored", exc)
            token = None
        if token is None:
            await self._answer(event, "Already handled")
            return None

        async with self._locks.hold(token.submission):
            try:
                with self._uow_factory() as uow:
                    consumed = uow.repositories.tokens.delete(event.token)
                    uow.commit()
            except StorageFailure:
                log.exception("Could not consume approval token for %s", token.submission)
                return None
            if not consumed:
                await self._answer(event, "Already handled")
                return None

            approved = event.choice is VoteChoice.APPROVE
            decision = Decision(
                submission=token.submission,
                bin=token.bin,
                outcome=Outcome.APPROVED if approved else Outcome.REJECTED,
                strategy=StrategyKind.SINGLE_LINK,
                selected_urls=(token.url,) if approved else (),
            )
            await self._answer(event, "Approved" if approved else "Rejected")
            await self._gate.emit(decision)
            return decision

    def _load(self, token: str) -> ApprovalToken | None:
        try:
            with self._uow_factory() as uow:
                record = uow.repositories.tokens.get(token)
        except StorageFailure:
            log.exception("Could not load approval token")
            return None
        if record is None:
            raise UnknownKey("approval token", token)
        return record

    async def _answer(self, event: CallbackEvent, text: str) -> None:
        if event.callback_id is None:
            return
        try:
            await self._bot.answer_callback(event.callback_id, text)
        except AdapterUnavailable as exc:
            log.warning("answerCallbackQuery failed: %s", exc)
