"""Apply a Decision's side effects as an ordered pipeline of best-effort steps."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .cards import format_card_summary
from .errors import BinPhotosError, StorageFailure
from .images import fetch_images

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .model import CardMetadata, Decision
    from .ports.messaging import AdminNotifier, CardLookup, ImageSource
    from .ports.storage import UnitOfWorkFactory
    from .ports.tracker import IssueTracker

log = getLogger(__name__)

NOTIFY_HEADING = "New BIN stored:"


@dataclass(frozen=True, slots=True)
class PublishReport:
    """Which steps of :meth:`OutcomePublisher.publish` took effect."""

    stored: bool = False
    first_insertion: bool = False
    commented: bool = False
    closed: bool = False
    notified: bool = False


def render_comment(decision: Decision) -> str:
    stored = decision.bin if decision.approved and decision.selected_urls else None
    lines = [
        f"Review finished via {decision.strategy.replace('_', ' ')}.",
        f"BIN stored: {stored or 'none'}",
        f"Result: {decision.outcome}",
        f"Selected links: {len(decision.selected_urls)}",
    ]
    if decision.totals is not None:
        totals = decision.totals
        lines.append(
            f"Total={totals.total} Reject={totals.reject} Approve={totals.approve}"
        )
    return "\n".join(lines)


class OutcomePublisher:
    """Persist, comment, close and notify; no step failure reaches the caller."""

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        tracker: IssueTracker | None = None,
        notifier: AdminNotifier | None = None,
        admin_channels: Sequence[int] = (),
        cards: CardLookup | None = None,
        images: ImageSource | None = None,
        preview_limit: int = 10,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._tracker = tracker
        self._notifier = notifier
        self._admin_channels = tuple(admin_channels)
        self._cards = cards
        self._images = images
        self._preview_limit = preview_limit

    async def publish(self, decision: Decision) -> PublishReport:
        stored, first_insertion = self._persist(decision)
        commented = await self._comment(decision)
        closed = await self._close(decision)
        notified = False
        if first_insertion and decision.bin is not None:
            notified = await self._notify(decision.bin, decision.selected_urls)
        report = PublishReport(
            stored=stored,
            first_insertion=first_insertion,
            commented=commented,
            closed=closed,
            notified=notified,
        )
        log.info("Published %s: %s", decision.submission, report)
        return report

    def _persist(self, decision: Decision) -> tuple[bool, bool]:
        if not decision.approved or not decision.selected_urls:
            return False, False
        if decision.bin is None:
            log.warning("Approved decision for %s carries no BIN; nothing stored", decision.submission)
            return False, False
        try:
            with self._uow_factory() as uow:
                result = uow.repositories.bin_photos.set_approved_urls(
                    decision.bin, decision.selected_urls
                )
                uow.commit()
        except StorageFailure:
            log.exception("Storing approved URLs for BIN %s failed", decision.bin)
            return False, False
        log.info(
            "Stored %d url(s) for BIN %s (first=%s)",
            len(decision.selected_urls),
            decision.bin,
            result.first_insertion,
        )
        return result.ok, result.ok and result.first_insertion

    async def _comment(self, decision: Decision) -> bool:
        if self._tracker is None:
            return False
        try:
            await self._tracker.comment(decision.submission.number, render_comment(decision))
        except BinPhotosError as exc:
            log.warning("Comment on %s failed: %s", decision.submission, exc)
            return False
        return True

    async def _close(self, decision: Decision) -> bool:
        if self._tracker is None:
            return False
        try:
            await self._tracker.close_issue(decision.submission.number)
        except BinPhotosError as exc:
            log.warning("Closing %s failed: %s", decision.submission, exc)
            return False
        return True

    async def _notify(self, bin_: str, urls: Sequence[str]) -> bool:
        if self._notifier is None or not self._admin_channels:
            return False
        try:
            with self._uow_factory() as uow:
                marked = uow.repositories.notifications.try_mark_notified(bin_)
                uow.commit()
        except StorageFailure:
            log.exception("Notification marker for BIN %s failed; not notifying", bin_)
            return False
        if not marked:
            log.info("BIN %s already announced; skipping notification", bin_)
            return False

        text = format_card_summary(await self._lookup(bin_), bin_, heading=NOTIFY_HEADING)
        previews = [
            data
            for data in await fetch_images(self._images, urls[: self._preview_limit])
            if data
        ]
        delivered = False
        for channel_id in self._admin_channels:
            try:
                await self._notifier.notify(channel_id, text, previews)
            except BinPhotosError as exc:
                log.warning("Admin notification to %s failed: %s", channel_id, exc)
                continue
            delivered = True
        return delivered

    async def _lookup(self, bin_: str) -> CardMetadata | None:
        if self._cards is None:
            return None
        try:
            return await self._cards.fetch_metadata(bin_)
        except BinPhotosError as exc:
            log.warning("Card metadata for BIN %s unavailable: %s", bin_, exc)
            return None
