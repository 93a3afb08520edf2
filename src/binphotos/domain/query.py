"""The ``bin <digits>`` chat command: card metadata plus the stored photos."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

from .cards import format_card_summary
from .errors import BinPhotosError, StorageFailure
from .images import fetch_images
from .ports.messaging import ImageSegment, Segment, TextSegment
from .urls import dedupe_urls

if TYPE_CHECKING:
    from .events import BinQueryEvent
    from .ports.messaging import CardLookup, ChatContent, DirectReply, ImageSource
    from .ports.storage import UnitOfWorkFactory

log = getLogger(__name__)

_QUERY_PATTERN = re.compile(r"^\s*bin\s+(\d+)\s*$", re.IGNORECASE)


def parse_bin_query(text: str) -> str | None:
    match = _QUERY_PATTERN.match(text)
    return match.group(1) if match else None


class BinQueryService:
    def __init__(
        self,
        *,
        cards: CardLookup,
        replies: DirectReply,
        unit_of_work_factory: UnitOfWorkFactory,
        images: ImageSource | None = None,
        report_url: str | None = None,
        image_limit: int = 15,
    ) -> None:
        self._cards = cards
        self._replies = replies
        self._uow_factory = unit_of_work_factory
        self._images = images
        self._report_url = report_url
        self._image_limit = image_limit

    async def answer(self, event: BinQueryEvent) -> ChatContent:
        try:
            metadata = await self._cards.fetch_metadata(event.bin)
        except BinPhotosError as exc:
            log.warning("Lookup for BIN %s failed: %s", event.bin, exc)
            return f"Lookup failed: {exc}"

        text = format_card_summary(metadata, event.bin)
        urls = self._stored_urls(event.bin)
        if not urls:
            if self._report_url:
                text += f"\n\nNo card photo yet? Report one here:\n{self._report_url}"
            return text

        downloads = await fetch_images(self._images, urls[: self._image_limit])
        images = [data for data in downloads if data]
        if not images:
            return text
        segments: list[Segment] = [TextSegment(text)]
        segments.extend(ImageSegment(data) for data in images)
        return segments

    async def handle(self, event: BinQueryEvent) -> None:
        content = await self.answer(event)
        try:
            await self._replies.reply(user_id=event.user_id, group_id=event.group_id, content=content)
        except BinPhotosError as exc:
            log.warning("Reply to BIN query %s failed: %s", event.bin, exc)

    def _stored_urls(self, bin_: str) -> tuple[str, ...]:
        try:
            with self._uow_factory() as uow:
                urls = uow.repositories.bin_photos.get_urls(bin_)
        except StorageFailure:
            log.exception("Reading photos for BIN %s failed", bin_)
            return ()
        return dedupe_urls(urls)
