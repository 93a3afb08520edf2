"""Long-poll ``getUpdates`` and feed decoded events to a handler."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.errors import AdapterUnavailable, MalformedEvent

from .translator import decode_update

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from binphotos.domain.events import VoteEvent

    from .client import TelegramBot

log = getLogger(__name__)


class TelegramUpdatePoller:
    def __init__(
        self,
        *,
        bot: TelegramBot,
        handler: Callable[[VoteEvent], Awaitable[object]],
        interval_seconds: float = 3.0,
    ) -> None:
        self._bot = bot
        self._handler = handler
        self._interval = interval_seconds
        self.offset: int | None = None

    async def poll_once(self) -> int:
        """Fetch one batch of updates and dispatch them; return how many events were handled."""

        try:
            updates = await self._bot.get_updates(self.offset)
        except AdapterUnavailable as exc:
            log.warning("getUpdates failed: %s", exc)
            return 0

        handled = 0
        for update in updates:
            # acknowledge before handling so a failing update is not redelivered forever
            self.offset = update.update_id + 1
            try:
                event = decode_update(update)
            except MalformedEvent as exc:
                log.warning("Discarding update %s: %s", update.update_id, exc)
                continue
            if event is None:
                continue
            log.debug("Telegram update %s -> %s", update.update_id, type(event).__name__)
            try:
                await self._handler(event)
            except Exception:
                log.exception("Handling update %s failed", update.update_id)
                continue
            handled += 1
        return handled

    async def run(self) -> None:
        log.info("Telegram update loop started")
        while True:
            await self.poll_once()
            await asyncio.sleep(self._interval)
