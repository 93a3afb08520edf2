"""Best-effort image downloads for prompts, previews and query replies."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from binphotos.domain.errors import AdapterUnavailable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from binphotos.domain.ports.messaging import ImageSource

log = getLogger(__name__)


async def fetch_images(source: ImageSource | None, urls: Sequence[str]) -> list[bytes | None]:
    """Download ``urls`` concurrently; failed or empty downloads come back as None."""

    if source is None or not urls:
        return [None] * len(urls)

    async def fetch_one(url: str) -> bytes | None:
        try:
            data = await source.fetch_image(url)
        except AdapterUnavailable as exc:
            log.warning("Image download failed for %s: %s", url, exc)
            return None
        return data or None

    return list(await asyncio.gather(*(fetch_one(url) for url in urls)))
