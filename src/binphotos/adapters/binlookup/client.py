"""Card-metadata lookups and image downloads over HTTP."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from binphotos.adapters.http_resilience import ResilientClient
from binphotos.domain.errors import AdapterUnavailable
from binphotos.domain.model import CardMetadata

from .schema import CardPayload

if TYPE_CHECKING:
    from collections.abc import Callable

    from binphotos.config.binlookup import BinLookupConfig
    from binphotos.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class BinLookupError(AdapterUnavailable):
    """Raised when metadata or an image cannot be fetched."""


def to_metadata(payload: CardPayload, bin_: str) -> CardMetadata:
    return CardMetadata(
        bin=payload.bin or bin_,
        brand=payload.brand,
        type=payload.type,
        category=payload.category,
        issuer=payload.issuer,
        country=payload.country,
        issuer_phone=payload.issuer_phone,
        issuer_url=payload.issuer_url,
    )


class BinLookupClient:
    def __init__(
        self,
        *,
        config: BinLookupConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient

    async def fetch_metadata(self, bin_: str) -> CardMetadata:
        try:
            async with self._client_factory(self._config.metadata) as client:
                response = await client.get(self._config.lookup_url, params={"bin": bin_})
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise BinLookupError(f"Card lookup for {bin_} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            log.warning("Card lookup for %s returned non-JSON content", bin_)
            return CardMetadata(bin=bin_)
        if not isinstance(payload, dict):
            return CardMetadata(bin=bin_)
        try:
            return to_metadata(CardPayload.model_validate(payload), bin_)
        except ValidationError as exc:
            raise BinLookupError(f"Unexpected card lookup payload for {bin_}") from exc

    async def fetch_image(self, url: str) -> bytes:
        try:
            async with self._client_factory(self._config.images) as client:
                response = await client.get(url)
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise BinLookupError(f"Image download from {url} failed: {exc}") from exc
        return response.content
