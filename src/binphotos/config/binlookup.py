"""Card-metadata lookup and image download configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env
from .http_resilience import ResilienceConfig

DEFAULT_BIN_LOOKUP_URL = "https://lingchenxi.top/Bincheck/banklist.php"
USER_AGENT = "bin-to-photos/1.0"


@dataclass(frozen=True, slots=True)
class BinLookupConfig:
    lookup_url: str
    metadata: ResilienceConfig
    images: ResilienceConfig


def get_binlookup_config() -> BinLookupConfig:
    return BinLookupConfig(
        lookup_url=optional_env("BIN_LOOKUP_URL", DEFAULT_BIN_LOOKUP_URL)
        or DEFAULT_BIN_LOOKUP_URL,
        metadata=ResilienceConfig(
            name="binlookup",
            timeout_seconds=15.0,
            default_headers={"User-Agent": USER_AGENT},
        ),
        images=ResilienceConfig(
            name="images",
            timeout_seconds=20.0,
            follow_redirects=True,
            max_redirects=5,
            default_headers={"User-Agent": USER_AGENT, "Accept": "image/*"},
        ),
    )
