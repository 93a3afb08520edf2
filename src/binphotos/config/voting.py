"""Voting and polling cadence defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_VOTE_DEADLINE = timedelta(minutes=15)
DEFAULT_VOTE_EXTENSION = timedelta(minutes=5)
DEFAULT_SWEEP_INTERVAL_SECONDS = 5.0
DEFAULT_INGEST_INTERVAL_SECONDS = 10.0
DEFAULT_UPDATE_POLL_INTERVAL_SECONDS = 3.0
# Telegram polls carry at most 10 options; one slot is reserved for REJECT.
DEFAULT_MAX_POLL_URLS = 9
DEFAULT_PROMPT_IMAGE_LIMIT = 15
DEFAULT_PREVIEW_IMAGE_LIMIT = 10


@dataclass(frozen=True, slots=True)
class VotingConfig:
    vote_deadline: timedelta = DEFAULT_VOTE_DEADLINE
    vote_extension: timedelta = DEFAULT_VOTE_EXTENSION
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    ingest_interval_seconds: float = DEFAULT_INGEST_INTERVAL_SECONDS
    update_poll_interval_seconds: float = DEFAULT_UPDATE_POLL_INTERVAL_SECONDS
    max_poll_urls: int = DEFAULT_MAX_POLL_URLS
    prompt_image_limit: int = DEFAULT_PROMPT_IMAGE_LIMIT
    preview_image_limit: int = DEFAULT_PREVIEW_IMAGE_LIMIT


def get_voting_config() -> VotingConfig:
    return VotingConfig()
