"""Parsing BINs and candidate image URLs out of submission text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from collections.abc import Iterable

_BIN_PATTERN = re.compile(r"\b(\d{6})\b")
_ATTACHMENT_PATTERN = re.compile(r"""src=["'](https?://[^"']+)["']""", re.IGNORECASE)
_TEXT_URL_PATTERN = re.compile(r"""https?://[^\s)\]">]+""", re.IGNORECASE)
_TRAILING_JUNK = re.compile(r"""[)\]>'".,;]+$""")
_ISSUE_PATH = re.compile(r"/(issues|pull)/", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ParsedSubmission:
    bin: str | None
    attachment_urls: tuple[str, ...]
    text_urls: tuple[str, ...]

    @property
    def candidate_urls(self) -> tuple[str, ...]:
        return self.attachment_urls + self.text_urls


def sanitize_url(raw: str) -> str | None:
    cleaned = _TRAILING_JUNK.sub("", raw.strip())
    return cleaned or None


def normalize_url(url: str) -> str:
    """Deduplication key: lowercase scheme, host and path."""

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url.strip().lower()
    if not parts.scheme or not parts.netloc:
        return url.strip().lower()
    return f"{parts.scheme}://{parts.netloc}{parts.path}".lower()


def dedupe_urls(urls: Iterable[str], *, exclude: Iterable[str] = ()) -> tuple[str, ...]:
    """Drop repeated URLs by normalized key, keeping first-seen order."""

    seen = {normalize_url(url) for url in exclude}
    result: list[str] = []
    for url in urls:
        key = normalize_url(url)
        if key in seen:
            continue
        seen.add(key)
        result.append(url)
    return tuple(result)


def is_tracker_issue_link(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    host = (parts.hostname or "").lower()
    if host != "github.com" and not host.endswith(".github.com"):
        return False
    return _ISSUE_PATH.search(parts.path) is not None


def parse_submission_text(text: str | None) -> ParsedSubmission:
    if not text:
        return ParsedSubmission(bin=None, attachment_urls=(), text_urls=())

    bin_match = _BIN_PATTERN.search(text)
    attachments = [
        url
        for url in (sanitize_url(match.group(1)) for match in _ATTACHMENT_PATTERN.finditer(text))
        if url
    ]
    text_links = [
        url
        for url in (sanitize_url(match.group(0)) for match in _TEXT_URL_PATTERN.finditer(text))
        if url and not is_tracker_issue_link(url)
    ]

    attachment_urls = dedupe_urls(attachments)
    text_urls = dedupe_urls(text_links, exclude=attachment_urls)
    return ParsedSubmission(
        bin=bin_match.group(1) if bin_match else None,
        attachment_urls=attachment_urls,
        text_urls=text_urls,
    )


def host_label(url: str) -> str:
    try:
        return urlsplit(url).netloc or "unknown"
    except ValueError:
        return "unknown"
