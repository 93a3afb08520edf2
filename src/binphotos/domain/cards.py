"""Plain-text rendering of card metadata for chat replies and admin notices."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .model import CardMetadata

EMPTY: Final[str] = "---"

_FIELDS: Final[tuple[tuple[str, str], ...]] = (
    ("Brand", "brand"),
    ("Type", "type"),
    ("Category", "category"),
    ("Issuer", "issuer"),
    ("Country", "country"),
    ("Issuer phone", "issuer_phone"),
    ("Issuer URL", "issuer_url"),
)


def display(value: object) -> str:
    if value is None:
        return EMPTY
    text = str(value).strip()
    return text or EMPTY


def format_card_summary(
    metadata: CardMetadata | None,
    bin_: str,
    heading: str | None = None,
) -> str:
    """Render one ``Label: value`` line per field; missing values become ``---``."""

    lines: list[str] = []
    if heading:
        lines.append(heading)
    lines.append(f"BIN: {display(metadata.bin if metadata and metadata.bin else bin_)}")
    for label, attribute in _FIELDS:
        value = getattr(metadata, attribute) if metadata is not None else None
        lines.append(f"{label}: {display(value)}")
    return "\n".join(lines)
