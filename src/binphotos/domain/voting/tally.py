"""Vote counting and option selection shared by the strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from binphotos.domain.model import REJECT_OPTION, Outcome, VoteChoice, VoteTotals
from binphotos.domain.urls import dedupe_urls

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

_KEYWORDS: dict[str, VoteChoice] = {
    "approve": VoteChoice.APPROVE,
    "通过": VoteChoice.APPROVE,
    "reject": VoteChoice.REJECT,
    "不通过": VoteChoice.REJECT,
}


def parse_vote_text(text: str) -> VoteChoice | None:
    """Map a chat reply to a vote; anything but an exact keyword is ignored."""

    compact = "".join(text.split()).lower()
    return _KEYWORDS.get(compact)


def tally(votes: Mapping[str, VoteChoice]) -> VoteTotals:
    approve = sum(1 for choice in votes.values() if choice is VoteChoice.APPROVE)
    reject = sum(1 for choice in votes.values() if choice is VoteChoice.REJECT)
    return VoteTotals(approve=approve, reject=reject)


def chosen_from_counts(voter_counts: Iterable[int]) -> tuple[int, ...]:
    return tuple(index for index, count in enumerate(voter_counts) if count > 0)


def select_options(
    options: Sequence[str],
    chosen_indices: Iterable[int],
) -> tuple[Outcome, tuple[str, ...]]:
    """Resolve chosen option indices into an outcome and the URLs to keep.

    Out-of-range indices are ignored. Choosing the ``REJECT`` sentinel, or
    choosing nothing usable, rejects the submission and keeps no URLs.
    """

    indices = sorted({index for index in chosen_indices if 0 <= index < len(options)})
    picked = [options[index] for index in indices]
    if not picked or REJECT_OPTION in picked:
        return Outcome.REJECTED, ()
    return Outcome.APPROVED, dedupe_urls(picked)
