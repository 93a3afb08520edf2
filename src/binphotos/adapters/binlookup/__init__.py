"""Public interface for the card-metadata and image adapter."""

from __future__ import annotations

from .client import BinLookupClient, BinLookupError, to_metadata
from .schema import CardPayload

__all__ = ["BinLookupClient", "BinLookupError", "CardPayload", "to_metadata"]
