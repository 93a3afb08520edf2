"""Error taxonomy shared by the engine, the publisher and the adapters.

None of these are fatal: callers recover at the point of call and log. The
voting state machines themselves never raise them.
"""

from __future__ import annotations


class BinPhotosError(RuntimeError):
    """Base class for recoverable subsystem errors."""


class AdapterUnavailable(BinPhotosError):
    """An external system could not be reached or refused the request."""


class MalformedEvent(BinPhotosError):
    """An inbound vote, poll or callback payload could not be decoded."""


class UnknownKey(BinPhotosError):
    """An event referenced a session, poll or token that does not exist."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"Unknown {kind}: {key}")
        self.kind = kind
        self.key = key


class StorageFailure(BinPhotosError):
    """A persistence call failed."""
