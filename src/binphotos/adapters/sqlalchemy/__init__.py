"""SQLAlchemy adapter package for binphotos."""

from __future__ import annotations

from .mappings import create_all_tables, metadata
from .repositories import (
    SqlAlchemyApprovalTokenRepository,
    SqlAlchemyBinPhotoRepository,
    SqlAlchemyNotificationMarkerRepository,
    SqlAlchemyPollRecordRepository,
    SqlAlchemySeenIssueRepository,
)

__all__ = [
    "SqlAlchemyApprovalTokenRepository",
    "SqlAlchemyBinPhotoRepository",
    "SqlAlchemyNotificationMarkerRepository",
    "SqlAlchemyPollRecordRepository",
    "SqlAlchemySeenIssueRepository",
    "create_all_tables",
    "metadata",
]
