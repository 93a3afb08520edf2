"""Domain port definitions for adapters."""

from __future__ import annotations

from .messaging import (
    AdminNotifier,
    CardLookup,
    ChatContent,
    DirectReply,
    GroupChat,
    ImageSegment,
    ImageSource,
    PollBot,
    Segment,
    SentPoll,
    TextSegment,
)
from .storage import (
    ApprovalTokenRepository,
    BinPhotoRepository,
    NotificationMarkerRepository,
    PollRecordRepository,
    SeenIssueRepository,
    StorageRepositories,
    StorageUnitOfWork,
    UnitOfWorkFactory,
)
from .tracker import IssueTracker, TrackerIssue

__all__ = [
    "AdminNotifier",
    "ApprovalTokenRepository",
    "BinPhotoRepository",
    "CardLookup",
    "ChatContent",
    "DirectReply",
    "GroupChat",
    "ImageSegment",
    "ImageSource",
    "IssueTracker",
    "NotificationMarkerRepository",
    "PollBot",
    "PollRecordRepository",
    "Segment",
    "SeenIssueRepository",
    "SentPoll",
    "StorageRepositories",
    "StorageUnitOfWork",
    "TextSegment",
    "TrackerIssue",
    "UnitOfWorkFactory",
]
