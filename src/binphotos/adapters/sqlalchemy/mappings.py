"""SQLAlchemy Core tables for submission, vote and photo state."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class UrlListType(TypeDecorator[tuple[str, ...]]):
    """Ordered URL list stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        return tuple(str(item) for item in cast(list[object], loaded))


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "pk": "pk_%(table_name)s",
    }
)

seen_issue_table = Table(
    "seen_issue",
    metadata,
    Column("owner", String, nullable=False),
    Column("repo", String, nullable=False),
    Column("number", Integer, nullable=False),
    Column("title", String, nullable=True),
    Column("body", Text, nullable=True),
    Column("state", String, nullable=True),
    Column("bin", String(6), nullable=True),
    Column("candidate_urls", UrlListType, nullable=False, default=()),
    Column("created_at", UTCDateTime, nullable=True),
    Column("updated_at", UTCDateTime, nullable=True),
    Column("seen_at", UTCDateTime, nullable=False),
    # one-way: set once when the submission's single decision is taken
    Column("decided_outcome", String, nullable=True),
    Column("decided_at", UTCDateTime, nullable=True),
    PrimaryKeyConstraint("owner", "repo", "number"),
)

poll_record_table = Table(
    "poll_record",
    metadata,
    Column("poll_id", String, primary_key=True),
    Column("owner", String, nullable=False),
    Column("repo", String, nullable=False),
    Column("number", Integer, nullable=False),
    Column("bin", String(6), nullable=True),
    Column("channel_id", String, nullable=False),
    Column("prompt_message_id", Integer, nullable=False),
    Column("options", UrlListType, nullable=False),
    Column("finalized", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_poll_record_submission", "owner", "repo", "number"),
)

approval_token_table = Table(
    "approval_token",
    metadata,
    Column("token", String, primary_key=True),
    Column("owner", String, nullable=False),
    Column("repo", String, nullable=False),
    Column("number", Integer, nullable=False),
    Column("bin", String(6), nullable=True),
    Column("url", Text, nullable=False),
    Column("channel_id", String, nullable=False),
    Column("message_id", Integer, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
)

bin_photo_table = Table(
    "bin_photo",
    metadata,
    Column("bin", String(6), primary_key=True),
    Column("urls", UrlListType, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
)

admin_notification_table = Table(
    "admin_notification",
    metadata,
    Column("bin", String(6), primary_key=True),
    Column("notified_at", UTCDateTime, nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
