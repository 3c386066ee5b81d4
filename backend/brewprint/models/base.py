"""
Brewprint Backend — Shared Columns for Owned Records
=====================================================

What:  Mixin that gives every table the columns the RecordStore manages:
       identity, ownership, and creation/update timestamps.
How:   Column defaults assign a fresh UUID string and UTC timestamps on
       insert, so callers (and SnapshotRestorer) never supply them.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite for local runs)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class OwnedRecordMixin:
    """
    Identity + ownership + timestamps, shared by all nine collections.

    Ids are UUID strings rather than native UUID columns so that snapshot
    records, HTTP payloads, and reference fields (parent_id, bean_id, ...)
    all carry the same plain string form.
    """

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )

    owner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Opaque identity of the owning user",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict of column values, the record shape the RecordStore returns."""
        return {column.key: getattr(self, column.key) for column in self.__table__.columns}

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, owner_id='{self.owner_id}')>"
