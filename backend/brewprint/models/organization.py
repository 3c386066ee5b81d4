"""
Brewprint Backend — Folder, Tag and Membership Models
======================================================

What:  Organizational entities and the two join relations linking them
       to recipes.

Membership shape:
    folder_memberships: (folder_id, recipe_id, added_at)
    tag_memberships:    (recipe_id, tag_name, created_at)

Tag membership references the tag by name, not by id, matching the
exported snapshot format.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from brewprint.database import Base
from brewprint.models.base import OwnedRecordMixin, utcnow


class Folder(OwnedRecordMixin, Base):
    __tablename__ = "folders"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True, comment="Enclosing folder (nested folders)",
    )
    color: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )


class Tag(OwnedRecordMixin, Base):
    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(60), nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_tags_owner_name"),
    )


class FolderMembership(OwnedRecordMixin, Base):
    __tablename__ = "folder_memberships"

    folder_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    recipe_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("folder_id", "recipe_id", name="uq_folder_memberships_pair"),
    )


class TagMembership(OwnedRecordMixin, Base):
    __tablename__ = "tag_memberships"

    recipe_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    tag_name: Mapped[str] = mapped_column(String(60), nullable=False)

    __table_args__ = (
        UniqueConstraint("recipe_id", "tag_name", name="uq_tag_memberships_pair"),
    )
