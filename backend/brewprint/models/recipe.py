"""
Brewprint Backend — Recipe SQLAlchemy Model
============================================

What:  ORM model for the `recipes` table (the app's "brewprints").
Who:   Written and read through the RecordStore by RecipeService,
       ResultRecorder, SnapshotBuilder and SnapshotRestorer.

Table Design:
    - parameters / steps / metrics: JSON documents, validated by the
      Pydantic schemas in brewprint.schemas.recipe before they get here
    - parent_id: plain id column with NO foreign key. Children are only ever
      created from an existing row, so no cycles form; deleting a parent
      leaves its children pointing at a missing id.
    - bean_id / grinder_id / brewer_id / water_profile_id: plain id columns
      as well; the store is accessed through simple predicate queries only
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from brewprint.database import Base
from brewprint.models.base import JSONType, OwnedRecordMixin


class Recipe(OwnedRecordMixin, Base):
    """
    A versioned brewing procedure.

    Lifecycle:
        1. Created with status='experimenting', version='v1'
        2. Recording a result sets status='final' (rating >= 4) or
           'experimenting' (rating <= 3), whatever the previous status was
        3. Explicit mark-final / archive override the status directly
        4. Branching creates a child row (parent_id=this.id, version+1)
    """

    __tablename__ = "recipes"

    # ── Basic Info ────────────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    method: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="v60, chemex, french-press, aeropress, espresso, ...",
    )
    difficulty: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=text("1"),
    )

    # ── Equipment References ──────────────────────────────────────────────
    bean_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    grinder_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    brewer_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    water_profile_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # ── Targets ───────────────────────────────────────────────────────────
    parameters: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)
    target_metrics: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    steps: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)

    # ── Recorded Results ──────────────────────────────────────────────────
    # Populated only by ResultRecorder
    actual_parameters: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    actual_metrics: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tasting_notes: Mapped[Optional[List[str]]] = mapped_column(JSONType, nullable=True)
    brewing_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    brew_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="experimenting",
        server_default=text("'experimenting'"),
        comment="Lifecycle: experimenting, final, archived",
    )

    # ── Versioning ────────────────────────────────────────────────────────
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Recipe this one was branched from (no FK; may dangle)",
    )
    version: Mapped[str] = mapped_column(
        String(20), nullable=False, default="v1", server_default=text("'v1'"),
    )
    version_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_recipes_owner_status", "owner_id", "status"),
        Index("idx_recipes_parent_created", "parent_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Recipe(id={self.id}, version='{self.version}', "
            f"status='{self.status}', parent_id={self.parent_id})>"
        )
