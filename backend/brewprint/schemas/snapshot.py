"""
Brewprint Backend — Snapshot & Import Schemas
==============================================

What:  The portable backup format, the import options, and the import report.
How:   Snapshot collections are lists of plain dicts: the builder copies store
       records verbatim, and the restorer validates each one against the
       per-collection record schemas in brewprint.schemas.records.

Snapshot JSON Shape:
    {
      "metadata": {"version": "1.0.0", "exported_at": ..., "owner_id": ..., "total_items": N},
      "beans": [...], "grinders": [...], "brewers": [...], "water_profiles": [...],
      "recipes": [...], "folders": [...], "tags": [...],
      "folder_memberships": [...], "tag_memberships": [...]
    }
"""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field

# Bumped only when the snapshot layout changes incompatibly
SNAPSHOT_FORMAT_VERSION = "1.0.0"


class SnapshotMetadata(BaseModel):
    version: str = Field(description="Snapshot format version")
    exported_at: datetime
    owner_id: str
    total_items: int = Field(ge=0, description="Sum of all nine collection sizes")


class Snapshot(BaseModel):
    """One owner's complete dataset, as produced by SnapshotBuilder."""

    metadata: SnapshotMetadata
    beans: List[Dict[str, Any]]
    grinders: List[Dict[str, Any]]
    brewers: List[Dict[str, Any]]
    water_profiles: List[Dict[str, Any]]
    recipes: List[Dict[str, Any]]
    folders: List[Dict[str, Any]]
    tags: List[Dict[str, Any]]
    folder_memberships: List[Dict[str, Any]]
    tag_memberships: List[Dict[str, Any]]


class ImportOptions(BaseModel):
    overwrite: bool = Field(
        default=False,
        description="Clear each destination collection for the owner before inserting",
    )
    skip_conflicts: bool = Field(
        default=False,
        description="Downgrade uniqueness conflicts to warnings",
    )


class ImportedCounts(BaseModel):
    beans: int = 0
    grinders: int = 0
    brewers: int = 0
    water_profiles: int = 0
    recipes: int = 0
    folders: int = 0
    tags: int = 0


class ImportResult(BaseModel):
    """
    Outcome of a restore.

    `success` is False only for hard errors in the entity collections;
    membership failures show up in `warnings` and leave it untouched.
    """

    success: bool = True
    imported_counts: ImportedCounts = Field(default_factory=ImportedCounts)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class BackupStats(BaseModel):
    total_items: int
    beans: int = 0
    grinders: int = 0
    brewers: int = 0
    water_profiles: int = 0
    recipes: int = 0
    folders: int = 0
    tags: int = 0


class BackupFileInfo(BaseModel):
    filename: str
    size_bytes: int
    modified_at: datetime
