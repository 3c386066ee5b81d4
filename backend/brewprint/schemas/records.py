"""
Brewprint Backend — Snapshot Record Schemas
============================================

What:  One Pydantic model per snapshot collection, used by SnapshotRestorer
       to validate every record before it reaches the store.
How:   `extra="ignore"` drops fields this version doesn't know about, so
       snapshots written by newer app versions still import.

Identity fields (id, owner_id, created_at, updated_at) are accepted but
optional: the restorer needs the old `id` to build its remapping table,
then strips all four before insert.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from brewprint.schemas.recipe import (
    ActualMetrics,
    ActualParameters,
    BrewMethod,
    BrewParameters,
    BrewStep,
    RecipeStatus,
    TargetMetrics,
)

# Fields the store assigns on insert
IDENTITY_FIELDS = frozenset({"id", "owner_id", "created_at", "updated_at"})


class SnapshotRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    id: Optional[str] = None
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_insert(self, owner_id: str) -> Dict[str, Any]:
        """Record fields minus identity, stamped with the importing owner."""
        values = self.model_dump(exclude=set(IDENTITY_FIELDS))
        values["owner_id"] = owner_id
        return values


# ── Equipment & Ingredients ───────────────────────────────────────────────


class BeanRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    origin: Optional[str] = None
    farm: Optional[str] = None
    region: Optional[str] = None
    altitude: Optional[int] = None
    process: Optional[str] = None
    variety: Optional[str] = None
    purchase_date: Optional[date] = None
    roast_date: Optional[date] = None
    supplier: Optional[str] = None
    cost: Optional[float] = None
    total_grams: Optional[float] = None
    remaining_grams: Optional[float] = None
    roast_level: Optional[str] = None
    tasting_notes: Optional[List[str]] = None
    official_description: Optional[str] = None
    my_notes: Optional[str] = None
    rating: Optional[int] = None


class GrinderRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    type: Optional[str] = None
    burr_type: Optional[str] = None
    burr_material: Optional[str] = None
    microns_per_step: Optional[float] = None
    settings: Optional[List[Dict[str, Any]]] = None
    default_setting: Optional[float] = None
    setting_range: Optional[Dict[str, Any]] = None
    last_cleaned: Optional[date] = None
    cleaning_frequency: Optional[int] = None
    total_uses: int = 0
    last_used: Optional[datetime] = None
    notes: Optional[str] = None
    is_default: bool = False


class BrewerRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    brand: Optional[str] = None
    model: Optional[str] = None
    type: Optional[str] = None
    capacity_ml: Optional[float] = None
    material: Optional[str] = None
    filter_type: Optional[str] = None
    espresso_specs: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    brewing_tips: Optional[List[str]] = None


class WaterProfileRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    is_default: bool = False
    hardness: float = 0.0
    calcium: float = 0.0
    magnesium: float = 0.0
    sodium: float = 0.0
    chloride: float = 0.0
    sulfate: float = 0.0
    bicarbonate: float = 0.0
    ph: float = 7.0
    tds: float = 0.0
    source: Optional[str] = None
    filtration: Optional[str] = None
    treatment_notes: Optional[str] = None
    recommended_for: Optional[List[str]] = None
    notes: Optional[str] = None


# ── Organization ──────────────────────────────────────────────────────────


class FolderRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    parent_id: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    is_default: bool = False


class TagRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    color: Optional[str] = None


class FolderMembershipRecord(SnapshotRecord):
    folder_id: str
    recipe_id: str
    added_at: Optional[datetime] = None

    def to_insert(self, owner_id: str) -> Dict[str, Any]:
        values = super().to_insert(owner_id)
        if values["added_at"] is None:
            del values["added_at"]
        return values


class TagMembershipRecord(SnapshotRecord):
    recipe_id: str
    tag_name: str

    def to_insert(self, owner_id: str) -> Dict[str, Any]:
        values = super().to_insert(owner_id)
        # Membership timestamps are data, not bookkeeping: keep the original
        if self.created_at is not None:
            values["created_at"] = self.created_at
        return values


# ── Recipes ───────────────────────────────────────────────────────────────


class RecipeRecord(SnapshotRecord):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    method: BrewMethod
    difficulty: int = Field(default=1, ge=1, le=3)
    bean_id: Optional[str] = None
    grinder_id: Optional[str] = None
    brewer_id: Optional[str] = None
    water_profile_id: Optional[str] = None
    parameters: BrewParameters
    target_metrics: Optional[TargetMetrics] = None
    steps: List[BrewStep] = Field(default_factory=list)
    actual_parameters: Optional[ActualParameters] = None
    actual_metrics: Optional[ActualMetrics] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    tasting_notes: Optional[List[str]] = None
    brewing_notes: Optional[str] = None
    brew_date: Optional[datetime] = None
    status: RecipeStatus = RecipeStatus.EXPERIMENTING
    parent_id: Optional[str] = None
    version: str = "v1"
    version_notes: Optional[str] = None
