"""
Brewprint Backend — Recipe Schemas
===================================

What:  Pydantic models for the recipe domain: nested brewing documents,
       create/branch inputs, brew observations, and the recipe response.
How:   `use_enum_values` keeps statuses and methods as plain strings after
       validation, which is the form the RecordStore persists.

Model Map:
    BrewParameters / BrewStep / TargetMetrics   → what you plan to do
    ActualParameters / ActualMetrics            → what happened
    RecipeCreate                                → POST /api/recipes
    RecipeOverrides                             → POST /api/recipes/{id}/branch
    RecipeUpdate                                → PATCH /api/recipes/{id}
    NewRecipeDraft                              → VersionGraph.branch_from output
    BrewObservation                             → POST /api/recipes/{id}/results
    RecipeResponse                              → every recipe-returning endpoint
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecipeStatus(str, Enum):
    EXPERIMENTING = "experimenting"
    FINAL = "final"
    ARCHIVED = "archived"


class BrewMethod(str, Enum):
    V60 = "v60"
    CHEMEX = "chemex"
    FRENCH_PRESS = "french-press"
    AEROPRESS = "aeropress"
    ESPRESSO = "espresso"
    COLD_BREW = "cold-brew"
    SIPHON = "siphon"
    PERCOLATOR = "percolator"
    TURKISH = "turkish"
    MOKA = "moka"


# ══════════════════════════════════════════════════════════════════════════
# Nested Brewing Documents (stored as JSON columns)
# ══════════════════════════════════════════════════════════════════════════


class BrewParameters(BaseModel):
    coffee_grams: float = Field(gt=0, description="Dose in grams")
    water_grams: float = Field(gt=0, description="Total water mass in grams")
    water_temp: float = Field(description="Water temperature, Celsius")
    grind_setting: Optional[float] = None
    bloom_time: Optional[int] = Field(default=None, description="Seconds")
    total_time: Optional[int] = Field(default=None, description="Seconds")
    ratio: Optional[str] = Field(default=None, description='e.g. "1:16"')


class BrewStep(BaseModel):
    id: int
    order: int = Field(description="Ordinal position within the recipe")
    title: str = Field(description='e.g. "Bloom", "First Pour"')
    description: str = ""
    duration: int = Field(default=0, ge=0, description="Seconds")
    water_amount: float = Field(default=0, ge=0, description="Grams for this step")
    technique: str = Field(default="", description='e.g. "circular", "center-pour"')
    temperature: Optional[float] = Field(
        default=None, description="Overrides the recipe temperature for this step"
    )


class TargetMetrics(BaseModel):
    target_tds: Optional[float] = None
    target_extraction: Optional[float] = None
    target_strength: Optional[float] = None
    target_time: Optional[int] = None


class ActualParameters(BaseModel):
    coffee_grams: float = Field(gt=0)
    water_grams: float = Field(gt=0)
    water_temp: float
    grind_setting: Optional[float] = None
    bloom_time: Optional[int] = None
    total_time: Optional[int] = None


class ActualMetrics(BaseModel):
    tds: Optional[float] = None
    extraction_yield: Optional[float] = None
    brew_strength: Optional[float] = None
    refractometer_reading: Optional[float] = None
    final_volume: Optional[float] = None
    water_retained: Optional[float] = None


# ══════════════════════════════════════════════════════════════════════════
# Inputs
# ══════════════════════════════════════════════════════════════════════════


class RecipeCreate(BaseModel):
    """
    What:  Body of POST /api/recipes.
    Note:  No parent_id and no status: new recipes start as 'experimenting'
           roots. Children come only from branching an existing recipe.
    """
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(min_length=1, max_length=200)
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
    version: str = Field(default="v1", max_length=20)
    version_notes: Optional[str] = None


class RecipeOverrides(BaseModel):
    """
    What:  Partial recipe fields applied when branching.

    Only fields the caller actually sent count as overrides
    (`model_dump(exclude_unset=True)`); everything else is inherited
    from the parent.
    """
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    method: Optional[BrewMethod] = None
    difficulty: Optional[int] = Field(default=None, ge=1, le=3)
    bean_id: Optional[str] = None
    grinder_id: Optional[str] = None
    brewer_id: Optional[str] = None
    water_profile_id: Optional[str] = None
    parameters: Optional[BrewParameters] = None
    target_metrics: Optional[TargetMetrics] = None
    steps: Optional[List[BrewStep]] = None
    version_notes: Optional[str] = None


class RecipeUpdate(RecipeOverrides):
    """
    What:  Body of PATCH /api/recipes/{id}.

    Same fields as a branch override, applied to the recipe in place.
    Status, lineage (parent_id, version) and recorded results are changed
    only through their own endpoints.
    """


class NewRecipeDraft(BaseModel):
    """A recipe ready for insertion, produced by VersionGraph.branch_from."""
    model_config = ConfigDict(use_enum_values=True)

    owner_id: str
    name: str
    description: Optional[str] = None
    method: BrewMethod
    difficulty: int = 1
    bean_id: Optional[str] = None
    grinder_id: Optional[str] = None
    brewer_id: Optional[str] = None
    water_profile_id: Optional[str] = None
    parameters: BrewParameters
    target_metrics: Optional[TargetMetrics] = None
    steps: List[BrewStep] = Field(default_factory=list)
    parent_id: Optional[str] = None
    version: str = "v1"
    status: RecipeStatus = RecipeStatus.EXPERIMENTING
    version_notes: Optional[str] = None


class BrewObservation(BaseModel):
    """
    What:  One recorded brew outcome.

    The 1-5 rating bound is enforced by ResultRecorder (raising the app's
    ValidationError → 400) rather than by a Field constraint, so the
    rule lives next to the status transition it drives.
    """
    actual_parameters: ActualParameters
    actual_metrics: Optional[ActualMetrics] = None
    rating: int
    tasting_notes: Optional[List[str]] = None
    brewing_notes: Optional[str] = None
    brew_date: Optional[datetime] = Field(
        default=None, description="When the brew happened (defaults to now, UTC)"
    )


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class RecipeResponse(BaseModel):
    """Full recipe record as stored."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    method: BrewMethod
    difficulty: int
    bean_id: Optional[str] = None
    grinder_id: Optional[str] = None
    brewer_id: Optional[str] = None
    water_profile_id: Optional[str] = None
    parameters: BrewParameters
    target_metrics: Optional[TargetMetrics] = None
    steps: List[BrewStep] = Field(default_factory=list)
    actual_parameters: Optional[ActualParameters] = None
    actual_metrics: Optional[ActualMetrics] = None
    rating: Optional[int] = None
    tasting_notes: Optional[List[str]] = None
    brewing_notes: Optional[str] = None
    brew_date: Optional[datetime] = None
    status: RecipeStatus
    parent_id: Optional[str] = None
    version: str
    version_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
