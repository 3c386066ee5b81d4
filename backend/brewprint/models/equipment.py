"""
Brewprint Backend — Equipment & Ingredient Models
==================================================

What:  ORM models for beans, grinders, brewers and water profiles.
Who:   Read by SnapshotBuilder/CsvExporter, written by SnapshotRestorer and
       DefaultsService. Their CRUD screens live outside this service.

Bean names are unique per owner. That constraint is what makes restoring
a snapshot into a non-empty account produce conflicts.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from brewprint.database import Base
from brewprint.models.base import JSONType, OwnedRecordMixin


class Bean(OwnedRecordMixin, Base):
    __tablename__ = "beans"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    origin: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    farm: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    altitude: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    process: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    variety: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    # Purchase & inventory
    purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    roast_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    supplier: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_grams: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    remaining_grams: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Tasting
    roast_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    tasting_notes: Mapped[Optional[List[str]]] = mapped_column(JSONType, nullable=True)
    official_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    my_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_beans_owner_name"),
    )


class Grinder(OwnedRecordMixin, Base):
    __tablename__ = "grinders"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    burr_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    burr_material: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    microns_per_step: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    settings: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSONType, nullable=True)
    default_setting: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    setting_range: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    last_cleaned: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    cleaning_frequency: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_uses: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )
    last_used: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )


class Brewer(OwnedRecordMixin, Base):
    __tablename__ = "brewers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    capacity_ml: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    material: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    filter_type: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    espresso_specs: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    brewing_tips: Mapped[Optional[List[str]]] = mapped_column(JSONType, nullable=True)


class WaterProfile(OwnedRecordMixin, Base):
    __tablename__ = "water_profiles"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_default: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )

    # Chemistry, mg/L
    hardness: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    calcium: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    magnesium: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sodium: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    chloride: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sulfate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    bicarbonate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    ph: Mapped[float] = mapped_column(Float, nullable=False, default=7.0)
    tds: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    source: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    filtration: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    treatment_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    recommended_for: Mapped[Optional[List[str]]] = mapped_column(JSONType, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
