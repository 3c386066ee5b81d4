"""
Brewprint Backend — CSV Exporter
=================================

What:  Spreadsheet-friendly exports of the recipe list and the bean inventory.
How:   stdlib `csv.writer` into an in-memory buffer; quoting and escaping of
       names/notes is left to the csv module.
Who:   Called by GET /api/backup/export/recipes.csv and /beans.csv.

An owner with no records gets the header row only.
"""

import csv
import io
import logging
from typing import Any, Iterable, List, Mapping, Optional

from brewprint.models import BEANS, RECIPES
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

RECIPE_COLUMNS = [
    "Name",
    "Method",
    "Difficulty",
    "Coffee (g)",
    "Water (g)",
    "Temperature (°C)",
    "Grind Setting",
    "Total Time (s)",
    "Rating",
    "Status",
    "Version",
    "Brew Date",
    "Created Date",
]

BEAN_COLUMNS = [
    "Name",
    "Supplier",
    "Origin",
    "Process",
    "Roast Level",
    "Remaining (g)",
    "Cost",
    "Roast Date",
    "Purchase Date",
    "Notes",
]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _brew_value(recipe: Mapping[str, Any], key: str) -> Any:
    """Measured value when a result was recorded, otherwise the target."""
    actual: Optional[Mapping[str, Any]] = recipe.get("actual_parameters")
    if actual and actual.get(key) is not None:
        return actual[key]
    return (recipe.get("parameters") or {}).get(key)


def _render(header: List[str], rows: Iterable[List[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


class CsvExporter:

    async def export_recipes_csv(self, store: RecordStore, owner_id: str) -> str:
        recipes = await store.query(
            RECIPES, {"owner_id": owner_id}, order_by="created_at", descending=True,
        )
        rows = (
            [
                recipe["name"],
                recipe["method"],
                recipe["difficulty"],
                _brew_value(recipe, "coffee_grams"),
                _brew_value(recipe, "water_grams"),
                _brew_value(recipe, "water_temp"),
                _brew_value(recipe, "grind_setting"),
                _brew_value(recipe, "total_time"),
                recipe.get("rating"),
                recipe["status"],
                recipe["version"],
                recipe.get("brew_date"),
                recipe["created_at"],
            ]
            for recipe in recipes
        )
        logger.info("Exporting %d recipes as CSV for owner %s", len(recipes), owner_id)
        return _render(RECIPE_COLUMNS, rows)

    async def export_beans_csv(self, store: RecordStore, owner_id: str) -> str:
        beans = await store.query(BEANS, {"owner_id": owner_id}, order_by="name")
        rows = (
            [
                bean["name"],
                bean.get("supplier"),
                bean.get("origin"),
                bean.get("process"),
                bean.get("roast_level"),
                bean.get("remaining_grams"),
                bean.get("cost"),
                bean.get("roast_date"),
                bean.get("purchase_date"),
                bean.get("my_notes"),
            ]
            for bean in beans
        )
        logger.info("Exporting %d beans as CSV for owner %s", len(beans), owner_id)
        return _render(BEAN_COLUMNS, rows)


# ── Singleton Instance ────────────────────────────────────────────────────
csv_exporter = CsvExporter()
