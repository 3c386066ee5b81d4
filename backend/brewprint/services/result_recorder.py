"""
Brewprint Backend — Result Recorder
====================================

What:  Applies a brew observation to a recipe and decides its lifecycle status.
Who:   Called by RecipeService for POST /api/recipes/{id}/results, /final, /archive.

Status Rule:
    rating >= 4  → final
    rating <= 3  → experimenting

    The rule reads the rating only, never the previous status: recording a
    result on an archived recipe brings it back.

Concurrency:
    One update per call, no locking. Two concurrent results on the same
    recipe resolve last-writer-wins.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from brewprint.exceptions import ValidationError
from brewprint.models import RECIPES
from brewprint.schemas.recipe import BrewObservation, RecipeStatus
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
PROMOTION_RATING = 4


class ResultRecorder:

    def status_for_rating(self, rating: int) -> RecipeStatus:
        return RecipeStatus.FINAL if rating >= PROMOTION_RATING else RecipeStatus.EXPERIMENTING

    def validate_observation(self, observation: BrewObservation) -> None:
        if not MIN_RATING <= observation.rating <= MAX_RATING:
            raise ValidationError(
                message=f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                field="rating",
                context={"rating": observation.rating},
            )

    async def record_result(
        self,
        store: RecordStore,
        recipe_id: str,
        observation: BrewObservation,
    ) -> Dict[str, Any]:
        """
        Persist an observation and the status it implies, as one update.

        Raises:
            ValidationError: rating outside 1-5 (checked before touching the store)
            NotFoundError: recipe does not exist
        """
        self.validate_observation(observation)

        status = self.status_for_rating(observation.rating)
        changes = observation.model_dump(
            include={"actual_parameters", "actual_metrics", "rating", "tasting_notes", "brewing_notes"},
        )
        changes["brew_date"] = observation.brew_date or datetime.now(timezone.utc)
        changes["status"] = status.value

        updated = await store.update_by_id(RECIPES, recipe_id, changes)
        logger.info(
            "Recorded result for recipe %s: rating=%d → %s",
            recipe_id, observation.rating, status.value,
        )
        return updated

    async def mark_final(self, store: RecordStore, recipe_id: str) -> Dict[str, Any]:
        return await self._set_status(store, recipe_id, RecipeStatus.FINAL)

    async def archive(self, store: RecordStore, recipe_id: str) -> Dict[str, Any]:
        return await self._set_status(store, recipe_id, RecipeStatus.ARCHIVED)

    async def _set_status(
        self, store: RecordStore, recipe_id: str, status: RecipeStatus
    ) -> Dict[str, Any]:
        # Idempotent: re-applying the same status is a plain no-op update
        updated = await store.update_by_id(RECIPES, recipe_id, {"status": status.value})
        logger.info("Recipe %s status set to %s", recipe_id, status.value)
        return updated


# ── Singleton Instance ────────────────────────────────────────────────────
result_recorder = ResultRecorder()
