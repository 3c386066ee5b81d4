"""
Brewprint Backend — Recipe Service (Business Logic Orchestrator)
=================================================================

What:  The upward boundary for recipe operations: create, read, edit, list
       and filter, branch, record results, change status, resolve chains, delete.
How:   Composes VersionGraph and ResultRecorder with the RecordStore and
       adds owner scoping on top.
Who:   Called by the /api/recipes route handlers.

Owner Scoping:
    Every operation first loads the recipe and compares its owner_id with
    the caller's. A recipe that belongs to someone else is reported as
    NotFoundError, the same as one that doesn't exist, so ids of other
    owners' data can't be discovered.

Orchestration Flow (POST /api/recipes/{id}/branch):
    ┌──────────┐    ┌──────────────┐    ┌───────────────┐    ┌──────────┐
    │  Route   │───▶│ load parent  │───▶│ VersionGraph  │───▶│  insert  │
    │          │    │ (owned?)     │    │ .branch_from  │    │  (store) │
    └──────────┘    └──────────────┘    └───────────────┘    └──────────┘
"""

import logging
from typing import Any, Dict, List, Optional

from brewprint.exceptions import NotFoundError, ValidationError
from brewprint.models import RECIPES
from brewprint.schemas.recipe import (
    BrewMethod,
    BrewObservation,
    RecipeCreate,
    RecipeOverrides,
    RecipeStatus,
    RecipeUpdate,
)
from brewprint.services.membership_service import membership_service
from brewprint.services.record_store import RecordStore
from brewprint.services.result_recorder import MAX_RATING, MIN_RATING, result_recorder
from brewprint.services.version_graph import REQUIRED_FIELDS, version_graph

logger = logging.getLogger(__name__)


class RecipeService:
    """
    Stateless: receives the store on every call.

    Responsibilities:
        - create_recipe(): new root recipe, always 'experimenting'
        - update_recipe(): edit authorable fields in place
        - list_recipes(): status / method / minimum rating / text filters
        - branch_recipe(): persist a VersionGraph draft
        - record_brew_result() / mark_final() / archive_recipe(): lifecycle
        - get_experimentation_chain(): root + direct children
        - delete_recipe(): removes the recipe and its folder/tag assignments;
          children keep a dangling parent_id
    """

    async def create_recipe(
        self, store: RecordStore, owner_id: str, data: RecipeCreate
    ) -> Dict[str, Any]:
        record = data.model_dump()
        record["owner_id"] = owner_id
        record["status"] = RecipeStatus.EXPERIMENTING.value
        created = await store.insert(RECIPES, record)
        logger.info("Created recipe %s (%s) for owner %s", created["id"], created["version"], owner_id)
        return created

    async def get_recipe(
        self, store: RecordStore, owner_id: str, recipe_id: str
    ) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: missing, or owned by another owner (→ 404)
        """
        recipe = await store.get_by_id(RECIPES, recipe_id)
        if recipe["owner_id"] != owner_id:
            raise NotFoundError(resource="recipe", resource_id=recipe_id)
        return recipe

    async def update_recipe(
        self,
        store: RecordStore,
        owner_id: str,
        recipe_id: str,
        changes: RecipeUpdate,
    ) -> Dict[str, Any]:
        """
        Apply the fields the caller sent. An empty body changes nothing.

        Raises:
            ValidationError: explicit null for a required field
            NotFoundError: missing, or owned by another owner
        """
        sent = changes.model_dump(exclude_unset=True)
        cleared = sorted(key for key, value in sent.items() if value is None and key in REQUIRED_FIELDS)
        if cleared:
            raise ValidationError(
                message=f"Required fields cannot be cleared: {', '.join(cleared)}",
                field=cleared[0],
            )

        recipe = await self.get_recipe(store, owner_id, recipe_id)
        if not sent:
            return recipe

        updated = await store.update_by_id(RECIPES, recipe_id, sent)
        logger.info("Updated recipe %s: %s", recipe_id, ", ".join(sorted(sent)))
        return updated

    async def list_recipes(
        self,
        store: RecordStore,
        owner_id: str,
        status: Optional[RecipeStatus] = None,
        method: Optional[BrewMethod] = None,
        min_rating: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Newest first, narrowed by any combination of filters.

        Args:
            status / method: exact match
            min_rating: only rated recipes at or above this rating, ordered
                best first (most recent brew first within a rating)
            search: case-insensitive substring of name or description

        Raises:
            ValidationError: min_rating outside 1-5
        """
        if min_rating is not None and not MIN_RATING <= min_rating <= MAX_RATING:
            raise ValidationError(
                message=f"min_rating must be between {MIN_RATING} and {MAX_RATING}",
                field="min_rating",
                context={"min_rating": min_rating},
            )

        filters: Dict[str, Any] = {"owner_id": owner_id}
        if status is not None:
            filters["status"] = RecipeStatus(status).value
        if method is not None:
            filters["method"] = BrewMethod(method).value
        recipes = await store.query(RECIPES, filters, order_by="created_at", descending=True)

        # The store matches on equality only; range and text filters run here
        if search and search.strip():
            needle = search.strip().lower()
            recipes = [
                recipe for recipe in recipes
                if needle in recipe["name"].lower()
                or needle in (recipe.get("description") or "").lower()
            ]

        if min_rating is not None:
            recipes = [
                recipe for recipe in recipes
                if recipe.get("rating") is not None and recipe["rating"] >= min_rating
            ]
            # Unbrewed recipes sort after brewed ones within a rating
            recipes.sort(
                key=lambda recipe: (
                    recipe["rating"],
                    recipe.get("brew_date") is not None,
                    recipe.get("brew_date"),
                ),
                reverse=True,
            )
        return recipes

    async def branch_recipe(
        self,
        store: RecordStore,
        owner_id: str,
        parent_id: str,
        overrides: Optional[RecipeOverrides] = None,
    ) -> Dict[str, Any]:
        parent = await self.get_recipe(store, owner_id, parent_id)
        draft = version_graph.branch_from(parent, overrides)
        created = await store.insert(RECIPES, draft.model_dump())
        logger.info(
            "Branched recipe %s → %s (%s)", parent_id, created["id"], created["version"],
        )
        return created

    async def record_brew_result(
        self,
        store: RecordStore,
        owner_id: str,
        recipe_id: str,
        observation: BrewObservation,
    ) -> Dict[str, Any]:
        result_recorder.validate_observation(observation)
        await self.get_recipe(store, owner_id, recipe_id)
        return await result_recorder.record_result(store, recipe_id, observation)

    async def mark_final(
        self, store: RecordStore, owner_id: str, recipe_id: str
    ) -> Dict[str, Any]:
        await self.get_recipe(store, owner_id, recipe_id)
        return await result_recorder.mark_final(store, recipe_id)

    async def archive_recipe(
        self, store: RecordStore, owner_id: str, recipe_id: str
    ) -> Dict[str, Any]:
        await self.get_recipe(store, owner_id, recipe_id)
        return await result_recorder.archive(store, recipe_id)

    async def get_experimentation_chain(
        self, store: RecordStore, owner_id: str, root_id: str
    ) -> List[Dict[str, Any]]:
        return await version_graph.resolve_chain(store, root_id, owner_id=owner_id)

    async def delete_recipe(
        self, store: RecordStore, owner_id: str, recipe_id: str
    ) -> None:
        # No cascade and no re-parenting: children keep pointing at this id
        await self.get_recipe(store, owner_id, recipe_id)
        await store.delete_by_id(RECIPES, recipe_id)
        detached = await membership_service.detach_recipe(store, owner_id, recipe_id)
        logger.info("Deleted recipe %s (%d folder/tag assignments removed)", recipe_id, detached)


# ── Singleton Instance ────────────────────────────────────────────────────
recipe_service = RecipeService()
