"""
Brewprint Backend — Membership Service
=======================================

What:  Files recipes into folders and attaches tags to recipes.
How:   Reads and writes the two join collections through the RecordStore.
Who:   Called by the /api/library folder and tag routes, and by
       RecipeService.delete_recipe.

Idempotency:
    Adding a pair that already exists returns the stored row. Removing a
    pair that doesn't exist is not an error.

Tags by Name:
    A tag membership carries the tag's name, not its id. Tagging a recipe
    with a name the owner has never used creates the tag first.
"""

import logging
from typing import Any, Dict, List

from brewprint.exceptions import NotFoundError, ValidationError
from brewprint.models import FOLDER_MEMBERSHIPS, FOLDERS, RECIPES, TAG_MEMBERSHIPS, TAGS
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

MAX_TAG_NAME_LENGTH = 60


class MembershipService:

    # ── Folders ───────────────────────────────────────────────────────────

    async def add_to_folder(
        self,
        store: RecordStore,
        owner_id: str,
        folder_id: str,
        recipe_id: str,
    ) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: folder or recipe missing, or owned by another owner
        """
        await self._require_owned(store, FOLDERS, owner_id, folder_id)
        await self._require_owned(store, RECIPES, owner_id, recipe_id)

        pair = {"owner_id": owner_id, "folder_id": folder_id, "recipe_id": recipe_id}
        existing = await store.query(FOLDER_MEMBERSHIPS, pair)
        if existing:
            return existing[0]

        created = await store.insert(FOLDER_MEMBERSHIPS, pair)
        logger.info("Filed recipe %s into folder %s", recipe_id, folder_id)
        return created

    async def remove_from_folder(
        self,
        store: RecordStore,
        owner_id: str,
        folder_id: str,
        recipe_id: str,
    ) -> int:
        return await store.delete_where(
            FOLDER_MEMBERSHIPS,
            {"owner_id": owner_id, "folder_id": folder_id, "recipe_id": recipe_id},
        )

    async def list_folder_recipes(
        self, store: RecordStore, owner_id: str, folder_id: str
    ) -> List[str]:
        """Recipe ids in the folder, most recently added first."""
        await self._require_owned(store, FOLDERS, owner_id, folder_id)
        rows = await store.query(
            FOLDER_MEMBERSHIPS,
            {"owner_id": owner_id, "folder_id": folder_id},
            order_by="added_at",
            descending=True,
        )
        return [row["recipe_id"] for row in rows]

    # ── Tags ──────────────────────────────────────────────────────────────

    async def add_tag(
        self,
        store: RecordStore,
        owner_id: str,
        recipe_id: str,
        tag_name: str,
    ) -> Dict[str, Any]:
        """
        Attach a tag, creating the tag itself when the owner doesn't have it yet.

        Raises:
            ValidationError: blank or overlong tag name
            NotFoundError: recipe missing, or owned by another owner
        """
        name = self._clean_tag_name(tag_name)
        await self._require_owned(store, RECIPES, owner_id, recipe_id)

        if not await store.query(TAGS, {"owner_id": owner_id, "name": name}):
            await store.insert(TAGS, {"owner_id": owner_id, "name": name})
            logger.info("Created tag %r for owner %s", name, owner_id)

        pair = {"owner_id": owner_id, "recipe_id": recipe_id, "tag_name": name}
        existing = await store.query(TAG_MEMBERSHIPS, pair)
        if existing:
            return existing[0]
        return await store.insert(TAG_MEMBERSHIPS, pair)

    async def remove_tag(
        self,
        store: RecordStore,
        owner_id: str,
        recipe_id: str,
        tag_name: str,
    ) -> int:
        # The tag itself stays; other recipes may still use it
        return await store.delete_where(
            TAG_MEMBERSHIPS,
            {"owner_id": owner_id, "recipe_id": recipe_id, "tag_name": tag_name.strip()},
        )

    async def list_recipe_tags(
        self, store: RecordStore, owner_id: str, recipe_id: str
    ) -> List[str]:
        """Tag names on the recipe, in the order they were added."""
        await self._require_owned(store, RECIPES, owner_id, recipe_id)
        rows = await store.query(
            TAG_MEMBERSHIPS,
            {"owner_id": owner_id, "recipe_id": recipe_id},
            order_by="created_at",
        )
        return [row["tag_name"] for row in rows]

    # ── Recipe lifecycle ──────────────────────────────────────────────────

    async def detach_recipe(
        self, store: RecordStore, owner_id: str, recipe_id: str
    ) -> int:
        """Remove every folder and tag assignment of one recipe."""
        removed = 0
        for collection in (FOLDER_MEMBERSHIPS, TAG_MEMBERSHIPS):
            removed += await store.delete_where(
                collection, {"owner_id": owner_id, "recipe_id": recipe_id},
            )
        return removed

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    async def _require_owned(
        store: RecordStore, collection: str, owner_id: str, record_id: str
    ) -> None:
        record = await store.get_by_id(collection, record_id)
        if record["owner_id"] != owner_id:
            raise NotFoundError(resource=collection, resource_id=record_id)

    @staticmethod
    def _clean_tag_name(tag_name: str) -> str:
        name = (tag_name or "").strip()
        if not name or len(name) > MAX_TAG_NAME_LENGTH:
            raise ValidationError(
                message=f"Tag name must be 1-{MAX_TAG_NAME_LENGTH} characters",
                field="tag_name",
                context={"length": len(name)},
            )
        return name


# ── Singleton Instance ────────────────────────────────────────────────────
membership_service = MembershipService()
