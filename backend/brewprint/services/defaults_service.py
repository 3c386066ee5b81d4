"""
Brewprint Backend — Defaults Service
=====================================

What:  Picks the owner's default grinder, water profile or folder.
How:   Two steps through the RecordStore: clear `is_default` on every
       current default, then set it on the target.
Who:   Called by POST /api/library/{collection}/{id}/default.

Inconsistency Window:
    The two steps are separate store calls, not one transaction. Between
    them the owner has no default at all; a reader in that gap sees none.
    If step two fails, the owner stays without a default until the call
    is repeated.
"""

import logging
from typing import Any, Dict

from brewprint.exceptions import NotFoundError, ValidationError
from brewprint.models import FOLDERS, GRINDERS, WATER_PROFILES
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

DEFAULTABLE_COLLECTIONS = frozenset({GRINDERS, WATER_PROFILES, FOLDERS})


class DefaultsService:

    async def set_default(
        self,
        store: RecordStore,
        collection: str,
        owner_id: str,
        record_id: str,
    ) -> Dict[str, Any]:
        """
        Make `record_id` the only default in `collection` for `owner_id`.

        Raises:
            ValidationError: collection has no default flag
            NotFoundError: target missing or owned by another owner
        """
        if collection not in DEFAULTABLE_COLLECTIONS:
            raise ValidationError(
                message=(
                    f"'{collection}' has no default selection. "
                    f"Allowed: {', '.join(sorted(DEFAULTABLE_COLLECTIONS))}"
                ),
                field="collection",
            )

        # Checked first so a bad id never clears the current default
        target = await store.get_by_id(collection, record_id)
        if target["owner_id"] != owner_id:
            raise NotFoundError(resource=collection, resource_id=record_id)

        # ── Step 1: clear ─────────────────────────────────────────────────
        current = await store.query(collection, {"owner_id": owner_id, "is_default": True})
        for record in current:
            if record["id"] != record_id:
                await store.update_by_id(collection, record["id"], {"is_default": False})

        # ── Step 2: set ───────────────────────────────────────────────────
        updated = await store.update_by_id(collection, record_id, {"is_default": True})
        logger.info("Default %s for owner %s is now %s", collection, owner_id, record_id)
        return updated


# ── Singleton Instance ────────────────────────────────────────────────────
defaults_service = DefaultsService()
