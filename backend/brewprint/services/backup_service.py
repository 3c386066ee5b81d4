"""
Brewprint Backend — Backup Service
===================================

What:  Per-owner dataset statistics and the guarded "delete everything" reset.
Who:   Called by GET /api/backup/stats and DELETE /api/backup/data.

Deletion Order:
    Reverse of the restore order, so nothing is ever left pointing at a
    row deleted earlier in the same pass:
        tag_memberships → folder_memberships → recipes → folders → tags
        → water_profiles → brewers → grinders → beans
"""

import asyncio
import logging
from typing import Dict

from brewprint.exceptions import ValidationError
from brewprint.models import (
    BEANS,
    BREWERS,
    ENTITY_COLLECTIONS,
    FOLDER_MEMBERSHIPS,
    FOLDERS,
    GRINDERS,
    RECIPES,
    TAG_MEMBERSHIPS,
    TAGS,
    WATER_PROFILES,
)
from brewprint.schemas.snapshot import BackupStats
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

CLEAR_CONFIRMATION_TOKEN = "CONFIRM_DELETE_ALL_DATA"

CLEAR_ORDER = (
    TAG_MEMBERSHIPS,
    FOLDER_MEMBERSHIPS,
    RECIPES,
    FOLDERS,
    TAGS,
    WATER_PROFILES,
    BREWERS,
    GRINDERS,
    BEANS,
)


class BackupService:

    async def backup_stats(self, store: RecordStore, owner_id: str) -> BackupStats:
        """Record counts for the seven entity collections (memberships excluded)."""
        results = await asyncio.gather(
            *(store.query(collection, {"owner_id": owner_id}) for collection in ENTITY_COLLECTIONS)
        )
        counts = {
            collection: len(records)
            for collection, records in zip(ENTITY_COLLECTIONS, results)
        }
        return BackupStats(total_items=sum(counts.values()), **counts)

    async def clear_all_data(
        self, store: RecordStore, owner_id: str, confirmation_token: str
    ) -> Dict[str, int]:
        """
        Delete every record the owner has.

        Returns:
            Deleted row count per collection.

        Raises:
            ValidationError: token mismatch (nothing is deleted)
        """
        if confirmation_token != CLEAR_CONFIRMATION_TOKEN:
            raise ValidationError(
                message="Invalid confirmation token",
                field="confirmation",
            )

        deleted: Dict[str, int] = {}
        for collection in CLEAR_ORDER:
            deleted[collection] = await store.delete_where(collection, {"owner_id": owner_id})

        logger.warning(
            "Cleared all data for owner %s: %d records", owner_id, sum(deleted.values()),
        )
        return deleted


# ── Singleton Instance ────────────────────────────────────────────────────
backup_service = BackupService()
