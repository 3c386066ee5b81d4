"""
Brewprint Backend — Snapshot Builder
=====================================

What:  Produces a complete, self-describing export of one owner's data.
How:   Fans out one query per collection with asyncio.gather and fans the
       results back into a Snapshot.
Who:   Called by GET /api/backup/export and POST /api/backup/files.

Fan-out / Fan-in:
    beans ─┐
    grinders ─┤
    ...       ├──▶ gather(return_exceptions=True) ──▶ any failure? ──▶ PartialReadError
    tag_memberships ─┘                                  │
                                                        └─ no ──▶ Snapshot

    `return_exceptions=True` lets every query run to completion; a failure
    in one never cancels the others. The first failure in collection order
    (not completion order) is the one reported.

No partial snapshot is ever returned: a backup silently missing a
collection would lose that data on restore.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Tuple

from brewprint.exceptions import PartialReadError
from brewprint.models import (
    BEANS,
    BREWERS,
    FOLDER_MEMBERSHIPS,
    FOLDERS,
    GRINDERS,
    RECIPES,
    TAG_MEMBERSHIPS,
    TAGS,
    WATER_PROFILES,
)
from brewprint.schemas.snapshot import SNAPSHOT_FORMAT_VERSION, Snapshot, SnapshotMetadata
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# (collection, sort field), in snapshot order
EXPORT_ORDER: Tuple[Tuple[str, str], ...] = (
    (BEANS, "created_at"),
    (GRINDERS, "created_at"),
    (BREWERS, "created_at"),
    (WATER_PROFILES, "created_at"),
    (RECIPES, "created_at"),
    (FOLDERS, "created_at"),
    (TAGS, "name"),
    (FOLDER_MEMBERSHIPS, "added_at"),
    (TAG_MEMBERSHIPS, "created_at"),
)


class SnapshotBuilder:

    async def build(self, store: RecordStore, owner_id: str) -> Snapshot:
        """
        Read all nine collections for `owner_id` concurrently.

        Raises:
            PartialReadError: any single query failed; carries the first
                failing collection and its exception
        """
        results = await asyncio.gather(
            *(
                store.query(collection, {"owner_id": owner_id}, order_by=sort_field)
                for collection, sort_field in EXPORT_ORDER
            ),
            return_exceptions=True,
        )

        collections: Dict[str, list] = {}
        for (collection, _), result in zip(EXPORT_ORDER, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Export for owner %s aborted: reading %s failed: %s",
                    owner_id, collection, str(result),
                )
                raise PartialReadError(collection=collection, cause=result)
            collections[collection] = result

        total_items = sum(len(records) for records in collections.values())
        snapshot = Snapshot(
            metadata=SnapshotMetadata(
                version=SNAPSHOT_FORMAT_VERSION,
                exported_at=datetime.now(timezone.utc),
                owner_id=owner_id,
                total_items=total_items,
            ),
            **collections,
        )
        logger.info("Built snapshot for owner %s: %d items", owner_id, total_items)
        return snapshot


# ── Singleton Instance ────────────────────────────────────────────────────
snapshot_builder = SnapshotBuilder()
