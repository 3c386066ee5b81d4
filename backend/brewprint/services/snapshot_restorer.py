"""
Brewprint Backend — Snapshot Restorer
======================================

What:  Validates a snapshot and replays it into the store for one owner.
How:   One ordered table of import steps driven by one generic loop, then a
       relationship replay for the two membership collections.
Who:   Called by POST /api/backup/import and POST /api/backup/files/{name}/restore.

Restore Pipeline:
    1. Validate   format version + every collection key present
                  (failure → ImportResult(success=False), never an exception)
                  [overwrite: delete_where on both membership collections]
    2. Entities   beans → grinders → brewers → water_profiles → folders → tags → recipes
                  per step: validate records → strip identity → stamp owner →
                  remap references → [overwrite: delete_where] → insert_many →
                  post-process (re-link parent_id within the collection)
    3. Relations  folder_memberships, tag_memberships, remapped to new ids;
                  failures here are warnings only

Identity Remapping:
    The store assigns fresh ids on insert, so every reference in the
    snapshot (recipe → equipment, recipe → parent recipe, folder → parent
    folder, memberships → folder/recipe) is translated through an
    old → new id map built from each step's insert_many result. A reference
    whose target did not import (skipped, failed, or already dangling in the
    source) is cleared to null.

Error Policy:
    ConflictError + skip_conflicts  → warning, continue
    any other step failure          → error, success=False, continue
    relationship failure            → warning, success untouched

Default Flags:
    Grinders, water profiles and folders carry `is_default`. An import never
    leaves an owner with two defaults: if the owner already has one (and it
    is not being overwritten) every imported flag is dropped, otherwise only
    the first flagged record keeps it.
"""

import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Type,
    Union,
)

from pydantic import ValidationError as PydanticValidationError

from brewprint.exceptions import BrewprintError, ConflictError, UnsupportedFormatError
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
from brewprint.schemas.records import (
    BeanRecord,
    BrewerRecord,
    FolderMembershipRecord,
    FolderRecord,
    GrinderRecord,
    RecipeRecord,
    SnapshotRecord,
    TagMembershipRecord,
    TagRecord,
    WaterProfileRecord,
)
from brewprint.schemas.snapshot import (
    SNAPSHOT_FORMAT_VERSION,
    ImportOptions,
    ImportResult,
    Snapshot,
)
from brewprint.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# collection → {old id: new id}
IdMap = Dict[str, Dict[str, str]]

PostProcessor = Callable[
    [RecordStore, str, List[SnapshotRecord], IdMap, ImportResult], Awaitable[None]
]


class ImportStep(NamedTuple):
    collection: str
    validator: Type[SnapshotRecord]
    # field → collection it points into (remapped before insert)
    references: Mapping[str, str] = {}
    post_processor: Optional[PostProcessor] = None
    # at most one record per owner may carry is_default
    single_default: bool = False


async def relink_parents(
    store: RecordStore,
    collection: str,
    records: List[SnapshotRecord],
    id_map: IdMap,
    result: ImportResult,
) -> None:
    """
    Restore `parent_id` links between records of the same collection.

    Parents may appear after their children in the batch, so rows are
    inserted with parent_id cleared and patched here once every new id
    is known.
    """
    new_ids = id_map.get(collection, {})
    unresolved = 0
    for record in records:
        old_parent = getattr(record, "parent_id", None)
        if not old_parent or record.id not in new_ids:
            continue
        new_parent = new_ids.get(old_parent)
        if new_parent is None:
            unresolved += 1
            continue
        try:
            await store.update_by_id(collection, new_ids[record.id], {"parent_id": new_parent})
        except BrewprintError as e:
            logger.warning("Could not re-link %s %s: %s", collection, record.id, e.message)
            result.warnings.append(
                f"Could not restore the parent link of a {collection} record: {e.message}"
            )

    if unresolved:
        result.warnings.append(
            f"{unresolved} {collection} records referenced a parent that is not in this "
            f"backup; their parent link was cleared"
        )


# Dependency order: everything a recipe points at is inserted before recipes
IMPORT_STEPS = (
    ImportStep(BEANS, BeanRecord),
    ImportStep(GRINDERS, GrinderRecord, single_default=True),
    ImportStep(BREWERS, BrewerRecord),
    ImportStep(WATER_PROFILES, WaterProfileRecord, single_default=True),
    ImportStep(FOLDERS, FolderRecord, post_processor=relink_parents, single_default=True),
    ImportStep(TAGS, TagRecord),
    ImportStep(
        RECIPES,
        RecipeRecord,
        references={
            "bean_id": BEANS,
            "grinder_id": GRINDERS,
            "brewer_id": BREWERS,
            "water_profile_id": WATER_PROFILES,
        },
        post_processor=relink_parents,
    ),
)

RELATION_STEPS = (
    ImportStep(
        FOLDER_MEMBERSHIPS,
        FolderMembershipRecord,
        references={"folder_id": FOLDERS, "recipe_id": RECIPES},
    ),
    ImportStep(
        TAG_MEMBERSHIPS,
        TagMembershipRecord,
        references={"recipe_id": RECIPES},
    ),
)

SNAPSHOT_COLLECTIONS = tuple(step.collection for step in IMPORT_STEPS + RELATION_STEPS)


class SnapshotRestorer:
    """
    Replays snapshots with an explicit conflict policy.

    Hard errors accumulate in the result instead of aborting: a user
    restoring a partially corrupt backup gets every collection that can
    still be imported.
    """

    def validate(self, payload: Union[Snapshot, Mapping[str, Any]]) -> Snapshot:
        """
        Check format version and collection keys.

        Raises:
            UnsupportedFormatError: wrong version, missing collection, or a
                malformed metadata header
        """
        if isinstance(payload, Snapshot):
            snapshot = payload
        else:
            if not isinstance(payload, Mapping):
                raise UnsupportedFormatError()
            metadata = payload.get("metadata")
            if not isinstance(metadata, Mapping) or metadata.get("version") != SNAPSHOT_FORMAT_VERSION:
                raise UnsupportedFormatError(
                    context={"version": metadata.get("version") if isinstance(metadata, Mapping) else None},
                )
            missing = [c for c in SNAPSHOT_COLLECTIONS if not isinstance(payload.get(c), list)]
            if missing:
                raise UnsupportedFormatError(
                    message=f"Invalid or unsupported data format: missing {', '.join(missing)}",
                    context={"missing": missing},
                )
            try:
                snapshot = Snapshot.model_validate(payload)
            except PydanticValidationError as e:
                raise UnsupportedFormatError(
                    message="Invalid or unsupported data format: malformed metadata",
                    context={"error_count": e.error_count()},
                )

        if snapshot.metadata.version != SNAPSHOT_FORMAT_VERSION:
            raise UnsupportedFormatError(context={"version": snapshot.metadata.version})
        return snapshot

    async def restore(
        self,
        store: RecordStore,
        payload: Union[Snapshot, Mapping[str, Any]],
        options: ImportOptions,
        owner_id: str,
    ) -> ImportResult:
        result = ImportResult()

        # ── Step 1: Validate ──────────────────────────────────────────────
        try:
            snapshot = self.validate(payload)
        except UnsupportedFormatError as e:
            logger.warning("Rejected snapshot for owner %s: %s", owner_id, e.message)
            result.success = False
            result.errors.append(e.message)
            return result

        id_map: IdMap = {}

        # Memberships point into the collections about to be replaced, so
        # they are emptied before any of those are touched
        if options.overwrite:
            for step in RELATION_STEPS:
                try:
                    await store.delete_where(step.collection, {"owner_id": owner_id})
                except BrewprintError as e:
                    result.success = False
                    result.errors.append(f"Failed to clear {step.collection}: {e.message}")

        # ── Step 2: Entity collections, in dependency order ───────────────
        for step in IMPORT_STEPS:
            records = getattr(snapshot, step.collection)
            if not records:
                continue

            validated = self._validate_records(step, records, result)
            if validated is None:
                continue

            rows = self._prepare_rows(step, validated, id_map, owner_id, result)
            demoted = 0
            try:
                if options.overwrite:
                    await store.delete_where(step.collection, {"owner_id": owner_id})
                if step.single_default:
                    demoted = await self._settle_defaults(store, step, rows, options, owner_id)
                new_ids = await store.insert_many(step.collection, rows)
            except ConflictError as e:
                if options.skip_conflicts:
                    result.warnings.append(
                        f"Skipped {len(records)} duplicate {step.collection} records"
                    )
                else:
                    result.success = False
                    result.errors.append(f"Failed to import {step.collection}: {e.message}")
                continue
            except BrewprintError as e:
                result.success = False
                result.errors.append(f"Failed to import {step.collection}: {e.message}")
                continue

            setattr(result.imported_counts, step.collection, len(new_ids))
            if demoted:
                result.warnings.append(
                    f"{demoted} imported {step.collection} records lost their default flag; "
                    f"an account keeps one default per collection"
                )
            id_map[step.collection] = {
                record.id: new_id
                for record, new_id in zip(validated, new_ids)
                if record.id
            }
            if step.post_processor is not None:
                await step.post_processor(store, step.collection, validated, id_map, result)

        # ── Step 3: Relationship replay ───────────────────────────────────
        if result.success:
            for step in RELATION_STEPS:
                await self._replay_relation(
                    store, step, getattr(snapshot, step.collection), id_map, owner_id, result,
                )
        elif snapshot.folder_memberships or snapshot.tag_memberships:
            result.warnings.append(
                "Folder and tag assignments were not imported because some collections failed"
            )

        logger.info(
            "Restore for owner %s finished: success=%s counts=%s errors=%d warnings=%d",
            owner_id,
            result.success,
            result.imported_counts.model_dump(),
            len(result.errors),
            len(result.warnings),
        )
        return result

    # ── Helpers ───────────────────────────────────────────────────────────

    def _validate_records(
        self,
        step: ImportStep,
        records: List[Dict[str, Any]],
        result: ImportResult,
    ) -> Optional[List[SnapshotRecord]]:
        validated = []
        for position, record in enumerate(records):
            try:
                validated.append(step.validator.model_validate(record))
            except PydanticValidationError as e:
                result.success = False
                result.errors.append(
                    f"Failed to import {step.collection}: record {position + 1} is invalid "
                    f"({e.error_count()} problems)"
                )
                return None
        return validated

    def _prepare_rows(
        self,
        step: ImportStep,
        validated: List[SnapshotRecord],
        id_map: IdMap,
        owner_id: str,
        result: ImportResult,
    ) -> List[Dict[str, Any]]:
        rows = []
        cleared = 0
        for record in validated:
            row = record.to_insert(owner_id)
            for field, target in step.references.items():
                old_id = row.get(field)
                if old_id is None:
                    continue
                row[field] = id_map.get(target, {}).get(old_id)
                if row[field] is None:
                    cleared += 1
            if step.post_processor is relink_parents:
                row["parent_id"] = None
            rows.append(row)

        if cleared:
            result.warnings.append(
                f"{cleared} references from {step.collection} pointed at records that were "
                f"not imported and were cleared"
            )
        return rows

    async def _settle_defaults(
        self,
        store: RecordStore,
        step: ImportStep,
        rows: List[Dict[str, Any]],
        options: ImportOptions,
        owner_id: str,
    ) -> int:
        """
        Clear surplus `is_default` flags in `rows` before they are inserted.

        Returns the number of rows that lost their flag.
        """
        keep_first = True
        if not options.overwrite:
            current = await store.query(step.collection, {"owner_id": owner_id, "is_default": True})
            keep_first = not current

        demoted = 0
        for row in rows:
            if not row.get("is_default"):
                continue
            if keep_first:
                keep_first = False
                continue
            row["is_default"] = False
            demoted += 1
        return demoted

    async def _replay_relation(
        self,
        store: RecordStore,
        step: ImportStep,
        records: List[Dict[str, Any]],
        id_map: IdMap,
        owner_id: str,
        result: ImportResult,
    ) -> None:
        """Insert one membership collection. Every failure is a warning."""
        rows = []
        dropped = 0
        for record in records:
            try:
                validated = step.validator.model_validate(record)
            except PydanticValidationError:
                dropped += 1
                continue
            row = validated.to_insert(owner_id)
            for field, target in step.references.items():
                row[field] = id_map.get(target, {}).get(row[field])
            if any(row[field] is None for field in step.references):
                dropped += 1
                continue
            rows.append(row)

        if dropped:
            result.warnings.append(
                f"Dropped {dropped} {step.collection} entries that reference records "
                f"not in this import"
            )

        if not rows:
            return
        try:
            await store.insert_many(step.collection, rows)
        except BrewprintError as e:
            logger.warning("Relationship import for %s failed: %s", step.collection, e.message)
            result.warnings.append(
                f"Some {step.collection} could not be imported: {e.message}"
            )


# ── Singleton Instance ────────────────────────────────────────────────────
snapshot_restorer = SnapshotRestorer()
