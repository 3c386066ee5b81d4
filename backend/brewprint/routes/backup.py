"""
Brewprint Backend — Backup Route Handlers
==========================================

What:  Export, import, stored backup files, CSV downloads, stats and reset.
Who:   Called by the mobile client's settings/backup screen.

Endpoint Map:
    GET    /api/backup/export                     snapshot JSON (503 if any read fails)
    POST   /api/backup/import                     restore a snapshot body
    POST   /api/backup/files                      export + save to disk
    GET    /api/backup/files                      list saved backups
    POST   /api/backup/files/{filename}/restore   restore a saved backup
    GET    /api/backup/export/recipes.csv         recipe CSV
    GET    /api/backup/export/beans.csv           bean inventory CSV
    GET    /api/backup/stats                      per-collection counts
    DELETE /api/backup/data?confirmation=         delete everything (token-guarded)

Import always answers 200 with an ImportResult, even when nothing was
imported: a rejected or partial import is an expected outcome the client
renders, not a transport error.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import Response

from brewprint.dependencies import get_owner_id, get_record_store
from brewprint.schemas.common import ErrorResponse
from brewprint.schemas.snapshot import (
    BackupFileInfo,
    BackupStats,
    ImportOptions,
    ImportResult,
    Snapshot,
)
from brewprint.services.backup_file_service import backup_file_service, generate_backup_filename
from brewprint.services.backup_service import backup_service
from brewprint.services.csv_export import csv_exporter
from brewprint.services.record_store import RecordStore
from brewprint.services.snapshot_builder import snapshot_builder
from brewprint.services.snapshot_restorer import snapshot_restorer

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/backup", tags=["Backup"])


def _import_options(
    overwrite: bool = Query(default=False, description="Replace existing records of each collection"),
    skip_conflicts: bool = Query(default=False, description="Turn duplicate-record failures into warnings"),
) -> ImportOptions:
    return ImportOptions(overwrite=overwrite, skip_conflicts=skip_conflicts)


def _csv_response(content: str, kind: str) -> Response:
    filename = generate_backup_filename("csv").replace("backup", f"{kind}-export")
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Snapshot Export / Import ──────────────────────────────────────────────


@router.get(
    "/export",
    response_model=Snapshot,
    responses={503: {"description": "A collection could not be read", "model": ErrorResponse}},
    summary="Export all data as a snapshot",
)
async def export_snapshot(
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Snapshot:
    return await snapshot_builder.build(store, owner_id)


@router.post(
    "/import",
    response_model=ImportResult,
    responses={400: {"description": "Body too large or not JSON", "model": ErrorResponse}},
    summary="Import a snapshot",
    description=(
        "Body: snapshot JSON as produced by /export. The size limit is enforced "
        "while the body is read, with or without a Content-Length header."
    ),
    # The body is read by hand; declare it so it still appears in the docs
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": {"type": "object"}}},
        },
    },
)
async def import_snapshot(
    request: Request,
    options: ImportOptions = Depends(_import_options),
    content_length: Optional[int] = Header(default=None),
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> ImportResult:
    raw = await backup_file_service.read_limited(request.stream(), content_length)
    payload = backup_file_service.parse_snapshot(raw)
    return await snapshot_restorer.restore(store, payload, options, owner_id)


# ── Stored Backup Files ───────────────────────────────────────────────────


@router.post(
    "/files",
    response_model=BackupFileInfo,
    status_code=201,
    summary="Export and save a backup file",
)
async def create_backup_file(
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> BackupFileInfo:
    snapshot = await snapshot_builder.build(store, owner_id)
    return await backup_file_service.save_snapshot(snapshot)


@router.get(
    "/files",
    response_model=List[BackupFileInfo],
    summary="List saved backup files",
)
async def list_backup_files(
    owner_id: str = Depends(get_owner_id),
) -> List[BackupFileInfo]:
    return backup_file_service.list_backups(owner_id)


@router.post(
    "/files/{filename}/restore",
    response_model=ImportResult,
    responses={
        400: {"description": "Invalid filename or file", "model": ErrorResponse},
        404: {"description": "Backup not found", "model": ErrorResponse},
    },
    summary="Restore a saved backup file",
)
async def restore_backup_file(
    filename: str,
    options: ImportOptions = Depends(_import_options),
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> ImportResult:
    payload = await backup_file_service.load_snapshot(owner_id, filename)
    return await snapshot_restorer.restore(store, payload, options, owner_id)


# ── CSV Exports ───────────────────────────────────────────────────────────


@router.get("/export/recipes.csv", summary="Export recipes as CSV")
async def export_recipes_csv(
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Response:
    return _csv_response(await csv_exporter.export_recipes_csv(store, owner_id), "recipes")


@router.get("/export/beans.csv", summary="Export bean inventory as CSV")
async def export_beans_csv(
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Response:
    return _csv_response(await csv_exporter.export_beans_csv(store, owner_id), "beans")


# ── Stats & Reset ─────────────────────────────────────────────────────────


@router.get("/stats", response_model=BackupStats, summary="Record counts per collection")
async def get_backup_stats(
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> BackupStats:
    return await backup_service.backup_stats(store, owner_id)


@router.delete(
    "/data",
    responses={400: {"description": "Wrong confirmation token", "model": ErrorResponse}},
    summary="Delete all of the caller's data",
    description="Requires confirmation=CONFIRM_DELETE_ALL_DATA.",
)
async def clear_all_data(
    confirmation: str = Query(..., description="Must equal CONFIRM_DELETE_ALL_DATA"),
    owner_id: str = Depends(get_owner_id),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    deleted = await backup_service.clear_all_data(store, owner_id, confirmation)
    return {"deleted": deleted, "total": sum(deleted.values())}
