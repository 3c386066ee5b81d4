"""
Brewprint Backend — Backup File Service
========================================

What:  Names, writes, reads and lists snapshot backup files on disk.
How:   Async file I/O via aiofiles; every path is resolved inside
       <storage_root>/backups/ and anything that escapes it is rejected.
Who:   Called by the /api/backup/files routes.

Directory Structure:
    storage/
    └── backups/
        └── 3f2a9c.../                 one directory per owner (sha256 of owner id)
            ├── brewprint-backup-2024-01-15T10-30-45.json
            └── brewprint-backup-2024-01-16T08-02-11.json

Security Model:
    1. Filenames we generate contain no user input
    2. Filenames supplied by a client (restore) must resolve to a direct
       child of the caller's own directory: "../", absolute paths and nested
       paths are all rejected
    3. Reads are bounded by settings.max_import_size, and an uploaded
       snapshot body is measured while it streams in, before it is parsed
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiofiles

from brewprint.config import settings
from brewprint.exceptions import FileStorageError, NotFoundError, ValidationError
from brewprint.schemas.snapshot import BackupFileInfo, Snapshot

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "brewprint-backup-"
BACKUP_FORMATS = {"json", "csv"}
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


def generate_backup_filename(fmt: str = "json", now: Optional[datetime] = None) -> str:
    """
    `brewprint-backup-YYYY-MM-DDTHH-MM-SS.<fmt>`, timestamp in UTC.

    Colons are replaced by dashes so the name is valid on every filesystem.
    """
    if fmt not in BACKUP_FORMATS:
        raise ValidationError(
            message=f"Backup format '{fmt}' is not supported. Allowed: {', '.join(sorted(BACKUP_FORMATS))}",
            field="format",
        )
    stamp = (now or datetime.now(timezone.utc)).strftime(TIMESTAMP_FORMAT)
    return f"{BACKUP_PREFIX}{stamp}.{fmt}"


class BackupFileService:
    """Manages the backup directory lifecycle."""

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                         If None, uses settings.storage_root.
        """
        self.backup_dir = (Path(storage_root or settings.storage_root) / "backups").resolve()
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        logger.info("BackupFileService initialized with backup_dir=%s", self.backup_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def owner_dir(self, owner_id: str) -> Path:
        # Hashed: owner ids are opaque and may contain path separators
        digest = hashlib.sha256(owner_id.encode("utf-8")).hexdigest()[:16]
        return self.backup_dir / digest

    def resolve_backup_path(self, owner_id: str, filename: str) -> Path:
        """
        Map a client-supplied filename to a path inside the backup directory.

        Raises:
            ValidationError: the name escapes the directory or isn't a .json backup
        """
        directory = self.owner_dir(owner_id)
        candidate = (directory / filename).resolve()
        if candidate.parent != directory or candidate.suffix.lower() != ".json":
            raise ValidationError(
                message="Invalid backup filename",
                field="filename",
                context={"filename": filename},
            )
        return candidate

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the declared size first (before reading), then the actual one.

        Raises:
            ValidationError with a human-readable size limit message
        """
        max_mb = settings.max_import_size / (1024 * 1024)

        if content_length and content_length > settings.max_import_size:
            raise ValidationError(
                message=f"Backup size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_import_size:
            raise ValidationError(
                message=f"Backup size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    async def read_limited(
        self, chunks: AsyncIterator[bytes], content_length: Optional[int] = None
    ) -> bytes:
        """
        Collect an uploaded body, stopping at the first chunk past the limit.

        A declared Content-Length is checked before anything is read; a body
        sent without one (chunked transfer) is measured as it arrives.

        Raises:
            ValidationError: declared or received size over max_import_size
        """
        self.validate_size(content_length, 0)
        received = bytearray()
        async for chunk in chunks:
            received.extend(chunk)
            self.validate_size(None, len(received))
        return bytes(received)

    @staticmethod
    def parse_snapshot(raw: bytes) -> Any:
        """
        Decode an uploaded snapshot body. Shape checks belong to SnapshotRestorer.

        Raises:
            ValidationError: not UTF-8 JSON
        """
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(
                message="Backup is not valid JSON",
                field="file",
                context={"error": str(e)},
            )

    # ── Storage ───────────────────────────────────────────────────────────

    def _unique_path(self, directory: Path, filename: str) -> Path:
        # Two backups in the same second get -1, -2, ... suffixes
        path = directory / filename
        counter = 1
        while path.exists():
            path = directory / f"{Path(filename).stem}-{counter}{Path(filename).suffix}"
            counter += 1
        return path

    async def save_snapshot(self, snapshot: Snapshot) -> BackupFileInfo:
        """
        Write a snapshot as pretty-printed JSON.

        Raises:
            FileStorageError: directory not writable, disk full, ...
        """
        directory = self.owner_dir(snapshot.metadata.owner_id)
        path = self._unique_path(directory, generate_backup_filename("json"))
        content = snapshot.model_dump_json(indent=2)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to write backup %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save the backup file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Backup stored: %s (%d items)", path.name, snapshot.metadata.total_items)
        return self._describe(path)

    async def load_snapshot(self, owner_id: str, filename: str) -> Dict[str, Any]:
        """
        Read a stored backup back into its raw JSON form.

        The payload is returned unvalidated; SnapshotRestorer owns format checks.

        Raises:
            ValidationError: bad filename, oversized file, or not valid JSON
            NotFoundError: no such backup
            FileStorageError: the file exists but can't be read
        """
        path = self.resolve_backup_path(owner_id, filename)
        if not path.is_file():
            raise NotFoundError(resource="backup", resource_id=filename)

        self.validate_size(None, path.stat().st_size)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            logger.error("Failed to read backup %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to read the backup file.",
                context={"path": str(path), "os_error": str(e)},
            )

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValidationError(
                message="Backup file is not valid JSON",
                field="filename",
                context={"filename": filename, "line": e.lineno},
            )

    def list_backups(self, owner_id: str) -> List[BackupFileInfo]:
        """The owner's stored backups, newest first."""
        paths = [p for p in self.owner_dir(owner_id).glob(f"{BACKUP_PREFIX}*.json") if p.is_file()]
        infos = [self._describe(p) for p in paths]
        return sorted(infos, key=lambda info: info.modified_at, reverse=True)

    def _describe(self, path: Path) -> BackupFileInfo:
        stat = path.stat()
        return BackupFileInfo(
            filename=path.name,
            size_bytes=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
# Storage root doesn't change; no per-request state
backup_file_service = BackupFileService()
