"""
Brewprint Backend — Backup File Service Unit Tests
===================================================

What:  Tests for backup naming, path validation and snapshot file storage.
How:   Uses temporary directories (no real storage/ writes).

What we test:
    ✅ Filename format and supported formats
    ✅ Path traversal and non-.json names rejected
    ✅ Save → list → load round trip, per-owner isolation
    ✅ Same-second saves get distinct names
    ✅ Size limits and unreadable files
    ✅ Uploaded bodies are cut off mid-stream, with or without Content-Length
"""

import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from brewprint.config import settings
from brewprint.exceptions import NotFoundError, ValidationError
from brewprint.schemas.snapshot import Snapshot, SnapshotMetadata
from brewprint.services.backup_file_service import BackupFileService, generate_backup_filename

from conftest import OTHER_OWNER, OWNER

FIXED_NAME = "brewprint-backup-2024-01-15T10-30-45.json"


def make_snapshot(owner_id=OWNER, beans=None):
    beans = beans or []
    return Snapshot(
        metadata=SnapshotMetadata(
            version="1.0.0",
            exported_at=datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc),
            owner_id=owner_id,
            total_items=len(beans),
        ),
        beans=beans, grinders=[], brewers=[], water_profiles=[], recipes=[],
        folders=[], tags=[], folder_memberships=[], tag_memberships=[],
    )


class TestGenerateBackupFilename:

    def test_json_name_format(self):
        now = datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
        assert generate_backup_filename("json", now) == FIXED_NAME

    def test_csv_name_format(self):
        now = datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        assert generate_backup_filename("csv", now) == "brewprint-backup-2024-12-31T23-59-59.csv"

    def test_name_contains_no_colons(self):
        assert ":" not in generate_backup_filename()

    def test_unsupported_format(self):
        with pytest.raises(ValidationError) as exc_info:
            generate_backup_filename("xml")
        assert exc_info.value.field == "format"


class TestResolveBackupPath:

    @pytest.mark.parametrize("filename", [
        "../secret.json",
        "../../etc/passwd",
        "/etc/passwd",
        "nested/backup.json",
        "backup.txt",
        "backup",
    ])
    def test_rejects_unsafe_names(self, temp_storage, filename):
        service = BackupFileService(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            service.resolve_backup_path(OWNER, filename)

    def test_accepts_plain_json_name(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        path = service.resolve_backup_path(OWNER, FIXED_NAME)

        assert path.parent == service.owner_dir(OWNER)
        assert path.name == FIXED_NAME

    def test_owner_dirs_are_distinct_and_inside_backup_dir(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        mine, theirs = service.owner_dir(OWNER), service.owner_dir("../" + OTHER_OWNER)

        assert mine != theirs
        assert mine.parent == service.backup_dir
        assert theirs.parent == service.backup_dir


class TestStorage:

    @pytest.mark.asyncio
    async def test_save_list_load_round_trip(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)
        snapshot = make_snapshot(beans=[{"id": "b1", "name": "Kenya AA"}])

        info = await service.save_snapshot(snapshot)
        listed = service.list_backups(OWNER)
        payload = await service.load_snapshot(OWNER, info.filename)

        assert info.filename.startswith("brewprint-backup-")
        assert info.size_bytes > 0
        assert [i.filename for i in listed] == [info.filename]
        assert payload["metadata"]["version"] == "1.0.0"
        assert payload["beans"] == [{"id": "b1", "name": "Kenya AA"}]

    @pytest.mark.asyncio
    async def test_backups_are_private_to_their_owner(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)
        info = await service.save_snapshot(make_snapshot())

        assert service.list_backups(OTHER_OWNER) == []
        with pytest.raises(NotFoundError):
            await service.load_snapshot(OTHER_OWNER, info.filename)

    @pytest.mark.asyncio
    async def test_same_second_saves_get_suffixes(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        with patch(
            "brewprint.services.backup_file_service.generate_backup_filename",
            return_value=FIXED_NAME,
        ):
            first = await service.save_snapshot(make_snapshot())
            second = await service.save_snapshot(make_snapshot())
            third = await service.save_snapshot(make_snapshot())

        assert first.filename == FIXED_NAME
        assert second.filename == "brewprint-backup-2024-01-15T10-30-45-1.json"
        assert third.filename == "brewprint-backup-2024-01-15T10-30-45-2.json"

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)
        with patch(
            "brewprint.services.backup_file_service.generate_backup_filename",
            return_value=FIXED_NAME,
        ):
            older = await service.save_snapshot(make_snapshot())
            newer = await service.save_snapshot(make_snapshot())
        directory = service.owner_dir(OWNER)
        os.utime(directory / older.filename, (1_700_000_000, 1_700_000_000))
        os.utime(directory / newer.filename, (1_700_000_100, 1_700_000_100))

        listed = service.list_backups(OWNER)

        assert [i.filename for i in listed] == [newer.filename, older.filename]

    def test_list_without_backups(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        assert service.list_backups(OWNER) == []

    @pytest.mark.asyncio
    async def test_load_missing_backup(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        with pytest.raises(NotFoundError):
            await service.load_snapshot(OWNER, FIXED_NAME)

    @pytest.mark.asyncio
    async def test_load_corrupt_backup(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)
        directory = service.owner_dir(OWNER)
        directory.mkdir(parents=True)
        (directory / FIXED_NAME).write_text("{not json", encoding="utf-8")

        with pytest.raises(ValidationError) as exc_info:
            await service.load_snapshot(OWNER, FIXED_NAME)
        assert "not valid JSON" in exc_info.value.message


class TestValidateSize:

    def test_within_limit(self, temp_storage):
        BackupFileService(storage_root=temp_storage).validate_size(1024, 1024)

    def test_declared_size_too_large(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        with pytest.raises(ValidationError) as exc_info:
            service.validate_size(settings.max_import_size + 1, 0)
        assert "exceeds maximum" in exc_info.value.message

    def test_actual_size_too_large(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            service.validate_size(None, settings.max_import_size + 1)


async def body(*chunks):
    for chunk in chunks:
        yield chunk


class TestReadLimited:

    @pytest.mark.asyncio
    async def test_collects_chunks(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)

        raw = await service.read_limited(body(b'{"metadata": ', b"{}}"), 16)

        assert raw == b'{"metadata": {}}'

    @pytest.mark.asyncio
    async def test_declared_size_rejected_before_reading(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)
        consumed = []

        async def chunks():
            consumed.append(True)
            yield b"{}"

        with pytest.raises(ValidationError):
            await service.read_limited(chunks(), settings.max_import_size + 1)
        assert consumed == []

    @pytest.mark.asyncio
    async def test_undeclared_size_stops_at_first_chunk_over(self, temp_storage):
        service = BackupFileService(storage_root=temp_storage)
        sent = []

        async def chunks():
            for _ in range(5):
                sent.append(True)
                yield b"x" * 40

        with patch.object(settings, "max_import_size", 64):
            with pytest.raises(ValidationError) as exc_info:
                await service.read_limited(chunks(), None)

        assert exc_info.value.context["actual_size"] == 80
        assert len(sent) == 2


class TestParseSnapshot:

    def test_parses_json_object(self):
        assert BackupFileService.parse_snapshot(b'{"metadata": {"version": "1.0.0"}}') == {
            "metadata": {"version": "1.0.0"},
        }

    @pytest.mark.parametrize("raw", [b"", b"{not json", b"\xc3\x28"])
    def test_rejects_non_json(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            BackupFileService.parse_snapshot(raw)

        assert exc_info.value.field == "file"
