"""
Brewprint Backend — Backup Stats, Reset and CSV Export Tests
=============================================================

What we test:
    ✅ Stats count the seven entity collections for the owner only
    ✅ Reset requires the confirmation token and removes only the owner's data
    ✅ CSV headers, row content, actual-over-target values, quoting
"""

import csv
import io
from datetime import date

import pytest

from brewprint.exceptions import ValidationError
from brewprint.services.backup_service import CLEAR_CONFIRMATION_TOKEN, CLEAR_ORDER, BackupService
from brewprint.services.csv_export import BEAN_COLUMNS, RECIPE_COLUMNS, CsvExporter

from conftest import OTHER_OWNER, OWNER


def parse_csv(content):
    return list(csv.reader(io.StringIO(content)))


class TestBackupStats:

    @pytest.mark.asyncio
    async def test_counts_owner_records(self, seeded_store):
        store, _ = seeded_store

        stats = await BackupService().backup_stats(store, OWNER)

        assert stats.beans == 2
        assert stats.recipes == 2
        assert stats.folders == 2
        assert stats.tags == 2
        assert stats.total_items == 11

    @pytest.mark.asyncio
    async def test_empty_account(self, store):
        stats = await BackupService().backup_stats(store, OWNER)

        assert stats.total_items == 0


class TestClearAllData:

    @pytest.mark.asyncio
    async def test_wrong_token_deletes_nothing(self, seeded_store):
        store, _ = seeded_store

        with pytest.raises(ValidationError):
            await BackupService().clear_all_data(store, OWNER, "yes please")

        assert store.calls == []
        assert len(store.rows("recipes", owner_id=OWNER)) == 2

    @pytest.mark.asyncio
    async def test_deletes_everything_for_owner(self, seeded_store):
        store, _ = seeded_store

        deleted = await BackupService().clear_all_data(store, OWNER, CLEAR_CONFIRMATION_TOKEN)

        assert deleted["recipes"] == 2
        assert deleted["tag_memberships"] == 1
        assert sum(deleted.values()) == 13
        for collection in CLEAR_ORDER:
            assert store.rows(collection, owner_id=OWNER) == []
        assert len(store.rows("beans", owner_id=OTHER_OWNER)) == 1

    @pytest.mark.asyncio
    async def test_memberships_go_before_recipes(self, seeded_store):
        store, _ = seeded_store

        await BackupService().clear_all_data(store, OWNER, CLEAR_CONFIRMATION_TOKEN)

        order = [c for op, c in store.calls if op == "delete_where"]
        assert order.index("tag_memberships") < order.index("recipes")
        assert order.index("folder_memberships") < order.index("folders")
        assert order.index("recipes") < order.index("beans")


class TestCsvExport:

    def setup_method(self):
        self.exporter = CsvExporter()

    @pytest.mark.asyncio
    async def test_empty_recipes_has_header_only(self, store):
        content = await self.exporter.export_recipes_csv(store, OWNER)

        assert parse_csv(content) == [RECIPE_COLUMNS]

    @pytest.mark.asyncio
    async def test_recipe_rows_newest_first(self, seeded_store):
        store, ids = seeded_store

        rows = parse_csv(await self.exporter.export_recipes_csv(store, OWNER))

        assert rows[0] == RECIPE_COLUMNS
        assert [row[0] for row in rows[1:]] == ["Morning V60 (v2)", "Morning V60"]
        newest = dict(zip(RECIPE_COLUMNS, rows[1]))
        assert newest["Method"] == "v60"
        assert newest["Coffee (g)"] == "15"
        assert newest["Temperature (°C)"] == "94"
        assert newest["Version"] == "v2"
        assert newest["Rating"] == ""

    @pytest.mark.asyncio
    async def test_recorded_values_win_over_targets(self, seeded_store):
        store, ids = seeded_store
        await store.update_by_id("recipes", ids["recipe"], {
            "actual_parameters": {"coffee_grams": 16.5, "water_grams": 260, "water_temp": 92},
            "rating": 4,
        })

        rows = parse_csv(await self.exporter.export_recipes_csv(store, OWNER))

        original = dict(zip(RECIPE_COLUMNS, rows[2]))
        assert original["Coffee (g)"] == "16.5"
        assert original["Water (g)"] == "260"
        assert original["Grind Setting"] == "18"
        assert original["Rating"] == "4"

    @pytest.mark.asyncio
    async def test_beans_sorted_by_name_with_quoting(self, store):
        await store.insert("beans", {
            "owner_id": OWNER,
            "name": "Kenya, Nyeri",
            "supplier": "Square Mile",
            "roast_date": date(2024, 2, 1),
            "my_notes": 'says "juicy"',
        })
        await store.insert("beans", {"owner_id": OWNER, "name": "Brazil"})

        content = await self.exporter.export_beans_csv(store, OWNER)
        rows = parse_csv(content)

        assert rows[0] == BEAN_COLUMNS
        assert [row[0] for row in rows[1:]] == ["Brazil", "Kenya, Nyeri"]
        kenya = dict(zip(BEAN_COLUMNS, rows[2]))
        assert kenya["Roast Date"] == "2024-02-01"
        assert kenya["Notes"] == 'says "juicy"'
        assert '"Kenya, Nyeri"' in content
