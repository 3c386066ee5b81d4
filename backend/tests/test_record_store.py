"""
Brewprint Backend — Record Store Tests
=======================================

What:  Tests for SqlAlchemyRecordStore.
How:   Error translation with a mocked session; the contract itself against
       a throwaway SQLite database (aiosqlite) per test.

What we test:
    ✅ Unknown collection / field / sort field → ValidationError
    ✅ Uniqueness violation → ConflictError, anything else → DatabaseError
    ✅ Store-assigned ids and timestamps, equality filters, ordering
    ✅ insert_many is all-or-nothing
    ✅ Missing ids → NotFoundError
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from brewprint.database import Base
from brewprint.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from brewprint.services.record_store import SqlAlchemyRecordStore

from conftest import OTHER_OWNER, OWNER


def scope_yielding(session):
    @asynccontextmanager
    async def scope(factory=None):
        yield session
    return scope


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    return session


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/store.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield SqlAlchemyRecordStore(session_factory=factory)
    await engine.dispose()


class TestArgumentValidation:

    def setup_method(self):
        self.store = SqlAlchemyRecordStore()

    @pytest.mark.asyncio
    async def test_unknown_collection(self):
        with pytest.raises(ValidationError) as exc_info:
            await self.store.query("teapots", {})
        assert exc_info.value.field == "collection"

    @pytest.mark.asyncio
    async def test_unknown_filter_field(self):
        with pytest.raises(ValidationError):
            await self.store.query("beans", {"flavour": "sweet"})

    @pytest.mark.asyncio
    async def test_unknown_sort_field(self):
        with pytest.raises(ValidationError):
            await self.store.query("beans", {"owner_id": OWNER}, order_by="popularity")


class TestErrorTranslation:

    def setup_method(self):
        self.store = SqlAlchemyRecordStore()

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_conflict(self, mock_session):
        mock_session.flush.side_effect = IntegrityError(
            "INSERT INTO beans ...", {}, Exception("UNIQUE constraint failed: beans.owner_id, beans.name"),
        )

        with patch("brewprint.services.record_store.session_scope", scope_yielding(mock_session)):
            with pytest.raises(ConflictError) as exc_info:
                await self.store.insert("beans", {"owner_id": OWNER, "name": "Kenya"})

        assert exc_info.value.collection == "beans"

    @pytest.mark.asyncio
    async def test_postgres_duplicate_key_becomes_conflict(self, mock_session):
        mock_session.flush.side_effect = IntegrityError(
            "INSERT INTO tags ...", {}, Exception('duplicate key value violates unique constraint "uq_tags_owner_name"'),
        )

        with patch("brewprint.services.record_store.session_scope", scope_yielding(mock_session)):
            with pytest.raises(ConflictError):
                await self.store.insert_many("tags", [{"owner_id": OWNER, "name": "fruity"}])

    @pytest.mark.asyncio
    async def test_other_integrity_error_becomes_database_error(self, mock_session):
        mock_session.flush.side_effect = IntegrityError(
            "INSERT INTO beans ...", {}, Exception("NOT NULL constraint failed: beans.name"),
        )

        with patch("brewprint.services.record_store.session_scope", scope_yielding(mock_session)):
            with pytest.raises(DatabaseError) as exc_info:
                await self.store.insert("beans", {"owner_id": OWNER})

        assert exc_info.value.context["collection"] == "beans"
        assert "NOT NULL" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_operational_error_becomes_database_error(self, mock_session):
        mock_session.execute.side_effect = OperationalError("SELECT ...", {}, Exception("database is locked"))

        with patch("brewprint.services.record_store.session_scope", scope_yielding(mock_session)):
            with pytest.raises(DatabaseError) as exc_info:
                await self.store.query("recipes", {"owner_id": OWNER})

        assert exc_info.value.context["operation"] == "query"

    @pytest.mark.asyncio
    async def test_missing_row_is_not_found(self, mock_session):
        mock_session.get.return_value = None

        with patch("brewprint.services.record_store.session_scope", scope_yielding(mock_session)):
            with pytest.raises(NotFoundError):
                await self.store.update_by_id("recipes", "missing", {"status": "final"})


class TestSqliteContract:

    @pytest.mark.asyncio
    async def test_insert_assigns_identity(self, sqlite_store):
        created = await sqlite_store.insert("beans", {"owner_id": OWNER, "name": "Kenya AA"})

        assert len(created["id"]) == 36
        assert created["created_at"] is not None
        assert created["updated_at"] is not None
        assert created["origin"] is None

    @pytest.mark.asyncio
    async def test_defaults_and_json_columns(self, sqlite_store):
        created = await sqlite_store.insert("recipes", {
            "owner_id": OWNER,
            "name": "Test",
            "method": "aeropress",
            "parameters": {"coffee_grams": 17, "water_grams": 220, "water_temp": 85},
        })

        fetched = await sqlite_store.get_by_id("recipes", created["id"])
        assert fetched["status"] == "experimenting"
        assert fetched["version"] == "v1"
        assert fetched["difficulty"] == 1
        assert fetched["steps"] == []
        assert fetched["parameters"]["water_temp"] == 85

    @pytest.mark.asyncio
    async def test_query_filters_and_orders(self, sqlite_store):
        await sqlite_store.insert("tags", {"owner_id": OWNER, "name": "sweet"})
        await sqlite_store.insert("tags", {"owner_id": OWNER, "name": "acidic"})
        await sqlite_store.insert("tags", {"owner_id": OTHER_OWNER, "name": "bitter"})

        ascending = await sqlite_store.query("tags", {"owner_id": OWNER}, order_by="name")
        descending = await sqlite_store.query("tags", {"owner_id": OWNER}, order_by="name", descending=True)

        assert [t["name"] for t in ascending] == ["acidic", "sweet"]
        assert [t["name"] for t in descending] == ["sweet", "acidic"]

    @pytest.mark.asyncio
    async def test_null_filter_matches_missing_values(self, sqlite_store):
        await sqlite_store.insert("folders", {"owner_id": OWNER, "name": "Top"})

        roots = await sqlite_store.query("folders", {"owner_id": OWNER, "parent_id": None})

        assert [f["name"] for f in roots] == ["Top"]

    @pytest.mark.asyncio
    async def test_duplicate_name_is_conflict(self, sqlite_store):
        await sqlite_store.insert("beans", {"owner_id": OWNER, "name": "Kenya AA"})

        with pytest.raises(ConflictError):
            await sqlite_store.insert("beans", {"owner_id": OWNER, "name": "Kenya AA"})

        # same name, different owner is fine
        await sqlite_store.insert("beans", {"owner_id": OTHER_OWNER, "name": "Kenya AA"})

    @pytest.mark.asyncio
    async def test_insert_many_is_atomic(self, sqlite_store):
        with pytest.raises(ConflictError):
            await sqlite_store.insert_many("beans", [
                {"owner_id": OWNER, "name": "A"},
                {"owner_id": OWNER, "name": "B"},
                {"owner_id": OWNER, "name": "A"},
            ])

        assert await sqlite_store.query("beans", {"owner_id": OWNER}) == []

    @pytest.mark.asyncio
    async def test_insert_many_returns_ids_in_order(self, sqlite_store):
        ids = await sqlite_store.insert_many("brewers", [
            {"owner_id": OWNER, "name": "V60"},
            {"owner_id": OWNER, "name": "Chemex"},
        ])

        assert [(await sqlite_store.get_by_id("brewers", i))["name"] for i in ids] == ["V60", "Chemex"]
        assert await sqlite_store.insert_many("brewers", []) == []

    @pytest.mark.asyncio
    async def test_update_and_delete(self, sqlite_store):
        grinder = await sqlite_store.insert("grinders", {"owner_id": OWNER, "name": "C40"})

        updated = await sqlite_store.update_by_id("grinders", grinder["id"], {"is_default": True})
        assert updated["is_default"] is True

        await sqlite_store.delete_by_id("grinders", grinder["id"])
        with pytest.raises(NotFoundError):
            await sqlite_store.get_by_id("grinders", grinder["id"])
        with pytest.raises(NotFoundError):
            await sqlite_store.delete_by_id("grinders", grinder["id"])

    @pytest.mark.asyncio
    async def test_delete_where_counts_and_scopes(self, sqlite_store):
        await sqlite_store.insert_many("tags", [
            {"owner_id": OWNER, "name": "a"},
            {"owner_id": OWNER, "name": "b"},
            {"owner_id": OTHER_OWNER, "name": "a"},
        ])

        removed = await sqlite_store.delete_where("tags", {"owner_id": OWNER})

        assert removed == 2
        assert len(await sqlite_store.query("tags", {"owner_id": OTHER_OWNER})) == 1
