"""
Brewprint Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── store: InMemoryRecordStore (no database needed)
    ├── temp_storage: Temporary directory for backup file operations
    ├── sample_recipe_data: Valid RecipeCreate payload
    ├── seeded_store: One owner's full library across all nine collections
    └── test_client: HTTPX AsyncClient wired to the app with `store` injected
"""

import os
import tempfile

# Override settings for testing BEFORE any brewprint imports
# File-backed SQLite: the in-memory variant rejects pool_size
_test_root = tempfile.mkdtemp(prefix="brewprint_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_root}/test.db"
os.environ["STORAGE_ROOT"] = os.path.join(_test_root, "storage")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import UniqueConstraint

from brewprint.exceptions import ConflictError, NotFoundError, ValidationError
from brewprint.models import COLLECTION_MODELS
from brewprint.models.base import new_id
from brewprint.services.record_store import Record, RecordStore


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Record Store
# ══════════════════════════════════════════════════════════════════════════

class InMemoryRecordStore(RecordStore):
    """
    RecordStore backed by dicts, honouring the same contract as the
    SQLAlchemy store: column defaults, per-owner unique constraints,
    atomic insert_many, NotFoundError on missing ids.

    Extras for tests:
        calls:  (operation, collection) log, in call order
        fail(): make an operation on a collection raise a given exception
    """

    def __init__(self):
        self.tables: Dict[str, Dict[str, Record]] = {name: {} for name in COLLECTION_MODELS}
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[Tuple[str, str], Exception] = {}
        # Strictly increasing timestamps keep created_at ordering deterministic
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def fail(self, operation: str, collection: str, exc: Exception) -> None:
        self._failures[(operation, collection)] = exc

    def rows(self, collection: str, **filters: Any) -> List[Record]:
        return [
            dict(row) for row in self.tables[collection].values()
            if all(row.get(key) == value for key, value in filters.items())
        ]

    # ── Helpers ───────────────────────────────────────────────────────────

    def _enter(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if collection not in self.tables:
            raise ValidationError(message=f"Unknown collection '{collection}'", field="collection")
        exc = self._failures.get((operation, collection))
        if exc is not None:
            raise exc

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _build_row(self, collection: str, record: Mapping[str, Any]) -> Record:
        table = COLLECTION_MODELS[collection].__table__
        unknown = set(record) - {column.key for column in table.columns}
        if unknown:
            raise TypeError(f"Unknown fields for {collection}: {sorted(unknown)}")

        now = self._tick()
        row: Record = {}
        for column in table.columns:
            if column.key in record:
                row[column.key] = record[column.key]
            elif column.key in ("created_at", "updated_at"):
                row[column.key] = now
            elif column.key == "id":
                row["id"] = new_id()
            elif column.default is not None:
                default = column.default
                row[column.key] = default.arg(None) if default.is_callable else default.arg
            else:
                row[column.key] = None
        return row

    def _unique_keys(self, collection: str) -> List[Tuple[str, ...]]:
        table = COLLECTION_MODELS[collection].__table__
        return [
            tuple(column.key for column in constraint.columns)
            for constraint in table.constraints
            if isinstance(constraint, UniqueConstraint)
        ]

    def _check_unique(self, collection: str, rows: Sequence[Record], exclude_id: Optional[str] = None) -> None:
        for keys in self._unique_keys(collection):
            seen = {
                tuple(row[key] for key in keys)
                for row in self.tables[collection].values()
                if row["id"] != exclude_id
            }
            for row in rows:
                value = tuple(row[key] for key in keys)
                if value in seen:
                    raise ConflictError(collection=collection)
                seen.add(value)

    # ── RecordStore ───────────────────────────────────────────────────────

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        self._enter("insert", collection)
        row = self._build_row(collection, record)
        self._check_unique(collection, [row])
        self.tables[collection][row["id"]] = row
        return dict(row)

    async def insert_many(self, collection: str, records: Sequence[Mapping[str, Any]]) -> List[str]:
        self._enter("insert_many", collection)
        rows = [self._build_row(collection, record) for record in records]
        self._check_unique(collection, rows)
        for row in rows:
            self.tables[collection][row["id"]] = row
        return [row["id"] for row in rows]

    async def update_by_id(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> Record:
        self._enter("update_by_id", collection)
        current = self.tables[collection].get(record_id)
        if current is None:
            raise NotFoundError(resource=collection, resource_id=record_id)
        updated = {**current, **changes, "updated_at": self._tick()}
        self._check_unique(collection, [updated], exclude_id=record_id)
        self.tables[collection][record_id] = updated
        return dict(updated)

    async def delete_by_id(self, collection: str, record_id: str) -> None:
        self._enter("delete_by_id", collection)
        if self.tables[collection].pop(record_id, None) is None:
            raise NotFoundError(resource=collection, resource_id=record_id)

    async def delete_where(self, collection: str, filters: Mapping[str, Any]) -> int:
        self._enter("delete_where", collection)
        doomed = [row["id"] for row in self.rows(collection, **filters)]
        for record_id in doomed:
            del self.tables[collection][record_id]
        return len(doomed)

    async def get_by_id(self, collection: str, record_id: str) -> Record:
        self._enter("get_by_id", collection)
        row = self.tables[collection].get(record_id)
        if row is None:
            raise NotFoundError(resource=collection, resource_id=record_id)
        return dict(row)

    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Record]:
        self._enter("query", collection)
        rows = self.rows(collection, **filters)
        if order_by is not None:
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        return rows


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

OWNER = "owner-alice"
OTHER_OWNER = "owner-bob"


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage root per test (pytest cleans it up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_recipe_data():
    """Valid RecipeCreate payload: a 15g / 250g V60 with two steps."""
    return {
        "name": "Morning V60",
        "description": "Bright and clean",
        "method": "v60",
        "difficulty": 2,
        "parameters": {
            "coffee_grams": 15,
            "water_grams": 250,
            "water_temp": 94,
            "grind_setting": 18,
            "bloom_time": 45,
            "total_time": 180,
            "ratio": "1:16.7",
        },
        "target_metrics": {"target_tds": 1.35, "target_extraction": 20.5},
        "steps": [
            {"id": 1, "order": 1, "title": "Bloom", "duration": 45, "water_amount": 50},
            {"id": 2, "order": 2, "title": "Main Pour", "duration": 90, "water_amount": 200,
             "technique": "circular"},
        ],
    }


@pytest_asyncio.fixture
async def seeded_store(store, sample_recipe_data):
    """
    One owner's library: every collection populated, with a recipe that
    references equipment, a branch of it, a nested folder, and memberships.

    Returns:
        (store, ids) where ids maps a short label to each new record id.
    """
    ids: Dict[str, str] = {}
    ids["bean"] = (await store.insert("beans", {"owner_id": OWNER, "name": "Ethiopia Guji", "origin": "Ethiopia"}))["id"]
    ids["bean2"] = (await store.insert("beans", {"owner_id": OWNER, "name": "Colombia Huila"}))["id"]
    ids["grinder"] = (await store.insert("grinders", {"owner_id": OWNER, "name": "Comandante", "is_default": True}))["id"]
    ids["brewer"] = (await store.insert("brewers", {"owner_id": OWNER, "name": "Hario V60 02"}))["id"]
    ids["water"] = (await store.insert("water_profiles", {"owner_id": OWNER, "name": "Third Wave"}))["id"]
    ids["folder"] = (await store.insert("folders", {"owner_id": OWNER, "name": "Daily"}))["id"]
    ids["subfolder"] = (await store.insert(
        "folders", {"owner_id": OWNER, "name": "Weekend", "parent_id": ids["folder"]},
    ))["id"]
    await store.insert("tags", {"owner_id": OWNER, "name": "fruity"})
    await store.insert("tags", {"owner_id": OWNER, "name": "bright"})

    recipe = dict(
        sample_recipe_data,
        owner_id=OWNER,
        status="experimenting",
        version="v1",
        bean_id=ids["bean"],
        grinder_id=ids["grinder"],
        brewer_id=ids["brewer"],
        water_profile_id=ids["water"],
    )
    ids["recipe"] = (await store.insert("recipes", recipe))["id"]
    ids["branch"] = (await store.insert(
        "recipes", dict(recipe, name="Morning V60 (v2)", version="v2", parent_id=ids["recipe"]),
    ))["id"]

    await store.insert("folder_memberships", {"owner_id": OWNER, "folder_id": ids["folder"], "recipe_id": ids["recipe"]})
    await store.insert("tag_memberships", {"owner_id": OWNER, "recipe_id": ids["recipe"], "tag_name": "fruity"})

    # Noise from another owner that must never leak into OWNER's views
    await store.insert("beans", {"owner_id": OTHER_OWNER, "name": "Ethiopia Guji"})

    store.calls.clear()
    return store, ids


@pytest_asyncio.fixture
async def test_client(store):
    """
    HTTPX AsyncClient talking to the app through ASGITransport, with the
    RecordStore dependency overridden by the in-memory `store`.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from brewprint.dependencies import get_record_store
    from brewprint.main import app

    app.dependency_overrides[get_record_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Owner-ID": OWNER},
    ) as client:
        yield client
    app.dependency_overrides.clear()
