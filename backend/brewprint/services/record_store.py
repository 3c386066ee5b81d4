"""
Brewprint Backend — Record Store (Persistence Boundary)
========================================================

What:  The narrow persistence contract every service talks to, plus its
       async SQLAlchemy implementation.
Why:   Services address data by collection name and simple equality
       filters; nothing above this module builds SQL.
How:   `RecordStore` is the abstract interface. `SqlAlchemyRecordStore`
       maps collection names to ORM models and runs every call inside its
       own `session_scope()`.
Who:   Injected into routes via `brewprint.dependencies.get_record_store`;
       tests substitute an in-memory implementation.

Error Contract:
    Uniqueness violation    → ConflictError(collection)
    Missing id              → NotFoundError(collection, id)
    Anything else           → DatabaseError (driver text kept in context only)

Session-per-call:
    SnapshotBuilder issues nine queries concurrently. An AsyncSession is
    not safe for concurrent use, so each call opens, commits and closes its
    own session. A side effect is that every write call is one transaction:
    a failed `insert_many` leaves no rows behind.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from brewprint.database import session_scope
from brewprint.exceptions import (
    BrewprintError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from brewprint.models import COLLECTION_MODELS
from brewprint.models.base import OwnedRecordMixin

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class RecordStore(ABC):
    """
    Abstract persistence boundary, addressed per named collection.

    Contract:
        - Records are plain dicts of column values
        - `id`, `created_at` and `updated_at` are assigned by the store
        - Filters are equality matches, ANDed together
    """

    @abstractmethod
    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        """Insert one record and return it with its store-assigned fields."""
        ...

    @abstractmethod
    async def insert_many(
        self, collection: str, records: Sequence[Mapping[str, Any]]
    ) -> List[str]:
        """
        Insert a batch atomically.

        Returns:
            The new ids, in input order.
        """
        ...

    @abstractmethod
    async def update_by_id(
        self, collection: str, record_id: str, changes: Mapping[str, Any]
    ) -> Record:
        ...

    @abstractmethod
    async def delete_by_id(self, collection: str, record_id: str) -> None:
        ...

    @abstractmethod
    async def delete_where(self, collection: str, filters: Mapping[str, Any]) -> int:
        """Delete every matching record; returns how many were removed."""
        ...

    @abstractmethod
    async def get_by_id(self, collection: str, record_id: str) -> Record:
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Record]:
        ...


class SqlAlchemyRecordStore(RecordStore):
    """RecordStore over async SQLAlchemy (PostgreSQL in production, SQLite locally)."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        # None → database.async_session_factory, resolved inside session_scope
        self._session_factory = session_factory

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _model(collection: str) -> Type[OwnedRecordMixin]:
        try:
            return COLLECTION_MODELS[collection]
        except KeyError:
            raise ValidationError(
                message=f"Unknown collection '{collection}'",
                field="collection",
            )

    @staticmethod
    def _conditions(model: Type[OwnedRecordMixin], filters: Mapping[str, Any]) -> list:
        conditions = []
        for key, value in filters.items():
            column = model.__table__.columns.get(key)
            if column is None:
                raise ValidationError(
                    message=f"Unknown field '{key}' for {model.__tablename__}",
                    field=key,
                )
            conditions.append(column.is_(None) if value is None else column == value)
        return conditions

    @staticmethod
    def _translate(collection: str, operation: str, exc: Exception) -> BrewprintError:
        """Map a driver/ORM exception onto the store's error contract."""
        if isinstance(exc, IntegrityError):
            detail = str(exc.orig).lower()
            if "unique" in detail or "duplicate" in detail:
                logger.info("Uniqueness conflict in %s during %s", collection, operation)
                return ConflictError(
                    collection=collection,
                    context={"operation": operation},
                )
        logger.error(
            "Store %s on %s failed: %s", operation, collection, str(exc), exc_info=True,
        )
        return DatabaseError(
            context={
                "collection": collection,
                "operation": operation,
                "error_type": type(exc).__name__,
                "original_error": str(exc),
            },
        )

    # ── Writes ────────────────────────────────────────────────────────────

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        model = self._model(collection)
        try:
            async with session_scope(self._session_factory) as session:
                row = model(**record)
                session.add(row)
                await session.flush()
                created = row.to_dict()
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "insert", e)

        logger.debug("Inserted %s %s", collection, created["id"])
        return created

    async def insert_many(
        self, collection: str, records: Sequence[Mapping[str, Any]]
    ) -> List[str]:
        model = self._model(collection)
        if not records:
            return []
        try:
            async with session_scope(self._session_factory) as session:
                rows = [model(**record) for record in records]
                session.add_all(rows)
                await session.flush()
                ids = [row.id for row in rows]
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "insert_many", e)

        logger.debug("Inserted %d %s", len(ids), collection)
        return ids

    async def update_by_id(
        self, collection: str, record_id: str, changes: Mapping[str, Any]
    ) -> Record:
        model = self._model(collection)
        try:
            async with session_scope(self._session_factory) as session:
                row = await session.get(model, record_id)
                if row is None:
                    raise NotFoundError(resource=collection, resource_id=record_id)
                for key, value in changes.items():
                    setattr(row, key, value)
                await session.flush()
                updated = row.to_dict()
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "update_by_id", e)
        return updated

    async def delete_by_id(self, collection: str, record_id: str) -> None:
        model = self._model(collection)
        try:
            async with session_scope(self._session_factory) as session:
                row = await session.get(model, record_id)
                if row is None:
                    raise NotFoundError(resource=collection, resource_id=record_id)
                await session.delete(row)
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "delete_by_id", e)

    async def delete_where(self, collection: str, filters: Mapping[str, Any]) -> int:
        model = self._model(collection)
        conditions = self._conditions(model, filters)
        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(delete(model).where(*conditions))
                removed = result.rowcount or 0
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "delete_where", e)

        logger.debug("Deleted %d %s matching %s", removed, collection, dict(filters))
        return removed

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_by_id(self, collection: str, record_id: str) -> Record:
        model = self._model(collection)
        try:
            async with session_scope(self._session_factory) as session:
                row = await session.get(model, record_id)
                if row is None:
                    raise NotFoundError(resource=collection, resource_id=record_id)
                found = row.to_dict()
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "get_by_id", e)
        return found

    async def query(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Record]:
        model = self._model(collection)
        statement = select(model).where(*self._conditions(model, filters))
        if order_by is not None:
            column = model.__table__.columns.get(order_by)
            if column is None:
                raise ValidationError(
                    message=f"Unknown sort field '{order_by}' for {collection}",
                    field="order_by",
                )
            statement = statement.order_by(column.desc() if descending else column.asc())

        try:
            async with session_scope(self._session_factory) as session:
                result = await session.execute(statement)
                rows = [row.to_dict() for row in result.scalars().all()]
        except BrewprintError:
            raise
        except Exception as e:
            raise self._translate(collection, "query", e)
        return rows


# ── Singleton Instance ────────────────────────────────────────────────────
# Stateless apart from the (shared) session factory
record_store = SqlAlchemyRecordStore()
