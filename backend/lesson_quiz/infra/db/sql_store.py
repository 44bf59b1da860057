"""DataStore implementation over the SQLAlchemy tables."""
import logging
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lesson_quiz.domain.common.store import Filters, Order, Row, StoreConflictError, StoreError
from lesson_quiz.infra.db import models  # noqa: F401  (registers tables on Base.metadata)
from lesson_quiz.infra.db.base import Base

logger = logging.getLogger(__name__)

_MULTI_VALUE = (list, tuple, set, frozenset)


def _is_unique_violation(error: IntegrityError) -> bool:
    orig = error.orig
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate key" in message


class SqlDataStore:
    """Filtered read, insert and conditional update with one transaction per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find(
        self,
        collection: str,
        filters: Filters,
        *,
        order: Sequence[Order] = (),
        limit: Optional[int] = None,
    ) -> list[Row]:
        table = self._table(collection)
        stmt = select(table).where(*self._where(table, filters))
        for key in order:
            column = self._column(table, key.column)
            stmt = stmt.order_by(column.desc() if key.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            logger.error("Find on %s failed: %s", collection, e)
            raise StoreError(f"Find on {collection} failed") from e

    async def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        table = self._table(collection)
        values = self._values(table, row)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(insert(table).values(**values).returning(*table.c))
                    created = dict(result.mappings().one())
            return created
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise StoreConflictError(f"Duplicate row in {collection}", status_code=409) from e
            logger.error("Insert into %s violated a constraint: %s", collection, e.orig)
            raise StoreError(f"Insert into {collection} failed") from e
        except SQLAlchemyError as e:
            logger.error("Insert into %s failed: %s", collection, e)
            raise StoreError(f"Insert into {collection} failed") from e

    async def update(self, collection: str, filters: Filters, patch: Mapping[str, Any]) -> list[Row]:
        table = self._table(collection)
        stmt = (
            update(table)
            .where(*self._where(table, filters))
            .values(**self._values(table, patch))
            .returning(*table.c)
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(stmt)
                    updated = [dict(row) for row in result.mappings().all()]
            return updated
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise StoreConflictError(f"Duplicate row in {collection}", status_code=409) from e
            raise StoreError(f"Update on {collection} failed") from e
        except SQLAlchemyError as e:
            logger.error("Update on %s failed: %s", collection, e)
            raise StoreError(f"Update on {collection} failed") from e

    @staticmethod
    def _table(collection: str) -> Table:
        table = Base.metadata.tables.get(collection)
        if table is None:
            raise StoreError(f"Unknown collection: {collection}")
        return table

    @staticmethod
    def _column(table: Table, name: str):
        if name not in table.c:
            raise StoreError(f"Unknown column {table.name}.{name}")
        return table.c[name]

    def _where(self, table: Table, filters: Filters) -> list:
        clauses = []
        for name, value in filters.items():
            column = self._column(table, name)
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, _MULTI_VALUE):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        return clauses

    def _values(self, table: Table, row: Mapping[str, Any]) -> dict[str, Any]:
        for name in row:
            self._column(table, name)
        return dict(row)
