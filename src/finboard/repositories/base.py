"""Base repository with lookups and conflict-ignoring inserts."""
from typing import Generic, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from finboard.models.base import Base

T = TypeVar("T", bound=Base)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class BaseRepository(Generic[T]):
    """Generic repository providing read and insert-or-ignore operations for any model."""

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: str) -> T | None:
        """Get a single record by ID, refreshed from the database."""
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def insert_ignoring_conflicts(self, rows: list[dict]):
        """INSERT ... ON CONFLICT DO NOTHING for the session's dialect.

        Uniqueness is enforced by the store; a row that collides with any
        unique key is silently skipped.
        """
        dialect = self.db.get_bind().dialect.name
        try:
            insert = _INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"insert-or-ignore is not supported for {dialect}") from None
        return insert(self.model).values(rows).on_conflict_do_nothing()
