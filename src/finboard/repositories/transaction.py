"""Transaction repository with dedup lookups and chunked writes."""
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finboard.models.transaction import Transaction
from finboard.repositories.base import BaseRepository

# Keeps IN (...) lists well below driver bind-parameter limits.
LOOKUP_CHUNK_SIZE = 500


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def existing_source_ids(self, source_ids: Iterable[str]) -> set[str]:
        """Return the subset of ``source_ids`` already stored (by any upload)."""
        pending = sorted({s for s in source_ids if s})
        found: set[str] = set()
        for start in range(0, len(pending), LOOKUP_CHUNK_SIZE):
            chunk = pending[start : start + LOOKUP_CHUNK_SIZE]
            result = await self.db.execute(
                select(Transaction.source_id).where(Transaction.source_id.in_(chunk))
            )
            found.update(result.scalars().all())
        return found

    async def insert_chunk(self, rows: list[dict]) -> list[str]:
        """Insert rows in one statement, skipping any that collide.

        Returns the ids of the rows actually written.
        """
        if not rows:
            return []
        stmt = self.insert_ignoring_conflicts(rows).returning(Transaction.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_in_creation_order(self) -> list[Transaction]:
        result = await self.db.execute(
            select(Transaction).order_by(Transaction.created_at.asc(), Transaction.id.asc())
        )
        return list(result.scalars().all())

