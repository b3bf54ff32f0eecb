"""Upload (batch) repository."""
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finboard.models.base import utcnow
from finboard.models.transaction import Transaction
from finboard.models.upload import Upload
from finboard.repositories.base import BaseRepository


class UploadRepository(BaseRepository[Upload]):
    """Repository for Upload model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Upload)

    async def insert_if_absent(
        self, upload_id: str, filename: str, timestamp: str, transaction_count: int
    ) -> bool:
        """Insert the upload row unless one with this id already exists.

        Returns True when a new row was written.
        """
        stmt = self.insert_ignoring_conflicts(
            [
                {
                    "id": upload_id,
                    "filename": filename,
                    "timestamp": timestamp,
                    "transaction_count": transaction_count,
                    "created_at": utcnow(),
                }
            ]
        ).returning(Upload.id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def recount(self, upload_id: str) -> Upload | None:
        """Set transaction_count to the number of rows actually stored for this upload."""
        stored = await self.db.scalar(
            select(func.count()).select_from(Transaction).where(Transaction.upload_id == upload_id)
        )
        await self.db.execute(
            update(Upload).where(Upload.id == upload_id).values(transaction_count=stored or 0)
        )
        return await self.get_by_id(upload_id)

    async def list_newest_first(self) -> list[Upload]:
        result = await self.db.execute(select(Upload).order_by(Upload.created_at.desc()))
        return list(result.scalars().all())

    async def delete_all(self) -> int:
        """Delete every upload; the database cascades the delete to transactions."""
        result = await self.db.execute(delete(Upload))
        return result.rowcount or 0
