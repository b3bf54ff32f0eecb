"""Read and clear operations over the whole store."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finboard.core.exceptions import StorageError
from finboard.models.transaction import Transaction
from finboard.models.upload import Upload
from finboard.repositories.transaction import TransactionRepository
from finboard.repositories.upload import UploadRepository

logger = logging.getLogger(__name__)


@dataclass
class LedgerSnapshot:
    uploads: list[Upload]
    transactions: list[Transaction]


class LedgerService:
    """Store-wide reads for the dashboard and the clear-all operation."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.upload_repo = UploadRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def load_all(self) -> LedgerSnapshot:
        """Uploads newest first, transactions in creation order."""
        try:
            uploads = await self.upload_repo.list_newest_first()
            transactions = await self.transaction_repo.list_in_creation_order()
        except SQLAlchemyError as e:
            raise self._storage_error("load", e) from e
        return LedgerSnapshot(uploads=uploads, transactions=transactions)

    async def load_transactions(self) -> list[Transaction]:
        try:
            return await self.transaction_repo.list_in_creation_order()
        except SQLAlchemyError as e:
            raise self._storage_error("load", e) from e

    async def clear_all(self) -> int:
        """Delete every upload and, by cascade, every transaction."""
        try:
            deleted = await self.upload_repo.delete_all()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise self._storage_error("clear", e) from e
        logger.info("Cleared all data", extra={"uploads_deleted": deleted})
        return deleted

    def _storage_error(self, operation: str, exc: SQLAlchemyError) -> StorageError:
        logger.error(
            "Ledger operation failed",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        if isinstance(exc, (OperationalError, InterfaceError)):
            return StorageError("DB_003", {"operation": operation}, http_status=503)
        return StorageError("DB_001", {"operation": operation})
