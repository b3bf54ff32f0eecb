"""FastAPI dependency injection for services and the database."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finboard.db.session import get_db
from finboard.services.ingestion import IngestionService
from finboard.services.ledger import LedgerService

__all__ = ["get_db", "get_ingestion_service", "get_ledger_service"]


async def get_ingestion_service(db: AsyncSession = Depends(get_db)) -> IngestionService:
    return IngestionService(db)


async def get_ledger_service(db: AsyncSession = Depends(get_db)) -> LedgerService:
    return LedgerService(db)
