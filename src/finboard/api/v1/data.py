"""Store-wide read and clear endpoints."""

from fastapi import APIRouter, Depends

from finboard.api.deps import get_ledger_service
from finboard.schemas.ledger import (
    ClearResponse,
    DataResponse,
    TransactionResponse,
    UploadResponse,
)
from finboard.services.ledger import LedgerService

router = APIRouter(prefix="/data", tags=["data"])


@router.get("", response_model=DataResponse, summary="All uploads and transactions")
async def get_data(service: LedgerService = Depends(get_ledger_service)) -> DataResponse:
    """Uploads newest first; transactions in the order they were stored."""
    snapshot = await service.load_all()
    return DataResponse(
        uploads=[UploadResponse.model_validate(u) for u in snapshot.uploads],
        transactions=[TransactionResponse.model_validate(t) for t in snapshot.transactions],
    )


@router.post("/clear", response_model=ClearResponse, summary="Delete every upload and transaction")
async def clear_data(service: LedgerService = Depends(get_ledger_service)) -> ClearResponse:
    await service.clear_all()
    return ClearResponse(ok=True)
