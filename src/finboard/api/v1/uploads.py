"""Import endpoints: statement rows or raw statement files."""

from fastapi import APIRouter, Depends, status

from finboard.api.deps import get_ingestion_service
from finboard.schemas.ledger import (
    IngestFilesRequest,
    IngestRequest,
    IngestResponse,
    UploadResponse,
)
from finboard.services.ingestion import IngestionResult, IngestionService

router = APIRouter(prefix="/uploads", tags=["uploads"])

ERROR_RESPONSES = {
    400: {"description": "Missing or malformed payload (VAL_001)"},
    503: {"description": "Store unreachable (DB_003); the import was not kept"},
    504: {"description": "Import timed out (DB_004); retrying is safe"},
}


def _to_response(result: IngestionResult) -> IngestResponse:
    return IngestResponse(
        upload=UploadResponse.model_validate(result.upload),
        received_count=result.received_count,
        inserted_count=result.inserted_count,
        skipped_duplicates=result.skipped_duplicates,
    )


@router.post(
    "",
    response_model=IngestResponse,
    summary="Import statement rows",
    description="""
    Store statement rows under one upload.

    Rows whose `sourceId` repeats earlier in the request, or is already
    stored by any upload, are skipped and reported in `skippedDuplicates`.
    Rows without a `sourceId` are always stored. Repeating a request is
    safe: rows already written are not duplicated.
    """,
    responses=ERROR_RESPONSES,
)
async def ingest_rows(
    payload: IngestRequest,
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    result = await service.ingest_records(
        [row.to_parsed() for row in payload.transactions],
        upload_id=payload.upload_id,
        filename=payload.filename,
        timestamp=payload.timestamp,
    )
    return _to_response(result)


@router.post(
    "/files",
    response_model=IngestResponse,
    status_code=status.HTTP_200_OK,
    summary="Import statement files",
    description="""
    Parse one or more semicolon-delimited statement exports and store
    their rows under a single upload. Columns are found by header name
    (`data`, `tipo`, `descricao`, `valor`, `codigo da transacao`).
    Malformed rows are skipped.
    """,
    responses=ERROR_RESPONSES,
)
async def ingest_files(
    payload: IngestFilesRequest,
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestResponse:
    result = await service.ingest_files(
        [f.to_internal() for f in payload.files],
        upload_id=payload.upload_id,
        timestamp=payload.timestamp,
    )
    return _to_response(result)
