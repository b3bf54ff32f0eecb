"""Statement ingestion service.

This module orchestrates one import call:
1. Parse each statement file (or accept pre-split rows)
2. Categorize rows that don't carry a category
3. Resolve each row's identity under one upload id
4. Drop rows whose source id repeats earlier in the same call
5. Drop rows whose source id is already stored
6. Write the upload row and the surviving rows in fixed-size chunks
7. Recount the upload's stored rows and return the outcome

The existence check in step 5 only avoids shipping rows that are certain
to collide. Correctness under concurrent imports comes from the store:
every write is INSERT ... ON CONFLICT DO NOTHING against the primary key
and the unique source id index.
"""

import asyncio
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finboard.categorization.rules import Categorizer, get_default_categorizer
from finboard.config import settings
from finboard.core.exceptions import IngestionError, StorageError
from finboard.models.upload import Upload
from finboard.parsers.statement import StatementParser
from finboard.repositories.transaction import TransactionRepository
from finboard.repositories.upload import UploadRepository
from finboard.schemas.internal import IdentifiedTransaction, ParsedTransaction, StatementFile
from finboard.services.identity import identify

logger = logging.getLogger(__name__)

ATOMIC = "atomic"
INCREMENTAL = "incremental"
COMMIT_MODES = (ATOMIC, INCREMENTAL)


@dataclass
class IngestionResult:
    """Outcome of one ingestion call."""

    upload: Upload
    received_count: int
    inserted_count: int

    @property
    def skipped_duplicates(self) -> int:
        return max(self.received_count - self.inserted_count, 0)


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def drop_repeated_source_ids(records: list[IdentifiedTransaction]) -> list[IdentifiedTransaction]:
    """Keep the first record for each source id; records without one are all kept."""
    seen: set[str] = set()
    kept: list[IdentifiedTransaction] = []
    for record in records:
        if record.source_id:
            if record.source_id in seen:
                continue
            seen.add(record.source_id)
        kept.append(record)
    return kept


class IngestionService:
    """Coordinates parsing, categorization, dedup and persistence for one import.

    Commit modes:
        atomic: the upload row, every chunk and the final recount share one
            database transaction. Any failure leaves nothing behind.
        incremental: the upload row is committed first and every chunk is
            committed as it completes. A failure (or cancellation) keeps the
            chunks already written; the upload's transaction_count can then
            overstate the stored rows until the call is retried.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        parser: StatementParser | None = None,
        categorizer: Categorizer | None = None,
        chunk_size: int | None = None,
        commit_mode: str | None = None,
        timeout_seconds: float | None = None,
    ):
        self.db = db
        self.parser = parser or StatementParser()
        self.categorizer = categorizer or get_default_categorizer()
        self.chunk_size = settings.ingest_chunk_size if chunk_size is None else chunk_size
        self.commit_mode = (commit_mode or settings.ingest_commit_mode).lower()
        self.timeout_seconds = (
            settings.ingest_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be a positive integer")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.commit_mode not in COMMIT_MODES:
            raise ValueError(f"commit_mode must be one of {COMMIT_MODES}")
        self.upload_repo = UploadRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def ingest_records(
        self,
        rows: list[ParsedTransaction],
        *,
        upload_id: str | None = None,
        filename: str | None = None,
        timestamp: str | None = None,
    ) -> IngestionResult:
        """Ingest rows that were already split into fields by the caller."""
        return await self._run(rows, upload_id=upload_id, filename=filename, timestamp=timestamp)

    async def ingest_files(
        self,
        files: list[StatementFile],
        *,
        upload_id: str | None = None,
        timestamp: str | None = None,
    ) -> IngestionResult:
        """Parse and ingest one or more statement files under a single upload."""
        if not files:
            raise IngestionError("INGEST_001", {"reason": "no_files"}, http_status=400)

        rows: list[ParsedTransaction] = []
        for statement_file in files:
            parsed = self.parser.parse(statement_file.content)
            logger.info(
                "Parsed statement file",
                extra={"file_name": statement_file.filename, "rows": len(parsed)},
            )
            rows.extend(parsed)

        filename = ", ".join(f.filename for f in files if f.filename)
        return await self._run(rows, upload_id=upload_id, filename=filename, timestamp=timestamp)

    async def _run(
        self,
        rows: list[ParsedTransaction],
        *,
        upload_id: str | None,
        filename: str | None,
        timestamp: str | None,
    ) -> IngestionResult:
        upload_id = upload_id or str(uuid4())
        filename = filename or settings.default_filename
        timestamp = timestamp or datetime.now(timezone.utc).isoformat()

        try:
            return await asyncio.wait_for(
                self._ingest(rows, upload_id, filename, timestamp),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Ingestion timed out",
                extra={"upload_id": upload_id, "timeout_seconds": self.timeout_seconds},
            )
            await self._rollback()
            raise StorageError("DB_004", {"upload_id": upload_id}, http_status=504) from e
        except (OperationalError, InterfaceError, OSError) as e:
            logger.error(
                "Store unreachable during ingestion",
                extra={"upload_id": upload_id, "error_type": type(e).__name__},
            )
            await self._rollback()
            raise StorageError("DB_003", {"upload_id": upload_id}, http_status=503) from e
        except SQLAlchemyError as e:
            if settings.debug:
                logger.exception(
                    "Ingestion persistence failed",
                    extra={"upload_id": upload_id, "error_type": type(e).__name__},
                )
            else:
                logger.error(
                    "Ingestion persistence failed",
                    extra={"upload_id": upload_id, "error_type": type(e).__name__},
                )
            await self._rollback()
            raise StorageError("DB_001", {"upload_id": upload_id}) from e
        except (Exception, asyncio.CancelledError):
            # Release the open transaction, then propagate.
            await self._rollback()
            raise

    async def _ingest(
        self,
        rows: list[ParsedTransaction],
        upload_id: str,
        filename: str,
        timestamp: str,
    ) -> IngestionResult:
        # Fail before doing any work if the store can't be reached.
        await self.db.execute(text("SELECT 1"))

        records = [
            identify(
                row,
                upload_id,
                row.category or self.categorizer.classify(row.description, row.type),
            )
            for row in rows
        ]
        received_count = len(records)

        unique = drop_repeated_source_ids(records)
        existing = await self.transaction_repo.existing_source_ids(
            r.source_id for r in unique if r.source_id
        )
        survivors = [r for r in unique if not r.source_id or r.source_id not in existing]
        logger.info(
            "Deduplicated import",
            extra={
                "upload_id": upload_id,
                "received": received_count,
                "repeated_in_call": received_count - len(unique),
                "already_stored": len(unique) - len(survivors),
            },
        )

        created = await self.upload_repo.insert_if_absent(
            upload_id, filename, timestamp, transaction_count=len(survivors)
        )
        if not created:
            logger.info("Upload id already exists; adding to it", extra={"upload_id": upload_id})
        if self.commit_mode == INCREMENTAL:
            await self.db.commit()

        # Rows of one call share a base time; the offset keeps file/row order stable.
        started_at = datetime.now(timezone.utc)
        inserted_count = 0
        for chunk_no, chunk in enumerate(chunked(survivors, self.chunk_size)):
            offset = chunk_no * self.chunk_size
            payload = [
                {**record.model_dump(), "created_at": started_at + timedelta(microseconds=offset + i)}
                for i, record in enumerate(chunk)
            ]
            written = await self.transaction_repo.insert_chunk(payload)
            inserted_count += len(written)
            if self.commit_mode == INCREMENTAL:
                await self.db.commit()
            logger.debug(
                "Wrote chunk",
                extra={"upload_id": upload_id, "chunk": chunk_no, "written": len(written)},
            )

        upload = await self.upload_repo.recount(upload_id)
        await self.db.commit()

        logger.info(
            "Import complete",
            extra={
                "upload_id": upload_id,
                "received": received_count,
                "inserted": inserted_count,
                "commit_mode": self.commit_mode,
            },
        )
        return IngestionResult(
            upload=upload,
            received_count=received_count,
            inserted_count=inserted_count,
        )

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after failed ingestion also failed")
