"""Integration tests for the ingestion pipeline against a real database."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from finboard.core.exceptions import IngestionError, StorageError
from finboard.db.session import build_engine
from finboard.models.transaction import Transaction
from finboard.models.upload import Upload
from finboard.schemas.internal import ParsedTransaction, StatementFile
from finboard.services.ingestion import INCREMENTAL, IngestionService


def _rows(*source_ids) -> list[ParsedTransaction]:
    return [
        ParsedTransaction(
            source_id=sid,
            date=f"{i + 1:02d}/03/2024",
            type="Pix",
            description=f"Pagamento {i}",
            amount=Decimal("-10.00"),
        )
        for i, sid in enumerate(source_ids)
    ]


async def _count(db: AsyncSession, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


async def _stored(db: AsyncSession, upload_id: str) -> list[Transaction]:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.upload_id == upload_id)
        .order_by(Transaction.created_at.asc())
    )
    return list(result.scalars().all())


def _fail_on_call(service: IngestionService, failing_call: int) -> None:
    """Make the n-th chunk write raise a database error."""
    original = service.transaction_repo.insert_chunk
    calls = {"n": 0}

    async def insert_chunk(rows):
        calls["n"] += 1
        if calls["n"] == failing_call:
            raise SQLAlchemyError("simulated write failure")
        return await original(rows)

    service.transaction_repo.insert_chunk = insert_chunk


class TestIngestRecords:
    @pytest.mark.asyncio
    async def test_stores_rows_and_upload(self, db_session: AsyncSession):
        service = IngestionService(db_session)

        result = await service.ingest_records(
            _rows("A", "B", "C"), upload_id="u1", filename="extrato.csv", timestamp="2024-03-31T10:00:00Z"
        )

        assert result.received_count == 3
        assert result.inserted_count == 3
        assert result.skipped_duplicates == 0
        assert result.upload.id == "u1"
        assert result.upload.filename == "extrato.csv"
        assert result.upload.timestamp == "2024-03-31T10:00:00Z"
        assert result.upload.transaction_count == 3

        stored = await _stored(db_session, "u1")
        assert [t.id for t in stored] == ["2:u1:A", "2:u1:B", "2:u1:C"]
        assert all(t.category == "Other" for t in stored)

    @pytest.mark.asyncio
    async def test_defaults_for_missing_metadata(self, db_session: AsyncSession):
        result = await IngestionService(db_session).ingest_records(_rows("A"))

        assert result.upload.id
        assert result.upload.filename == "arquivo.csv"
        assert result.upload.timestamp

    @pytest.mark.asyncio
    async def test_keeps_supplied_category(self, db_session: AsyncSession):
        rows = _rows("A")
        rows[0].category = "Viagem"

        await IngestionService(db_session).ingest_records(rows, upload_id="u1")

        stored = await db_session.scalar(select(Transaction).where(Transaction.id == "2:u1:A"))
        assert stored.category == "Viagem"

    @pytest.mark.asyncio
    async def test_empty_call_still_records_upload(self, db_session: AsyncSession):
        result = await IngestionService(db_session).ingest_records([], upload_id="empty")

        assert result.received_count == 0
        assert result.inserted_count == 0
        assert result.upload.transaction_count == 0
        assert await _count(db_session, Upload) == 1

    @pytest.mark.asyncio
    async def test_repeated_source_ids_within_call(self, db_session: AsyncSession):
        result = await IngestionService(db_session).ingest_records(
            _rows("A", "B", "A"), upload_id="u1"
        )

        assert result.received_count == 3
        assert result.inserted_count == 2
        assert result.skipped_duplicates == 1
        assert result.upload.transaction_count == 2

    @pytest.mark.asyncio
    async def test_rows_without_source_id_are_never_deduplicated(self, db_session: AsyncSession):
        service = IngestionService(db_session)

        first = await service.ingest_records(_rows(None, None), upload_id="u1")
        second = await service.ingest_records(_rows(None, None), upload_id="u2")

        assert first.inserted_count == 2
        assert second.inserted_count == 2
        assert await _count(db_session, Transaction) == 4

    @pytest.mark.asyncio
    async def test_source_ids_already_stored_by_another_upload_are_skipped(
        self, db_session: AsyncSession
    ):
        service = IngestionService(db_session)
        await service.ingest_records(_rows("A", "B"), upload_id="u1")

        result = await service.ingest_records(_rows("B", "C"), upload_id="u2")

        assert result.inserted_count == 1
        assert result.skipped_duplicates == 1
        assert result.upload.transaction_count == 1
        assert await _count(db_session, Transaction) == 3

    @pytest.mark.asyncio
    async def test_reingesting_same_upload_is_idempotent(self, db_session: AsyncSession):
        service = IngestionService(db_session)
        await service.ingest_records(_rows("A", "B", "C"), upload_id="u1")

        again = await service.ingest_records(_rows("A", "B", "C"), upload_id="u1")

        assert again.inserted_count == 0
        assert again.skipped_duplicates == again.received_count == 3
        assert again.upload.transaction_count == 3
        assert await _count(db_session, Transaction) == 3
        assert await _count(db_session, Upload) == 1

    @pytest.mark.asyncio
    async def test_store_ignores_conflicts_missed_by_existence_check(
        self, db_session: AsyncSession
    ):
        service = IngestionService(db_session)
        await service.ingest_records(_rows("A", "B"), upload_id="u1")

        async def nothing_stored(source_ids):
            return set()

        service.transaction_repo.existing_source_ids = nothing_stored
        result = await service.ingest_records(_rows("A", "B", "C"), upload_id="u2")

        assert result.inserted_count == 1
        assert result.upload.transaction_count == 1
        assert await _count(db_session, Transaction) == 3

    @pytest.mark.asyncio
    async def test_writes_in_chunks_preserving_order(self, db_session: AsyncSession):
        service = IngestionService(db_session, chunk_size=2)
        written_sizes = []
        original = service.transaction_repo.insert_chunk

        async def recording_insert(rows):
            written_sizes.append(len(rows))
            return await original(rows)

        service.transaction_repo.insert_chunk = recording_insert

        result = await service.ingest_records(_rows("A", "B", "C", "D", "E"), upload_id="u1")

        assert written_sizes == [2, 2, 1]
        assert result.inserted_count == 5
        stored = await service.transaction_repo.list_in_creation_order()
        assert [t.source_id for t in stored] == ["A", "B", "C", "D", "E"]

    @pytest.mark.asyncio
    async def test_upload_and_source_ids_containing_separator_do_not_collide(
        self, db_session: AsyncSession
    ):
        service = IngestionService(db_session)
        await service.ingest_records(_rows("b:c"), upload_id="a")

        result = await service.ingest_records(_rows("c"), upload_id="a:b")

        assert result.inserted_count == 1
        assert result.skipped_duplicates == 0
        assert await _count(db_session, Transaction) == 2

    @pytest.mark.asyncio
    async def test_amounts_keep_full_precision(self, db_session: AsyncSession):
        rows = _rows("BIG", "FINE")
        rows[0].amount = Decimal("12345678901234.5")
        rows[1].amount = Decimal("-10.125")

        result = await IngestionService(db_session).ingest_records(rows, upload_id="u1")

        assert result.inserted_count == 2
        amounts = {t.source_id: t.amount for t in await _stored(db_session, "u1")}
        assert amounts == {"BIG": Decimal("12345678901234.5"), "FINE": Decimal("-10.125")}


class TestIngestFiles:
    @pytest.mark.asyncio
    async def test_single_statement(self, db_session: AsyncSession, statement_a: str):
        result = await IngestionService(db_session).ingest_files(
            [StatementFile(filename="marco.csv", content=statement_a)], upload_id="u1"
        )

        assert result.received_count == 5
        assert result.inserted_count == 5
        categories = {
            t.source_id: t.category
            for t in await _stored(db_session, "u1")
        }
        assert categories == {
            "TX001": "Income",
            "TX002": "Food",
            "TX003": "Fixed Bills",
            "TX004": "Transfers",
            "TX005": "Consumption",
        }

    @pytest.mark.asyncio
    async def test_overlapping_statements_in_one_call(
        self, db_session: AsyncSession, statement_a: str, statement_b: str
    ):
        result = await IngestionService(db_session).ingest_files(
            [
                StatementFile(filename="marco.csv", content=statement_a),
                StatementFile(filename="abril.csv", content=statement_b),
            ],
            upload_id="u1",
        )

        assert result.received_count == 10
        assert result.inserted_count == 7
        assert result.skipped_duplicates == 3
        assert result.upload.filename == "marco.csv, abril.csv"
        assert result.upload.transaction_count == 7

    @pytest.mark.asyncio
    async def test_overlapping_statements_across_calls(
        self, db_session: AsyncSession, statement_a: str, statement_b: str
    ):
        service = IngestionService(db_session)
        await service.ingest_files([StatementFile(filename="a.csv", content=statement_a)])

        result = await service.ingest_files([StatementFile(filename="b.csv", content=statement_b)])

        assert result.inserted_count == 2
        assert await _count(db_session, Transaction) == 7

    @pytest.mark.asyncio
    async def test_no_files(self, db_session: AsyncSession):
        with pytest.raises(IngestionError) as exc_info:
            await IngestionService(db_session).ingest_files([])

        assert exc_info.value.error_code == "INGEST_001"
        assert exc_info.value.http_status == 400

    @pytest.mark.asyncio
    async def test_header_only_file(self, db_session: AsyncSession):
        result = await IngestionService(db_session).ingest_files(
            [StatementFile(filename="vazio.csv", content="data;tipo;descricao;valor")]
        )

        assert result.received_count == 0
        assert result.upload.transaction_count == 0


class TestFailures:
    @pytest.mark.asyncio
    async def test_atomic_failure_leaves_nothing(self, db_session: AsyncSession):
        service = IngestionService(db_session, chunk_size=2)
        _fail_on_call(service, 2)

        with pytest.raises(StorageError) as exc_info:
            await service.ingest_records(_rows("A", "B", "C", "D", "E"), upload_id="u1")

        assert exc_info.value.error_code == "DB_001"
        assert await _count(db_session, Upload) == 0
        assert await _count(db_session, Transaction) == 0

    @pytest.mark.asyncio
    async def test_incremental_failure_keeps_written_chunks_and_retry_completes(
        self, db_session: AsyncSession
    ):
        rows = _rows("A", "B", "C", "D", "E")
        service = IngestionService(db_session, chunk_size=2, commit_mode=INCREMENTAL)
        _fail_on_call(service, 2)

        with pytest.raises(StorageError):
            await service.ingest_records(rows, upload_id="u1")

        assert await _count(db_session, Transaction) == 2
        upload = await db_session.scalar(
            select(Upload).where(Upload.id == "u1").execution_options(populate_existing=True)
        )
        # Count was recorded before the chunks; it overstates until a retry.
        assert upload.transaction_count == 5

        retry = await IngestionService(
            db_session, chunk_size=2, commit_mode=INCREMENTAL
        ).ingest_records(rows, upload_id="u1")

        assert retry.inserted_count == 3
        assert retry.upload.transaction_count == 5
        assert await _count(db_session, Transaction) == 5

    @pytest.mark.asyncio
    async def test_unreachable_store(self, tmp_path):
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        try:
            async with session_factory() as session:
                with pytest.raises(StorageError) as exc_info:
                    await IngestionService(session).ingest_records(_rows("A"), upload_id="u1")
        finally:
            await engine.dispose()

        assert exc_info.value.error_code == "DB_003"
        assert exc_info.value.http_status == 503

    @pytest.mark.asyncio
    async def test_timeout(self, db_session: AsyncSession):
        service = IngestionService(db_session, timeout_seconds=0.05)

        async def slow_lookup(source_ids):
            await asyncio.sleep(5)
            return set()

        service.transaction_repo.existing_source_ids = slow_lookup

        with pytest.raises(StorageError) as exc_info:
            await service.ingest_records(_rows("A"), upload_id="u1")

        assert exc_info.value.error_code == "DB_004"
        assert exc_info.value.http_status == 504
        assert await _count(db_session, Upload) == 0

    @pytest.mark.asyncio
    async def test_rejects_invalid_settings(self, db_session: AsyncSession):
        with pytest.raises(ValueError):
            IngestionService(db_session, commit_mode="sometimes")
        with pytest.raises(ValueError):
            IngestionService(db_session, chunk_size=-1)
        with pytest.raises(ValueError):
            IngestionService(db_session, chunk_size=0)
        with pytest.raises(ValueError):
            IngestionService(db_session, timeout_seconds=0)
