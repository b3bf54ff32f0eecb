import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from finboard.db.session import build_engine, get_db
from finboard.main import app
from finboard.models import Base

STATEMENT_A = "\n".join(
    [
        "Data;Tipo;Descricao;Valor;Codigo da transacao",
        "01/03/2024;Pix;Pix recebido Joao Silva;1500,00;TX001",
        "02/03/2024;Cartão de Débito;Mercado Central;-234,56;TX002",
        "05/03/2024;Boleto;CELESC Distribuicao;-180,00;TX003",
        "07/03/2024;Pix;Pix enviado Fernanda Nunes;-300,00;TX004",
        "10/03/2024;Cartão de Débito;Padaria Estrela;-25,90;TX005",
    ]
)

# Repeats TX003, TX004 and TX005 from STATEMENT_A, with columns in another order.
STATEMENT_B = "\n".join(
    [
        "Codigo da transacao;Valor;Descricao;Tipo;Data",
        "TX003;-180,00;CELESC Distribuicao;Boleto;05/03/2024",
        "TX004;-300,00;Pix enviado Fernanda Nunes;Pix;07/03/2024",
        "TX005;-25,90;Padaria Estrela;Cartão de Débito;10/03/2024",
        "TX006;-39,90;Netflix.com;Cartão de Crédito;12/04/2024",
        "TX007;2000,00;Vendas loja online;Pix;15/04/2024",
    ]
)


@pytest.fixture
async def engine(tmp_path):
    """Throw-away database per test.

    Uses a SQLite file under tmp_path unless TEST_DATABASE_URL points
    somewhere else (e.g. a PostgreSQL test database).
    """
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'finboard_test.db'}"
    engine = build_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide test database session with fresh connection per test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session: AsyncSession):
    """Provide test client with database override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def statement_a() -> str:
    return STATEMENT_A


@pytest.fixture
def statement_b() -> str:
    return STATEMENT_B
