"""
Shared pytest fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without a
live Postgres instance.  UUID columns are stored as strings and the JSONB
column falls back to plain JSON.

Environment overrides are applied before importing app modules so that
Settings() picks up the test database URL.
"""
import os
import uuid

# Set test environment BEFORE importing any app module
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REPORT_TIMEZONE", "Asia/Colombo")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from opmc_ops.models.base import Base
from opmc_ops.models.inventory import InventoryItem  # noqa: F401 (registers model)
from opmc_ops.models.opmc import ContractorTeam, Opmc
from opmc_ops.models.service_order import (  # noqa: F401
    ServiceOrder,
    ServiceOrderStatusHistory,
    SodMaterialUsage,
)


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Provide a test session on a fresh database; rolled back after each test."""
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def opmcs(db_session: AsyncSession) -> dict[str, Opmc]:
    """Three OPMCs across two regions, keyed by rtom.  R-AD has two active teams."""
    rows = [
        Opmc(rtom="R-JA", name="R-JA OPMC", region="REGION 03", province="NP"),
        Opmc(rtom="R-AD", name="R-AD OPMC", region="REGION 03", province="NP"),
        Opmc(rtom="R-HK", name="R-HK OPMC", region="METRO", province="METRO 01"),
    ]
    db_session.add_all(rows)
    await db_session.flush()

    db_session.add_all(
        [
            ContractorTeam(opmc_id=rows[1].id, name="AD Team 1", is_active=True),
            ContractorTeam(opmc_id=rows[1].id, name="AD Team 2", is_active=True),
            ContractorTeam(opmc_id=rows[1].id, name="AD Team 3", is_active=False),
            ContractorTeam(opmc_id=rows[2].id, name="HK Team 1", is_active=True),
        ]
    )
    await db_session.commit()
    return {o.rtom: o for o in rows}


@pytest_asyncio.fixture
async def client(engine, db_session: AsyncSession):
    """AsyncClient for the FastAPI app with the DB dependency bound to the test session."""
    from opmc_ops.main import app
    from opmc_ops.core.db import get_db
    import opmc_ops.api.v1.opmcs as opmcs_module

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    opmcs_module._cache.clear()

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_order():
    """Factory for a ServiceOrder bound to an OPMC with a unique SO number."""

    def _make(opmc: Opmc, **fields) -> ServiceOrder:
        fields.setdefault("so_num", f"SO-{uuid.uuid4().hex[:8].upper()}")
        return ServiceOrder(rtom=opmc.rtom, opmc_id=opmc.id, **fields)

    return _make
