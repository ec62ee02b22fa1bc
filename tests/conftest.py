"""
Configuration des tests / Test configuration.
Base SQLite en mémoire par test, client HTTP sur l'app ASGI.
Per-test in-memory SQLite database, HTTP client over the ASGI app.
"""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import tariff_manager.models  # noqa: F401
from tariff_manager.database import Base, get_db
from tariff_manager.main import app
from tariff_manager.models.client import Client
from tariff_manager.models.route import Route
from tariff_manager.rate_limit import limiter
from tariff_manager.services.assignment_store import AssignmentStore
from tariff_manager.services.control_settings import ControlSettingsService
from tariff_manager.services.file_store import LocalFileStore, get_file_store

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        await ControlSettingsService.seed_defaults(session)
        await session.commit()
        yield session


@pytest.fixture
def file_store(tmp_path):
    return LocalFileStore(tmp_path / "store")


@pytest.fixture
async def client(session_factory, file_store):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    limiter.enabled = False
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: file_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(db):
    async def _make(code: str = "ACME", name: str = "Acme Logistics", **kwargs) -> Client:
        client = Client(client_code=code, company_name=name, is_active=True, **kwargs)
        db.add(client)
        await db.flush()
        return client
    return _make


@pytest.fixture
def make_route(db):
    async def _make(origin: str = "Johannesburg", destination: str = "Durban", code: str | None = None, **kwargs) -> Route:
        route = Route(
            route_code=code or f"{origin[:3].upper()}-{destination[:3].upper()}",
            origin=origin,
            destination=destination,
            is_active=True,
            **kwargs,
        )
        db.add(route)
        await db.flush()
        return route
    return _make


@pytest.fixture
def make_assignment(db, make_client, make_route):
    """Affectation prête à l'emploi / Ready-made assignment (commits)."""
    counter = {"n": 0}

    async def _make(base_rate="1000", client=None, route=None, **terms):
        counter["n"] += 1
        client = client or await make_client(code=f"CL{counter['n']:03d}", name=f"Client {counter['n']}")
        route = route or await make_route(code=f"RT-{counter['n']:03d}", distance_km=Decimal("500"))
        assignment = await AssignmentStore.assign(
            db, client.id, route.id, {"base_rate": Decimal(str(base_rate)), **terms},
        )
        await db.commit()
        return assignment
    return _make
