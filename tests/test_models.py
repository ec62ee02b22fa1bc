"""Tests des modèles / Model tests."""

from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from tariff_manager.database import _migrate_missing_columns
from tariff_manager.models.client import Client, Currency
from tariff_manager.models.client_route import ClientRoute, RateType
from tariff_manager.models.document import DocumentType
from tariff_manager.models.monthly_adjustment import MonthlyAdjustmentRun
from tariff_manager.models.route import Route
from tariff_manager.models.tariff_history import HistorySource
from tariff_manager.services.control_settings import ControlSettings, ControlSettingsService


def test_client_repr():
    c = Client(id=1, client_code="ACME", company_name="Acme Logistics")
    assert "ACME" in repr(c)


def test_enums():
    assert Currency.ZAR.value == "ZAR"
    assert RateType.PER_KM.value == "per_km"
    assert HistorySource.SELECTIVE.value == "selective"
    assert DocumentType.BEE_CERT.value == "BEE_CERT"


@pytest.mark.asyncio
async def test_pairing_is_unique(db, make_client, make_route):
    client = await make_client()
    route = await make_route(code="X-1")
    for _ in range(2):
        db.add(ClientRoute(
            client_id=client.id, route_id=route.id, base_rate=Decimal("1"), current_rate=Decimal("1"),
            effective_date="2026-01-01",
        ))
    with pytest.raises(IntegrityError):
        await db.flush()
    await db.rollback()


@pytest.mark.asyncio
async def test_adjustment_month_is_unique(db):
    for _ in range(2):
        db.add(MonthlyAdjustmentRun(
            adjustment_month="2026-10-01", diesel_percentage_change=Decimal("5"), applied_at="2026-10-07T08:00:00+00:00",
        ))
    with pytest.raises(IntegrityError):
        await db.flush()
    await db.rollback()


@pytest.mark.asyncio
async def test_route_defaults(db):
    route = Route(route_code="JOH-DUR", origin="Johannesburg", destination="Durban")
    db.add(route)
    await db.flush()
    assert route.is_active is True


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent(db):
    assert await ControlSettingsService.seed_defaults(db) == 0
    loaded = await ControlSettingsService.load(db)
    assert loaded == ControlSettings()
    assert loaded.base_diesel_price == Decimal("21.50")
    assert loaded.effective_day_of_month == 1


@pytest.mark.asyncio
async def test_missing_columns_are_added(engine):
    async with engine.begin() as conn:
        await conn.execute(text('ALTER TABLE "client_routes" DROP COLUMN "route_description"'))

    await _migrate_missing_columns(engine)

    async with engine.connect() as conn:
        result = await conn.execute(text("PRAGMA table_info('client_routes')"))
        columns = {row[1] for row in result.fetchall()}
    assert "route_description" in columns
