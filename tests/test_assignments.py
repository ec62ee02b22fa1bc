"""Tests des affectations et du registre / Assignment store and ledger tests."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from tariff_manager.exceptions import AssignmentConflict, NotFoundError, ValidationError
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.tariff_history import HistorySource, TariffHistory
from tariff_manager.services.assignment_store import AssignmentStore
from tariff_manager.services.diesel_index import DieselIndexService
from tariff_manager.services.tariff_ledger import TariffLedger


async def _history(db, assignment_id):
    result = await db.execute(
        select(TariffHistory).where(TariffHistory.client_route_id == assignment_id).order_by(TariffHistory.id)
    )
    return result.scalars().all()


@pytest.mark.asyncio
async def test_assign_composes_current_rate(db, make_assignment):
    assignment = await make_assignment(base_rate="1000", additional_charges=Decimal("100"), includes_vat=True)
    assert assignment.current_rate == Decimal("1265.00")
    assert assignment.is_active is True


@pytest.mark.asyncio
async def test_assign_with_direct_override(db, make_assignment):
    assignment = await make_assignment(base_rate="1000", current_rate=Decimal("1180.00"))
    assert assignment.base_rate == Decimal("1000")
    assert assignment.current_rate == Decimal("1180.00")


@pytest.mark.asyncio
async def test_assign_unknown_client(db, make_route):
    route = await make_route(code="X-1")
    with pytest.raises(NotFoundError):
        await AssignmentStore.assign(db, 999, route.id, {"base_rate": Decimal("100")})


@pytest.mark.asyncio
async def test_assign_negative_rate_rejected(db, make_client, make_route):
    client = await make_client()
    route = await make_route(code="X-1")
    with pytest.raises(ValidationError):
        await AssignmentStore.assign(db, client.id, route.id, {"base_rate": Decimal("-5")})


@pytest.mark.asyncio
async def test_assign_invalid_effective_date_rejected(db, make_client, make_route):
    client = await make_client()
    route = await make_route(code="X-1")
    with pytest.raises(ValidationError):
        await AssignmentStore.assign(
            db, client.id, route.id, {"base_rate": Decimal("100"), "effective_date": "31/01/2026"},
        )
    assert (await db.execute(select(ClientRoute))).scalars().all() == []


@pytest.mark.asyncio
async def test_effective_date_is_normalised(db, make_assignment):
    assignment = await make_assignment(base_rate="100", effective_date=date(2026, 3, 1))
    assert assignment.effective_date == "2026-03-01"

    with pytest.raises(ValidationError):
        await AssignmentStore.update(db, assignment.id, {"effective_date": "2026-02-30"})
    updated = await AssignmentStore.update(db, assignment.id, {"effective_date": "2026-04-01"})
    assert updated.effective_date == "2026-04-01"


@pytest.mark.asyncio
async def test_active_pairing_conflicts(db, make_client, make_route):
    client = await make_client()
    route = await make_route(code="X-1")
    await AssignmentStore.assign(db, client.id, route.id, {"base_rate": Decimal("100")})
    with pytest.raises(AssignmentConflict):
        await AssignmentStore.assign(db, client.id, route.id, {"base_rate": Decimal("200")})


@pytest.mark.asyncio
async def test_reactivation_reuses_row(db, make_client, make_route):
    client = await make_client()
    route = await make_route(code="X-1")
    first = await AssignmentStore.assign(db, client.id, route.id, {"base_rate": Decimal("100")})
    first_id = first.id
    await AssignmentStore.deactivate(db, first_id)

    again = await AssignmentStore.assign(db, client.id, route.id, {"base_rate": Decimal("120")})
    assert again.id == first_id
    assert again.is_active is True
    assert again.current_rate == Decimal("120.00")

    rows = (await db.execute(select(ClientRoute).where(ClientRoute.client_id == client.id))).scalars().all()
    assert len(rows) == 1
    history = await _history(db, first_id)
    assert len(history) == 1
    assert history[0].adjustment_reason == "Route reactivated"
    assert history[0].source == HistorySource.ASSIGNMENT


@pytest.mark.asyncio
async def test_deactivate_keeps_row(db, make_assignment):
    assignment = await make_assignment()
    await AssignmentStore.deactivate(db, assignment.id)
    row = await db.get(ClientRoute, assignment.id)
    assert row is not None
    assert row.is_active is False
    assert await AssignmentStore.active(db) == []


@pytest.mark.asyncio
async def test_manual_edit_recomposes_and_records(db, make_assignment):
    await DieselIndexService.append(db, "2026-01-01", Decimal("22.00"))
    assignment = await make_assignment(base_rate="1000")
    updated = await AssignmentStore.update(db, assignment.id, {"additional_charges": 100, "includes_vat": True})
    assert updated.current_rate == Decimal("1265.00")

    history = await _history(db, assignment.id)
    assert len(history) == 1
    entry = history[0]
    assert entry.previous_rate == Decimal("1000.00")
    assert entry.new_rate == Decimal("1265.00")
    assert entry.adjustment_reason == "Manual rate adjustment"
    assert entry.diesel_price_at_change == Decimal("22.00")
    assert entry.adjustment_percentage == Decimal("26.5")


@pytest.mark.asyncio
async def test_manual_override_wins_over_composer(db, make_assignment):
    assignment = await make_assignment(base_rate="1000")
    updated = await AssignmentStore.update(
        db, assignment.id, {"base_rate": 1100, "current_rate": 1500, "reason": "Negotiated"},
    )
    assert updated.base_rate == Decimal("1100")
    assert updated.current_rate == Decimal("1500.00")
    history = await _history(db, assignment.id)
    assert history[-1].adjustment_reason == "Negotiated"


@pytest.mark.asyncio
async def test_notes_edit_writes_no_ledger_entry(db, make_assignment):
    assignment = await make_assignment()
    await AssignmentStore.update(db, assignment.id, {"notes": "Gate 4"})
    assert await _history(db, assignment.id) == []


@pytest.mark.asyncio
async def test_ledger_entries_are_immutable(db, make_assignment):
    assignment = await make_assignment()
    entry = await TariffLedger.record(db, assignment, Decimal("1100"))
    await db.commit()

    entry.new_rate = Decimal("1")
    with pytest.raises(ValidationError):
        await db.flush()
    await db.rollback()

    entry = await db.get(TariffHistory, entry.id, populate_existing=True)
    await db.delete(entry)
    with pytest.raises(ValidationError):
        await db.flush()
    await db.rollback()


@pytest.mark.asyncio
async def test_ledger_filters_and_summary(db, make_assignment):
    first = await make_assignment(base_rate="1000")
    second = await make_assignment(base_rate="2000")
    await TariffLedger.record(db, first, Decimal("1100"))
    await TariffLedger.record(db, second, Decimal("2100"), source=HistorySource.SELECTIVE)
    await db.commit()

    total, items = await TariffLedger.entries(db, client_id=first.client_id)
    assert total == 1
    assert items[0].new_rate == Decimal("1100.00")

    total, _ = await TariffLedger.entries(db, source=HistorySource.SELECTIVE)
    assert total == 1

    summary = await TariffLedger.summary(db)
    assert summary["total_entries"] == 2
    assert summary["entries_last_three_months"] == 2
    assert summary["average_adjustment_percentage"] == pytest.approx(7.5)


@pytest.mark.asyncio
async def test_backfill_moves_legacy_terms(db, make_assignment):
    assignment = await make_assignment(notes="Additional charges: 250\nIncludes VAT: yes\nNight delivery")
    migrated = await AssignmentStore.backfill_legacy_terms(db)
    assert migrated == 1
    row = await db.get(ClientRoute, assignment.id)
    assert row.additional_charges == Decimal("250")
    assert row.includes_vat is True
    assert row.notes == "Night delivery"
    assert await AssignmentStore.backfill_legacy_terms(db) == 0
