"""Tests de l'ajustement mensuel / Monthly adjustment orchestrator tests."""

import logging
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from tariff_manager.exceptions import AlreadyAppliedThisPeriod, InvalidPercentage, ValidationError
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.control_setting import ControlSetting
from tariff_manager.models.monthly_adjustment import MonthlyAdjustmentRun
from tariff_manager.models.tariff_history import HistorySource, TariffHistory
from tariff_manager.services.assignment_store import AssignmentStore
from tariff_manager.services.control_settings import ControlSettingsService
from tariff_manager.services.diesel_index import DieselIndexService
from tariff_manager.services.monthly_adjustment import MonthlyAdjustmentOrchestrator, is_first_wednesday
from tariff_manager.services.tariff_ledger import TariffLedger

TODAY = date(2026, 10, 7)


async def _count(db, model):
    return await db.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_flat_percentage_applied_and_recorded(db, make_assignment):
    await DieselIndexService.append(db, "2026-10-01", Decimal("22.50"))
    assignment = await make_assignment(base_rate="1000")

    outcome = await MonthlyAdjustmentOrchestrator.run(db, 5, today=TODAY)

    assert outcome.status == "completed"
    assert (outcome.adjusted, outcome.failed, outcome.total) == (1, 0, 1)
    row = await db.get(ClientRoute, assignment.id, populate_existing=True)
    assert row.current_rate == Decimal("1050.00")
    assert row.base_rate == Decimal("1000.00")
    assert row.effective_date == "2026-10-01"

    entry = (await db.execute(select(TariffHistory))).scalar_one()
    assert entry.previous_rate == Decimal("1000.00")
    assert entry.new_rate == Decimal("1050.00")
    assert entry.adjustment_percentage == Decimal("5")
    assert entry.diesel_percentage_change == Decimal("5")
    assert entry.diesel_price_at_change == Decimal("22.50")
    assert entry.period_month == "2026-10-01"
    assert entry.source == HistorySource.MONTHLY
    assert entry.adjustment_reason == "Monthly diesel adjustment of +5%"

    run = (await db.execute(select(MonthlyAdjustmentRun))).scalar_one()
    assert run.adjustment_month == "2026-10-01"
    assert run.total_routes_adjusted == 1
    assert outcome.run_id == run.id


@pytest.mark.asyncio
async def test_ledger_keeps_applied_percentage_on_uneven_rate(db, make_assignment):
    # 333.33 x 1.05 = 349.9965 -> 350.00, soit +5.0011 % apres arrondi / i.e. +5.0011 % after rounding
    assignment = await make_assignment(base_rate="333.33", current_rate=Decimal("333.33"))

    await MonthlyAdjustmentOrchestrator.run(db, 5, today=TODAY)

    entry = (await db.execute(select(TariffHistory))).scalar_one()
    assert entry.client_route_id == assignment.id
    assert entry.new_rate == Decimal("350.00")
    assert entry.adjustment_percentage == Decimal("5")
    assert entry.diesel_percentage_change == Decimal("5")


@pytest.mark.asyncio
async def test_fractional_percentage_recorded_as_applied(db, make_assignment):
    await make_assignment(base_rate="1000.01")

    await MonthlyAdjustmentOrchestrator.run(db, Decimal("3.333"), today=TODAY)

    entry = (await db.execute(select(TariffHistory))).scalar_one()
    assert entry.new_rate == Decimal("1033.34")
    assert entry.adjustment_percentage == Decimal("3.333")


@pytest.mark.asyncio
async def test_second_run_same_month_rejected(db, make_assignment):
    assignment = await make_assignment(base_rate="1000")
    await MonthlyAdjustmentOrchestrator.run(db, 5, today=TODAY)

    with pytest.raises(AlreadyAppliedThisPeriod):
        await MonthlyAdjustmentOrchestrator.run(db, 5, today=date(2026, 10, 28))

    row = await db.get(ClientRoute, assignment.id, populate_existing=True)
    assert row.current_rate == Decimal("1050.00")
    assert await _count(db, TariffHistory) == 1
    assert await _count(db, MonthlyAdjustmentRun) == 1


@pytest.mark.asyncio
async def test_next_month_runs_again(db, make_assignment):
    assignment = await make_assignment(base_rate="1000")
    await MonthlyAdjustmentOrchestrator.run(db, 5, today=TODAY)
    await MonthlyAdjustmentOrchestrator.run(db, -2, today=date(2026, 11, 4))
    row = await db.get(ClientRoute, assignment.id, populate_existing=True)
    assert row.current_rate == Decimal("1029.00")
    assert await _count(db, MonthlyAdjustmentRun) == 2


@pytest.mark.asyncio
async def test_empty_set_still_records_run(db):
    outcome = await MonthlyAdjustmentOrchestrator.run(db, 3, today=TODAY)
    assert (outcome.adjusted, outcome.total) == (0, 0)
    run = (await db.execute(select(MonthlyAdjustmentRun))).scalar_one()
    assert run.total_routes_adjusted == 0


@pytest.mark.asyncio
async def test_inactive_assignments_untouched(db, make_assignment):
    active = await make_assignment(base_rate="1000")
    inactive = await make_assignment(base_rate="2000")
    active_id, inactive_id = active.id, inactive.id
    await AssignmentStore.deactivate(db, inactive_id)
    await db.commit()

    outcome = await MonthlyAdjustmentOrchestrator.run(db, 10, today=TODAY)
    assert outcome.total == 1
    assert (await db.get(ClientRoute, active_id, populate_existing=True)).current_rate == Decimal("1100.00")
    assert (await db.get(ClientRoute, inactive_id, populate_existing=True)).current_rate == Decimal("2000.00")


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [float("nan"), float("inf"), "abc", None])
async def test_non_finite_percentage_rejected(db, make_assignment, value):
    await make_assignment(base_rate="1000")
    with pytest.raises(InvalidPercentage):
        await MonthlyAdjustmentOrchestrator.run(db, value, today=TODAY)
    assert await _count(db, MonthlyAdjustmentRun) == 0
    assert await _count(db, TariffHistory) == 0


@pytest.mark.asyncio
async def test_failure_on_one_assignment_does_not_stop_batch(db, make_assignment, monkeypatch, caplog):
    ids = [(await make_assignment(base_rate=rate)).id for rate in ("1000", "2000", "3000")]
    broken_id = ids[1]
    original = TariffLedger.record

    async def flaky_record(session, assignment, new_rate, **kwargs):
        if assignment.id == broken_id:
            raise RuntimeError("disk full")
        return await original(session, assignment, new_rate, **kwargs)

    monkeypatch.setattr(TariffLedger, "record", staticmethod(flaky_record))
    with caplog.at_level(logging.ERROR, logger="tariff_manager.services.monthly_adjustment"):
        outcome = await MonthlyAdjustmentOrchestrator.run(db, 10, today=TODAY)

    assert outcome.adjusted == 2
    assert outcome.failed == 1
    assert outcome.failed_ids == [broken_id]
    assert any("failed for client route" in r.getMessage() for r in caplog.records)

    rates = {}
    for assignment_id in ids:
        rates[assignment_id] = (await db.get(ClientRoute, assignment_id, populate_existing=True)).current_rate
    assert rates == {ids[0]: Decimal("1100.00"), ids[1]: Decimal("2000.00"), ids[2]: Decimal("3300.00")}

    run = (await db.execute(select(MonthlyAdjustmentRun))).scalar_one()
    assert run.total_routes_adjusted == 2
    assert run.total_routes_failed == 1


@pytest.mark.asyncio
async def test_rounding_precision_and_effective_day_from_settings(db, make_assignment):
    await ControlSettingsService.update(db, {"rounding_precision": 0, "effective_day_of_month": 15})
    await db.commit()
    assignment = await make_assignment(base_rate="999")
    await MonthlyAdjustmentOrchestrator.run(db, Decimal("2.5"), today=TODAY)
    row = await db.get(ClientRoute, assignment.id, populate_existing=True)
    assert row.current_rate == Decimal("1024")
    assert row.effective_date == "2026-10-15"


@pytest.mark.asyncio
@pytest.mark.parametrize("precision", [3, 4, 6, -1])
async def test_rounding_precision_beyond_money_scale_rejected(db, precision):
    with pytest.raises(ValidationError):
        await ControlSettingsService.update(db, {"rounding_precision": precision})
    assert (await ControlSettingsService.load(db)).rounding_precision == 2


@pytest.mark.asyncio
async def test_stored_out_of_range_precision_falls_back_to_default(db, make_assignment):
    row = await db.scalar(select(ControlSetting).where(ControlSetting.setting_key == "rounding_precision"))
    row.setting_value = "4"
    await db.commit()
    assert (await ControlSettingsService.load(db)).rounding_precision == 2

    assignment = await make_assignment(base_rate="1000.01")
    await MonthlyAdjustmentOrchestrator.run(db, Decimal("3.333"), today=TODAY)
    row = await db.get(ClientRoute, assignment.id, populate_existing=True)
    assert row.current_rate == Decimal("1033.34")


@pytest.mark.asyncio
async def test_status_reports_due_and_applied(db):
    status = await MonthlyAdjustmentOrchestrator.status(db, today=TODAY)
    assert status["adjustment_month"] == "2026-10-01"
    assert status["is_due"] is True
    assert status["already_applied"] is False

    await MonthlyAdjustmentOrchestrator.run(db, 1, today=TODAY)
    status = await MonthlyAdjustmentOrchestrator.status(db, today=date(2026, 10, 20))
    assert status["already_applied"] is True
    assert status["is_due"] is False
    assert status["last_run"].adjustment_month == "2026-10-01"
    assert len(await MonthlyAdjustmentOrchestrator.runs(db)) == 1


def test_first_wednesday():
    assert is_first_wednesday(date(2026, 10, 7))
    assert not is_first_wednesday(date(2026, 10, 14))
    assert not is_first_wednesday(date(2026, 10, 8))
    assert is_first_wednesday(date(2026, 4, 1))
