"""Tests de l'ajustement sélectif / Selective adjustment tests."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from tariff_manager.exceptions import ValidationError
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.monthly_adjustment import MonthlyAdjustmentRun
from tariff_manager.models.tariff_history import HistorySource, TariffHistory
from tariff_manager.services.assignment_store import AssignmentStore
from tariff_manager.services.control_settings import ControlSettingsService
from tariff_manager.services.diesel_index import DieselIndexService
from tariff_manager.services.selective_adjustment import SelectiveAdjustmentService


@pytest.mark.asyncio
async def test_preview_proposes_from_base_rate(db, make_assignment):
    await DieselIndexService.append(db, "2026-10-01", Decimal("23.75"))
    assignment = await make_assignment(base_rate="4500")

    preview = await SelectiveAdjustmentService.preview(db)

    assert preview["diesel_change_percentage"] == pytest.approx(10.4651)
    assert preview["diesel_impact"] == pytest.approx(3.6628, abs=1e-4)
    assert preview["threshold_reached"] is True
    [item] = preview["items"]
    assert item["client_route_id"] == assignment.id
    assert item["proposed_rate"] == 4664.83
    assert item["adjustment_percentage"] == 3.66
    assert item["exceeds_max"] is False


@pytest.mark.asyncio
async def test_preview_flags_increase_above_max(db, make_assignment):
    await ControlSettingsService.update(db, {"max_monthly_increase": 3})
    await DieselIndexService.append(db, "2026-10-01", Decimal("23.75"))
    await make_assignment(base_rate="4500")

    preview = await SelectiveAdjustmentService.preview(db)
    assert preview["items"][0]["exceeds_max"] is True


@pytest.mark.asyncio
async def test_preview_below_threshold(db, make_assignment):
    await DieselIndexService.append(db, "2026-10-01", Decimal("21.60"))
    await make_assignment(base_rate="1000")
    preview = await SelectiveAdjustmentService.preview(db)
    assert preview["threshold_reached"] is False


@pytest.mark.asyncio
async def test_preview_requires_diesel_price(db, make_assignment):
    await make_assignment(base_rate="1000")
    with pytest.raises(ValidationError):
        await SelectiveAdjustmentService.preview(db)


@pytest.mark.asyncio
async def test_apply_selected_only_touches_chosen(db, make_assignment):
    await DieselIndexService.append(db, "2026-10-01", Decimal("23.75"))
    chosen = await make_assignment(base_rate="4500")
    other = await make_assignment(base_rate="4500")
    retired = await make_assignment(base_rate="4500")
    chosen_id, other_id, retired_id = chosen.id, other.id, retired.id
    await AssignmentStore.deactivate(db, retired_id)
    await db.commit()

    result = await SelectiveAdjustmentService.apply_selected(
        db, [chosen_id, retired_id, 9999], today=date(2026, 10, 12),
    )

    assert result == {"applied": [chosen_id], "skipped": [retired_id, 9999], "failed": []}
    assert (await db.get(ClientRoute, chosen_id, populate_existing=True)).current_rate == Decimal("4664.83")
    assert (await db.get(ClientRoute, other_id, populate_existing=True)).current_rate == Decimal("4500.00")

    entry = (await db.execute(select(TariffHistory))).scalar_one()
    assert entry.source == HistorySource.SELECTIVE
    assert entry.diesel_percentage_change == Decimal("10.4651")
    assert entry.diesel_price_at_change == Decimal("23.75")
    assert entry.adjustment_percentage == Decimal("3.6629")

    assert await db.scalar(select(func.count()).select_from(MonthlyAdjustmentRun)) == 0
