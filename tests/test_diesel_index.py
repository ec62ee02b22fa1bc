"""Tests de l'index diesel / Diesel price index tests."""

from decimal import Decimal

import pytest

from tariff_manager.exceptions import ValidationError
from tariff_manager.services.diesel_index import DieselIndexService


@pytest.mark.asyncio
async def test_first_sample_has_no_previous(db):
    sample = await DieselIndexService.append(db, "2026-01-01", Decimal("21.50"))
    assert sample.previous_price is None
    assert sample.percentage_change is None


@pytest.mark.asyncio
async def test_second_sample_records_change(db):
    await DieselIndexService.append(db, "2026-01-01", Decimal("21.50"))
    sample = await DieselIndexService.append(db, "2026-02-01", Decimal("21.85"))
    assert sample.previous_price == Decimal("21.50")
    assert sample.percentage_change == Decimal("1.6279")


@pytest.mark.asyncio
async def test_previous_is_latest_sample_before_new_date(db):
    await DieselIndexService.append(db, "2026-03-01", Decimal("23.00"))
    backfilled = await DieselIndexService.append(db, "2026-01-01", Decimal("21.00"))
    assert backfilled.previous_price is None
    middle = await DieselIndexService.append(db, "2026-02-01", Decimal("22.00"))
    assert middle.previous_price == Decimal("21.00")


@pytest.mark.asyncio
async def test_duplicate_date_rejected(db):
    await DieselIndexService.append(db, "2026-01-01", Decimal("21.50"))
    with pytest.raises(ValidationError):
        await DieselIndexService.append(db, "2026-01-01", Decimal("22.00"))


@pytest.mark.asyncio
async def test_negative_price_rejected(db):
    with pytest.raises(ValidationError):
        await DieselIndexService.append(db, "2026-01-01", Decimal("-1"))


@pytest.mark.asyncio
@pytest.mark.parametrize("price", ["abc", "", "NaN", "Infinity"])
async def test_non_numeric_price_rejected(db, price):
    with pytest.raises(ValidationError):
        await DieselIndexService.append(db, "2026-01-01", price)
    assert await DieselIndexService.current(db) is None


@pytest.mark.asyncio
async def test_invalid_date_rejected(db):
    with pytest.raises(ValidationError):
        await DieselIndexService.append(db, "January", Decimal("21.50"))


@pytest.mark.asyncio
async def test_current_is_latest_by_date(db):
    assert await DieselIndexService.current(db) is None
    await DieselIndexService.append(db, "2026-02-01", Decimal("22.10"))
    await DieselIndexService.append(db, "2026-01-01", Decimal("21.50"))
    current = await DieselIndexService.current(db)
    assert current.effective_date == "2026-02-01"


@pytest.mark.asyncio
async def test_change_from_base_requires_samples(db):
    with pytest.raises(ValidationError):
        await DieselIndexService.change_from_base(db, Decimal("21.50"))


@pytest.mark.asyncio
async def test_change_from_base(db):
    await DieselIndexService.append(db, "2026-01-01", Decimal("23.75"))
    change = await DieselIndexService.change_from_base(db, Decimal("21.50"))
    assert abs(change - Decimal("10.4651")) < Decimal("0.0001")
    with pytest.raises(ValidationError):
        await DieselIndexService.change_from_base(db, Decimal("0"))


@pytest.mark.asyncio
async def test_trend_moving_averages(db):
    for month, price in ((1, "20"), (2, "21"), (3, "22"), (4, "23")):
        await DieselIndexService.append(db, f"2026-{month:02d}-01", Decimal(price))
    trend = await DieselIndexService.trend(db)
    assert [p["effective_date"] for p in trend] == ["2026-01-01", "2026-02-01", "2026-03-01", "2026-04-01"]
    assert trend[0]["moving_avg_3m"] == 20.0
    assert trend[2]["moving_avg_3m"] == 21.0
    assert trend[3]["moving_avg_3m"] == 22.0
    assert trend[3]["moving_avg_6m"] == 21.5
