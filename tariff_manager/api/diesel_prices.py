"""Routes Prix du diesel / Diesel price API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.api.deps import get_operator
from tariff_manager.database import get_db
from tariff_manager.exceptions import NotFoundError
from tariff_manager.schemas.diesel_price import (
    DieselChangeFromBase,
    DieselPriceCreate,
    DieselPriceRead,
    DieselTrendPoint,
)
from tariff_manager.services.control_settings import ControlSettingsService
from tariff_manager.services.diesel_index import DieselIndexService

router = APIRouter()


@router.get("/", response_model=list[DieselPriceRead])
async def list_diesel_prices(
    limit: int | None = Query(default=None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Série des prix, plus récents d'abord / Price series, newest first."""
    samples = await DieselIndexService.history(db, limit)
    return list(reversed(samples))


@router.post("/", response_model=DieselPriceRead, status_code=201)
async def create_diesel_price(
    data: DieselPriceCreate,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Ajouter un relevé mensuel / Append a monthly sample."""
    return await DieselIndexService.append(
        db, data.effective_date, data.price_per_liter, notes=data.notes, user=operator,
    )


@router.get("/current", response_model=DieselPriceRead)
async def current_diesel_price(db: AsyncSession = Depends(get_db)):
    sample = await DieselIndexService.current(db)
    if sample is None:
        raise NotFoundError("Diesel price")
    return sample


@router.get("/trend", response_model=list[DieselTrendPoint])
async def diesel_trend(
    limit: int | None = Query(default=12, ge=1, le=120),
    db: AsyncSession = Depends(get_db),
):
    """Tendance avec moyennes mobiles / Trend with moving averages."""
    return await DieselIndexService.trend(db, limit)


@router.get("/change-from-base", response_model=DieselChangeFromBase)
async def diesel_change_from_base(db: AsyncSession = Depends(get_db)):
    """Écart du prix courant vs prix de référence / Current price vs base price."""
    control = await ControlSettingsService.load(db)
    change = await DieselIndexService.change_from_base(db, control.base_diesel_price)
    sample = await DieselIndexService.current(db)
    return {
        "current_price": sample.price_per_liter,
        "effective_date": sample.effective_date,
        "base_price": control.base_diesel_price,
        "percentage_change": round(float(change), 4),
    }
