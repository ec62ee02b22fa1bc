"""Routes Paramètres de contrôle / Control settings API routes."""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.api.deps import get_operator
from tariff_manager.database import get_db
from tariff_manager.schemas.control_setting import ControlSettingsRead, ControlSettingsUpdate
from tariff_manager.services.control_settings import ControlSettingsService

router = APIRouter()


@router.get("/", response_model=ControlSettingsRead)
async def get_control_settings(db: AsyncSession = Depends(get_db)):
    return asdict(await ControlSettingsService.load(db))


@router.put("/", response_model=ControlSettingsRead)
async def update_control_settings(
    data: ControlSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Modifier les paramètres / Update settings."""
    updated = await ControlSettingsService.update(db, data.model_dump(exclude_unset=True), user=operator)
    return asdict(updated)
