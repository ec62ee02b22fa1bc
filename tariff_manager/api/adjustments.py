"""Routes Ajustements tarifaires / Rate adjustment API routes."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.api.deps import get_operator
from tariff_manager.config import settings
from tariff_manager.database import get_db
from tariff_manager.rate_limit import limiter
from tariff_manager.schemas.adjustment import (
    AdjustmentOutcomeRead,
    AdjustmentStatus,
    ApplySelectedRequest,
    ApplySelectedResult,
    MonthlyAdjustmentRequest,
    MonthlyAdjustmentRunRead,
    SelectivePreview,
)
from tariff_manager.services.monthly_adjustment import MonthlyAdjustmentOrchestrator
from tariff_manager.services.selective_adjustment import SelectiveAdjustmentService

router = APIRouter()


@router.get("/status", response_model=AdjustmentStatus)
async def adjustment_status(db: AsyncSession = Depends(get_db)):
    """État du mois courant ; is_due est indicatif / Current month status; is_due is advisory."""
    return await MonthlyAdjustmentOrchestrator.status(db)


@router.get("/runs", response_model=list[MonthlyAdjustmentRunRead])
async def list_runs(db: AsyncSession = Depends(get_db)):
    return await MonthlyAdjustmentOrchestrator.runs(db)


@router.post("/monthly", response_model=AdjustmentOutcomeRead)
@limiter.limit(settings.RATE_LIMIT_ADJUSTMENTS)
async def apply_monthly_adjustment(
    request: Request,
    data: MonthlyAdjustmentRequest,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Appliquer l'ajustement mensuel à toutes les routes actives / Apply the monthly adjustment."""
    outcome = await MonthlyAdjustmentOrchestrator.run(db, data.percentage, reason=data.reason, user=operator)
    return outcome.to_dict()


@router.get("/preview", response_model=SelectivePreview)
async def preview_selective(db: AsyncSession = Depends(get_db)):
    """Propositions depuis le prix de référence / Proposals from the base diesel price."""
    return await SelectiveAdjustmentService.preview(db)


@router.post("/apply-selected", response_model=ApplySelectedResult)
@limiter.limit(settings.RATE_LIMIT_ADJUSTMENTS)
async def apply_selected(
    request: Request,
    data: ApplySelectedRequest,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Appliquer les propositions choisies / Apply the chosen proposals."""
    return await SelectiveAdjustmentService.apply_selected(
        db, data.client_route_ids, reason=data.reason, user=operator,
    )
