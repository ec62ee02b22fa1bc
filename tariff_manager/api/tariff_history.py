"""Routes Historique tarifaire / Tariff history (ledger) API routes."""

import io
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.database import get_db
from tariff_manager.models.tariff_history import HistorySource
from tariff_manager.schemas.tariff_history import TariffHistoryPage, TariffHistorySummary
from tariff_manager.services.export_service import TARIFF_HISTORY_FIELDS, ExportService
from tariff_manager.services.tariff_ledger import TariffLedger

router = APIRouter()


@router.get("/", response_model=TariffHistoryPage)
async def list_tariff_history(
    client_id: int | None = Query(default=None),
    client_route_id: int | None = Query(default=None),
    period_month: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}-01$"),
    source: HistorySource | None = Query(default=None),
    limit: int = Query(default=100, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    total, items = await TariffLedger.entries(db, client_id, client_route_id, period_month, source, limit, offset)
    return {"total": total, "items": items}


@router.get("/summary", response_model=TariffHistorySummary)
async def tariff_history_summary(db: AsyncSession = Depends(get_db)):
    return await TariffLedger.summary(db)


@router.get("/export")
async def export_tariff_history(
    format: str = Query("xlsx", pattern="^(csv|xlsx)$"),
    client_id: int | None = Query(default=None),
    period_month: str | None = Query(default=None, pattern=r"^\d{4}-\d{2}-01$"),
    db: AsyncSession = Depends(get_db),
):
    """Exporter le registre en CSV ou XLSX / Export the ledger to CSV or XLSX."""
    _, entries = await TariffLedger.entries(db, client_id=client_id, period=period_month, limit=100_000)
    rows = [ExportService.model_to_dict(entry, TARIFF_HISTORY_FIELDS) for entry in entries]
    stamp = date.today().strftime("%Y%m%d")

    if format == "csv":
        content = ExportService.to_csv(rows, TARIFF_HISTORY_FIELDS)
        media_type = "text/csv; charset=utf-8"
        filename = f"tariff_history_{stamp}.csv"
    else:
        content = ExportService.to_xlsx(rows, TARIFF_HISTORY_FIELDS)
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        filename = f"tariff_history_{stamp}.xlsx"

    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
