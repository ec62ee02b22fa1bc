"""Routes Fiches tarifaires / Rate sheet API routes."""

import io
from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.database import get_db
from tariff_manager.schemas.rate_sheet import RateSheetRequest
from tariff_manager.services.pdf_renderer import PdfRenderer
from tariff_manager.services.rate_sheet import RateSheetOptions, RateSheetService

router = APIRouter()


@router.get("/{client_id}")
async def get_rate_sheet(
    client_id: int,
    effective_date: date | None = Query(default=None),
    valid_until: date | None = Query(default=None),
    include_terms: bool = Query(default=True),
    db: AsyncSession = Depends(get_db),
):
    """Modèle de la fiche (JSON) / Rate sheet model (JSON)."""
    options = RateSheetOptions(effective_date=effective_date, valid_until=valid_until, include_terms=include_terms)
    sheet = await RateSheetService.for_client(db, client_id, options)
    return {**asdict(sheet), "total_pages": sheet.total_pages}


@router.post("/{client_id}/pdf")
async def render_rate_sheet_pdf(
    client_id: int,
    data: RateSheetRequest,
    db: AsyncSession = Depends(get_db),
):
    """Générer la fiche en PDF / Render the rate sheet as PDF."""
    sheet = await RateSheetService.for_client(db, client_id, RateSheetOptions(**data.model_dump()))
    content = PdfRenderer().render(sheet)
    filename = f"{sheet.reference}.pdf"
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
