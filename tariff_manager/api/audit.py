"""Routes Historique / Audit log API routes."""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.database import get_db
from tariff_manager.models.audit import AuditEntity, AuditLog
from tariff_manager.schemas.audit import AuditLogPage

router = APIRouter()


@router.get("/", response_model=AuditLogPage)
async def list_audit_logs(
    entity_type: AuditEntity | None = Query(default=None),
    entity_id: int | None = Query(default=None),
    action: str | None = Query(default=None),
    user: str | None = Query(default=None, description="Opérateur (X-Operator) / Operator"),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    limit: int = Query(default=100, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Lister les logs d'audit, plus récents d'abord / List audit logs, newest first."""
    filters = []
    if entity_type is not None:
        filters.append(AuditLog.entity_type == entity_type.value)
    if entity_id is not None:
        filters.append(AuditLog.entity_id == entity_id)
    if action:
        filters.append(AuditLog.action == action.upper())
    if user:
        filters.append(AuditLog.user == user)
    # Horodatages ISO : comparaison lexicale / ISO timestamps compare lexically
    if date_from is not None:
        filters.append(AuditLog.timestamp >= date_from.isoformat())
    if date_to is not None:
        filters.append(AuditLog.timestamp < (date_to + timedelta(days=1)).isoformat())

    total = await db.scalar(select(func.count(AuditLog.id)).where(*filters)) or 0
    result = await db.execute(
        select(AuditLog).where(*filters).order_by(AuditLog.id.desc()).offset(offset).limit(limit)
    )
    return {"total": total, "items": list(result.scalars().all())}
