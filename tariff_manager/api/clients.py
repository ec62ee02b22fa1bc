"""Routes Clients / Client API routes."""

import json
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.api.deps import get_operator
from tariff_manager.database import get_db
from tariff_manager.exceptions import NotFoundError, ValidationError
from tariff_manager.models.audit import AuditLog
from tariff_manager.models.client import Client
from tariff_manager.schemas.client import ClientCreate, ClientRead, ClientUpdate
from tariff_manager.schemas.client_route import ClientRouteRead
from tariff_manager.services.assignment_store import AssignmentStore

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


async def _get_client(db: AsyncSession, client_id: int) -> Client:
    client = await db.get(Client, client_id)
    if not client:
        raise NotFoundError("Client", client_id)
    return client


@router.get("/", response_model=list[ClientRead])
async def list_clients(
    active: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    db: AsyncSession = Depends(get_db),
):
    """Lister les clients / List clients."""
    query = select(Client).order_by(Client.company_name)
    if active is not None:
        query = query.where(Client.is_active.is_(active))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Client.company_name.ilike(pattern), Client.client_code.ilike(pattern)))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    return await _get_client(db, client_id)


@router.post("/", response_model=ClientRead, status_code=201)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Créer un client / Create a client."""
    existing = await db.scalar(select(Client.id).where(Client.client_code == data.client_code))
    if existing is not None:
        raise ValidationError(f"Client code {data.client_code} already exists", details={"client_id": existing})
    client = Client(**data.model_dump(), is_active=True, created_at=_now_iso(), updated_at=_now_iso())
    db.add(client)
    await db.flush()
    await db.refresh(client)
    db.add(AuditLog(
        entity_type="client", entity_id=client.id, action="CREATE",
        changes=json.dumps({"client_code": client.client_code}), user=operator, timestamp=_now_iso(),
    ))
    return client


@router.put("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Modifier un client / Update a client."""
    client = await _get_client(db, client_id)
    changes = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(client, key, value)
    client.updated_at = _now_iso()
    db.add(AuditLog(
        entity_type="client", entity_id=client.id, action="UPDATE",
        changes=json.dumps(changes, default=str), user=operator, timestamp=_now_iso(),
    ))
    await db.flush()
    await db.refresh(client)
    return client


@router.delete("/{client_id}", response_model=ClientRead)
async def deactivate_client(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Désactiver un client (jamais supprimé) / Deactivate a client (never deleted)."""
    client = await _get_client(db, client_id)
    client.is_active = False
    client.updated_at = _now_iso()
    db.add(AuditLog(
        entity_type="client", entity_id=client.id, action="DEACTIVATE",
        changes=None, user=operator, timestamp=_now_iso(),
    ))
    await db.flush()
    await db.refresh(client)
    return client


@router.get("/{client_id}/routes", response_model=list[ClientRouteRead])
async def list_client_routes(
    client_id: int,
    active_only: bool = Query(default=True),
    db: AsyncSession = Depends(get_db),
):
    """Routes affectées au client / Routes assigned to the client."""
    await _get_client(db, client_id)
    return await AssignmentStore.list_for_client(db, client_id, active_only)
