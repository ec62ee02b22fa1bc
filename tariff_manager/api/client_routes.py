"""Routes Affectations client-route / Client-route assignment API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.api.deps import get_operator
from tariff_manager.database import get_db
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.schemas.client_route import ClientRouteCreate, ClientRouteRead, ClientRouteUpdate
from tariff_manager.services.assignment_store import AssignmentStore

router = APIRouter()


@router.get("/", response_model=list[ClientRouteRead])
async def list_client_routes(
    client_id: int | None = Query(default=None),
    route_id: int | None = Query(default=None),
    active_only: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
):
    query = select(ClientRoute).order_by(ClientRoute.id)
    if client_id is not None:
        query = query.where(ClientRoute.client_id == client_id)
    if route_id is not None:
        query = query.where(ClientRoute.route_id == route_id)
    if active_only:
        query = query.where(ClientRoute.is_active.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{assignment_id}", response_model=ClientRouteRead)
async def get_client_route(assignment_id: int, db: AsyncSession = Depends(get_db)):
    return await AssignmentStore.get(db, assignment_id)


@router.post("/", response_model=ClientRouteRead, status_code=201)
async def assign_route(
    data: ClientRouteCreate,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Affecter une route à un client / Assign a route to a client."""
    terms = data.model_dump(exclude={"client_id", "route_id"})
    return await AssignmentStore.assign(db, data.client_id, data.route_id, terms, user=operator)


@router.put("/{assignment_id}", response_model=ClientRouteRead)
async def update_client_route(
    assignment_id: int,
    data: ClientRouteUpdate,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Modification manuelle du tarif / Manual rate edit."""
    return await AssignmentStore.update(db, assignment_id, data.model_dump(exclude_unset=True), user=operator)


@router.delete("/{assignment_id}", response_model=ClientRouteRead)
async def deactivate_client_route(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    operator: str | None = Depends(get_operator),
):
    """Retirer la route du client (désactivation) / Remove the route from the client (deactivation)."""
    return await AssignmentStore.deactivate(db, assignment_id, user=operator)
