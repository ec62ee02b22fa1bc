"""Routes Trajets / Route (lane) API routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.database import get_db
from tariff_manager.exceptions import NotFoundError, ValidationError
from tariff_manager.models.route import Route
from tariff_manager.schemas.route import RouteCreate, RouteRead, RouteUpdate

router = APIRouter()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def generate_route_code(origin: str, destination: str) -> str:
    """'Johannesburg' -> 'Durban' => 'JOH-DUR'."""
    def part(name: str) -> str:
        letters = "".join(ch for ch in name if ch.isalnum())
        return letters[:3].upper()
    return f"{part(origin)}-{part(destination)}"


async def _unique_code(db: AsyncSession, base: str) -> str:
    result = await db.execute(select(Route.route_code).where(Route.route_code.like(f"{base}%")))
    taken = set(result.scalars().all())
    code, n = base, 2
    while code in taken:
        code = f"{base}-{n}"
        n += 1
    return code


@router.get("/", response_model=list[RouteRead])
async def list_routes(active: bool | None = Query(default=None), db: AsyncSession = Depends(get_db)):
    query = select(Route).order_by(Route.route_code)
    if active is not None:
        query = query.where(Route.is_active.is_(active))
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{route_id}", response_model=RouteRead)
async def get_route(route_id: int, db: AsyncSession = Depends(get_db)):
    route = await db.get(Route, route_id)
    if not route:
        raise NotFoundError("Route", route_id)
    return route


@router.post("/", response_model=RouteRead, status_code=201)
async def create_route(data: RouteCreate, db: AsyncSession = Depends(get_db)):
    """Créer une route (code généré si absent) / Create a route (code generated when omitted)."""
    values = data.model_dump()
    if values.get("route_code"):
        exists = await db.scalar(select(Route.id).where(Route.route_code == values["route_code"]))
        if exists is not None:
            raise ValidationError(f"Route code {values['route_code']} already exists", details={"route_id": exists})
    else:
        values["route_code"] = await _unique_code(db, generate_route_code(data.origin, data.destination))
    route = Route(**values, is_active=True, created_at=_now_iso(), updated_at=_now_iso())
    db.add(route)
    await db.flush()
    await db.refresh(route)
    return route


@router.put("/{route_id}", response_model=RouteRead)
async def update_route(route_id: int, data: RouteUpdate, db: AsyncSession = Depends(get_db)):
    route = await db.get(Route, route_id)
    if not route:
        raise NotFoundError("Route", route_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(route, key, value)
    route.updated_at = _now_iso()
    await db.flush()
    await db.refresh(route)
    return route


@router.delete("/{route_id}", response_model=RouteRead)
async def deactivate_route(route_id: int, db: AsyncSession = Depends(get_db)):
    """Désactiver une route / Deactivate a route."""
    route = await db.get(Route, route_id)
    if not route:
        raise NotFoundError("Route", route_id)
    route.is_active = False
    route.updated_at = _now_iso()
    await db.flush()
    await db.refresh(route)
    return route
