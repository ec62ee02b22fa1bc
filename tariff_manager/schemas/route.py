"""Schémas Route / Route schemas."""

from pydantic import BaseModel, ConfigDict, Field


class RouteBase(BaseModel):
    origin: str = Field(min_length=1, max_length=150)
    destination: str = Field(min_length=1, max_length=150)
    distance_km: float | None = Field(default=None, ge=0)
    estimated_hours: float | None = Field(default=None, ge=0)
    route_description: str | None = None


class RouteCreate(RouteBase):
    route_code: str | None = None  # généré si absent / generated when omitted


class RouteUpdate(BaseModel):
    route_code: str | None = None
    origin: str | None = None
    destination: str | None = None
    distance_km: float | None = Field(default=None, ge=0)
    estimated_hours: float | None = Field(default=None, ge=0)
    route_description: str | None = None
    is_active: bool | None = None


class RouteRead(RouteBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    route_code: str
    is_active: bool
