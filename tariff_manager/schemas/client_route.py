"""Schémas Affectation client-route / Client-route assignment schemas."""

from pydantic import BaseModel, ConfigDict, Field

from tariff_manager.models.client import Currency
from tariff_manager.models.client_route import RateType


class ClientRouteCreate(BaseModel):
    client_id: int
    route_id: int
    base_rate: float = Field(ge=0)
    current_rate: float | None = Field(default=None, ge=0)  # saisie directe / direct override
    rate_type: RateType = RateType.PER_LOAD
    currency: Currency = Currency.ZAR
    additional_charges: float = Field(default=0, ge=0)
    includes_vat: bool = False
    minimum_charge: float | None = Field(default=None, ge=0)
    effective_date: str | None = None
    route_description: str | None = None
    notes: str | None = None


class ClientRouteUpdate(BaseModel):
    base_rate: float | None = Field(default=None, ge=0)
    current_rate: float | None = Field(default=None, ge=0)
    rate_type: RateType | None = None
    currency: Currency | None = None
    additional_charges: float | None = Field(default=None, ge=0)
    includes_vat: bool | None = None
    minimum_charge: float | None = Field(default=None, ge=0)
    effective_date: str | None = None
    route_description: str | None = None
    notes: str | None = None
    reason: str | None = None


class ClientRouteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    client_id: int
    route_id: int
    base_rate: float
    current_rate: float
    rate_type: RateType
    currency: Currency
    additional_charges: float
    includes_vat: bool
    minimum_charge: float | None = None
    effective_date: str
    is_active: bool
    route_description: str | None = None
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
