"""Schémas Prix du diesel / Diesel price schemas."""

from pydantic import BaseModel, ConfigDict, Field


class DieselPriceCreate(BaseModel):
    effective_date: str
    price_per_liter: float = Field(ge=0)
    notes: str | None = None


class DieselPriceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    effective_date: str
    price_per_liter: float
    previous_price: float | None = None
    percentage_change: float | None = None
    notes: str | None = None
    created_at: str | None = None


class DieselTrendPoint(BaseModel):
    effective_date: str
    price_per_liter: float
    percentage_change: float | None = None
    moving_avg_3m: float
    moving_avg_6m: float


class DieselChangeFromBase(BaseModel):
    current_price: float
    effective_date: str
    base_price: float
    percentage_change: float
