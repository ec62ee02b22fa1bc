"""Schémas Paramètres de contrôle / Control settings schemas."""

from pydantic import BaseModel


class ControlSettingsRead(BaseModel):
    base_diesel_price: float
    diesel_impact_percentage: float
    auto_adjust_threshold: float
    max_monthly_increase: float
    rounding_precision: int
    effective_day_of_month: int


class ControlSettingsUpdate(BaseModel):
    base_diesel_price: float | None = None
    diesel_impact_percentage: float | None = None
    auto_adjust_threshold: float | None = None
    max_monthly_increase: float | None = None
    rounding_precision: int | None = None
    effective_day_of_month: int | None = None
