"""Schémas Historique tarifaire / Tariff history schemas."""

from pydantic import BaseModel, ConfigDict

from tariff_manager.models.client import Currency
from tariff_manager.models.tariff_history import HistorySource


class TariffHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    client_route_id: int
    client_id: int
    route_id: int
    period_month: str
    previous_rate: float
    new_rate: float
    currency: Currency
    diesel_price_at_change: float | None = None
    diesel_percentage_change: float | None = None
    adjustment_percentage: float | None = None
    adjustment_reason: str | None = None
    source: HistorySource
    created_at: str


class TariffHistoryPage(BaseModel):
    total: int
    items: list[TariffHistoryRead]


class TariffHistorySummary(BaseModel):
    total_entries: int
    average_adjustment_percentage: float | None = None
    entries_last_three_months: int
    since: str
