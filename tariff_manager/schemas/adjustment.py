"""Schémas Ajustements / Adjustment schemas."""

from pydantic import BaseModel, ConfigDict


class MonthlyAdjustmentRequest(BaseModel):
    # pas de contrainte : validé par l'orchestrateur / unconstrained, validated by the orchestrator
    percentage: float
    reason: str | None = None


class MonthlyAdjustmentRunRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    adjustment_month: str
    diesel_percentage_change: float
    applied_at: str
    total_routes_adjusted: int
    total_routes_failed: int
    notes: str | None = None


class AdjustmentOutcomeRead(BaseModel):
    status: str
    adjustment_month: str
    percentage: float
    adjusted: int
    failed: int
    total: int
    failed_ids: list[int]
    run_id: int | None = None


class AdjustmentStatus(BaseModel):
    adjustment_month: str
    already_applied: bool
    is_due: bool
    last_run: MonthlyAdjustmentRunRead | None = None


class ProposalItem(BaseModel):
    client_route_id: int
    client_id: int
    client_name: str
    route_code: str
    origin: str
    destination: str
    currency: str
    base_rate: float
    current_rate: float
    proposed_rate: float
    adjustment_percentage: float
    exceeds_max: bool


class SelectivePreview(BaseModel):
    current_diesel_price: float
    base_diesel_price: float
    diesel_change_percentage: float
    diesel_impact: float
    max_monthly_increase: float
    threshold_reached: bool
    items: list[ProposalItem]


class ApplySelectedRequest(BaseModel):
    client_route_ids: list[int]
    reason: str | None = None


class ApplySelectedResult(BaseModel):
    applied: list[int]
    skipped: list[int]
    failed: list[int]
