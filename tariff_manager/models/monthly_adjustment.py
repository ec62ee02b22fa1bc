"""Modèle Ajustement mensuel / Monthly adjustment run model."""

from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base


class MonthlyAdjustmentRun(Base):
    """Marqueur d'une exécution mensuelle / Marker of an applied monthly run.

    L'unicité de adjustment_month interdit une double application.
    Uniqueness of adjustment_month forbids double application.
    """
    __tablename__ = "monthly_adjustments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    adjustment_month: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)  # YYYY-MM-01
    diesel_percentage_change: Mapped[Decimal] = mapped_column(Numeric(8, 4), nullable=False)
    applied_at: Mapped[str] = mapped_column(String(32), nullable=False)
    total_routes_adjusted: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_routes_failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<MonthlyAdjustmentRun {self.adjustment_month} {self.diesel_percentage_change}%>"
