"""Modèle Historique tarifaire / Tariff history (ledger) model."""

import enum
from decimal import Decimal

from sqlalchemy import Enum, ForeignKey, Numeric, String, Text, event
from sqlalchemy.orm import Mapped, Session, mapped_column

from tariff_manager.database import Base
from tariff_manager.exceptions import ValidationError
from tariff_manager.models.client import Currency


class HistorySource(str, enum.Enum):
    """Origine d'un mouvement de tarif / Origin of a rate movement."""
    MANUAL = "manual"
    MONTHLY = "monthly"
    SELECTIVE = "selective"
    ASSIGNMENT = "assignment"


class TariffHistory(Base):
    """Entrée du registre, en ajout seul / Append-only ledger entry."""
    __tablename__ = "tariff_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    client_route_id: Mapped[int] = mapped_column(ForeignKey("client_routes.id"), nullable=False, index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False, index=True)
    route_id: Mapped[int] = mapped_column(ForeignKey("routes.id"), nullable=False)
    period_month: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # YYYY-MM-01
    previous_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    new_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[Currency] = mapped_column(Enum(Currency), default=Currency.ZAR, nullable=False)
    diesel_price_at_change: Mapped[Decimal | None] = mapped_column(Numeric(10, 4))
    diesel_percentage_change: Mapped[Decimal | None] = mapped_column(Numeric(8, 4))
    adjustment_percentage: Mapped[Decimal | None] = mapped_column(Numeric(8, 4))
    adjustment_reason: Mapped[str | None] = mapped_column(Text)
    source: Mapped[HistorySource] = mapped_column(
        Enum(HistorySource, values_callable=lambda e: [m.value for m in e]),
        default=HistorySource.MANUAL,
        nullable=False,
    )
    created_at: Mapped[str] = mapped_column(String(32), nullable=False)

    def __repr__(self) -> str:
        return f"<TariffHistory cr={self.client_route_id} {self.previous_rate}→{self.new_rate}>"


@event.listens_for(Session, "before_flush")
def _reject_ledger_mutation(session, flush_context, instances):
    """Refuser modification/suppression du registre / Reject ledger update or delete."""
    for obj in session.deleted:
        if isinstance(obj, TariffHistory):
            raise ValidationError("Tariff history entries cannot be deleted", details={"id": obj.id})
    for obj in session.dirty:
        if isinstance(obj, TariffHistory) and session.is_modified(obj, include_collections=False):
            raise ValidationError("Tariff history entries cannot be modified", details={"id": obj.id})
