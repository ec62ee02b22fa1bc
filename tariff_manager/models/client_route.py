"""Modèle Affectation client-route / Client-route assignment model."""

import enum
from decimal import Decimal

from sqlalchemy import Boolean, Enum, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base
from tariff_manager.models.client import Currency


class RateType(str, enum.Enum):
    """Unité de tarification / Rate unit."""
    PER_LOAD = "per_load"
    PER_KM = "per_km"
    PER_TON = "per_ton"


class ClientRoute(Base):
    """Tarif d'un client sur une route / Rate a client pays on a route.

    Une seule ligne par paire (client, route) : la réactivation réutilise la ligne.
    One row per (client, route) pairing: reactivation reuses the row.
    """
    __tablename__ = "client_routes"
    __table_args__ = (
        UniqueConstraint("client_id", "route_id", name="uq_client_route_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False, index=True)
    route_id: Mapped[int] = mapped_column(ForeignKey("routes.id"), nullable=False, index=True)

    # base_rate : référence de l'indexation ; current_rate : montant facturé
    # base_rate: indexation reference; current_rate: billed amount
    base_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    current_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    rate_type: Mapped[RateType] = mapped_column(
        Enum(RateType, values_callable=lambda e: [m.value for m in e]),
        default=RateType.PER_LOAD,
        nullable=False,
    )
    currency: Mapped[Currency] = mapped_column(Enum(Currency), default=Currency.ZAR, nullable=False)
    additional_charges: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    includes_vat: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    minimum_charge: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    effective_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    route_description: Mapped[str | None] = mapped_column(Text)  # surcharge client / client override
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str | None] = mapped_column(String(32))
    updated_at: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<ClientRoute client={self.client_id} route={self.route_id} rate={self.current_rate}>"
