"""Modèle Route / Route model."""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base


class Route(Base):
    """Trajet origine → destination / Origin → destination lane."""
    __tablename__ = "routes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    route_code: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    origin: Mapped[str] = mapped_column(String(150), nullable=False)
    destination: Mapped[str] = mapped_column(String(150), nullable=False)
    distance_km: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    estimated_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    route_description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[str | None] = mapped_column(String(32))
    updated_at: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<Route {self.route_code} {self.origin}→{self.destination}>"
