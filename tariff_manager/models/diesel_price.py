"""Modèle Prix du diesel / Diesel price model."""

from decimal import Decimal

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base


class DieselPrice(Base):
    """Relevé du prix du diesel, jamais modifié / Diesel price sample, never mutated."""
    __tablename__ = "diesel_prices"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    effective_date: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)  # YYYY-MM-DD
    price_per_liter: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
    previous_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 4))
    percentage_change: Mapped[Decimal | None] = mapped_column(Numeric(8, 4))
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<DieselPrice {self.effective_date} = {self.price_per_liter}>"
