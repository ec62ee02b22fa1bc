"""Modèle Paramètre de contrôle / Control setting model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base


class ControlSetting(Base):
    __tablename__ = "control_settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    setting_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    setting_value: Mapped[str] = mapped_column(String(255), nullable=False)
    setting_type: Mapped[str] = mapped_column(String(20), nullable=False)  # decimal, integer
    description: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<ControlSetting {self.setting_key}={self.setting_value}>"
