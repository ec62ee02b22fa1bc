"""Modèle Historique / Audit log model."""

import enum

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base


class AuditEntity(str, enum.Enum):
    """Entités tracées / Audited entity types."""
    CLIENT = "client"
    CLIENT_ROUTE = "client_route"
    CONTROL_SETTING = "control_setting"
    DIESEL_PRICE = "diesel_price"
    DOCUMENT = "document"
    MONTHLY_ADJUSTMENT = "monthly_adjustment"
    SELECTIVE_ADJUSTMENT = "selective_adjustment"


class AuditLog(Base):
    """Trace des actions opérateur / Operator action trail."""
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Valeur d'AuditEntity / AuditEntity value
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # CREATE, UPDATE, DEACTIVATE, REACTIVATE, APPLY, UPLOAD
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    changes: Mapped[str | None] = mapped_column(Text)  # JSON
    user: Mapped[str | None] = mapped_column(String(100))
    timestamp: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
