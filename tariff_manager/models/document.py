"""Modèle Document client / Client document model."""

import enum

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tariff_manager.database import Base


class DocumentType(str, enum.Enum):
    """Type de document / Document type."""
    SLA = "SLA"
    CREDIT_APP = "CREDIT_APP"
    RATE_CARD = "RATE_CARD"
    CONTRACT = "CONTRACT"
    INSURANCE = "INSURANCE"
    TAX_CERT = "TAX_CERT"
    BEE_CERT = "BEE_CERT"
    OTHER = "OTHER"


# Documents obligatoires pour un client / Documents every client must hold
REQUIRED_DOCUMENT_TYPES = (DocumentType.CONTRACT,)


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False, index=True)
    document_type: Mapped[DocumentType] = mapped_column(Enum(DocumentType), nullable=False)
    document_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)  # chemin opaque / opaque store path
    file_size: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str | None] = mapped_column(String(100))
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # False si le dépôt du fichier a échoué / False when the blob upload failed
    blob_stored: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    expiry_date: Mapped[str | None] = mapped_column(String(10))
    notes: Mapped[str | None] = mapped_column(Text)
    uploaded_at: Mapped[str | None] = mapped_column(String(32))

    def __repr__(self) -> str:
        return f"<Document {self.document_type} v{self.version} client={self.client_id}>"
