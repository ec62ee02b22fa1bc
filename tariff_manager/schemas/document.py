"""Schémas Documents / Document schemas."""

from pydantic import BaseModel, ConfigDict

from tariff_manager.models.document import DocumentType


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    client_id: int
    document_type: DocumentType
    document_name: str
    file_path: str
    file_size: int | None = None
    mime_type: str | None = None
    version: int
    is_current: bool
    blob_stored: bool
    expiry_date: str | None = None
    notes: str | None = None
    uploaded_at: str | None = None


class DocumentStatusRead(BaseModel):
    document_type: str
    required: bool
    status: str
    document_id: int | None = None
    expiry_date: str | None = None
