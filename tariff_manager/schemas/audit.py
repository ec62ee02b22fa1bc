"""Schémas Historique / Audit log schemas."""

import json

from pydantic import BaseModel, ConfigDict, field_validator


class AuditLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    entity_type: str
    entity_id: int
    action: str
    changes: dict | None = None
    user: str | None = None
    timestamp: str

    @field_validator("changes", mode="before")
    @classmethod
    def decode_changes(cls, value):
        """Colonne JSON texte -> dict / JSON text column -> dict."""
        if isinstance(value, str):
            return json.loads(value) if value else None
        return value


class AuditLogPage(BaseModel):
    total: int
    items: list[AuditLogRead]
