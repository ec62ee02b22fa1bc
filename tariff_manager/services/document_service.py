"""
Service Documents client / Client document service.
Versionne les documents par type ; l'échec du dépôt du fichier n'est pas bloquant.
Versions documents per type; a failed blob upload is not fatal.
"""

import json
import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.exceptions import NotFoundError, ValidationError
from tariff_manager.models.audit import AuditLog
from tariff_manager.models.client import Client
from tariff_manager.models.document import REQUIRED_DOCUMENT_TYPES, Document, DocumentType
from tariff_manager.services.file_store import LocalFileStore

logger = logging.getLogger(__name__)

EXPIRY_WARNING_DAYS = 30


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def document_status(document: Document | None, today: date) -> str:
    """Missing / Expired / Expiring Soon / Valid."""
    if document is None:
        return "Missing"
    if not document.expiry_date:
        return "Valid"
    expiry = date.fromisoformat(document.expiry_date)
    if expiry < today:
        return "Expired"
    if expiry <= today + timedelta(days=EXPIRY_WARNING_DAYS):
        return "Expiring Soon"
    return "Valid"


class DocumentService:

    @staticmethod
    async def upload(
        db: AsyncSession,
        store: LocalFileStore,
        client_id: int,
        document_type: DocumentType,
        filename: str,
        content: bytes,
        mime_type: str | None = None,
        expiry_date: str | None = None,
        notes: str | None = None,
        user: str | None = None,
    ) -> Document:
        """Enregistrer un document, nouvelle version par type / Record a document, new version per type."""
        if not await db.get(Client, client_id):
            raise NotFoundError("Client", client_id)
        if expiry_date:
            try:
                date.fromisoformat(expiry_date)
            except ValueError as exc:
                raise ValidationError("expiry_date must be an ISO date", details={"expiry_date": expiry_date}) from exc

        prefix = f"clients/{client_id}/{document_type.value.lower()}"
        try:
            path = store.put(prefix, filename, content)
            blob_stored = True
        except OSError as exc:
            # métadonnées conservées / metadata kept
            logger.warning("Document blob upload failed for client %s (%s): %s", client_id, filename, exc)
            path = f"{prefix}/{filename}"
            blob_stored = False

        result = await db.execute(
            select(Document).where(
                Document.client_id == client_id,
                Document.document_type == document_type,
                Document.is_current.is_(True),
            )
        )
        version = 1
        for previous in result.scalars().all():
            previous.is_current = False
            version = max(version, previous.version + 1)

        document = Document(
            client_id=client_id,
            document_type=document_type,
            document_name=filename,
            file_path=path,
            file_size=len(content),
            mime_type=mime_type,
            version=version,
            is_current=True,
            blob_stored=blob_stored,
            expiry_date=expiry_date,
            notes=notes,
            uploaded_at=_now_iso(),
        )
        db.add(document)
        await db.flush()
        await db.refresh(document)
        db.add(AuditLog(
            entity_type="document",
            entity_id=document.id,
            action="UPLOAD",
            changes=json.dumps({"document_type": document_type.value, "version": version, "blob_stored": blob_stored}),
            user=user,
            timestamp=_now_iso(),
        ))
        await db.flush()
        return document

    @staticmethod
    async def status(db: AsyncSession, client_id: int, today: date | None = None) -> list[dict]:
        """Statut par type de document / Status per document type."""
        today = today or date.today()
        if not await db.get(Client, client_id):
            raise NotFoundError("Client", client_id)
        result = await db.execute(
            select(Document).where(Document.client_id == client_id, Document.is_current.is_(True))
        )
        current = {doc.document_type: doc for doc in result.scalars().all()}
        return [
            {
                "document_type": doc_type.value,
                "required": doc_type in REQUIRED_DOCUMENT_TYPES,
                "status": document_status(current.get(doc_type), today),
                "document_id": current[doc_type].id if doc_type in current else None,
                "expiry_date": current[doc_type].expiry_date if doc_type in current else None,
            }
            for doc_type in DocumentType
        ]
