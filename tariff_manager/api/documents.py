"""Routes Documents client / Client document API routes."""

import io

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.api.deps import get_operator
from tariff_manager.config import settings
from tariff_manager.database import get_db
from tariff_manager.exceptions import NotFoundError, StorageUnavailable, ValidationError
from tariff_manager.models.document import Document, DocumentType
from tariff_manager.schemas.document import DocumentRead, DocumentStatusRead
from tariff_manager.services.document_service import DocumentService
from tariff_manager.services.file_store import LocalFileStore, get_file_store

router = APIRouter()


@router.get("/", response_model=list[DocumentRead])
async def list_documents(
    client_id: int | None = Query(default=None),
    document_type: DocumentType | None = Query(default=None),
    current_only: bool = Query(default=True),
    db: AsyncSession = Depends(get_db),
):
    query = select(Document).order_by(Document.client_id, Document.document_type, Document.version.desc())
    if client_id is not None:
        query = query.where(Document.client_id == client_id)
    if document_type is not None:
        query = query.where(Document.document_type == document_type)
    if current_only:
        query = query.where(Document.is_current.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=DocumentRead, status_code=201)
async def upload_document(
    client_id: int = Form(...),
    document_type: DocumentType = Form(...),
    expiry_date: str | None = Form(default=None),
    notes: str | None = Form(default=None),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
    operator: str | None = Depends(get_operator),
):
    """Téléverser un document (nouvelle version) / Upload a document (new version)."""
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise ValidationError(f"File exceeds {settings.MAX_UPLOAD_MB} MB", details={"size": len(content)})
    return await DocumentService.upload(
        db, store, client_id, document_type,
        filename=file.filename or "document",
        content=content,
        mime_type=file.content_type,
        expiry_date=expiry_date or None,
        notes=notes,
        user=operator,
    )


@router.get("/status/{client_id}", response_model=list[DocumentStatusRead])
async def document_status(client_id: int, db: AsyncSession = Depends(get_db)):
    """Missing / Expired / Expiring Soon / Valid par type / per type."""
    return await DocumentService.status(db, client_id)


@router.get("/{document_id}/download")
async def download_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    document = await db.get(Document, document_id)
    if not document:
        raise NotFoundError("Document", document_id)
    if not document.blob_stored:
        raise StorageUnavailable("Document file was not stored", details={"document_id": document_id})
    content = store.get(document.file_path)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=document.mime_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{document.document_name}"'},
    )


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Supprimer un document ; la version précédente redevient courante /
    Delete a document; the previous version becomes current again."""
    document = await db.get(Document, document_id)
    if not document:
        raise NotFoundError("Document", document_id)
    if document.is_current:
        previous = await db.scalar(
            select(Document)
            .where(
                Document.client_id == document.client_id,
                Document.document_type == document.document_type,
                Document.id != document.id,
            )
            .order_by(Document.version.desc())
            .limit(1)
        )
        if previous is not None:
            previous.is_current = True
    if document.blob_stored:
        store.delete(document.file_path)
    await db.delete(document)
