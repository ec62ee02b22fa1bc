"""Tests des documents client / Client document tests."""

import logging
from datetime import date, timedelta

import pytest

from tariff_manager.exceptions import NotFoundError, StorageUnavailable
from tariff_manager.models.document import DocumentType
from tariff_manager.services.document_service import DocumentService, document_status
from tariff_manager.services.file_store import LocalFileStore


class BrokenFileStore(LocalFileStore):
    def put(self, prefix, filename, content):
        raise OSError("bucket unreachable")


@pytest.mark.asyncio
async def test_upload_stores_blob(db, make_client, file_store):
    client = await make_client()
    doc = await DocumentService.upload(db, file_store, client.id, DocumentType.CONTRACT, "contract.pdf", b"%PDF-1.4")
    assert doc.version == 1
    assert doc.is_current is True
    assert doc.blob_stored is True
    assert doc.file_size == 8
    assert file_store.get(doc.file_path) == b"%PDF-1.4"


@pytest.mark.asyncio
async def test_new_upload_supersedes_previous_version(db, make_client, file_store):
    client = await make_client()
    first = await DocumentService.upload(db, file_store, client.id, DocumentType.SLA, "sla-v1.pdf", b"one")
    second = await DocumentService.upload(db, file_store, client.id, DocumentType.SLA, "sla-v2.pdf", b"two")
    assert second.version == 2
    assert second.is_current is True
    assert first.is_current is False


@pytest.mark.asyncio
async def test_store_failure_keeps_metadata(db, make_client, tmp_path, caplog):
    client = await make_client()
    store = BrokenFileStore(tmp_path)
    with caplog.at_level(logging.WARNING, logger="tariff_manager.services.document_service"):
        doc = await DocumentService.upload(db, store, client.id, DocumentType.INSURANCE, "policy.pdf", b"x")
    assert doc.id is not None
    assert doc.blob_stored is False
    assert any("upload failed" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_upload_for_unknown_client(db, file_store):
    with pytest.raises(NotFoundError):
        await DocumentService.upload(db, file_store, 404, DocumentType.OTHER, "a.txt", b"a")


def test_missing_blob_read_is_storage_unavailable(file_store):
    with pytest.raises(StorageUnavailable):
        file_store.get("clients/1/contract/nothing.pdf")


@pytest.mark.asyncio
async def test_status_per_document_type(db, make_client, file_store):
    today = date(2026, 10, 1)
    client = await make_client()
    await DocumentService.upload(
        db, file_store, client.id, DocumentType.SLA, "sla.pdf", b"s",
        expiry_date=(today - timedelta(days=1)).isoformat(),
    )
    await DocumentService.upload(
        db, file_store, client.id, DocumentType.INSURANCE, "ins.pdf", b"i",
        expiry_date=(today + timedelta(days=10)).isoformat(),
    )
    await DocumentService.upload(
        db, file_store, client.id, DocumentType.TAX_CERT, "tax.pdf", b"t",
        expiry_date=(today + timedelta(days=300)).isoformat(),
    )

    status = {row["document_type"]: row for row in await DocumentService.status(db, client.id, today)}
    assert status["CONTRACT"]["status"] == "Missing"
    assert status["CONTRACT"]["required"] is True
    assert status["SLA"]["status"] == "Expired"
    assert status["INSURANCE"]["status"] == "Expiring Soon"
    assert status["TAX_CERT"]["status"] == "Valid"


def test_document_without_expiry_is_valid():
    assert document_status(None, date(2026, 1, 1)) == "Missing"
