from __future__ import annotations

import base64
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from docmarket.api.routes import documents as documents_routes
from docmarket.monetization.access import AccessDecision
from docmarket.monetization.errors import (
    DocumentAccessDeniedError,
    DocumentNotFoundError,
    DocumentOwnershipError,
    StorageError,
    UploadFeeRequiredError,
)

CREATED_AT = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _document(**overrides: object) -> SimpleNamespace:
    base: dict[str, object] = {
        "id": 9,
        "user_id": 7,
        "title": "Organic chemistry notes",
        "description": None,
        "storage_key": "users/7/notes.pdf",
        "file_name": "notes.pdf",
        "mime_type": "application/pdf",
        "is_paid": True,
        "price": Decimal("1300.00"),
        "base_price": Decimal("1200.00"),
        "download_count": 0,
        "status": "active",
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }
    base.update(overrides)
    return SimpleNamespace(**base)


def test_quote_price_applies_fee_tiers(api_client) -> None:
    response = api_client().get("/documents/pricing/quote", params={"price": "31000"})

    assert response.status_code == 200
    assert response.json() == {"base_price": "31000", "extra_charge": "550", "final_price": "31550"}


def test_quote_price_rejects_non_positive_price(api_client) -> None:
    response = api_client().get("/documents/pricing/quote", params={"price": "0"})

    assert response.status_code == 422


def test_upload_document_writes_content(monkeypatch, api_client, memory_store) -> None:
    calls: list[dict[str, object]] = []

    async def fake_create(session, **kwargs):  # noqa: ARG001
        calls.append(kwargs)
        return _document()

    monkeypatch.setattr(documents_routes, "create_document", fake_create)

    response = api_client(user_id=7).post(
        "/documents",
        json={
            "title": "Organic chemistry notes",
            "file_name": "notes.pdf",
            "storage_key": "users/7/notes.pdf",
            "is_paid": True,
            "price": "1200.00",
            "content_base64": base64.b64encode(b"%PDF-1.7 notes").decode("ascii"),
        },
    )

    assert response.status_code == 201
    assert response.json()["price"] == "1300.00"
    assert calls[0]["user_id"] == 7
    assert calls[0]["price"] == Decimal("1200.00")
    assert memory_store.blobs == {"users/7/notes.pdf": b"%PDF-1.7 notes"}


def test_upload_document_discards_blob_when_commit_fails(monkeypatch, api_client, fake_database, memory_store) -> None:
    async def fake_create(session, **kwargs):  # noqa: ARG001
        return _document()

    monkeypatch.setattr(documents_routes, "create_document", fake_create)
    fake_database.commit_error = StorageError("commit failed")

    response = api_client().post(
        "/documents",
        json={
            "title": "Notes",
            "file_name": "notes.pdf",
            "storage_key": "users/7/notes.pdf",
            "content_base64": base64.b64encode(b"%PDF-1.7 notes").decode("ascii"),
        },
    )

    assert response.status_code == 503
    assert response.json() == {"detail": {"code": "E_STORAGE_UNAVAILABLE"}}
    assert memory_store.blobs == {}


def test_upload_document_maps_blob_write_failure(monkeypatch, api_client, memory_store) -> None:
    async def fake_create(session, **kwargs):  # noqa: ARG001
        return _document()

    def broken_write(storage_key, payload):  # noqa: ARG001
        raise StorageError("disk full")

    monkeypatch.setattr(documents_routes, "create_document", fake_create)
    monkeypatch.setattr(memory_store, "write", broken_write)

    response = api_client().post(
        "/documents",
        json={
            "title": "Notes",
            "file_name": "notes.pdf",
            "storage_key": "users/7/notes.pdf",
            "content_base64": base64.b64encode(b"%PDF-1.7 notes").decode("ascii"),
        },
    )

    assert response.status_code == 503
    assert memory_store.blobs == {}


def test_upload_document_rejects_invalid_content(api_client) -> None:
    response = api_client().post(
        "/documents",
        json={
            "title": "Notes",
            "file_name": "notes.pdf",
            "storage_key": "users/7/notes.pdf",
            "content_base64": "not base64!",
        },
    )

    assert response.status_code == 422
    assert response.json() == {"detail": {"code": "E_INVALID_DOCUMENT_CONTENT"}}


def test_upload_document_requires_upload_fee(monkeypatch, api_client, memory_store) -> None:
    async def fake_create(session, **kwargs):  # noqa: ARG001
        raise UploadFeeRequiredError

    monkeypatch.setattr(documents_routes, "create_document", fake_create)

    response = api_client().post(
        "/documents",
        json={"title": "Notes", "file_name": "notes.pdf", "storage_key": "users/7/notes.pdf"},
    )

    assert response.status_code == 409
    assert response.json() == {"detail": {"code": "E_UPLOAD_FEE_REQUIRED"}}
    assert memory_store.blobs == {}


def test_update_pricing_rejects_foreign_document(monkeypatch, api_client) -> None:
    async def fake_update(session, **kwargs):  # noqa: ARG001
        raise DocumentOwnershipError

    monkeypatch.setattr(documents_routes, "update_document_pricing", fake_update)

    response = api_client(user_id=8).put("/documents/9/pricing", json={"is_paid": True, "price": "100"})

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_DOCUMENT_OWNERSHIP"}}


def test_document_access_reports_price_when_purchase_required(monkeypatch, api_client) -> None:
    async def fake_can_download(session, *, user_id: int, document_id: int) -> AccessDecision:  # noqa: ARG001
        return AccessDecision(allowed=False, price=Decimal("1300.00"))

    monkeypatch.setattr(documents_routes, "can_download", fake_can_download)

    response = api_client().get("/documents/9/access")

    assert response.json() == {"document_id": 9, "allowed": False, "price": "1300.00"}


def test_download_returns_file_when_allowed(monkeypatch, api_client, memory_store) -> None:
    memory_store.blobs["users/7/notes.pdf"] = b"%PDF-1.7 notes"
    calls: list[dict[str, object]] = []

    async def fake_record(session, **kwargs):  # noqa: ARG001
        calls.append(kwargs)
        return _document(is_paid=False)

    monkeypatch.setattr(documents_routes, "record_download", fake_record)

    response = api_client(user_id=11).get("/documents/9/download", headers={"User-Agent": "pytest"})

    assert response.status_code == 200
    assert response.content == b"%PDF-1.7 notes"
    assert 'filename="notes.pdf"' in response.headers["content-disposition"]
    assert calls[0]["user_id"] == 11
    assert calls[0]["user_agent"] == "pytest"


def test_download_requires_purchase(monkeypatch, api_client) -> None:
    async def fake_record(session, **kwargs):  # noqa: ARG001
        raise DocumentAccessDeniedError(document_id=9, price=Decimal("1300.00"))

    monkeypatch.setattr(documents_routes, "record_download", fake_record)

    response = api_client().get("/documents/9/download")

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_PURCHASE_REQUIRED", "price": "1300.00"}}


def test_download_of_missing_document_returns_404(monkeypatch, api_client) -> None:
    async def fake_record(session, **kwargs):  # noqa: ARG001
        raise DocumentNotFoundError

    monkeypatch.setattr(documents_routes, "record_download", fake_record)

    response = api_client().get("/documents/404/download")

    assert response.status_code == 404
    assert response.json() == {"detail": {"code": "E_DOCUMENT_NOT_FOUND"}}
