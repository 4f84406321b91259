from __future__ import annotations

import asyncio
import base64
import binascii
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from docmarket.api.deps import CallerIdentity, get_caller, get_database, get_document_store
from docmarket.api.errors import as_http_exception
from docmarket.core.config import get_settings
from docmarket.db.models.documents import Document
from docmarket.db.session import Database
from docmarket.monetization.access import can_download, record_download
from docmarket.monetization.errors import MonetizationError
from docmarket.monetization.listings import create_document, price_listing, update_document_pricing
from docmarket.services.document_store import DocumentStore
from docmarket.services.internal_auth import extract_client_ip

from .documents_models import (
    AccessDecisionResponse,
    DocumentCreateRequest,
    DocumentPricingRequest,
    DocumentResponse,
    PriceQuoteResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _as_response(document: Document) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        user_id=document.user_id,
        title=document.title,
        description=document.description,
        file_name=document.file_name,
        is_paid=document.is_paid,
        price=document.price,
        base_price=document.base_price,
        download_count=document.download_count,
        status=document.status,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


def _decode_content(content_base64: str) -> bytes:
    try:
        return base64.b64decode(content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=422, detail={"code": "E_INVALID_DOCUMENT_CONTENT"}) from exc


async def _discard_blob(store: DocumentStore, storage_key: str) -> None:
    try:
        await asyncio.to_thread(store.delete, storage_key)
    except MonetizationError:
        logger.exception("document_blob_cleanup_failed", storage_key=storage_key)
    else:
        logger.warning("document_blob_discarded", storage_key=storage_key)


@router.get("/pricing/quote", response_model=PriceQuoteResponse)
async def quote_price(price: Decimal = Query(gt=0, max_digits=12, decimal_places=2)) -> PriceQuoteResponse:
    try:
        listing = price_listing(is_paid=True, price=price)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return PriceQuoteResponse(
        base_price=listing.base_price,
        extra_charge=listing.extra_charge,
        final_price=listing.final_price,
    )


@router.post("", response_model=DocumentResponse, status_code=201)
async def upload_document(
    payload: DocumentCreateRequest,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
    store: DocumentStore = Depends(get_document_store),
) -> DocumentResponse:
    content = None if payload.content_base64 is None else _decode_content(payload.content_base64)
    blob_written = False
    try:
        async with database.transaction() as session:
            document = await create_document(
                session,
                user_id=caller.user_id,
                title=payload.title,
                description=payload.description,
                storage_key=payload.storage_key,
                file_name=payload.file_name,
                mime_type=payload.mime_type,
                is_paid=payload.is_paid,
                price=payload.price,
                now_utc=datetime.now(timezone.utc),
            )
            if content is not None:
                await asyncio.to_thread(store.write, payload.storage_key, content)
                blob_written = True
    except MonetizationError as exc:
        if blob_written:
            await _discard_blob(store, payload.storage_key)
        raise as_http_exception(exc) from exc
    return _as_response(document)


@router.put("/{document_id}/pricing", response_model=DocumentResponse)
async def update_pricing(
    document_id: int,
    payload: DocumentPricingRequest,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> DocumentResponse:
    try:
        async with database.transaction() as session:
            document = await update_document_pricing(
                session,
                user_id=caller.user_id,
                document_id=document_id,
                is_paid=payload.is_paid,
                price=payload.price,
                now_utc=datetime.now(timezone.utc),
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return _as_response(document)


@router.get("/{document_id}/access", response_model=AccessDecisionResponse)
async def document_access(
    document_id: int,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> AccessDecisionResponse:
    try:
        async with database.transaction() as session:
            decision = await can_download(session, user_id=caller.user_id, document_id=document_id)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return AccessDecisionResponse(document_id=document_id, allowed=decision.allowed, price=decision.price)


@router.get("/{document_id}/download")
async def download_document(
    document_id: int,
    request: Request,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
    store: DocumentStore = Depends(get_document_store),
) -> Response:
    client_ip = extract_client_ip(request, trusted_proxies=get_settings().internal_api_trusted_proxies)
    try:
        async with database.transaction() as session:
            document = await record_download(
                session,
                user_id=caller.user_id,
                document_id=document_id,
                ip_address=client_ip,
                user_agent=request.headers.get("User-Agent"),
                now_utc=datetime.now(timezone.utc),
            )
            content = await asyncio.to_thread(store.read, document.storage_key)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc

    return Response(
        content=content,
        media_type=document.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )
