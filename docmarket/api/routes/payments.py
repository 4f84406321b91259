from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from docmarket.api.deps import CallerIdentity, get_caller, get_database, get_receipt_renderer, require_admin
from docmarket.api.errors import as_http_exception
from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.session import Database
from docmarket.monetization.errors import MonetizationError
from docmarket.monetization.purchases.service import PurchaseService
from docmarket.monetization.purchases.types import PdfPurchase, PurchaseRecordResult, PurchaseTarget, UploadFee
from docmarket.services.receipts_render import ReceiptRenderer

from .payments_models import (
    PdfPaymentRequest,
    PurchaseHistoryItemResponse,
    PurchaseHistoryResponse,
    PurchaseRecordResponse,
    PurchaseRefundResponse,
    PurchaseStatusResponse,
    UploadFeePaymentRequest,
    UploadFeeStatusResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

RECEIPT_MEDIA_TYPES = {"pdf": "application/pdf", "image": "image/png"}


def _as_response(result: PurchaseRecordResult) -> PurchaseRecordResponse:
    return PurchaseRecordResponse(
        purchase_id=result.purchase_id,
        transaction_id=result.transaction_id,
        transaction_type=result.transaction_type,
        pdf_id=result.pdf_id,
        amount=result.amount,
        status=result.status,
        idempotent_replay=result.idempotent_replay,
    )


async def _attach_receipt_after_commit(
    database: Database,
    renderer: ReceiptRenderer,
    *,
    purchase_id: int,
) -> None:
    try:
        async with database.transaction() as session:
            purchase = await PurchasesRepo.get_by_id_for_update(session, purchase_id)
            if purchase is None or purchase.receipt_pdf is not None:
                return
            await PurchaseService.render_and_attach_receipt(session, purchase=purchase, renderer=renderer)
    except Exception:
        logger.exception("purchase_receipt_render_deferred", purchase_id=purchase_id)


async def _record(
    *,
    caller: CallerIdentity,
    database: Database,
    renderer: ReceiptRenderer,
    target: PurchaseTarget,
    payload: PdfPaymentRequest | UploadFeePaymentRequest,
) -> PurchaseRecordResponse:
    try:
        async with database.transaction() as session:
            result = await PurchaseService.record_purchase(
                session,
                user_id=caller.user_id,
                target=target,
                amount=payload.amount,
                payment_method=payload.payment_method,
                transaction_id=payload.transaction_id,
                status=payload.status,
                currency=payload.currency,
                now_utc=datetime.now(timezone.utc),
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc

    if result.status == "completed" and not result.idempotent_replay:
        await _attach_receipt_after_commit(database, renderer, purchase_id=result.purchase_id)
    return _as_response(result)


@router.post("/verify", response_model=PurchaseRecordResponse)
async def verify_pdf_payment(
    payload: PdfPaymentRequest,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
    renderer: ReceiptRenderer = Depends(get_receipt_renderer),
) -> PurchaseRecordResponse:
    return await _record(
        caller=caller,
        database=database,
        renderer=renderer,
        target=PdfPurchase(pdf_id=payload.pdf_id),
        payload=payload,
    )


@router.post("/upload-fee", response_model=PurchaseRecordResponse)
async def pay_upload_fee(
    payload: UploadFeePaymentRequest,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
    renderer: ReceiptRenderer = Depends(get_receipt_renderer),
) -> PurchaseRecordResponse:
    return await _record(
        caller=caller,
        database=database,
        renderer=renderer,
        target=UploadFee(),
        payload=payload,
    )


@router.get("/upload-fee/status", response_model=UploadFeeStatusResponse)
async def upload_fee_status(
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> UploadFeeStatusResponse:
    try:
        async with database.transaction() as session:
            paid = await PurchaseService.get_upload_fee_status(session, user_id=caller.user_id)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return UploadFeeStatusResponse(upload_fee_paid=paid)


@router.get("/purchases", response_model=PurchaseHistoryResponse)
async def purchase_history(
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> PurchaseHistoryResponse:
    try:
        async with database.transaction() as session:
            history = await PurchaseService.list_user_purchases(session, user_id=caller.user_id)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return PurchaseHistoryResponse(
        purchases=[
            PurchaseHistoryItemResponse(
                purchase_id=item.purchase_id,
                transaction_id=item.transaction_id,
                transaction_type=item.transaction_type,
                pdf_id=item.pdf_id,
                pdf_title=item.pdf_title,
                amount=item.amount,
                currency=item.currency,
                payment_method=item.payment_method,
                status=item.status,
                purchase_date=item.purchase_date,
                has_receipt=item.has_receipt,
            )
            for item in history.items
        ],
        total_spent=history.total_spent,
    )


@router.get("/receipts/{transaction_id}/{kind}")
async def download_receipt(
    transaction_id: str,
    kind: Literal["pdf", "image"],
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
    renderer: ReceiptRenderer = Depends(get_receipt_renderer),
) -> Response:
    try:
        async with database.transaction() as session:
            payload = await PurchaseService.get_receipt(
                session,
                user_id=caller.user_id,
                transaction_id=transaction_id,
                kind=kind,
                renderer=renderer,
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc

    extension = "pdf" if kind == "pdf" else "png"
    return Response(
        content=payload,
        media_type=RECEIPT_MEDIA_TYPES[kind],
        headers={"Content-Disposition": f'attachment; filename="receipt-{transaction_id}.{extension}"'},
    )


@router.post("/purchases/{purchase_id}/refund", response_model=PurchaseRefundResponse)
async def refund_purchase(
    purchase_id: int,
    admin: CallerIdentity = Depends(require_admin),
    database: Database = Depends(get_database),
) -> PurchaseRefundResponse:
    try:
        async with database.transaction() as session:
            result = await PurchaseService.refund_purchase(
                session,
                purchase_id=purchase_id,
                now_utc=datetime.now(timezone.utc),
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc

    logger.info("purchase_refund_requested", purchase_id=purchase_id, admin_user_id=admin.user_id)
    return PurchaseRefundResponse(
        purchase_id=result.purchase_id,
        transaction_type=result.transaction_type,
        status=result.status,
        idempotent_replay=result.idempotent_replay,
    )


@router.get("/{pdf_id}/purchase-status", response_model=PurchaseStatusResponse)
async def purchase_status(
    pdf_id: int,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> PurchaseStatusResponse:
    if pdf_id <= 0:
        raise HTTPException(status_code=422, detail={"code": "E_VALIDATION"})
    try:
        async with database.transaction() as session:
            purchased = await PurchaseService.get_purchase_status(
                session,
                user_id=caller.user_id,
                pdf_id=pdf_id,
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return PurchaseStatusResponse(pdf_id=pdf_id, purchased=purchased)
