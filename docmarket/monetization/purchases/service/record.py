from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.core.config import get_settings
from docmarket.db.models.purchases import Purchase
from docmarket.db.repo.documents_repo import DocumentsRepo
from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.monetization.errors import (
    DocumentNotForSaleError,
    DocumentNotFoundError,
    DuplicatePurchaseError,
    InvalidUploadFeeAmountError,
    TransactionReferenceMismatchError,
    UploadFeeAlreadyPaidError,
    UserNotFoundError,
)
from docmarket.monetization.purchases.types import PdfPurchase, PurchaseRecordResult, PurchaseTarget, UploadFee

from .builder import _as_record_result, _build_purchase, _matches_target
from .constants import SETTLEMENT_STATUSES
from .events import _log_purchase_event
from .validation import (
    _normalize_payment_method,
    _normalize_transaction_id,
    _validate_amount,
    _validate_status,
    _validate_target,
)


async def _get_completed_for_target(
    session: AsyncSession,
    *,
    user_id: int,
    target: PurchaseTarget,
) -> Purchase | None:
    if isinstance(target, PdfPurchase):
        return await PurchasesRepo.get_completed_pdf_purchase(session, user_id=user_id, pdf_id=target.pdf_id)
    return await PurchasesRepo.get_completed_upload_fee(session, user_id=user_id)


async def _settle_pending(
    session: AsyncSession,
    *,
    purchase: Purchase,
    status: str,
    now_utc: datetime,
) -> PurchaseRecordResult:
    if status == "completed":
        target: PurchaseTarget = (
            PdfPurchase(pdf_id=purchase.pdf_id) if purchase.pdf_id is not None else UploadFee()
        )
        winner = await _get_completed_for_target(session, user_id=purchase.user_id, target=target)
        if winner is not None:
            _log_purchase_event(
                "purchase_settlement_already_completed",
                purchase=purchase,
                completed_purchase_id=winner.id,
            )
            return _as_record_result(winner, idempotent_replay=True)

    previous_status = purchase.status
    purchase.status = status
    purchase.updated_at = now_utc
    await session.flush()

    if status == "completed" and purchase.transaction_type == "upload_fee":
        await UsersRepo.mark_upload_fee_paid(session, user_id=purchase.user_id)

    _log_purchase_event("purchase_settled", purchase=purchase, previous_status=previous_status)
    return _as_record_result(purchase, idempotent_replay=False)


async def _replay_by_reference(
    session: AsyncSession,
    *,
    existing: Purchase,
    user_id: int,
    target: PurchaseTarget,
    status: str,
    now_utc: datetime,
) -> PurchaseRecordResult:
    if not _matches_target(existing, user_id=user_id, target=target):
        raise TransactionReferenceMismatchError

    if existing.status == "pending" and status in SETTLEMENT_STATUSES:
        return await _settle_pending(session, purchase=existing, status=status, now_utc=now_utc)

    return _as_record_result(existing, idempotent_replay=True)


async def _resolve_insert_conflict(
    session: AsyncSession,
    *,
    user_id: int,
    target: PurchaseTarget,
    transaction_id: str,
) -> Purchase | None:
    by_reference = await PurchasesRepo.get_by_transaction_id(session, transaction_id)
    if by_reference is not None:
        if not _matches_target(by_reference, user_id=user_id, target=target):
            raise TransactionReferenceMismatchError
        return by_reference
    return await _get_completed_for_target(session, user_id=user_id, target=target)


async def record_purchase(
    session: AsyncSession,
    *,
    user_id: int,
    target: PurchaseTarget,
    amount: Decimal,
    payment_method: str | None,
    transaction_id: str,
    status: str,
    now_utc: datetime,
    currency: str | None = None,
    upload_fee_amount: Decimal | None = None,
) -> PurchaseRecordResult:
    """Record a gateway-confirmed payment exactly once per transaction reference.

    The payer row is locked for the rest of the transaction, so concurrent
    confirmations for the same payer are serialized. Replays by reference
    return the first row; a pending row is settled in place. A completed
    upload fee sets ``users.upload_fee_paid`` in the same transaction.
    """
    transaction_id = _normalize_transaction_id(transaction_id)
    amount = _validate_amount(amount)
    status = _validate_status(status)
    target = _validate_target(target)
    payment_method = _normalize_payment_method(payment_method)
    settings = get_settings()
    currency = (currency or "").strip().upper() or settings.default_currency

    payer = await UsersRepo.get_by_id_for_update(session, user_id)
    if payer is None:
        raise UserNotFoundError

    existing = await PurchasesRepo.get_by_transaction_id_for_update(session, transaction_id)
    if existing is not None:
        return await _replay_by_reference(
            session,
            existing=existing,
            user_id=user_id,
            target=target,
            status=status,
            now_utc=now_utc,
        )

    if isinstance(target, PdfPurchase):
        document = await DocumentsRepo.get_active_by_id(session, target.pdf_id)
        if document is None:
            raise DocumentNotFoundError
        if not document.is_paid:
            raise DocumentNotForSaleError
    else:
        expected_fee = upload_fee_amount if upload_fee_amount is not None else settings.upload_fee_amount
        if amount != expected_fee:
            raise InvalidUploadFeeAmountError

    completed = await _get_completed_for_target(session, user_id=user_id, target=target)
    if completed is not None:
        return _as_record_result(completed, idempotent_replay=True)
    if isinstance(target, UploadFee) and payer.upload_fee_paid:
        raise UploadFeeAlreadyPaidError

    purchase = _build_purchase(
        user_id=user_id,
        target=target,
        amount=amount,
        currency=currency,
        payment_method=payment_method,
        transaction_id=transaction_id,
        status=status,
        now_utc=now_utc,
    )
    try:
        async with session.begin_nested():
            await PurchasesRepo.create(session, purchase=purchase)
    except IntegrityError as exc:
        winner = await _resolve_insert_conflict(
            session,
            user_id=user_id,
            target=target,
            transaction_id=transaction_id,
        )
        if winner is None:
            raise DuplicatePurchaseError from exc
        return _as_record_result(winner, idempotent_replay=True)

    if status == "completed" and isinstance(target, UploadFee):
        await UsersRepo.mark_upload_fee_paid(session, user_id=user_id)

    _log_purchase_event("purchase_recorded", purchase=purchase)
    return _as_record_result(purchase, idempotent_replay=False)
