from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from docmarket.db.models.purchases import Purchase
from docmarket.monetization.purchases.types import PdfPurchase, PurchaseRecordResult, PurchaseTarget


def _build_purchase(
    *,
    user_id: int,
    target: PurchaseTarget,
    amount: Decimal,
    currency: str,
    payment_method: str,
    transaction_id: str,
    status: str,
    now_utc: datetime,
) -> Purchase:
    return Purchase(
        user_id=user_id,
        transaction_type=target.transaction_type,
        pdf_id=target.pdf_id if isinstance(target, PdfPurchase) else None,
        amount=amount,
        currency=currency,
        payment_method=payment_method,
        transaction_id=transaction_id,
        status=status,
        purchase_date=now_utc,
        updated_at=now_utc,
    )


def _as_record_result(purchase: Purchase, *, idempotent_replay: bool) -> PurchaseRecordResult:
    return PurchaseRecordResult(
        purchase_id=purchase.id,
        transaction_id=purchase.transaction_id,
        transaction_type=purchase.transaction_type,
        pdf_id=purchase.pdf_id,
        amount=purchase.amount,
        status=purchase.status,
        idempotent_replay=idempotent_replay,
    )


def _matches_target(purchase: Purchase, *, user_id: int, target: PurchaseTarget) -> bool:
    if purchase.user_id != user_id or purchase.transaction_type != target.transaction_type:
        return False
    if isinstance(target, PdfPurchase):
        return purchase.pdf_id == target.pdf_id
    return True
