from __future__ import annotations

from decimal import Decimal

from docmarket.monetization.errors import ValidationError
from docmarket.monetization.purchases.types import PdfPurchase, PurchaseTarget, UploadFee

from .constants import DEFAULT_PAYMENT_METHOD, RECORDABLE_STATUSES


def _normalize_transaction_id(transaction_id: str | None) -> str:
    normalized = (transaction_id or "").strip()
    if not normalized:
        raise ValidationError("transaction_id is required")
    return normalized


def _normalize_payment_method(payment_method: str | None) -> str:
    return (payment_method or "").strip() or DEFAULT_PAYMENT_METHOD


def _validate_amount(amount: Decimal) -> Decimal:
    if not isinstance(amount, Decimal):
        raise ValidationError("amount must be a decimal value")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("amount must be positive")
    return amount


def _validate_status(status: str) -> str:
    if status not in RECORDABLE_STATUSES:
        raise ValidationError(f"unsupported purchase status: {status}")
    return status


def _validate_target(target: PurchaseTarget) -> PurchaseTarget:
    if isinstance(target, PdfPurchase):
        if target.pdf_id <= 0:
            raise ValidationError("pdf_id must be positive")
        return target
    if isinstance(target, UploadFee):
        return target
    raise ValidationError("unsupported purchase target")
