from __future__ import annotations

from .builder import _as_record_result, _build_purchase
from .constants import DEFAULT_PAYMENT_METHOD, RECORDABLE_STATUSES
from .events import _log_purchase_event
from .receipts import attach_receipt, get_receipt, render_and_attach_receipt
from .record import record_purchase
from .refund import refund_purchase
from .status import get_purchase_status, get_upload_fee_status, list_user_purchases


class PurchaseService:
    _log_purchase_event = staticmethod(_log_purchase_event)
    _build_purchase = staticmethod(_build_purchase)
    _as_record_result = staticmethod(_as_record_result)
    record_purchase = staticmethod(record_purchase)
    get_purchase_status = staticmethod(get_purchase_status)
    get_upload_fee_status = staticmethod(get_upload_fee_status)
    list_user_purchases = staticmethod(list_user_purchases)
    attach_receipt = staticmethod(attach_receipt)
    render_and_attach_receipt = staticmethod(render_and_attach_receipt)
    get_receipt = staticmethod(get_receipt)
    refund_purchase = staticmethod(refund_purchase)


__all__ = [
    "DEFAULT_PAYMENT_METHOD",
    "RECORDABLE_STATUSES",
    "PurchaseService",
]
