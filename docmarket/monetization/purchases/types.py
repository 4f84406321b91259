from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Literal


@dataclass(frozen=True, slots=True)
class PdfPurchase:
    pdf_id: int

    @property
    def transaction_type(self) -> str:
        return "pdf_purchase"


@dataclass(frozen=True, slots=True)
class UploadFee:
    @property
    def transaction_type(self) -> str:
        return "upload_fee"


PurchaseTarget = PdfPurchase | UploadFee
ReceiptKind = Literal["pdf", "image"]


@dataclass(slots=True)
class PurchaseRecordResult:
    purchase_id: int
    transaction_id: str
    transaction_type: str
    pdf_id: int | None
    amount: Decimal
    status: str
    idempotent_replay: bool


@dataclass(slots=True)
class PurchaseRefundResult:
    purchase_id: int
    transaction_type: str
    status: str
    idempotent_replay: bool


@dataclass(slots=True)
class PurchaseHistoryItem:
    purchase_id: int
    transaction_id: str
    transaction_type: str
    pdf_id: int | None
    pdf_title: str | None
    amount: Decimal
    currency: str
    payment_method: str
    status: str
    purchase_date: datetime
    has_receipt: bool


@dataclass(slots=True)
class PurchaseHistory:
    items: list[PurchaseHistoryItem]
    total_spent: Decimal
