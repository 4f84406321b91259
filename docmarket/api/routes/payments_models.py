from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

RecordStatus = Literal["pending", "completed", "failed"]


class PdfPaymentRequest(BaseModel):
    pdf_id: int = Field(gt=0)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    transaction_id: str = Field(min_length=1, max_length=128)
    payment_method: str | None = Field(default=None, max_length=64)
    status: RecordStatus = "completed"
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class UploadFeePaymentRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    transaction_id: str = Field(min_length=1, max_length=128)
    payment_method: str | None = Field(default=None, max_length=64)
    status: RecordStatus = "completed"
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class PurchaseRecordResponse(BaseModel):
    purchase_id: int
    transaction_id: str
    transaction_type: str
    pdf_id: int | None = None
    amount: Decimal
    status: str
    idempotent_replay: bool


class PurchaseStatusResponse(BaseModel):
    pdf_id: int
    purchased: bool


class UploadFeeStatusResponse(BaseModel):
    upload_fee_paid: bool


class PurchaseHistoryItemResponse(BaseModel):
    purchase_id: int
    transaction_id: str
    transaction_type: str
    pdf_id: int | None = None
    pdf_title: str | None = None
    amount: Decimal
    currency: str
    payment_method: str
    status: str
    purchase_date: datetime
    has_receipt: bool


class PurchaseHistoryResponse(BaseModel):
    purchases: list[PurchaseHistoryItemResponse]
    total_spent: Decimal


class PurchaseRefundResponse(BaseModel):
    purchase_id: int
    transaction_type: str
    status: str
    idempotent_replay: bool
