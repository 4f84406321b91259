from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class DocumentCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    file_name: str = Field(min_length=1, max_length=255)
    storage_key: str = Field(min_length=1, max_length=512)
    mime_type: str = Field(default="application/pdf", max_length=128)
    is_paid: bool = False
    price: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    content_base64: str | None = None


class DocumentPricingRequest(BaseModel):
    is_paid: bool
    price: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)


class DocumentResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None = None
    file_name: str
    is_paid: bool
    price: Decimal
    base_price: Decimal
    download_count: int
    status: str
    created_at: datetime
    updated_at: datetime


class PriceQuoteResponse(BaseModel):
    base_price: Decimal
    extra_charge: Decimal
    final_price: Decimal


class AccessDecisionResponse(BaseModel):
    document_id: int
    allowed: bool
    price: Decimal | None = None
