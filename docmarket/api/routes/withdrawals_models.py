from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class WithdrawalCreateRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    bank_name: str = Field(min_length=1, max_length=128)
    account_number: str = Field(min_length=1, max_length=64)
    account_name: str = Field(min_length=1, max_length=128)


class WithdrawalStatusUpdateRequest(BaseModel):
    status: Literal["paid", "declined"]
    admin_note: str | None = Field(default=None, max_length=1000)


class WithdrawalEarningsResponse(BaseModel):
    free_downloads: int
    total_earnings: Decimal
    withdrawn_total: Decimal
    available_balance: Decimal


class WithdrawalResponse(BaseModel):
    id: int
    user_id: int
    amount: Decimal
    status: str
    bank_name: str
    account_number: str
    account_name: str
    requested_at: datetime
    processed_at: datetime | None = None
    admin_note: str | None = None


class WithdrawalListItemResponse(WithdrawalResponse):
    username: str
    email: str | None = None
    earnings: WithdrawalEarningsResponse | None = None


class WithdrawalListResponse(BaseModel):
    withdrawals: list[WithdrawalListItemResponse]
