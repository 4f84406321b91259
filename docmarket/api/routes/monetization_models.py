from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class EarningsResponse(BaseModel):
    user_id: int
    free_downloads: int
    free_download_rate: Decimal
    free_earnings: Decimal
    paid_earnings: Decimal
    total_earnings: Decimal
    withdrawn_total: Decimal
    available_balance: Decimal
