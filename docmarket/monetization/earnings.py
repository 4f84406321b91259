from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.core.config import get_settings
from docmarket.db.repo.earnings_repo import EarningsRepo

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class EarningsSummary:
    free_downloads: int
    free_earnings: Decimal
    paid_earnings: Decimal
    total_earnings: Decimal
    withdrawn_total: Decimal
    available_balance: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "free_downloads": self.free_downloads,
            "free_earnings": str(self.free_earnings),
            "paid_earnings": str(self.paid_earnings),
            "total_earnings": str(self.total_earnings),
            "withdrawn_total": str(self.withdrawn_total),
            "available_balance": str(self.available_balance),
        }


def build_earnings_summary(
    *,
    free_downloads: int,
    paid_earnings: Decimal,
    withdrawn_total: Decimal,
    free_download_rate: Decimal,
) -> EarningsSummary:
    free_earnings = Decimal(free_downloads) * free_download_rate
    total_earnings = free_earnings + paid_earnings
    return EarningsSummary(
        free_downloads=free_downloads,
        free_earnings=free_earnings,
        paid_earnings=paid_earnings,
        total_earnings=total_earnings,
        withdrawn_total=withdrawn_total,
        available_balance=total_earnings - withdrawn_total,
    )


def _resolve_rate(free_download_rate: Decimal | None) -> Decimal:
    if free_download_rate is None:
        return get_settings().free_download_rate
    return free_download_rate


async def get_earnings_for_users(
    session: AsyncSession,
    *,
    user_ids: Sequence[int],
    free_download_rate: Decimal | None = None,
) -> dict[int, EarningsSummary]:
    rate = _resolve_rate(free_download_rate)
    ids = sorted({int(user_id) for user_id in user_ids})
    free_downloads = await EarningsRepo.count_free_downloads_by_seller(session, seller_ids=ids)
    paid_sales = await EarningsRepo.sum_paid_sales_by_seller(session, seller_ids=ids)
    withdrawn = await EarningsRepo.sum_reserved_withdrawals_by_user(session, user_ids=ids)
    return {
        user_id: build_earnings_summary(
            free_downloads=free_downloads.get(user_id, 0),
            paid_earnings=paid_sales.get(user_id, ZERO),
            withdrawn_total=withdrawn.get(user_id, ZERO),
            free_download_rate=rate,
        )
        for user_id in ids
    }


async def get_earnings(
    session: AsyncSession,
    *,
    seller_id: int,
    free_download_rate: Decimal | None = None,
) -> EarningsSummary:
    summaries = await get_earnings_for_users(
        session,
        user_ids=[seller_id],
        free_download_rate=free_download_rate,
    )
    return summaries[int(seller_id)]
