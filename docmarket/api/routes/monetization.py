from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from docmarket.api.deps import CallerIdentity, get_caller, get_database
from docmarket.api.errors import as_http_exception
from docmarket.core.config import get_settings
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.db.session import Database
from docmarket.monetization.earnings import EarningsSummary, get_earnings
from docmarket.monetization.errors import MonetizationError, UserNotFoundError

from .monetization_models import EarningsResponse

router = APIRouter(prefix="/monetization", tags=["monetization"])


def earnings_response(*, user_id: int, summary: EarningsSummary, rate: Decimal) -> EarningsResponse:
    return EarningsResponse(
        user_id=user_id,
        free_downloads=summary.free_downloads,
        free_download_rate=rate,
        free_earnings=summary.free_earnings,
        paid_earnings=summary.paid_earnings,
        total_earnings=summary.total_earnings,
        withdrawn_total=summary.withdrawn_total,
        available_balance=summary.available_balance,
    )


@router.get("/earnings", response_model=EarningsResponse)
async def my_earnings(
    user_id: int | None = Query(default=None, gt=0),
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> EarningsResponse:
    # admins may inspect any seller; everyone else sees their own summary
    seller_id = user_id if user_id is not None and caller.is_admin else caller.user_id
    rate = get_settings().free_download_rate
    try:
        async with database.transaction() as session:
            if await UsersRepo.get_by_id(session, seller_id) is None:
                raise UserNotFoundError
            summary = await get_earnings(session, seller_id=seller_id, free_download_rate=rate)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return earnings_response(user_id=seller_id, summary=summary, rate=rate)
