from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

import structlog
from fastapi import APIRouter, Depends, Query

from docmarket.api.deps import CallerIdentity, get_caller, get_database, require_admin
from docmarket.api.errors import as_http_exception
from docmarket.db.models.withdrawals import Withdrawal
from docmarket.db.session import Database
from docmarket.monetization.errors import MonetizationError
from docmarket.monetization.withdrawals import (
    BankDetails,
    list_withdrawals,
    request_withdrawal,
    update_withdrawal_status,
)

from .withdrawals_models import (
    WithdrawalCreateRequest,
    WithdrawalEarningsResponse,
    WithdrawalListItemResponse,
    WithdrawalListResponse,
    WithdrawalResponse,
    WithdrawalStatusUpdateRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])


def _withdrawal_fields(withdrawal: Withdrawal) -> dict[str, object]:
    return {
        "id": withdrawal.id,
        "user_id": withdrawal.user_id,
        "amount": withdrawal.amount,
        "status": withdrawal.status,
        "bank_name": withdrawal.bank_name,
        "account_number": withdrawal.account_number,
        "account_name": withdrawal.account_name,
        "requested_at": withdrawal.requested_at,
        "processed_at": withdrawal.processed_at,
        "admin_note": withdrawal.admin_note,
    }


@router.post("", response_model=WithdrawalResponse, status_code=201)
async def create_withdrawal_request(
    payload: WithdrawalCreateRequest,
    caller: CallerIdentity = Depends(get_caller),
    database: Database = Depends(get_database),
) -> WithdrawalResponse:
    try:
        async with database.transaction() as session:
            withdrawal = await request_withdrawal(
                session,
                user_id=caller.user_id,
                amount=payload.amount,
                bank_details=BankDetails(
                    bank_name=payload.bank_name,
                    account_number=payload.account_number,
                    account_name=payload.account_name,
                ),
                now_utc=datetime.now(timezone.utc),
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc
    return WithdrawalResponse(**_withdrawal_fields(withdrawal))


@router.get("", response_model=WithdrawalListResponse)
async def list_withdrawal_requests(
    status: Literal["pending", "paid", "declined"] | None = Query(default=None),
    _admin: CallerIdentity = Depends(require_admin),
    database: Database = Depends(get_database),
) -> WithdrawalListResponse:
    try:
        async with database.transaction() as session:
            items = await list_withdrawals(session, status=status)
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc

    return WithdrawalListResponse(
        withdrawals=[
            WithdrawalListItemResponse(
                **_withdrawal_fields(item.withdrawal),
                username=item.username,
                email=item.email,
                earnings=None
                if item.earnings is None
                else WithdrawalEarningsResponse(
                    free_downloads=item.earnings.free_downloads,
                    total_earnings=item.earnings.total_earnings,
                    withdrawn_total=item.earnings.withdrawn_total,
                    available_balance=item.earnings.available_balance,
                ),
            )
            for item in items
        ]
    )


@router.patch("/{withdrawal_id}", response_model=WithdrawalResponse)
async def update_withdrawal_request(
    withdrawal_id: int,
    payload: WithdrawalStatusUpdateRequest,
    admin: CallerIdentity = Depends(require_admin),
    database: Database = Depends(get_database),
) -> WithdrawalResponse:
    try:
        async with database.transaction() as session:
            withdrawal = await update_withdrawal_status(
                session,
                withdrawal_id=withdrawal_id,
                new_status=payload.status,
                admin_note=payload.admin_note,
                now_utc=datetime.now(timezone.utc),
            )
    except MonetizationError as exc:
        raise as_http_exception(exc) from exc

    logger.info(
        "withdrawal_review_applied",
        withdrawal_id=withdrawal_id,
        status=payload.status,
        admin_user_id=admin.user_id,
    )
    return WithdrawalResponse(**_withdrawal_fields(withdrawal))
