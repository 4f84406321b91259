from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.withdrawals import Withdrawal
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.db.repo.withdrawals_repo import WithdrawalsRepo
from docmarket.monetization.earnings import EarningsSummary, get_earnings, get_earnings_for_users
from docmarket.monetization.errors import (
    InsufficientBalanceError,
    PendingWithdrawalExistsError,
    UserNotFoundError,
    ValidationError,
    WithdrawalNotFoundError,
)
from docmarket.monetization.withdrawals.rules import (
    WITHDRAWAL_STATUSES,
    assert_transition_allowed,
    validate_target_status,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class BankDetails:
    bank_name: str
    account_number: str
    account_name: str


@dataclass(slots=True)
class WithdrawalListItem:
    withdrawal: Withdrawal
    username: str
    email: str | None
    earnings: EarningsSummary | None


def _normalize_bank_details(bank_details: BankDetails) -> BankDetails:
    normalized = BankDetails(
        bank_name=(bank_details.bank_name or "").strip(),
        account_number=(bank_details.account_number or "").strip(),
        account_name=(bank_details.account_name or "").strip(),
    )
    if not normalized.bank_name or not normalized.account_number or not normalized.account_name:
        raise ValidationError("bank name, account number and account name are required")
    return normalized


def _validate_amount(amount: Decimal) -> Decimal:
    if not isinstance(amount, Decimal) or not amount.is_finite() or amount <= 0:
        raise ValidationError("withdrawal amount must be positive")
    return amount


async def create_withdrawal(
    session: AsyncSession,
    *,
    user_id: int,
    amount: Decimal,
    bank_details: BankDetails,
    now_utc: datetime,
) -> Withdrawal:
    amount = _validate_amount(amount)
    bank_details = _normalize_bank_details(bank_details)

    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError

    if await WithdrawalsRepo.get_pending_by_user(session, user_id=user_id) is not None:
        raise PendingWithdrawalExistsError

    withdrawal = Withdrawal(
        user_id=user_id,
        bank_name=bank_details.bank_name,
        account_number=bank_details.account_number,
        account_name=bank_details.account_name,
        amount=amount,
        status="pending",
        requested_at=now_utc,
    )
    try:
        async with session.begin_nested():
            await WithdrawalsRepo.create(session, withdrawal=withdrawal)
    except IntegrityError as exc:
        raise PendingWithdrawalExistsError from exc

    logger.info(
        "withdrawal_requested",
        withdrawal_id=withdrawal.id,
        user_id=user_id,
        amount=str(amount),
    )
    return withdrawal


async def request_withdrawal(
    session: AsyncSession,
    *,
    user_id: int,
    amount: Decimal,
    bank_details: BankDetails,
    now_utc: datetime,
    free_download_rate: Decimal | None = None,
) -> Withdrawal:
    """Check the live balance under the user row lock, then create the request."""
    amount = _validate_amount(amount)
    user = await UsersRepo.get_by_id_for_update(session, user_id)
    if user is None:
        raise UserNotFoundError

    earnings = await get_earnings(session, seller_id=user_id, free_download_rate=free_download_rate)
    if amount > earnings.available_balance:
        logger.info(
            "withdrawal_rejected_insufficient_balance",
            user_id=user_id,
            amount=str(amount),
            available_balance=str(earnings.available_balance),
        )
        raise InsufficientBalanceError

    return await create_withdrawal(
        session,
        user_id=user_id,
        amount=amount,
        bank_details=bank_details,
        now_utc=now_utc,
    )


async def list_withdrawals(
    session: AsyncSession,
    *,
    status: str | None = None,
    include_earnings: bool = True,
    free_download_rate: Decimal | None = None,
) -> list[WithdrawalListItem]:
    if status is not None and status not in WITHDRAWAL_STATUSES:
        raise ValidationError(f"unsupported withdrawal status: {status}")

    rows = await WithdrawalsRepo.list_with_users(session, status=status)
    earnings_by_user: dict[int, EarningsSummary] = {}
    if include_earnings and rows:
        earnings_by_user = await get_earnings_for_users(
            session,
            user_ids=[withdrawal.user_id for withdrawal, _, _ in rows],
            free_download_rate=free_download_rate,
        )

    return [
        WithdrawalListItem(
            withdrawal=withdrawal,
            username=username,
            email=email,
            earnings=earnings_by_user.get(withdrawal.user_id),
        )
        for withdrawal, username, email in rows
    ]


async def update_withdrawal_status(
    session: AsyncSession,
    *,
    withdrawal_id: int,
    new_status: str,
    now_utc: datetime,
    admin_note: str | None = None,
) -> Withdrawal:
    new_status = validate_target_status(new_status)

    withdrawal = await WithdrawalsRepo.get_by_id_for_update(session, withdrawal_id)
    if withdrawal is None:
        raise WithdrawalNotFoundError
    assert_transition_allowed(withdrawal.status, new_status)

    previous_status = withdrawal.status
    withdrawal.status = new_status
    withdrawal.processed_at = now_utc
    normalized_note = (admin_note or "").strip()
    if normalized_note:
        withdrawal.admin_note = normalized_note
    await session.flush()

    if new_status == "paid":
        await UsersRepo.stamp_last_withdrawal(session, user_id=withdrawal.user_id, at_utc=now_utc)

    logger.info(
        "withdrawal_status_updated",
        withdrawal_id=withdrawal.id,
        user_id=withdrawal.user_id,
        previous_status=previous_status,
        status=new_status,
    )
    return withdrawal
