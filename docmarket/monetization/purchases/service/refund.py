from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.monetization.errors import PurchaseNotFoundError, PurchaseStateError
from docmarket.monetization.purchases.types import PurchaseRefundResult

from .constants import REFUNDABLE_STATUSES
from .events import _log_purchase_event


async def refund_purchase(
    session: AsyncSession,
    *,
    purchase_id: int,
    now_utc: datetime,
) -> PurchaseRefundResult:
    purchase = await PurchasesRepo.get_by_id_for_update(session, purchase_id)
    if purchase is None:
        raise PurchaseNotFoundError

    if purchase.status == "refunded":
        return PurchaseRefundResult(
            purchase_id=purchase.id,
            transaction_type=purchase.transaction_type,
            status=purchase.status,
            idempotent_replay=True,
        )

    if purchase.status not in REFUNDABLE_STATUSES:
        raise PurchaseStateError

    purchase.status = "refunded"
    purchase.refunded_at = purchase.refunded_at or now_utc
    purchase.updated_at = now_utc
    await session.flush()

    if purchase.transaction_type == "upload_fee":
        await UsersRepo.set_upload_fee_paid(session, user_id=purchase.user_id, paid=False)

    _log_purchase_event("purchase_refunded", purchase=purchase)
    return PurchaseRefundResult(
        purchase_id=purchase.id,
        transaction_type=purchase.transaction_type,
        status=purchase.status,
        idempotent_replay=False,
    )
