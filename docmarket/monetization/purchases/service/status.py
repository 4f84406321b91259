from __future__ import annotations

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.monetization.errors import UserNotFoundError
from docmarket.monetization.purchases.types import PurchaseHistory, PurchaseHistoryItem


async def get_purchase_status(session: AsyncSession, *, user_id: int, pdf_id: int) -> bool:
    purchase = await PurchasesRepo.get_completed_pdf_purchase(session, user_id=user_id, pdf_id=pdf_id)
    return purchase is not None


async def get_upload_fee_status(session: AsyncSession, *, user_id: int) -> bool:
    user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError
    return bool(user.upload_fee_paid)


async def list_user_purchases(session: AsyncSession, *, user_id: int) -> PurchaseHistory:
    rows = await PurchasesRepo.list_by_user_with_titles(session, user_id=user_id)
    items = [
        PurchaseHistoryItem(
            purchase_id=purchase.id,
            transaction_id=purchase.transaction_id,
            transaction_type=purchase.transaction_type,
            pdf_id=purchase.pdf_id,
            pdf_title=pdf_title,
            amount=purchase.amount,
            currency=purchase.currency,
            payment_method=purchase.payment_method,
            status=purchase.status,
            purchase_date=purchase.purchase_date,
            has_receipt=purchase.receipt_pdf is not None,
        )
        for purchase, pdf_title in rows
    ]
    total_spent = sum(
        (item.amount for item in items if item.status == "completed"),
        Decimal("0"),
    )
    return PurchaseHistory(items=items, total_spent=total_spent)
