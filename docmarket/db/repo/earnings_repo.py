from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.documents import Document
from docmarket.db.models.download_history import DownloadHistory
from docmarket.db.models.purchases import Purchase
from docmarket.db.models.withdrawals import Withdrawal

RESERVING_WITHDRAWAL_STATUSES = ("pending", "paid")


def _ids(user_ids: Sequence[int]) -> tuple[int, ...]:
    return tuple({int(user_id) for user_id in user_ids})


class EarningsRepo:
    """Grouped aggregates over ledger rows; every query is keyed by seller id."""

    @staticmethod
    async def count_free_downloads_by_seller(
        session: AsyncSession,
        *,
        seller_ids: Sequence[int],
    ) -> dict[int, int]:
        ids = _ids(seller_ids)
        if not ids:
            return {}
        stmt = (
            select(Document.user_id, func.count(DownloadHistory.id))
            .join(Document, Document.id == DownloadHistory.pdf_id)
            .where(
                Document.user_id.in_(ids),
                Document.status == "active",
                Document.is_paid.is_(False),
            )
            .group_by(Document.user_id)
        )
        result = await session.execute(stmt)
        return {int(seller_id): int(count or 0) for seller_id, count in result.all()}

    @staticmethod
    async def sum_paid_sales_by_seller(
        session: AsyncSession,
        *,
        seller_ids: Sequence[int],
    ) -> dict[int, Decimal]:
        ids = _ids(seller_ids)
        if not ids:
            return {}
        stmt = (
            select(Document.user_id, func.coalesce(func.sum(Purchase.amount), 0))
            .join(Document, Document.id == Purchase.pdf_id)
            .where(
                Document.user_id.in_(ids),
                Document.status == "active",
                Purchase.transaction_type == "pdf_purchase",
                Purchase.status == "completed",
            )
            .group_by(Document.user_id)
        )
        result = await session.execute(stmt)
        return {int(seller_id): Decimal(total) for seller_id, total in result.all()}

    @staticmethod
    async def sum_reserved_withdrawals_by_user(
        session: AsyncSession,
        *,
        user_ids: Sequence[int],
    ) -> dict[int, Decimal]:
        ids = _ids(user_ids)
        if not ids:
            return {}
        stmt = (
            select(Withdrawal.user_id, func.coalesce(func.sum(Withdrawal.amount), 0))
            .where(
                Withdrawal.user_id.in_(ids),
                Withdrawal.status.in_(RESERVING_WITHDRAWAL_STATUSES),
            )
            .group_by(Withdrawal.user_id)
        )
        result = await session.execute(stmt)
        return {int(user_id): Decimal(total) for user_id, total in result.all()}

    @staticmethod
    async def list_user_ids_with_withdrawals(session: AsyncSession) -> list[int]:
        stmt = (
            select(Withdrawal.user_id)
            .where(Withdrawal.status.in_(RESERVING_WITHDRAWAL_STATUSES))
            .distinct()
        )
        result = await session.execute(stmt)
        return [int(user_id) for user_id in result.scalars().all()]
