from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.documents import Document
from docmarket.db.models.purchases import Purchase


class PurchasesRepo:
    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, purchase_id: int) -> Purchase | None:
        stmt = select(Purchase).where(Purchase.id == purchase_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_transaction_id(session: AsyncSession, transaction_id: str) -> Purchase | None:
        stmt = select(Purchase).where(Purchase.transaction_id == transaction_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_transaction_id_for_update(session: AsyncSession, transaction_id: str) -> Purchase | None:
        stmt = select(Purchase).where(Purchase.transaction_id == transaction_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_completed_pdf_purchase(
        session: AsyncSession,
        *,
        user_id: int,
        pdf_id: int,
    ) -> Purchase | None:
        stmt = select(Purchase).where(
            Purchase.user_id == user_id,
            Purchase.pdf_id == pdf_id,
            Purchase.transaction_type == "pdf_purchase",
            Purchase.status == "completed",
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_completed_upload_fee(session: AsyncSession, *, user_id: int) -> Purchase | None:
        stmt = select(Purchase).where(
            Purchase.user_id == user_id,
            Purchase.transaction_type == "upload_fee",
            Purchase.status == "completed",
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_by_user_with_titles(
        session: AsyncSession,
        *,
        user_id: int,
    ) -> list[tuple[Purchase, str | None]]:
        stmt = (
            select(Purchase, Document.title)
            .outerjoin(Document, Document.id == Purchase.pdf_id)
            .where(Purchase.user_id == user_id)
            .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
        )
        result = await session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def list_pending_older_than(
        session: AsyncSession,
        *,
        older_than_utc: datetime,
        limit: int = 100,
    ) -> list[Purchase]:
        stmt = (
            select(Purchase)
            .where(Purchase.status == "pending", Purchase.purchase_date <= older_than_utc)
            .order_by(Purchase.purchase_date.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_completed_missing_receipts(
        session: AsyncSession,
        *,
        limit: int = 100,
    ) -> list[Purchase]:
        stmt = (
            select(Purchase)
            .where(
                Purchase.status == "completed",
                (Purchase.receipt_pdf.is_(None)) | (Purchase.receipt_image.is_(None)),
            )
            .order_by(Purchase.purchase_date.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, purchase: Purchase) -> Purchase:
        session.add(purchase)
        await session.flush()
        return purchase

    @staticmethod
    async def count_duplicate_completed_pdf_purchases(session: AsyncSession) -> int:
        grouped = (
            select(Purchase.user_id, Purchase.pdf_id)
            .where(Purchase.transaction_type == "pdf_purchase", Purchase.status == "completed")
            .group_by(Purchase.user_id, Purchase.pdf_id)
            .having(func.count(Purchase.id) > 1)
            .subquery()
        )
        result = await session.execute(select(func.count()).select_from(grouped))
        return int(result.scalar_one() or 0)
