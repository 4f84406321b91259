from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.purchases import Purchase
from docmarket.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        username: str,
        email: str | None = None,
        role: str = "user",
        upload_fee_paid: bool = False,
    ) -> User:
        user = User(
            username=username,
            email=email,
            role=role,
            upload_fee_paid=upload_fee_paid,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def set_upload_fee_paid(session: AsyncSession, *, user_id: int, paid: bool) -> int:
        stmt = update(User).where(User.id == user_id).values(upload_fee_paid=paid)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def mark_upload_fee_paid(session: AsyncSession, *, user_id: int) -> int:
        return await UsersRepo.set_upload_fee_paid(session, user_id=user_id, paid=True)

    @staticmethod
    async def stamp_last_withdrawal(session: AsyncSession, *, user_id: int, at_utc: datetime) -> int:
        stmt = update(User).where(User.id == user_id).values(last_withdrawal_at=at_utc)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def count_upload_fee_flag_without_payment(session: AsyncSession) -> int:
        paid_fee_exists = (
            select(Purchase.id)
            .where(
                Purchase.user_id == User.id,
                Purchase.transaction_type == "upload_fee",
                Purchase.status == "completed",
            )
            .exists()
        )
        stmt = select(func.count(User.id)).where(User.upload_fee_paid.is_(True), ~paid_fee_exists)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_upload_fee_payment_without_flag(session: AsyncSession) -> int:
        stmt = (
            select(func.count(User.id))
            .join(Purchase, Purchase.user_id == User.id)
            .where(
                User.upload_fee_paid.is_(False),
                Purchase.transaction_type == "upload_fee",
                Purchase.status == "completed",
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
