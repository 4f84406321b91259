from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.users import User
from docmarket.db.models.withdrawals import Withdrawal


class WithdrawalsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, withdrawal_id: int) -> Withdrawal | None:
        return await session.get(Withdrawal, withdrawal_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, withdrawal_id: int) -> Withdrawal | None:
        stmt = select(Withdrawal).where(Withdrawal.id == withdrawal_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_pending_by_user(session: AsyncSession, *, user_id: int) -> Withdrawal | None:
        stmt = select(Withdrawal).where(
            Withdrawal.user_id == user_id,
            Withdrawal.status == "pending",
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, withdrawal: Withdrawal) -> Withdrawal:
        session.add(withdrawal)
        await session.flush()
        return withdrawal

    @staticmethod
    async def list_with_users(
        session: AsyncSession,
        *,
        status: str | None = None,
        limit: int = 500,
    ) -> list[tuple[Withdrawal, str, str | None]]:
        stmt = (
            select(Withdrawal, User.username, User.email)
            .join(User, User.id == Withdrawal.user_id)
            .order_by(Withdrawal.requested_at.desc(), Withdrawal.id.desc())
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(Withdrawal.status == status)
        result = await session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
