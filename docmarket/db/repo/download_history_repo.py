from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.download_history import DownloadHistory


class DownloadHistoryRepo:
    @staticmethod
    async def create(session: AsyncSession, *, entry: DownloadHistory) -> DownloadHistory:
        session.add(entry)
        await session.flush()
        return entry
