from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.documents import Document


class DocumentsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, document_id: int) -> Document | None:
        return await session.get(Document, document_id)

    @staticmethod
    async def get_active_by_id(session: AsyncSession, document_id: int) -> Document | None:
        stmt = select(Document).where(Document.id == document_id, Document.status == "active")
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_active_by_id_for_update(session: AsyncSession, document_id: int) -> Document | None:
        stmt = (
            select(Document)
            .where(Document.id == document_id, Document.status == "active")
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, document: Document) -> Document:
        session.add(document)
        await session.flush()
        return document

    @staticmethod
    async def increment_download_count(session: AsyncSession, *, document_id: int) -> int:
        stmt = (
            update(Document)
            .where(Document.id == document_id)
            .values(download_count=Document.download_count + 1)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0
