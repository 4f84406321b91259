from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.documents import Document
from docmarket.db.models.download_history import DownloadHistory
from docmarket.db.repo.documents_repo import DocumentsRepo
from docmarket.db.repo.download_history_repo import DownloadHistoryRepo
from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.monetization.errors import DocumentAccessDeniedError, DocumentNotFoundError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AccessDecision:
    allowed: bool
    price: Decimal | None = None


async def _decide(session: AsyncSession, *, user_id: int, document: Document) -> AccessDecision:
    if not document.is_paid:
        return AccessDecision(allowed=True)

    purchase = await PurchasesRepo.get_completed_pdf_purchase(
        session,
        user_id=user_id,
        pdf_id=document.id,
    )
    if purchase is not None:
        return AccessDecision(allowed=True)
    return AccessDecision(allowed=False, price=document.price)


async def can_download(session: AsyncSession, *, user_id: int, document_id: int) -> AccessDecision:
    document = await DocumentsRepo.get_active_by_id(session, document_id)
    if document is None:
        raise DocumentNotFoundError
    return await _decide(session, user_id=user_id, document=document)


async def record_download(
    session: AsyncSession,
    *,
    user_id: int,
    document_id: int,
    now_utc: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Document:
    """Gate the download and, when allowed, append history and bump the counter."""
    document = await DocumentsRepo.get_active_by_id(session, document_id)
    if document is None:
        raise DocumentNotFoundError

    decision = await _decide(session, user_id=user_id, document=document)
    if not decision.allowed:
        logger.info(
            "document_download_denied",
            document_id=document_id,
            user_id=user_id,
            price=str(decision.price),
        )
        raise DocumentAccessDeniedError(document_id=document_id, price=decision.price)

    await DownloadHistoryRepo.create(
        session,
        entry=DownloadHistory(
            pdf_id=document.id,
            pdf_title=document.title,
            user_id=user_id,
            downloaded_at=now_utc,
            ip_address=ip_address,
            user_agent=user_agent,
        ),
    )
    await DocumentsRepo.increment_download_count(session, document_id=document.id)
    logger.info("document_download_recorded", document_id=document.id, user_id=user_id)
    return document
