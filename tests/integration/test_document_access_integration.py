from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from docmarket.db.models.download_history import DownloadHistory
from docmarket.db.repo.documents_repo import DocumentsRepo
from docmarket.monetization.access import can_download, record_download
from docmarket.monetization.errors import DocumentAccessDeniedError, DocumentNotFoundError
from docmarket.monetization.purchases.types import PdfPurchase
from tests.integration.ledger_fixtures import NOW_UTC, _create_document, _create_user, _record

pytestmark = pytest.mark.integration


async def _history_count(database, *, document_id: int) -> int:
    stmt = select(func.count(DownloadHistory.id)).where(DownloadHistory.pdf_id == document_id)
    async with database.transaction() as session:
        return int((await session.execute(stmt)).scalar_one())


@pytest.mark.asyncio
async def test_free_document_is_open_to_any_user(database) -> None:
    seller_id = await _create_user(database, "seller", upload_fee_paid=True)
    reader_id = await _create_user(database, "reader")
    pdf_id = await _create_document(database, owner_id=seller_id, is_paid=False)

    async with database.transaction() as session:
        decision = await can_download(session, user_id=reader_id, document_id=pdf_id)
        document = await record_download(
            session,
            user_id=reader_id,
            document_id=pdf_id,
            now_utc=NOW_UTC,
            ip_address="10.0.0.8",
            user_agent="pytest",
        )

    assert decision.allowed is True
    assert decision.price is None
    assert document.id == pdf_id
    async with database.transaction() as session:
        stored = await DocumentsRepo.get_by_id(session, pdf_id)
    assert stored is not None
    assert stored.download_count == 1
    assert await _history_count(database, document_id=pdf_id) == 1


@pytest.mark.asyncio
async def test_paid_document_requires_completed_purchase_by_same_user(database) -> None:
    seller_id = await _create_user(database, "seller", upload_fee_paid=True)
    buyer_id = await _create_user(database, "buyer")
    other_id = await _create_user(database, "other")
    pdf_id = await _create_document(database, owner_id=seller_id, is_paid=True, price=Decimal("1200"))

    async with database.transaction() as session:
        before = await can_download(session, user_id=buyer_id, document_id=pdf_id)
    assert before.allowed is False
    assert before.price == Decimal("1300.00")

    await _record(
        database,
        user_id=buyer_id,
        target=PdfPurchase(pdf_id),
        amount=Decimal("1300"),
        transaction_id="tx-access",
    )

    async with database.transaction() as session:
        after = await can_download(session, user_id=buyer_id, document_id=pdf_id)
        other = await can_download(session, user_id=other_id, document_id=pdf_id)
    assert after.allowed is True
    assert other.allowed is False


@pytest.mark.asyncio
async def test_denied_download_leaves_no_history(database) -> None:
    seller_id = await _create_user(database, "seller", upload_fee_paid=True)
    reader_id = await _create_user(database, "reader")
    pdf_id = await _create_document(database, owner_id=seller_id, is_paid=True, price=Decimal("300"))

    with pytest.raises(DocumentAccessDeniedError) as exc_info:
        async with database.transaction() as session:
            await record_download(session, user_id=reader_id, document_id=pdf_id, now_utc=NOW_UTC)

    assert exc_info.value.price == Decimal("350.00")
    assert await _history_count(database, document_id=pdf_id) == 0
    async with database.transaction() as session:
        document = await DocumentsRepo.get_by_id(session, pdf_id)
    assert document is not None
    assert document.download_count == 0


@pytest.mark.asyncio
async def test_missing_document_is_not_found(database) -> None:
    reader_id = await _create_user(database, "reader")

    with pytest.raises(DocumentNotFoundError):
        async with database.transaction() as session:
            await can_download(session, user_id=reader_id, document_id=999_999)
