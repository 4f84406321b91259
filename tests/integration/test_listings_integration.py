from __future__ import annotations

from decimal import Decimal

import pytest

from docmarket.monetization.errors import DocumentOwnershipError, UploadFeeRequiredError
from docmarket.monetization.listings import create_document, update_document_pricing
from tests.integration.ledger_fixtures import NOW_UTC, _create_user

pytestmark = pytest.mark.integration


async def _upload(database, *, user_id: int, is_paid: bool, price: Decimal | None):
    async with database.transaction() as session:
        return await create_document(
            session,
            user_id=user_id,
            title="  Linear algebra past questions ",
            storage_key=f"users/{user_id}/la.pdf",
            file_name="la.pdf",
            is_paid=is_paid,
            price=price,
            now_utc=NOW_UTC,
        )


@pytest.mark.asyncio
async def test_upload_requires_paid_upload_fee(database) -> None:
    user_id = await _create_user(database, "unpaid")

    with pytest.raises(UploadFeeRequiredError):
        await _upload(database, user_id=user_id, is_paid=False, price=None)


@pytest.mark.asyncio
async def test_paid_upload_stores_final_and_base_price(database) -> None:
    user_id = await _create_user(database, "seller", upload_fee_paid=True)

    document = await _upload(database, user_id=user_id, is_paid=True, price=Decimal("2500"))

    assert document.title == "Linear algebra past questions"
    assert document.base_price == Decimal("2500")
    assert document.price == Decimal("2700")


@pytest.mark.asyncio
async def test_only_owner_can_reprice(database) -> None:
    owner_id = await _create_user(database, "seller", upload_fee_paid=True)
    other_id = await _create_user(database, "other", upload_fee_paid=True)
    document = await _upload(database, user_id=owner_id, is_paid=False, price=None)

    with pytest.raises(DocumentOwnershipError):
        async with database.transaction() as session:
            await update_document_pricing(
                session,
                user_id=other_id,
                document_id=document.id,
                is_paid=True,
                price=Decimal("100"),
                now_utc=NOW_UTC,
            )

    async with database.transaction() as session:
        repriced = await update_document_pricing(
            session,
            user_id=owner_id,
            document_id=document.id,
            is_paid=True,
            price=Decimal("100"),
            now_utc=NOW_UTC,
        )
    assert repriced.is_paid is True
    assert repriced.price == Decimal("150")
