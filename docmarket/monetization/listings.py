from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.documents import Document
from docmarket.db.repo.documents_repo import DocumentsRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.monetization.errors import (
    DocumentNotFoundError,
    DocumentOwnershipError,
    UploadFeeRequiredError,
    UserNotFoundError,
    ValidationError,
)
from docmarket.monetization.fees import additional_charge

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class ListingPrice:
    base_price: Decimal
    extra_charge: Decimal
    final_price: Decimal


def price_listing(*, is_paid: bool, price: Decimal | int | str | None) -> ListingPrice:
    if not is_paid:
        return ListingPrice(base_price=ZERO, extra_charge=ZERO, final_price=ZERO)

    if price is None:
        raise ValidationError("paid documents require a price")
    try:
        base_price = price if isinstance(price, Decimal) else Decimal(str(price))
    except ArithmeticError as exc:
        raise ValidationError(f"invalid price: {price!r}") from exc
    if not base_price.is_finite() or base_price <= 0:
        raise ValidationError("paid documents require a positive price")

    extra_charge = additional_charge(base_price)
    return ListingPrice(
        base_price=base_price,
        extra_charge=extra_charge,
        final_price=base_price + extra_charge,
    )


async def create_document(
    session: AsyncSession,
    *,
    user_id: int,
    title: str,
    storage_key: str,
    file_name: str,
    is_paid: bool,
    price: Decimal | None,
    now_utc: datetime,
    description: str | None = None,
    mime_type: str = "application/pdf",
) -> Document:
    normalized_title = title.strip()
    if not normalized_title:
        raise ValidationError("title is required")
    if not storage_key.strip() or not file_name.strip():
        raise ValidationError("document file is required")

    uploader = await UsersRepo.get_by_id(session, user_id)
    if uploader is None:
        raise UserNotFoundError
    if not uploader.upload_fee_paid:
        raise UploadFeeRequiredError

    listing = price_listing(is_paid=is_paid, price=price)
    document = await DocumentsRepo.create(
        session,
        document=Document(
            user_id=user_id,
            title=normalized_title,
            description=description,
            storage_key=storage_key,
            file_name=file_name,
            mime_type=mime_type,
            is_paid=is_paid,
            price=listing.final_price,
            base_price=listing.base_price,
            download_count=0,
            status="active",
            created_at=now_utc,
            updated_at=now_utc,
        ),
    )
    logger.info(
        "document_created",
        document_id=document.id,
        user_id=user_id,
        is_paid=is_paid,
        price=str(listing.final_price),
    )
    return document


async def update_document_pricing(
    session: AsyncSession,
    *,
    user_id: int,
    document_id: int,
    is_paid: bool,
    price: Decimal | None,
    now_utc: datetime,
) -> Document:
    document = await DocumentsRepo.get_active_by_id_for_update(session, document_id)
    if document is None:
        raise DocumentNotFoundError
    if document.user_id != user_id:
        raise DocumentOwnershipError

    listing = price_listing(is_paid=is_paid, price=price)
    document.is_paid = is_paid
    document.base_price = listing.base_price
    document.price = listing.final_price
    document.updated_at = now_utc
    await session.flush()

    logger.info(
        "document_pricing_updated",
        document_id=document.id,
        is_paid=is_paid,
        price=str(listing.final_price),
    )
    return document
