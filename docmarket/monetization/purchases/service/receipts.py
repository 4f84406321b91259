from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from docmarket.db.models.purchases import Purchase
from docmarket.db.repo.documents_repo import DocumentsRepo
from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.monetization.errors import PurchaseNotFoundError, ReceiptNotFoundError, UserNotFoundError
from docmarket.monetization.purchases.types import ReceiptKind
from docmarket.services.receipts_render import ReceiptContext, ReceiptRenderer

from .events import _log_purchase_event


async def _build_receipt_context(session: AsyncSession, *, purchase: Purchase) -> ReceiptContext:
    payer = await UsersRepo.get_by_id(session, purchase.user_id)
    if payer is None:
        raise UserNotFoundError

    if purchase.pdf_id is None:
        item_label = "Upload permission fee"
    else:
        document = await DocumentsRepo.get_by_id(session, purchase.pdf_id)
        item_label = document.title if document is not None else f"Document #{purchase.pdf_id}"

    return ReceiptContext(
        transaction_id=purchase.transaction_id,
        purchased_at=purchase.purchase_date,
        payer_name=payer.username,
        payer_email=payer.email,
        item_label=item_label,
        amount=purchase.amount,
        currency=purchase.currency,
        payment_method=purchase.payment_method,
        status=purchase.status,
    )


async def attach_receipt(
    session: AsyncSession,
    *,
    purchase_id: int,
    receipt_pdf: bytes,
    receipt_image: bytes,
) -> Purchase:
    purchase = await PurchasesRepo.get_by_id_for_update(session, purchase_id)
    if purchase is None:
        raise PurchaseNotFoundError

    purchase.receipt_pdf = receipt_pdf
    purchase.receipt_image = receipt_image
    await session.flush()
    _log_purchase_event("purchase_receipt_attached", purchase=purchase)
    return purchase


async def render_and_attach_receipt(
    session: AsyncSession,
    *,
    purchase: Purchase,
    renderer: ReceiptRenderer,
) -> Purchase:
    context = await _build_receipt_context(session, purchase=purchase)
    rendered = renderer.render(context)
    return await attach_receipt(
        session,
        purchase_id=purchase.id,
        receipt_pdf=rendered.pdf,
        receipt_image=rendered.png,
    )


async def get_receipt(
    session: AsyncSession,
    *,
    user_id: int,
    transaction_id: str,
    kind: ReceiptKind,
    renderer: ReceiptRenderer,
) -> bytes:
    """Return stored receipt bytes, rendering them on first access.

    Only the payer can fetch a receipt; other callers see not found.
    """
    purchase = await PurchasesRepo.get_by_transaction_id_for_update(session, transaction_id)
    if purchase is None or purchase.user_id != user_id:
        raise PurchaseNotFoundError
    if purchase.status not in {"completed", "refunded"}:
        raise ReceiptNotFoundError

    if purchase.receipt_pdf is None or purchase.receipt_image is None:
        purchase = await render_and_attach_receipt(session, purchase=purchase, renderer=renderer)

    payload = purchase.receipt_pdf if kind == "pdf" else purchase.receipt_image
    if payload is None:
        raise ReceiptNotFoundError
    return payload
