from __future__ import annotations

import structlog

from docmarket.db.models.purchases import Purchase

logger = structlog.get_logger("docmarket.monetization.purchases")


def _log_purchase_event(
    event_type: str,
    *,
    purchase: Purchase,
    **extra: object,
) -> None:
    logger.info(
        event_type,
        purchase_id=purchase.id,
        user_id=purchase.user_id,
        transaction_id=purchase.transaction_id,
        transaction_type=purchase.transaction_type,
        pdf_id=purchase.pdf_id,
        amount=str(purchase.amount),
        status=purchase.status,
        **extra,
    )
