from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import TypeVar

import structlog
from celery.schedules import crontab

from docmarket.core.config import get_settings
from docmarket.db.repo.earnings_repo import EarningsRepo
from docmarket.db.repo.purchases_repo import PurchasesRepo
from docmarket.db.repo.reconciliation_runs_repo import ReconciliationRunsRepo
from docmarket.db.repo.users_repo import UsersRepo
from docmarket.db.session import Database
from docmarket.monetization.earnings import get_earnings_for_users
from docmarket.monetization.purchases.service import PurchaseService
from docmarket.services.alerts import send_ops_alert
from docmarket.services.ledger_reconciliation import (
    compute_reconciliation_diff,
    count_negative_balances,
    reconciliation_status,
)
from docmarket.services.receipts_render import PillowReceiptRenderer, ReceiptRenderer
from docmarket.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def expire_stale_pending_purchases_async(
    database: Database,
    *,
    stale_minutes: int = 60,
    batch_size: int = 500,
) -> dict[str, int]:
    now_utc = datetime.now(timezone.utc)
    stale_cutoff = now_utc - timedelta(minutes=stale_minutes)

    async with database.transaction() as session:
        stale_purchases = await PurchasesRepo.list_pending_older_than(
            session,
            older_than_utc=stale_cutoff,
            limit=batch_size,
        )
        for purchase in stale_purchases:
            purchase.status = "failed"
            purchase.updated_at = now_utc

    result = {"expired_purchases": len(stale_purchases)}
    logger.info("stale_pending_purchases_expiry_finished", **result)
    return result


async def render_missing_receipts_async(
    database: Database,
    *,
    renderer: ReceiptRenderer | None = None,
    batch_size: int = 50,
) -> dict[str, int]:
    renderer = renderer or PillowReceiptRenderer()
    async with database.transaction() as session:
        candidates = await PurchasesRepo.list_completed_missing_receipts(session, limit=batch_size)
        candidate_ids = [purchase.id for purchase in candidates]

    summary = {"examined": len(candidate_ids), "rendered": 0, "errors": 0}
    for purchase_id in candidate_ids:
        try:
            async with database.transaction() as session:
                purchase = await PurchasesRepo.get_by_id_for_update(session, purchase_id)
                if purchase is None or purchase.status != "completed" or purchase.receipt_pdf is not None:
                    continue
                await PurchaseService.render_and_attach_receipt(session, purchase=purchase, renderer=renderer)
        except Exception:
            summary["errors"] += 1
            logger.exception("purchase_receipt_backfill_failed", purchase_id=purchase_id)
            continue
        summary["rendered"] += 1

    logger.info("purchase_receipt_backfill_finished", **summary)
    return summary


async def run_ledger_reconciliation_async(database: Database) -> dict[str, int | str]:
    started_at = datetime.now(timezone.utc)

    async with database.transaction() as session:
        duplicate_completed_purchases = await PurchasesRepo.count_duplicate_completed_pdf_purchases(session)
        upload_fee_flag_without_payment = await UsersRepo.count_upload_fee_flag_without_payment(session)
        upload_fee_payment_without_flag = await UsersRepo.count_upload_fee_payment_without_flag(session)
        seller_ids = await EarningsRepo.list_user_ids_with_withdrawals(session)
        summaries = await get_earnings_for_users(session, user_ids=seller_ids)
        negative_balance_sellers = count_negative_balances(summaries.values())

        diff_count = compute_reconciliation_diff(
            duplicate_completed_purchases=duplicate_completed_purchases,
            upload_fee_flag_without_payment=upload_fee_flag_without_payment,
            upload_fee_payment_without_flag=upload_fee_payment_without_flag,
            negative_balance_sellers=negative_balance_sellers,
        )
        status = reconciliation_status(diff_count)
        result: dict[str, int | str] = {
            "duplicate_completed_purchases": duplicate_completed_purchases,
            "upload_fee_flag_without_payment": upload_fee_flag_without_payment,
            "upload_fee_payment_without_flag": upload_fee_payment_without_flag,
            "negative_balance_sellers": negative_balance_sellers,
            "diff_count": diff_count,
            "status": status,
        }

        await ReconciliationRunsRepo.create(
            session,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            status=status,
            diff_count=diff_count,
            details=dict(result),
        )

    if diff_count > 0:
        await send_ops_alert(event="ledger_reconciliation_diff_detected", payload=dict(result))
        logger.warning("ledger_reconciliation_diff_detected", **result)
    else:
        logger.info("ledger_reconciliation_finished", **result)
    return result


async def _with_database(job: Callable[..., Awaitable[T]], **kwargs: object) -> T:
    database = Database.from_settings(get_settings())
    try:
        return await job(database, **kwargs)
    finally:
        await database.dispose()


@celery_app.task(name="docmarket.workers.tasks.ledger_reconciliation.expire_stale_pending_purchases")
def expire_stale_pending_purchases(stale_minutes: int = 60) -> dict[str, int]:
    return asyncio.run(_with_database(expire_stale_pending_purchases_async, stale_minutes=stale_minutes))


@celery_app.task(name="docmarket.workers.tasks.ledger_reconciliation.render_missing_receipts")
def render_missing_receipts(batch_size: int = 50) -> dict[str, int]:
    return asyncio.run(_with_database(render_missing_receipts_async, batch_size=batch_size))


@celery_app.task(name="docmarket.workers.tasks.ledger_reconciliation.run_ledger_reconciliation")
def run_ledger_reconciliation() -> dict[str, int | str]:
    return asyncio.run(_with_database(run_ledger_reconciliation_async))


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "expire-stale-pending-purchases-every-15-minutes": {
            "task": "docmarket.workers.tasks.ledger_reconciliation.expire_stale_pending_purchases",
            "schedule": 900.0,
            "options": {"queue": "q_normal"},
        },
        "render-missing-receipts-every-10-minutes": {
            "task": "docmarket.workers.tasks.ledger_reconciliation.render_missing_receipts",
            "schedule": 600.0,
            "options": {"queue": "q_normal"},
        },
        "ledger-reconciliation-hourly": {
            "task": "docmarket.workers.tasks.ledger_reconciliation.run_ledger_reconciliation",
            "schedule": 3600.0,
            "options": {"queue": "q_normal"},
        },
        "ledger-reconciliation-daily-0300-utc": {
            "task": "docmarket.workers.tasks.ledger_reconciliation.run_ledger_reconciliation",
            "schedule": crontab(hour=3, minute=0),
            "options": {"queue": "q_normal"},
        },
    }
)
