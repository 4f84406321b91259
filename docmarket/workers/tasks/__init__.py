from docmarket.workers.tasks.ledger_reconciliation import (
    expire_stale_pending_purchases,
    render_missing_receipts,
    run_ledger_reconciliation,
)

__all__ = [
    "expire_stale_pending_purchases",
    "render_missing_receipts",
    "run_ledger_reconciliation",
]
