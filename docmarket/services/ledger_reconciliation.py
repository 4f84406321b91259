from __future__ import annotations

from collections.abc import Iterable

from docmarket.monetization.earnings import EarningsSummary


def count_negative_balances(summaries: Iterable[EarningsSummary]) -> int:
    return sum(1 for summary in summaries if summary.available_balance < 0)


def compute_reconciliation_diff(
    *,
    duplicate_completed_purchases: int,
    upload_fee_flag_without_payment: int,
    upload_fee_payment_without_flag: int,
    negative_balance_sellers: int,
) -> int:
    return (
        max(0, duplicate_completed_purchases)
        + max(0, upload_fee_flag_without_payment)
        + max(0, upload_fee_payment_without_flag)
        + max(0, negative_balance_sellers)
    )


def reconciliation_status(diff_count: int) -> str:
    return "OK" if diff_count == 0 else "DIFF"
