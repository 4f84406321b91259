from __future__ import annotations

from sqlalchemy import CheckConstraint

from docmarket.db.models import (  # noqa: F401
    Document,
    DownloadHistory,
    Purchase,
    ReconciliationRun,
    User,
    Withdrawal,
)
from docmarket.db.models.base import Base


def test_all_ledger_tables_registered() -> None:
    expected_tables = {
        "users",
        "documents",
        "purchases",
        "download_history",
        "withdrawals",
        "reconciliation_runs",
    }
    assert expected_tables.issubset(set(Base.metadata.tables))


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {constraint.name for constraint in table.constraints if isinstance(constraint, CheckConstraint)}


def test_critical_constraints_present() -> None:
    purchase_checks = _check_names("purchases")
    assert "ck_purchases_pdf_id_matches_type" in purchase_checks
    assert "ck_purchases_amount_positive" in purchase_checks
    assert "ck_purchases_status" in purchase_checks

    assert "ck_withdrawals_processed_at_matches_status" in _check_names("withdrawals")
    assert "ck_documents_price_non_negative" in _check_names("documents")


def test_single_completed_purchase_indexes_are_partial_and_unique() -> None:
    purchases = Base.metadata.tables["purchases"]
    indexes = {index.name: index for index in purchases.indexes}

    pdf_index = indexes["uq_purchases_completed_pdf_per_user"]
    assert pdf_index.unique is True
    assert [column.name for column in pdf_index.columns] == ["user_id", "pdf_id"]
    assert pdf_index.dialect_options["postgresql"]["where"] is not None

    fee_index = indexes["uq_purchases_completed_upload_fee_per_user"]
    assert fee_index.unique is True
    assert [column.name for column in fee_index.columns] == ["user_id"]


def test_single_pending_withdrawal_index_present() -> None:
    withdrawals = Base.metadata.tables["withdrawals"]
    indexes = {index.name: index for index in withdrawals.indexes}

    assert indexes["uq_withdrawals_pending_per_user"].unique is True


def test_transaction_id_is_globally_unique() -> None:
    purchases = Base.metadata.tables["purchases"]
    assert purchases.c.transaction_id.unique is True
