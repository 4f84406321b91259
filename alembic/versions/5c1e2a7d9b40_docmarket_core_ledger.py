"""docmarket_core_ledger

Revision ID: 5c1e2a7d9b40
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2a7d9b40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'user'")),
        sa.Column("upload_fee_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("last_withdrawal_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('user','admin')", name="ck_users_role"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("storage_key", sa.String(512), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(128), nullable=False, server_default=sa.text("'application/pdf'")),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("base_price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("download_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'active'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('active','deleted')", name="ck_documents_status"),
        sa.CheckConstraint("price >= 0", name="ck_documents_price_non_negative"),
        sa.CheckConstraint("base_price >= 0", name="ck_documents_base_price_non_negative"),
        sa.CheckConstraint("download_count >= 0", name="ck_documents_download_count_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_documents_user_id_users"),
    )
    op.create_index("idx_documents_user_status", "documents", ["user_id", "status"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("pdf_id", sa.BigInteger(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'NGN'")),
        sa.Column("payment_method", sa.String(64), nullable=False, server_default=sa.text("'unknown'")),
        sa.Column("transaction_id", sa.String(128), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("receipt_pdf", sa.LargeBinary(), nullable=True),
        sa.Column("receipt_image", sa.LargeBinary(), nullable=True),
        sa.Column("purchase_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "transaction_type IN ('pdf_purchase','upload_fee')",
            name="ck_purchases_transaction_type",
        ),
        sa.CheckConstraint(
            "(transaction_type = 'upload_fee' AND pdf_id IS NULL)"
            " OR (transaction_type = 'pdf_purchase' AND pdf_id IS NOT NULL)",
            name="ck_purchases_pdf_id_matches_type",
        ),
        sa.CheckConstraint("amount > 0", name="ck_purchases_amount_positive"),
        sa.CheckConstraint(
            "status IN ('pending','completed','failed','refunded')",
            name="ck_purchases_status",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_purchases_user_id_users"),
        sa.ForeignKeyConstraint(["pdf_id"], ["documents.id"], name="fk_purchases_pdf_id_documents"),
        sa.UniqueConstraint("transaction_id", name="uq_purchases_transaction_id"),
    )
    op.create_index("idx_purchases_user_date", "purchases", ["user_id", "purchase_date"])
    op.create_index("idx_purchases_pdf_status", "purchases", ["pdf_id", "status"])
    op.create_index(
        "uq_purchases_completed_pdf_per_user",
        "purchases",
        ["user_id", "pdf_id"],
        unique=True,
        postgresql_where=sa.text("transaction_type = 'pdf_purchase' AND status = 'completed'"),
    )
    op.create_index(
        "uq_purchases_completed_upload_fee_per_user",
        "purchases",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("transaction_type = 'upload_fee' AND status = 'completed'"),
    )

    op.create_table(
        "download_history",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("pdf_id", sa.BigInteger(), nullable=False),
        sa.Column("pdf_title", sa.Text(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("downloaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["pdf_id"], ["documents.id"], name="fk_download_history_pdf_id_documents"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_download_history_user_id_users"),
    )
    op.create_index("idx_download_history_pdf", "download_history", ["pdf_id"])
    op.create_index(
        "idx_download_history_user_downloaded",
        "download_history",
        ["user_id", "downloaded_at"],
    )

    op.create_table(
        "withdrawals",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("bank_name", sa.Text(), nullable=False),
        sa.Column("account_number", sa.String(64), nullable=False),
        sa.Column("account_name", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.CheckConstraint("status IN ('pending','paid','declined')", name="ck_withdrawals_status"),
        sa.CheckConstraint("amount > 0", name="ck_withdrawals_amount_positive"),
        sa.CheckConstraint(
            "(status = 'pending' AND processed_at IS NULL) OR (status <> 'pending' AND processed_at IS NOT NULL)",
            name="ck_withdrawals_processed_at_matches_status",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_withdrawals_user_id_users"),
    )
    op.create_index("idx_withdrawals_status_requested", "withdrawals", ["status", "requested_at"])
    op.create_index("idx_withdrawals_user", "withdrawals", ["user_id"])
    op.create_index(
        "uq_withdrawals_pending_per_user",
        "withdrawals",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "reconciliation_runs",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("diff_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.CheckConstraint("status IN ('RUNNING','OK','DIFF')", name="ck_reconciliation_runs_status"),
    )


def downgrade() -> None:
    op.drop_table("reconciliation_runs")
    op.drop_index("uq_withdrawals_pending_per_user", table_name="withdrawals")
    op.drop_index("idx_withdrawals_user", table_name="withdrawals")
    op.drop_index("idx_withdrawals_status_requested", table_name="withdrawals")
    op.drop_table("withdrawals")
    op.drop_index("idx_download_history_user_downloaded", table_name="download_history")
    op.drop_index("idx_download_history_pdf", table_name="download_history")
    op.drop_table("download_history")
    op.drop_index("uq_purchases_completed_upload_fee_per_user", table_name="purchases")
    op.drop_index("uq_purchases_completed_pdf_per_user", table_name="purchases")
    op.drop_index("idx_purchases_pdf_status", table_name="purchases")
    op.drop_index("idx_purchases_user_date", table_name="purchases")
    op.drop_table("purchases")
    op.drop_index("idx_documents_user_status", table_name="documents")
    op.drop_table("documents")
    op.drop_table("users")
