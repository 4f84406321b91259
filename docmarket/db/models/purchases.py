from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, LargeBinary, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from docmarket.db.models.base import Base


class Purchase(Base):
    __tablename__ = "purchases"
    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('pdf_purchase','upload_fee')",
            name="transaction_type",
        ),
        CheckConstraint(
            "(transaction_type = 'upload_fee' AND pdf_id IS NULL)"
            " OR (transaction_type = 'pdf_purchase' AND pdf_id IS NOT NULL)",
            name="pdf_id_matches_type",
        ),
        CheckConstraint("amount > 0", name="amount_positive"),
        CheckConstraint(
            "status IN ('pending','completed','failed','refunded')",
            name="status",
        ),
        Index("idx_purchases_user_date", "user_id", "purchase_date"),
        Index("idx_purchases_pdf_status", "pdf_id", "status"),
        Index(
            "uq_purchases_completed_pdf_per_user",
            "user_id",
            "pdf_id",
            unique=True,
            postgresql_where=text("transaction_type = 'pdf_purchase' AND status = 'completed'"),
        ),
        Index(
            "uq_purchases_completed_upload_fee_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("transaction_type = 'upload_fee' AND status = 'completed'"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    pdf_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("documents.id"), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'NGN'"))
    payment_method: Mapped[str] = mapped_column(String(64), nullable=False, server_default=text("'unknown'"))
    transaction_id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    receipt_pdf: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    receipt_image: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    purchase_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
