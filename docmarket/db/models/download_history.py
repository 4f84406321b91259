from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docmarket.db.models.base import Base


class DownloadHistory(Base):
    __tablename__ = "download_history"
    __table_args__ = (
        Index("idx_download_history_pdf", "pdf_id"),
        Index("idx_download_history_user_downloaded", "user_id", "downloaded_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    pdf_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("documents.id"), nullable=False)
    pdf_title: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    downloaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
