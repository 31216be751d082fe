"""Deal status history model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from railmatch.models.base import Base, utcnow
from railmatch.models.enums import DealStatus


class DealStatusHistory(Base):
    """Append-only audit log of deal status changes for a match or a request."""

    __tablename__ = "deal_status_history"
    __table_args__ = (
        CheckConstraint(
            "(match_id IS NULL) <> (request_id IS NULL)",
            name="ck_deal_status_history_single_target",
        ),
        Index("idx_deal_status_history_match", "match_id", "created_at"),
        Index("idx_deal_status_history_request", "request_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    match_id: Mapped[int | None] = mapped_column(ForeignKey("matches.id", ondelete="RESTRICT"))
    request_id: Mapped[int | None] = mapped_column(ForeignKey("requests.id", ondelete="RESTRICT"))
    status: Mapped[DealStatus] = mapped_column(Enum(DealStatus, native_enum=False, length=20), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
