"""Match model module."""

from __future__ import annotations

from sqlalchemy import Float, ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from railmatch.models.base import AuditMixin, Base


class Match(Base, AuditMixin):
    """Last computed score of one (offer, request) pair.

    The deal status is not stored here; it is derived from
    ``deal_status_history``.
    """

    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("offer_id", "request_id", name="uq_matches_offer_request"),
        Index("idx_matches_request_score", "request_id", "score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    offer_id: Mapped[int] = mapped_column(ForeignKey("offers.id", ondelete="CASCADE"), nullable=False)
    request_id: Mapped[int] = mapped_column(ForeignKey("requests.id", ondelete="CASCADE"), nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    # "metadata" is reserved on declarative classes.
    match_metadata: Mapped[str | None] = mapped_column("metadata", Text)

    offer = relationship("Offer", back_populates="matches")
    request = relationship("FreightRequest", back_populates="matches")
