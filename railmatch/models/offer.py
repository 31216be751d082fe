"""Offer model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from railmatch.models.base import AuditMixin, Base
from railmatch.models.enums import CargoType, WagonType


class Offer(Base, AuditMixin):
    """A carrier's advertised wagon supply for a route, window and price."""

    __tablename__ = "offers"
    __table_args__ = (
        Index("idx_offers_archived", "is_archived"),
        Index("idx_offers_company", "company_id"),
        CheckConstraint("available_from <= available_until", name="ck_offers_window"),
        CheckConstraint("wagon_count >= 1", name="ck_offers_wagon_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    wagon_type: Mapped[WagonType] = mapped_column(Enum(WagonType, native_enum=False, length=20), nullable=False)
    cargo_type: Mapped[CargoType] = mapped_column(Enum(CargoType, native_enum=False, length=20), nullable=False)
    wagon_count: Mapped[int] = mapped_column(Integer, nullable=False)
    departure_station: Mapped[str] = mapped_column(String(100), nullable=False)
    departure_region: Mapped[str] = mapped_column(String(100), nullable=False)
    arrival_station: Mapped[str] = mapped_column(String(100), nullable=False)
    arrival_region: Mapped[str] = mapped_column(String(100), nullable=False)
    available_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    available_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    price_per_wagon: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    company = relationship("Company", back_populates="offers")
    matches = relationship("Match", back_populates="offer")
