"""Freight request model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from railmatch.models.base import AuditMixin, Base
from railmatch.models.enums import CargoType, WagonType


class FreightRequest(Base, AuditMixin):
    """A seeker's need for wagons to move cargo between two stations."""

    __tablename__ = "requests"
    __table_args__ = (
        Index("idx_requests_company", "company_id"),
        CheckConstraint("required_by_date > loading_date", name="ck_requests_window"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    cargo_type: Mapped[CargoType] = mapped_column(Enum(CargoType, native_enum=False, length=20), nullable=False)
    wagon_type: Mapped[WagonType | None] = mapped_column(Enum(WagonType, native_enum=False, length=20))
    cargo_weight: Mapped[float] = mapped_column(Float, nullable=False)
    departure_station: Mapped[str] = mapped_column(String(100), nullable=False)
    departure_region: Mapped[str] = mapped_column(String(100), nullable=False)
    arrival_station: Mapped[str] = mapped_column(String(100), nullable=False)
    arrival_region: Mapped[str] = mapped_column(String(100), nullable=False)
    loading_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    required_by_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    max_price_per_wagon: Mapped[float | None] = mapped_column(Float)
    description: Mapped[str | None] = mapped_column(Text)

    company = relationship("Company", back_populates="requests")
    matches = relationship("Match", back_populates="request")
