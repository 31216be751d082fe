"""Company model module."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from railmatch.models.base import AuditMixin, Base


class Company(Base, AuditMixin):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    inn: Mapped[str | None] = mapped_column(String(12), unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    is_operator: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_seeker: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    offers = relationship("Offer", back_populates="company")
    requests = relationship("FreightRequest", back_populates="company")
