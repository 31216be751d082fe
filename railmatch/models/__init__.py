"""Modular SQLAlchemy model package for the matching schema."""

from railmatch.models.base import Base
from railmatch.models.company import Company
from railmatch.models.deal_status_history import DealStatusHistory
from railmatch.models.enums import CargoType, CompanyRole, DealStatus, WagonType
from railmatch.models.freight_request import FreightRequest
from railmatch.models.match import Match
from railmatch.models.offer import Offer

__all__ = [
    "Base",
    "CargoType",
    "Company",
    "CompanyRole",
    "DealStatus",
    "DealStatusHistory",
    "FreightRequest",
    "Match",
    "Offer",
    "WagonType",
]
