"""Canonical enum values for the matching schema."""

from __future__ import annotations

import enum


class WagonType(str, enum.Enum):
    TANK = "TANK"
    HOPPER = "HOPPER"
    FLATCAR = "FLATCAR"
    BOXCAR = "BOXCAR"
    GONDOLA = "GONDOLA"
    REFRIGERATOR = "REFRIGERATOR"
    PLATFORM = "PLATFORM"


class CargoType(str, enum.Enum):
    COAL = "COAL"
    OIL = "OIL"
    GRAIN = "GRAIN"
    METAL = "METAL"
    CHEMICAL = "CHEMICAL"
    TIMBER = "TIMBER"
    CONTAINER = "CONTAINER"
    BULK = "BULK"
    OTHER = "OTHER"


class DealStatus(str, enum.Enum):
    PENDING = "PENDING"
    NEGOTIATING = "NEGOTIATING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class CompanyRole(str, enum.Enum):
    OPERATOR = "OPERATOR"
    SEEKER = "SEEKER"
