"""Match request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from railmatch.models.enums import CargoType, DealStatus, WagonType


class ScoringReasonSchema(BaseModel):
    factor: str
    label: str
    score: float = Field(ge=0, le=1)
    weight: float = Field(ge=0, le=1)
    explanation: str


class OfferSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    wagon_type: WagonType
    cargo_type: CargoType
    wagon_count: int
    departure_station: str
    departure_region: str
    arrival_station: str
    arrival_region: str
    available_from: datetime
    available_until: datetime
    price_per_wagon: float
    description: str | None = None


class RequestDetails(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cargo_type: CargoType
    departure_region: str
    arrival_region: str


class MatchCandidateResponse(BaseModel):
    match_id: int | None = None
    offer_id: int
    score: int = Field(ge=0, le=100)
    offer: OfferSummary
    reasons: list[ScoringReasonSchema]
    metadata: dict[str, float]


class MatchListResponse(BaseModel):
    success: bool = True
    request_id: int
    request_details: RequestDetails
    matches: list[MatchCandidateResponse]
    count: int
    computed_at: datetime


class RecomputeRequest(BaseModel):
    request_ids: list[int] | None = Field(default=None, max_length=10000)


class PairErrorSchema(BaseModel):
    request_id: int
    offer_id: int
    error_type: str
    message: str


class RecomputeResponse(BaseModel):
    status: str
    task_id: str | None = None
    requests_processed: int | None = None
    pairs_scored: int | None = None
    matches_written: int | None = None
    errors: list[PairErrorSchema] = Field(default_factory=list)
    cancelled: bool = False


class InboxItemResponse(BaseModel):
    match_id: int
    offer_id: int
    request_id: int
    score: int = Field(ge=0, le=100)
    current_status: DealStatus
    latest_comment: str | None = None
    latest_status_at: datetime | None = None
    created_at: datetime
