"""Pydantic schema package for API contracts."""

from railmatch.schemas.deals import DealStatusHistoryResponse, DealStatusResponse, DealTransitionRequest
from railmatch.schemas.matches import (
    InboxItemResponse,
    MatchCandidateResponse,
    MatchListResponse,
    OfferSummary,
    PairErrorSchema,
    RecomputeRequest,
    RecomputeResponse,
    RequestDetails,
    ScoringReasonSchema,
)

__all__ = [
    "DealStatusHistoryResponse",
    "DealStatusResponse",
    "DealTransitionRequest",
    "InboxItemResponse",
    "MatchCandidateResponse",
    "MatchListResponse",
    "OfferSummary",
    "PairErrorSchema",
    "RecomputeRequest",
    "RecomputeResponse",
    "RequestDetails",
    "ScoringReasonSchema",
]
