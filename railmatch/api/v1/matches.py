"""Match scoring and recomputation endpoints for API v1."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session, sessionmaker

from railmatch.api.v1._errors import http_error
from railmatch.core.exceptions import RailMatchException
from railmatch.database.db import get_db
from railmatch.schemas.matches import (
    MatchCandidateResponse,
    MatchListResponse,
    OfferSummary,
    RecomputeRequest,
    RecomputeResponse,
    RequestDetails,
    ScoringReasonSchema,
)
from railmatch.services.match_sync_service import MatchSyncService, ScoredCandidate
from railmatch.utils.validators import parse_entity_id, parse_optional_entity_id

router = APIRouter(tags=["matches"])


def _candidate_response(candidate: ScoredCandidate) -> MatchCandidateResponse:
    return MatchCandidateResponse(
        match_id=candidate.match_id,
        offer_id=candidate.offer.id,
        score=candidate.score,
        offer=OfferSummary.model_validate(candidate.offer),
        reasons=[ScoringReasonSchema(**asdict(reason)) for reason in candidate.result.reasons],
        metadata=dict(candidate.result.metadata),
    )


@router.get("/match", response_model=MatchListResponse)
def get_matches(
    request_id: str | None = Query(default=None, alias="requestId"),
    company_id: str | None = Header(default=None, alias="X-Company-Id"),
    db: Session = Depends(get_db),
) -> MatchListResponse:
    try:
        parsed_request_id = parse_entity_id(request_id, "requestId")
        caller_company_id = parse_optional_entity_id(company_id, "X-Company-Id")
        result = MatchSyncService(db).sync_request(parsed_request_id, company_id=caller_company_id)
    except RailMatchException as exc:
        raise http_error(exc) from exc

    matches = [_candidate_response(candidate) for candidate in result.candidates]
    return MatchListResponse(
        request_id=result.request.id,
        request_details=RequestDetails.model_validate(result.request),
        matches=matches,
        count=len(matches),
        computed_at=result.computed_at,
    )


@router.post("/matches/recompute", response_model=RecomputeResponse, status_code=status.HTTP_200_OK)
def recompute_matches(
    payload: RecomputeRequest,
    run_async: bool = Query(default=False, alias="async"),
    db: Session = Depends(get_db),
) -> RecomputeResponse:
    if run_async:
        from railmatch.tasks.match_tasks import recompute_matches_task

        task = recompute_matches_task.delay(payload.request_ids)
        return RecomputeResponse(status="queued", task_id=task.id)

    # Workers open their own sessions on the same engine as the request.
    factory = sessionmaker(bind=db.get_bind(), autoflush=False, expire_on_commit=False)
    try:
        summary = MatchSyncService(db, session_factory=factory).recompute(payload.request_ids)
    except RailMatchException as exc:
        raise http_error(exc) from exc

    return RecomputeResponse(status="completed" if summary.success else "completed_with_errors", **summary.to_dict())
