"""Deal status lifecycle endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from railmatch.api.v1._errors import http_error
from railmatch.core.exceptions import RailMatchException
from railmatch.database.db import get_db
from railmatch.schemas.deals import DealStatusHistoryResponse, DealStatusResponse, DealTransitionRequest
from railmatch.services.deal_status_service import DealStatusService
from railmatch.utils.validators import parse_optional_entity_id

router = APIRouter(prefix="/deals", tags=["deals"])


def _parse_ids(match_id: object, request_id: object) -> dict[str, int | None]:
    return {
        "match_id": parse_optional_entity_id(match_id, "matchId"),
        "request_id": parse_optional_entity_id(request_id, "requestId"),
    }


@router.get("/status", response_model=DealStatusResponse)
def get_deal_status(
    match_id: str | None = Query(default=None, alias="matchId"),
    request_id: str | None = Query(default=None, alias="requestId"),
    db: Session = Depends(get_db),
) -> DealStatusResponse:
    service = DealStatusService(db)
    try:
        target = service.resolve_target(**_parse_ids(match_id, request_id))
        current = service.current_status(match_id=target.match_id, request_id=target.request_id)
    except RailMatchException as exc:
        raise http_error(exc) from exc

    machine = service.state_machine
    return DealStatusResponse(
        match_id=target.match_id,
        request_id=target.request_id,
        current_status=current,
        allowed_transitions=sorted(machine.allowed(current), key=lambda item: item.value),
        is_terminal=machine.is_terminal(current),
    )


@router.get("/history", response_model=list[DealStatusHistoryResponse])
def get_deal_history(
    match_id: str | None = Query(default=None, alias="matchId"),
    request_id: str | None = Query(default=None, alias="requestId"),
    db: Session = Depends(get_db),
) -> list[DealStatusHistoryResponse]:
    try:
        rows = DealStatusService(db).history(**_parse_ids(match_id, request_id))
    except RailMatchException as exc:
        raise http_error(exc) from exc
    return [DealStatusHistoryResponse.model_validate(row) for row in rows]


@router.post("/transition", response_model=DealStatusHistoryResponse, status_code=status.HTTP_201_CREATED)
def transition_deal(payload: DealTransitionRequest, db: Session = Depends(get_db)) -> DealStatusHistoryResponse:
    try:
        entry = DealStatusService(db).transition(
            payload.status,
            comment=payload.comment,
            **_parse_ids(payload.match_id, payload.request_id),
        )
    except RailMatchException as exc:
        raise http_error(exc) from exc
    return DealStatusHistoryResponse.model_validate(entry)
