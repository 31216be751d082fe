"""Seeker inbox and operator response views for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from railmatch.api.v1._errors import http_error
from railmatch.core.exceptions import RailMatchException
from railmatch.database.db import get_db
from railmatch.models import CompanyRole
from railmatch.schemas.matches import InboxItemResponse
from railmatch.services.match_service import InboxItem, MatchService

router = APIRouter(prefix="/inbox", tags=["inbox"])


def _item_response(item: InboxItem) -> InboxItemResponse:
    latest = item.latest_history
    return InboxItemResponse(
        match_id=item.match.id,
        offer_id=item.match.offer_id,
        request_id=item.match.request_id,
        score=round(item.match.score * 100),
        current_status=item.current_status,
        latest_comment=latest.comment if latest is not None else None,
        latest_status_at=latest.created_at if latest is not None else None,
        created_at=item.match.created_at,
    )


def _inbox(company_id: int, role: CompanyRole, db: Session) -> dict:
    try:
        items = MatchService(db).list_inbox(company_id, role)
    except RailMatchException as exc:
        raise http_error(exc) from exc
    return {
        "company_id": company_id,
        "role": role.value,
        "items": [_item_response(item).model_dump(mode="json") for item in items],
        "total": len(items),
    }


@router.get("/seeker/{company_id}")
def seeker_inbox(company_id: int = Path(ge=1), db: Session = Depends(get_db)) -> dict:
    return _inbox(company_id, CompanyRole.SEEKER, db)


@router.get("/operator/{company_id}")
def operator_inbox(company_id: int = Path(ge=1), db: Session = Depends(get_db)) -> dict:
    return _inbox(company_id, CompanyRole.OPERATOR, db)
