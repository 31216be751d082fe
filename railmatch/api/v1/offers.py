"""Offer archive/activate endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Path
from sqlalchemy.orm import Session

from railmatch.api.v1._errors import http_error
from railmatch.core.exceptions import RailMatchException
from railmatch.database.db import get_db
from railmatch.schemas.matches import OfferSummary
from railmatch.services.offer_service import OfferService
from railmatch.utils.validators import parse_optional_entity_id

router = APIRouter(prefix="/offers", tags=["offers"])


@router.post("/{offer_id}/archive")
def archive_offer(
    offer_id: int = Path(ge=1),
    company_id: str | None = Header(default=None, alias="X-Company-Id"),
    db: Session = Depends(get_db),
) -> dict:
    try:
        offer = OfferService(db).archive_offer(offer_id, parse_optional_entity_id(company_id, "X-Company-Id"))
    except RailMatchException as exc:
        raise http_error(exc) from exc
    return {"offer": OfferSummary.model_validate(offer).model_dump(mode="json"), "is_archived": offer.is_archived}


@router.post("/{offer_id}/activate")
def activate_offer(
    offer_id: int = Path(ge=1),
    company_id: str | None = Header(default=None, alias="X-Company-Id"),
    db: Session = Depends(get_db),
) -> dict:
    try:
        offer = OfferService(db).activate_offer(offer_id, parse_optional_entity_id(company_id, "X-Company-Id"))
    except RailMatchException as exc:
        raise http_error(exc) from exc
    return {"offer": OfferSummary.model_validate(offer).model_dump(mode="json"), "is_archived": offer.is_archived}
