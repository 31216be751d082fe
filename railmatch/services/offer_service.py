"""Offer lookups and archive/activate toggles used by matching."""

from __future__ import annotations

import logging

from sqlalchemy import select

from railmatch.core.exceptions import NotFoundError, PermissionDeniedError
from railmatch.models import Offer
from railmatch.services.base_service import BaseService

logger = logging.getLogger(__name__)


class OfferService(BaseService):
    """Service for reading offers and toggling their archived flag."""

    def get_offer(self, offer_id: int) -> Offer:
        offer = self.db.get(Offer, offer_id)
        if offer is None:
            raise NotFoundError(f"Offer not found: {offer_id}")
        return offer

    def list_eligible_offers(self) -> list[Offer]:
        """Non-archived offers in stable id order."""
        stmt = select(Offer).where(Offer.is_archived.is_(False)).order_by(Offer.id)
        return list(self.db.execute(stmt).scalars().all())

    def _set_archived(self, offer_id: int, archived: bool, company_id: int | None) -> Offer:
        offer = self.get_offer(offer_id)
        if company_id is not None and offer.company_id != company_id:
            raise PermissionDeniedError("Offer does not belong to your company")
        offer.is_archived = archived
        self.commit()
        logger.info(
            "offer.archived" if archived else "offer.activated",
            extra={"event": "offer.archived" if archived else "offer.activated", "offer_id": offer_id},
        )
        return offer

    def archive_offer(self, offer_id: int, company_id: int | None = None) -> Offer:
        return self._set_archived(offer_id, True, company_id)

    def activate_offer(self, offer_id: int, company_id: int | None = None) -> Offer:
        return self._set_archived(offer_id, False, company_id)
