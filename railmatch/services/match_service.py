"""Match persistence: keyed upserts and inbox views with derived deal status."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import selectinload

from railmatch.core.exceptions import DatabaseError, NotFoundError
from railmatch.models import Company, CompanyRole, DealStatus, DealStatusHistory, FreightRequest, Match, Offer
from railmatch.models.base import utcnow
from railmatch.services.base_service import BaseService
from railmatch.services.deal_status_service import DealStatusService

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


@dataclass
class InboxItem:
    match: Match
    current_status: DealStatus
    latest_history: DealStatusHistory | None


def decode_match_metadata(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("match.metadata_decode_failed", extra={"event": "match.metadata_decode_failed"})
        return {}
    return data if isinstance(data, dict) else {}


class MatchService(BaseService):
    """Service for Match rows keyed by (offer_id, request_id)."""

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect]
        except KeyError as exc:
            raise DatabaseError(f"Upsert is not supported for dialect: {dialect}") from exc

    def upsert_match(self, offer_id: int, request_id: int, score: float, metadata: str) -> Match:
        """Create the pair's Match or overwrite its score and metadata.

        ``created_at`` and any deal status history stay untouched. The caller
        owns the transaction.
        """
        now = utcnow()
        insert = self._insert()
        stmt = insert(Match.__table__).values(
            offer_id=offer_id,
            request_id=request_id,
            score=score,
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["offer_id", "request_id"],
            set_={
                "score": stmt.excluded["score"],
                "metadata": stmt.excluded["metadata"],
                "updated_at": stmt.excluded["updated_at"],
            },
        )
        self.db.execute(stmt)
        return self.get_match_for_pair(offer_id, request_id)

    def get_match_for_pair(self, offer_id: int, request_id: int) -> Match:
        stmt = (
            select(Match)
            .where(Match.offer_id == offer_id, Match.request_id == request_id)
            .execution_options(populate_existing=True)
        )
        match = self.db.execute(stmt).scalar_one_or_none()
        if match is None:
            raise NotFoundError(f"Match not found for offer {offer_id} and request {request_id}")
        return match

    def get_match(self, match_id: int) -> Match:
        match = self.db.get(Match, match_id)
        if match is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return match

    def list_for_request(self, request_id: int, min_score: float | None = None) -> list[Match]:
        stmt = select(Match).where(Match.request_id == request_id)
        if min_score is not None:
            stmt = stmt.where(Match.score >= min_score)
        stmt = stmt.order_by(Match.score.desc(), Match.id)
        return list(self.db.execute(stmt).scalars().all())

    def list_inbox(self, company_id: int, role: CompanyRole) -> list[InboxItem]:
        """Matches on a seeker's requests or an operator's offers, newest first."""
        if self.db.get(Company, company_id) is None:
            raise NotFoundError(f"Company not found: {company_id}")
        stmt = select(Match).options(selectinload(Match.offer), selectinload(Match.request))
        if role == CompanyRole.SEEKER:
            stmt = stmt.join(FreightRequest, Match.request_id == FreightRequest.id).where(
                FreightRequest.company_id == company_id
            )
        else:
            stmt = stmt.join(Offer, Match.offer_id == Offer.id).where(Offer.company_id == company_id)
        stmt = stmt.order_by(Match.created_at.desc(), Match.id.desc())

        statuses = DealStatusService(self.db)
        items = []
        for match in self.db.execute(stmt).scalars().all():
            latest = statuses.latest_entry(match_id=match.id)
            items.append(
                InboxItem(
                    match=match,
                    current_status=DealStatus.PENDING if latest is None else DealStatus(latest.status),
                    latest_history=latest,
                )
            )
        return items
