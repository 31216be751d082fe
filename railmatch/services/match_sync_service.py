"""Score requests against eligible offers and keep Match rows in sync."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from railmatch.core.config import get_config
from railmatch.database.db import get_session_factory
from railmatch.matching.config import MatchingConfig, get_matching_config
from railmatch.matching.engine import MatchScore, score_match
from railmatch.models import FreightRequest, Offer
from railmatch.models.base import utcnow
from railmatch.services.base_service import BaseService
from railmatch.services.match_service import MatchService
from railmatch.services.offer_service import OfferService
from railmatch.services.request_service import RequestService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass
class ScoredCandidate:
    offer: Offer
    result: MatchScore
    match_id: int | None = None

    @property
    def score(self) -> int:
        return self.result.score


@dataclass
class SyncResult:
    request: FreightRequest
    candidates: list[ScoredCandidate]
    computed_at: datetime


@dataclass
class PairError:
    request_id: int
    offer_id: int
    error_type: str
    message: str


@dataclass
class RecomputeSummary:
    requests_processed: int = 0
    pairs_scored: int = 0
    matches_written: int = 0
    errors: list[PairError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.errors and not self.cancelled

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests_processed": self.requests_processed,
            "pairs_scored": self.pairs_scored,
            "matches_written": self.matches_written,
            "errors": [error.__dict__ for error in self.errors],
            "cancelled": self.cancelled,
        }


@dataclass
class _RequestOutcome:
    processed: bool = False
    pairs_scored: int = 0
    matches_written: int = 0
    errors: list[PairError] = field(default_factory=list)


class MatchSyncService(BaseService):
    """Synchronizes Match rows with current offers and requests.

    Re-running on unchanged inputs rewrites identical scores and reasons; only
    ``computedAt`` in the stored metadata moves.
    """

    def __init__(
        self,
        db: Session | None = None,
        config: MatchingConfig | None = None,
        session_factory: sessionmaker | None = None,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__(db)
        self.config = config or get_matching_config()
        self.session_factory = session_factory or get_session_factory()
        self.clock = clock

    def score_candidates(self, request: FreightRequest, offers: Iterable[Offer]) -> list[ScoredCandidate]:
        """Score, drop candidates under the threshold, best first (stable on ties)."""
        scored = [ScoredCandidate(offer=offer, result=score_match(offer, request, self.config)) for offer in offers]
        kept = [candidate for candidate in scored if candidate.score >= self.config.min_score_percent]
        return sorted(kept, key=lambda candidate: candidate.score, reverse=True)

    def sync_request(self, request_id: int, company_id: int | None = None) -> SyncResult:
        """Score one request against every eligible offer and upsert the survivors."""
        request = RequestService(self.db).get_owned_request(request_id, company_id)
        offers = OfferService(self.db).list_eligible_offers()
        candidates = self.score_candidates(request, offers)

        computed_at = self.clock()
        matches = MatchService(self.db)
        for candidate in candidates:
            match = matches.upsert_match(
                offer_id=candidate.offer.id,
                request_id=request.id,
                score=candidate.result.fraction,
                metadata=candidate.result.to_metadata_json(computed_at),
            )
            candidate.match_id = match.id
        self.commit()

        logger.info(
            "match_sync.request_synced",
            extra={
                "event": "match_sync.request_synced",
                "request_id": request.id,
                "offers_scored": len(offers),
                "matches_written": len(candidates),
            },
        )
        return SyncResult(request=request, candidates=candidates, computed_at=computed_at)

    def _recompute_request(
        self,
        request: FreightRequest,
        offers: Sequence[Offer],
        stop_event: threading.Event,
    ) -> _RequestOutcome:
        outcome = _RequestOutcome()
        if stop_event.is_set():
            return outcome

        session = self.session_factory()
        try:
            matches = MatchService(session)
            for offer in offers:
                if stop_event.is_set():
                    break
                try:
                    result = score_match(offer, request, self.config)
                    outcome.pairs_scored += 1
                    match = matches.upsert_match(
                        offer_id=offer.id,
                        request_id=request.id,
                        score=result.fraction,
                        metadata=result.to_metadata_json(self.clock()),
                    )
                    session.commit()
                except Exception as exc:
                    session.rollback()
                    outcome.errors.append(
                        PairError(
                            request_id=request.id,
                            offer_id=offer.id,
                            error_type=exc.__class__.__name__,
                            message=str(exc),
                        )
                    )
                    logger.error(
                        "match_sync.pair_failed",
                        extra={
                            "event": "match_sync.pair_failed",
                            "request_id": request.id,
                            "offer_id": offer.id,
                            "error": str(exc),
                        },
                    )
                    continue
                outcome.matches_written += 1
                if result.score >= self.config.min_score_percent:
                    logger.debug(
                        "match_sync.match_written",
                        extra={"event": "match_sync.match_written", "match_id": match.id, "score": result.score},
                    )
            else:
                outcome.processed = True
        finally:
            session.close()
        return outcome

    def recompute(
        self,
        request_ids: Iterable[int] | None = None,
        stop_event: threading.Event | None = None,
        max_workers: int | None = None,
    ) -> RecomputeSummary:
        """Rescore every (request, eligible offer) pair and upsert all of them.

        Requests fan out over a bounded worker pool, one session per worker.
        A failing pair is recorded and skipped. Setting ``stop_event`` stops
        the run between pairs; every pair already written stays valid.
        """
        stop_event = stop_event or threading.Event()
        max_workers = max_workers or get_config().SYNC_MAX_WORKERS

        # Closing the snapshot session detaches the rows; workers only read loaded columns.
        with self.session_factory() as snapshot:
            requests = RequestService(snapshot).list_requests(request_ids)
            offers = OfferService(snapshot).list_eligible_offers()

        logger.info(
            "match_sync.recompute_started",
            extra={
                "event": "match_sync.recompute_started",
                "requests": len(requests),
                "offers": len(offers),
                "max_workers": max_workers,
            },
        )

        summary = RecomputeSummary()
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="match-sync") as executor:
            futures = {
                executor.submit(self._recompute_request, request, offers, stop_event): request.id
                for request in requests
            }
            for future in as_completed(futures):
                outcome = future.result()
                summary.pairs_scored += outcome.pairs_scored
                summary.matches_written += outcome.matches_written
                summary.errors.extend(outcome.errors)
                if outcome.processed:
                    summary.requests_processed += 1

        summary.cancelled = stop_event.is_set()
        summary.errors.sort(key=lambda error: (error.request_id, error.offer_id))
        logger.info(
            "match_sync.recompute_finished",
            extra={"event": "match_sync.recompute_finished", **summary.to_dict(), "errors": len(summary.errors)},
        )
        return summary
