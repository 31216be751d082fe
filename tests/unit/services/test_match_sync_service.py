from __future__ import annotations

import json
import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from factories import create_company, create_offer, create_poor_offer, create_request, day
from railmatch.core.exceptions import NotFoundError, PermissionDeniedError
from railmatch.matching.config import MatchingConfig
from railmatch.models import CargoType, Match, WagonType
from railmatch.services.match_service import MatchService, decode_match_metadata
from railmatch.services.match_sync_service import MatchSyncService


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 12, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


def _seed(session):
    operator = create_company(session, "Operator", "7701234567")
    seeker = create_company(session, "Seeker", "6601987654", operator=False)
    best = create_offer(session, operator)
    good = create_offer(session, operator, wagon_type=WagonType.GONDOLA)
    poor = create_poor_offer(session, operator)
    archived = create_offer(session, operator, is_archived=True)
    request = create_request(session, seeker)
    return {
        "operator": operator,
        "seeker": seeker,
        "best": best,
        "good": good,
        "poor": poor,
        "archived": archived,
        "request": request,
    }


def _service(session, session_factory, clock=None):
    return MatchSyncService(
        db=session,
        config=MatchingConfig(),
        session_factory=session_factory,
        clock=clock or _Clock(),
    )


def _match_count(session) -> int:
    return session.execute(select(func.count(Match.id))).scalar_one()


def test_sync_request_filters_sorts_and_persists(session, session_factory):
    data = _seed(session)
    result = _service(session, session_factory).sync_request(data["request"].id)

    assert [candidate.offer.id for candidate in result.candidates] == [data["best"].id, data["good"].id]
    assert [candidate.score for candidate in result.candidates] == [100, 85]
    assert all(candidate.match_id is not None for candidate in result.candidates)
    assert _match_count(session) == 2

    stored = MatchService(session).get_match(result.candidates[1].match_id)
    assert stored.score == pytest.approx(0.85)
    blob = decode_match_metadata(stored.match_metadata)
    assert set(blob) == {"reasons", "metadata", "computedAt"}
    assert blob["metadata"]["wagonTypeMatch"] == 0.6


def test_sync_request_is_idempotent_except_timestamp(session, session_factory):
    data = _seed(session)
    service = _service(session, session_factory)

    first = service.sync_request(data["request"].id)
    first_rows = {m.id: (m.score, m.match_metadata, m.created_at) for m in MatchService(session).list_for_request(data["request"].id)}
    second = service.sync_request(data["request"].id)
    second_rows = {m.id: (m.score, m.match_metadata, m.created_at) for m in MatchService(session).list_for_request(data["request"].id)}

    assert [c.match_id for c in first.candidates] == [c.match_id for c in second.candidates]
    assert first_rows.keys() == second_rows.keys()
    assert _match_count(session) == 2
    for match_id, (score, metadata, created_at) in first_rows.items():
        new_score, new_metadata, new_created_at = second_rows[match_id]
        assert new_score == score
        assert new_created_at == created_at
        before, after = json.loads(metadata), json.loads(new_metadata)
        assert before.pop("computedAt") != after.pop("computedAt")
        assert before == after


def test_sync_request_ownership_and_missing(session, session_factory):
    data = _seed(session)
    service = _service(session, session_factory)

    with pytest.raises(PermissionDeniedError):
        service.sync_request(data["request"].id, company_id=data["operator"].id)
    with pytest.raises(NotFoundError):
        service.sync_request(999)

    result = service.sync_request(data["request"].id, company_id=data["seeker"].id)
    assert len(result.candidates) == 2


def test_threshold_comes_from_config(session, session_factory):
    data = _seed(session)
    service = MatchSyncService(
        db=session,
        config=MatchingConfig(min_score_threshold=0.9),
        session_factory=session_factory,
    )
    result = service.sync_request(data["request"].id)
    assert [candidate.score for candidate in result.candidates] == [100]


@pytest.mark.parametrize("workers", [1, 2])
def test_recompute_upserts_every_eligible_pair(session, session_factory, workers):
    data = _seed(session)
    create_request(session, data["seeker"], cargo_type=CargoType.GRAIN, wagon_type=WagonType.HOPPER)

    summary = _service(session, session_factory).recompute(max_workers=workers)

    assert summary.success
    assert summary.requests_processed == 2
    assert summary.pairs_scored == 6
    assert summary.matches_written == 6
    assert _match_count(session) == 6

    again = _service(session, session_factory).recompute(max_workers=workers)
    assert again.matches_written == 6
    assert _match_count(session) == 6


def test_recompute_limited_to_request_ids(session, session_factory):
    data = _seed(session)
    other = create_request(session, data["seeker"], loading_date=day("2025-01-10"), required_by_date=day("2025-01-20"))

    summary = _service(session, session_factory).recompute([other.id], max_workers=1)

    assert summary.requests_processed == 1
    assert MatchService(session).list_for_request(data["request"].id) == []
    assert len(MatchService(session).list_for_request(other.id)) == 3


def test_recompute_cancelled_before_start(session, session_factory):
    _seed(session)
    stop_event = threading.Event()
    stop_event.set()

    summary = _service(session, session_factory).recompute(stop_event=stop_event, max_workers=1)

    assert summary.cancelled
    assert not summary.success
    assert summary.requests_processed == 0
    assert summary.pairs_scored == 0
    assert _match_count(session) == 0


def test_recompute_continues_after_pair_failure(session, session_factory, monkeypatch):
    data = _seed(session)
    original = MatchService.upsert_match

    def flaky(self, offer_id, request_id, score, metadata):
        if offer_id == data["good"].id:
            raise OperationalError("INSERT INTO matches", {}, Exception("database is locked"))
        return original(self, offer_id, request_id, score, metadata)

    monkeypatch.setattr(MatchService, "upsert_match", flaky)
    summary = _service(session, session_factory).recompute(max_workers=1)

    assert not summary.success
    assert summary.pairs_scored == 3
    assert summary.matches_written == 2
    assert len(summary.errors) == 1
    error = summary.errors[0]
    assert (error.request_id, error.offer_id) == (data["request"].id, data["good"].id)
    assert error.error_type == "OperationalError"
    assert summary.to_dict()["errors"][0]["offer_id"] == data["good"].id


def test_recompute_continues_after_non_database_pair_failure(session, session_factory, monkeypatch):
    data = _seed(session)
    original = MatchService.get_match_for_pair

    def vanishing(self, offer_id, request_id):
        if offer_id == data["good"].id:
            raise NotFoundError("vanished")
        return original(self, offer_id, request_id)

    monkeypatch.setattr(MatchService, "get_match_for_pair", vanishing)
    summary = _service(session, session_factory).recompute(max_workers=1)

    assert not summary.success
    assert summary.pairs_scored == 3
    assert summary.matches_written == 2
    assert [(error.offer_id, error.error_type) for error in summary.errors] == [(data["good"].id, "NotFoundError")]
    assert summary.errors[0].message == "vanished"
