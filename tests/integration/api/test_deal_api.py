from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from factories import create_company, create_offer, create_request
from railmatch.api.v1 import deals, inbox
from railmatch.database.db import get_db
from railmatch.main import create_app
from railmatch.schemas.deals import DealTransitionRequest
from railmatch.services.match_service import MatchService


def _seed_match(session):
    operator = create_company(session, "Operator", "7701234567")
    seeker = create_company(session, "Seeker", "6601987654", operator=False)
    offer = create_offer(session, operator)
    request = create_request(session, seeker)
    match = MatchService(session).upsert_match(offer.id, request.id, 0.95, "{}")
    session.commit()
    return operator, seeker, match, request


def test_status_defaults_to_pending(session):
    _, _, match, _ = _seed_match(session)
    response = deals.get_deal_status(match_id=str(match.id), request_id=None, db=session)

    assert response.current_status.value == "PENDING"
    assert [status.value for status in response.allowed_transitions] == ["ACCEPTED", "NEGOTIATING", "REJECTED"]
    assert response.is_terminal is False


def test_status_requires_exactly_one_id(session):
    _, _, match, request = _seed_match(session)
    for match_id, request_id in ((None, None), (str(match.id), str(request.id))):
        with pytest.raises(HTTPException) as exc:
            deals.get_deal_status(match_id=match_id, request_id=request_id, db=session)
        assert exc.value.status_code == 400


def test_status_unknown_entity(session):
    with pytest.raises(HTTPException) as exc:
        deals.get_deal_history(match_id="77", request_id=None, db=session)
    assert exc.value.status_code == 404


def test_transition_then_history(session):
    _, _, match, _ = _seed_match(session)

    entry = deals.transition_deal(
        DealTransitionRequest(match_id=match.id, status="NEGOTIATING", comment="Готовы обсудить"),
        db=session,
    )
    assert entry.status.value == "NEGOTIATING"

    history = deals.get_deal_history(match_id=str(match.id), request_id=None, db=session)
    assert [row.comment for row in history] == ["Готовы обсудить"]


def test_illegal_transition_is_conflict(session):
    _, _, match, _ = _seed_match(session)
    with pytest.raises(HTTPException) as exc:
        deals.transition_deal(DealTransitionRequest(match_id=match.id, status="COMPLETED"), db=session)
    assert exc.value.status_code == 409
    assert "PENDING" in exc.value.detail and "COMPLETED" in exc.value.detail


def test_transition_unknown_status_is_bad_request(session):
    _, _, match, _ = _seed_match(session)
    with pytest.raises(HTTPException) as exc:
        deals.transition_deal(DealTransitionRequest(match_id=match.id, status="SHIPPED"), db=session)
    assert exc.value.status_code == 400


def test_inbox_endpoints(session):
    operator, seeker, match, _ = _seed_match(session)

    seeker_view = inbox.seeker_inbox(company_id=seeker.id, db=session)
    operator_view = inbox.operator_inbox(company_id=operator.id, db=session)

    assert seeker_view["total"] == 1
    assert seeker_view["items"][0]["score"] == 95
    assert seeker_view["items"][0]["current_status"] == "PENDING"
    assert operator_view["items"][0]["match_id"] == match.id

    with pytest.raises(HTTPException) as exc:
        inbox.seeker_inbox(company_id=999, db=session)
    assert exc.value.status_code == 404


def test_http_round_trip_through_app(session):
    _, seeker, match, request = _seed_match(session)
    app = create_app()
    app.dependency_overrides[get_db] = lambda: session
    client = TestClient(app)

    response = client.get("/api/v1/match", params={"requestId": request.id}, headers={"X-Company-Id": str(seeker.id)})
    assert response.status_code == 200
    assert response.json()["count"] == 1

    response = client.post("/api/v1/deals/transition", json={"match_id": match.id, "status": "ACCEPTED"})
    assert response.status_code == 201

    response = client.post("/api/v1/deals/transition", json={"match_id": match.id, "status": "NEGOTIATING"})
    assert response.status_code == 409

    response = client.get("/api/v1/deals/status", params={"matchId": match.id})
    assert response.json()["current_status"] == "ACCEPTED"
