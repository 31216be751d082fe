from __future__ import annotations

import pytest

from factories import create_company, create_offer, create_request
from railmatch.core.exceptions import NotFoundError, PermissionDeniedError
from railmatch.models import CompanyRole, DealStatus
from railmatch.services.deal_status_service import DealStatusService
from railmatch.services.match_service import MatchService, decode_match_metadata
from railmatch.services.offer_service import OfferService


def _seed(session):
    operator = create_company(session, "Operator", "7701234567")
    seeker = create_company(session, "Seeker", "6601987654", operator=False)
    offer = create_offer(session, operator)
    request = create_request(session, seeker)
    return operator, seeker, offer, request


def test_upsert_creates_then_overwrites_single_row(session):
    _, _, offer, request = _seed(session)
    service = MatchService(session)

    created = service.upsert_match(offer.id, request.id, 0.7, '{"v": 1}')
    session.commit()
    updated = service.upsert_match(offer.id, request.id, 0.9, '{"v": 2}')
    session.commit()

    assert updated.id == created.id
    assert updated.score == 0.9
    assert decode_match_metadata(updated.match_metadata) == {"v": 2}
    assert len(service.list_for_request(request.id)) == 1


def test_list_for_request_min_score(session):
    operator, _, offer, request = _seed(session)
    second = create_offer(session, operator)
    service = MatchService(session)
    service.upsert_match(offer.id, request.id, 0.4, "{}")
    service.upsert_match(second.id, request.id, 0.8, "{}")
    session.commit()

    assert [m.offer_id for m in service.list_for_request(request.id)] == [second.id, offer.id]
    assert [m.offer_id for m in service.list_for_request(request.id, min_score=0.5)] == [second.id]


def test_decode_match_metadata_tolerates_bad_blobs():
    assert decode_match_metadata(None) == {}
    assert decode_match_metadata("not json") == {}
    assert decode_match_metadata("[1, 2]") == {}


def test_inbox_views_carry_derived_status(session):
    operator, seeker, offer, request = _seed(session)
    match = MatchService(session).upsert_match(offer.id, request.id, 0.95, "{}")
    session.commit()
    DealStatusService(session).transition(DealStatus.NEGOTIATING, match_id=match.id, comment="Обсудим детали")

    seeker_items = MatchService(session).list_inbox(seeker.id, CompanyRole.SEEKER)
    operator_items = MatchService(session).list_inbox(operator.id, CompanyRole.OPERATOR)

    assert [item.match.id for item in seeker_items] == [match.id]
    assert [item.match.id for item in operator_items] == [match.id]
    assert seeker_items[0].current_status == DealStatus.NEGOTIATING
    assert seeker_items[0].latest_history.comment == "Обсудим детали"
    assert MatchService(session).list_inbox(seeker.id, CompanyRole.OPERATOR) == []


def test_inbox_unknown_company(session):
    with pytest.raises(NotFoundError):
        MatchService(session).list_inbox(404, CompanyRole.SEEKER)


def test_archive_and_activate_offer(session):
    operator, seeker, offer, _ = _seed(session)
    service = OfferService(session)

    assert service.archive_offer(offer.id, company_id=operator.id).is_archived is True
    assert service.list_eligible_offers() == []
    with pytest.raises(PermissionDeniedError):
        service.activate_offer(offer.id, company_id=seeker.id)
    assert service.activate_offer(offer.id).is_archived is False
    assert [o.id for o in service.list_eligible_offers()] == [offer.id]
    with pytest.raises(NotFoundError):
        service.archive_offer(999)
