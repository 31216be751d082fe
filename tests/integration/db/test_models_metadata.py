from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

import railmatch.models  # noqa: F401
from factories import create_company, create_offer, create_request
from railmatch.models import Base, DealStatus, DealStatusHistory, Match


def test_model_metadata_contains_target_tables():
    expected = {"companies", "offers", "requests", "matches", "deal_status_history"}
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_match_metadata_column_name():
    assert "metadata" in Base.metadata.tables["matches"].c


def test_duplicate_pair_is_rejected_by_store(session):
    operator = create_company(session, "Operator", "7701234567")
    seeker = create_company(session, "Seeker", "6601987654", operator=False)
    offer = create_offer(session, operator)
    request = create_request(session, seeker)

    session.add(Match(offer_id=offer.id, request_id=request.id, score=0.5))
    session.commit()
    session.add(Match(offer_id=offer.id, request_id=request.id, score=0.6))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_history_row_needs_exactly_one_target(session):
    session.add(DealStatusHistory(status=DealStatus.PENDING))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()
