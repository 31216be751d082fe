from __future__ import annotations

import threading

import pytest
from sqlalchemy import func, select

from factories import create_company, create_offer, create_request
from railmatch.core.exceptions import IllegalTransitionError, NotFoundError, ValidationError
from railmatch.models import DealStatus, DealStatusHistory
from railmatch.services.deal_status_service import DealStatusService, _KeyedLocks, _transition_locks
from railmatch.services.match_service import MatchService


def _seed_match(session):
    operator = create_company(session, "Operator", "7701234567")
    seeker = create_company(session, "Seeker", "6601987654", operator=False)
    offer = create_offer(session, operator)
    request = create_request(session, seeker)
    match = MatchService(session).upsert_match(offer.id, request.id, 0.95, "{}")
    session.commit()
    return match, request


def _history_count(session) -> int:
    return session.execute(select(func.count(DealStatusHistory.id))).scalar_one()


def test_current_status_defaults_to_pending(session):
    match, request = _seed_match(session)
    service = DealStatusService(db=session)

    assert service.current_status(match_id=match.id) == DealStatus.PENDING
    assert service.current_status(request_id=request.id) == DealStatus.PENDING


def test_valid_chain_updates_derived_status(session):
    match, _ = _seed_match(session)
    service = DealStatusService(db=session)

    for status in (DealStatus.NEGOTIATING, DealStatus.ACCEPTED, DealStatus.COMPLETED):
        entry = service.transition(status, match_id=match.id, comment=f"to {status.value}")
        assert entry.status == status
        assert service.current_status(match_id=match.id) == status

    history = service.history(match_id=match.id)
    assert [row.status for row in history] == [DealStatus.COMPLETED, DealStatus.ACCEPTED, DealStatus.NEGOTIATING]


def test_illegal_transition_writes_nothing(session):
    match, _ = _seed_match(session)
    service = DealStatusService(db=session)

    with pytest.raises(IllegalTransitionError) as exc:
        service.transition(DealStatus.COMPLETED, match_id=match.id)
    assert exc.value.current == "PENDING"
    assert exc.value.requested == "COMPLETED"
    assert _history_count(session) == 0

    service.transition(DealStatus.REJECTED, match_id=match.id)
    with pytest.raises(IllegalTransitionError):
        service.transition(DealStatus.NEGOTIATING, match_id=match.id)
    assert _history_count(session) == 1
    assert service.current_status(match_id=match.id) == DealStatus.REJECTED


def test_request_and_match_histories_are_separate(session):
    match, request = _seed_match(session)
    service = DealStatusService(db=session)

    service.transition(DealStatus.NEGOTIATING, request_id=request.id)

    assert service.current_status(request_id=request.id) == DealStatus.NEGOTIATING
    assert service.current_status(match_id=match.id) == DealStatus.PENDING


def test_transition_requires_exactly_one_target(session):
    match, request = _seed_match(session)
    service = DealStatusService(db=session)

    with pytest.raises(ValidationError):
        service.transition(DealStatus.NEGOTIATING)
    with pytest.raises(ValidationError):
        service.transition(DealStatus.NEGOTIATING, match_id=match.id, request_id=request.id)


def test_transition_unknown_entity_and_status(session):
    _seed_match(session)
    service = DealStatusService(db=session)

    with pytest.raises(NotFoundError):
        service.transition(DealStatus.NEGOTIATING, match_id=999)
    with pytest.raises(NotFoundError):
        service.history(request_id=999)
    with pytest.raises(ValidationError):
        service.transition("SHIPPED", request_id=1)


def test_status_strings_are_coerced(session):
    match, _ = _seed_match(session)
    entry = DealStatusService(db=session).transition(" negotiating ", match_id=match.id, comment="   ")
    assert entry.status == DealStatus.NEGOTIATING
    assert entry.comment is None


def test_concurrent_transitions_from_same_state_allow_one_winner(session_factory):
    with session_factory() as setup:
        match, _ = _seed_match(setup)

    outcomes: list[str] = []
    barrier = threading.Barrier(2)

    def _attempt(target: DealStatus) -> None:
        with DealStatusService(db=session_factory()) as service:
            barrier.wait()
            try:
                service.transition(target, match_id=match.id)
                outcomes.append("ok")
            except IllegalTransitionError:
                outcomes.append("rejected")
            finally:
                service.db.close()

    threads = [
        threading.Thread(target=_attempt, args=(DealStatus.REJECTED,)),
        threading.Thread(target=_attempt, args=(DealStatus.REJECTED,)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["ok", "rejected"]
    with session_factory() as check:
        assert _history_count(check) == 1
    assert len(_transition_locks) == 0


def test_keyed_locks_drop_entries_after_last_holder():
    locks = _KeyedLocks()
    entered = threading.Event()
    release = threading.Event()

    def _holder() -> None:
        with locks.hold("match:1"):
            entered.set()
            release.wait(timeout=5)

    holder = threading.Thread(target=_holder)
    holder.start()
    assert entered.wait(timeout=5)
    with locks.hold("match:2"):
        assert len(locks) == 2
    assert len(locks) == 1

    release.set()
    holder.join()
    assert len(locks) == 0


def test_keyed_locks_released_when_body_raises():
    locks = _KeyedLocks()
    with pytest.raises(RuntimeError):
        with locks.hold("request:7"):
            raise RuntimeError("boom")
    assert len(locks) == 0
    with locks.hold("request:7"):
        assert len(locks) == 1
