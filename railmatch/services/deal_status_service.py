"""Deal lifecycle: derived current status and validated, append-only transitions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import select

from railmatch.core.exceptions import IllegalTransitionError, NotFoundError, ValidationError
from railmatch.models import DealStatus, DealStatusHistory, FreightRequest, Match
from railmatch.orchestration.state_machine import INITIAL_DEAL_STATUS, StateMachine, deal_state_machine
from railmatch.services.base_service import BaseService
from railmatch.utils.validators import sanitize_comment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DealTarget:
    """Exactly one of a match id or a request id."""

    match_id: int | None = None
    request_id: int | None = None

    @classmethod
    def of(cls, match_id: int | None = None, request_id: int | None = None) -> "DealTarget":
        if (match_id is None) == (request_id is None):
            raise ValidationError("Either matchId or requestId must be provided, but not both")
        return cls(match_id=match_id, request_id=request_id)

    @property
    def key(self) -> str:
        return f"match:{self.match_id}" if self.match_id is not None else f"request:{self.request_id}"


class _KeyedLocks:
    """One lock per entity key, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_transition_locks = _KeyedLocks()


def coerce_status(value: DealStatus | str) -> DealStatus:
    if isinstance(value, DealStatus):
        return value
    try:
        return DealStatus(str(value).strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown deal status: {value}") from exc


class DealStatusService(BaseService):
    """Reads and appends deal status history for matches and requests."""

    def __init__(self, db=None, state_machine: StateMachine = deal_state_machine) -> None:
        super().__init__(db)
        self.state_machine = state_machine

    def _filter(self, target: DealTarget):
        if target.match_id is not None:
            return DealStatusHistory.match_id == target.match_id
        return DealStatusHistory.request_id == target.request_id

    def _ensure_exists(self, target: DealTarget, lock_row: bool = False) -> None:
        model = Match if target.match_id is not None else FreightRequest
        entity_id = target.match_id if target.match_id is not None else target.request_id
        stmt = select(model.id).where(model.id == entity_id)
        if lock_row:
            # Row lock serializes writers across processes where the dialect supports it.
            stmt = stmt.with_for_update()
        if self.db.execute(stmt).scalar_one_or_none() is None:
            label = "Match" if target.match_id is not None else "Request"
            raise NotFoundError(f"{label} not found: {entity_id}")

    def resolve_target(self, match_id: int | None = None, request_id: int | None = None) -> DealTarget:
        """Validate the id pair and check the entity exists."""
        target = DealTarget.of(match_id=match_id, request_id=request_id)
        self._ensure_exists(target)
        return target

    def latest_entry(self, match_id: int | None = None, request_id: int | None = None) -> DealStatusHistory | None:
        target = DealTarget.of(match_id=match_id, request_id=request_id)
        stmt = (
            select(DealStatusHistory)
            .where(self._filter(target))
            .order_by(DealStatusHistory.created_at.desc(), DealStatusHistory.id.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()

    def current_status(self, match_id: int | None = None, request_id: int | None = None) -> DealStatus:
        """Status of the newest history row, PENDING when there is none."""
        latest = self.latest_entry(match_id=match_id, request_id=request_id)
        return INITIAL_DEAL_STATUS if latest is None else DealStatus(latest.status)

    def history(self, match_id: int | None = None, request_id: int | None = None) -> list[DealStatusHistory]:
        target = self.resolve_target(match_id=match_id, request_id=request_id)
        stmt = (
            select(DealStatusHistory)
            .where(self._filter(target))
            .order_by(DealStatusHistory.created_at.desc(), DealStatusHistory.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def transition(
        self,
        new_status: DealStatus | str,
        match_id: int | None = None,
        request_id: int | None = None,
        comment: str | None = None,
    ) -> DealStatusHistory:
        """Append ``new_status`` if the transition table allows it.

        Raises IllegalTransitionError without writing anything otherwise.
        """
        target = DealTarget.of(match_id=match_id, request_id=request_id)
        requested = coerce_status(new_status)

        with _transition_locks.hold(target.key):
            self._ensure_exists(target, lock_row=True)
            current = self.current_status(match_id=target.match_id, request_id=target.request_id)
            try:
                self.state_machine.assert_transition(current, requested)
            except IllegalTransitionError:
                self.rollback()
                logger.warning(
                    "deal_status.transition_rejected",
                    extra={
                        "event": "deal_status.transition_rejected",
                        "target": target.key,
                        "current": current.value,
                        "requested": requested.value,
                    },
                )
                raise

            entry = DealStatusHistory(
                match_id=target.match_id,
                request_id=target.request_id,
                status=requested,
                comment=sanitize_comment(comment),
            )
            self.db.add(entry)
            self.commit()

        logger.info(
            "deal_status.transitioned",
            extra={
                "event": "deal_status.transitioned",
                "target": target.key,
                "from_status": current.value,
                "to_status": requested.value,
                "history_id": entry.id,
            },
        )
        return entry
