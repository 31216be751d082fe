"""Canonical state transition helpers for deal lifecycle entities."""

from __future__ import annotations

from collections.abc import Mapping

from railmatch.core.exceptions import IllegalTransitionError
from railmatch.models.enums import DealStatus

DEAL_STATUS_TRANSITIONS: dict[DealStatus, frozenset[DealStatus]] = {
    DealStatus.PENDING: frozenset({DealStatus.NEGOTIATING, DealStatus.ACCEPTED, DealStatus.REJECTED}),
    DealStatus.NEGOTIATING: frozenset(
        {DealStatus.ACCEPTED, DealStatus.REJECTED, DealStatus.COMPLETED, DealStatus.CANCELLED}
    ),
    DealStatus.ACCEPTED: frozenset({DealStatus.COMPLETED, DealStatus.CANCELLED}),
    DealStatus.REJECTED: frozenset(),
    DealStatus.COMPLETED: frozenset(),
    DealStatus.CANCELLED: frozenset(),
}

INITIAL_DEAL_STATUS = DealStatus.PENDING


class StateMachine:
    """Transition table lookups with explicit rejection of unknown moves."""

    def __init__(self, transitions: Mapping[DealStatus, frozenset[DealStatus]]) -> None:
        missing = set(DealStatus) - set(transitions)
        if missing:
            raise ValueError(f"Transition table missing states: {sorted(s.value for s in missing)}")
        self._transitions = transitions

    def allowed(self, current: DealStatus) -> frozenset[DealStatus]:
        return self._transitions[current]

    def is_terminal(self, status: DealStatus) -> bool:
        return not self._transitions[status]

    def can_transition(self, current: DealStatus, target: DealStatus) -> bool:
        return target in self._transitions[current]

    def assert_transition(self, current: DealStatus, target: DealStatus) -> None:
        if not self.can_transition(current=current, target=target):
            raise IllegalTransitionError(current=current.value, requested=target.value)


deal_state_machine = StateMachine(DEAL_STATUS_TRANSITIONS)
