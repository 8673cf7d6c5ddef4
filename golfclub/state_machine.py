from typing import Callable, Dict, List
from dataclasses import dataclass

from .errors import TransitionError, TerminalState, InsufficientParticipants
from .models import TournamentStatus


@dataclass
class Guard:
    check: Callable[[dict], bool]
    error: type
    reason: str


def min_participants_guard(context: dict) -> bool:
    return context.get("participant_count", 0) >= context.get("minimum_participants", 0)


class TournamentStateMachine:
    """
    Tournament status transitions.

    COMPLETED is terminal. Every other status may move to any status, subject
    to the per-target guards below (IN_PROGRESS needs the minimum field).
    """
    TERMINAL_STATES = {TournamentStatus.COMPLETED}

    GUARDS: Dict[TournamentStatus, List[Guard]] = {
        TournamentStatus.IN_PROGRESS: [
            Guard(min_participants_guard, InsufficientParticipants,
                  "Cannot start tournament with insufficient participants"),
        ],
    }

    def __init__(self, initial_state: TournamentStatus = TournamentStatus.SCHEDULED):
        self._state = initial_state
        self._history: List[tuple] = []

    @property
    def state(self) -> TournamentStatus:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in self.TERMINAL_STATES

    def can_transition(self, target: TournamentStatus, guard_context: dict = None) -> bool:
        try:
            self._check(target, guard_context or {})
        except TransitionError:
            return False
        return True

    def _check(self, target: TournamentStatus, guard_context: dict):
        if self.is_terminal:
            raise TerminalState(
                self._state.value,
                target.value,
                f"Cannot change status of {self._state.value.lower()} tournament"
            )
        for guard in self.GUARDS.get(target, []):
            if not guard.check(guard_context):
                raise guard.error(self._state.value, target.value, guard.reason)

    def transition(self, target: TournamentStatus, guard_context: dict = None) -> TournamentStatus:
        self._check(target, guard_context or {})
        old_state = self._state
        self._state = target
        self._history.append((old_state, target))
        return self._state

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    @classmethod
    def from_state_string(cls, state_str: str) -> "TournamentStateMachine":
        return cls(initial_state=parse_status(state_str))


def parse_status(state_str: str) -> TournamentStatus:
    """Parse a status name, case-insensitively. Raises ValueError if unknown."""
    return TournamentStatus(str(state_str).upper())


def guard_context_for(tournament) -> dict:
    return {
        "participant_count": tournament.participant_count,
        "minimum_participants": tournament.minimum_participants,
    }
