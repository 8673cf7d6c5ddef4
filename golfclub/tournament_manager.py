import logging
from datetime import date
from typing import Callable, List, Optional

import redis

from .errors import (
    NotFound, ConflictRetry, InvalidWindow, InvalidCapacity, PastStart, TransitionError
)
from .events import (
    Event, EventType, state_changed_event, tournament_completed_event, publish
)
from .models import Tournament, TournamentStatus
from .registration import RegistrationCoordinator
from .state_machine import TournamentStateMachine, guard_context_for
from .store import TournamentStore, VersionConflict

logger = logging.getLogger(__name__)

TOURNAMENT_FIELDS = (
    'start_date', 'end_date', 'location', 'entry_fee', 'cash_prize_amount',
    'minimum_participants', 'maximum_participants',
)

DEFAULT_MINIMUM_PARTICIPANTS = 2
DEFAULT_MAXIMUM_PARTICIPANTS = 100


class TournamentManager:
    """
    Manages tournament lifecycle:
    - Create/update/delete tournament definitions (date window, capacity)
    - Status transitions through the state machine
    - Stat propagation on completion, via the registration coordinator
    - Revenue figures
    """

    def __init__(
        self,
        store: TournamentStore = None,
        registrations: RegistrationCoordinator = None,
        redis_client: redis.Redis = None,
        clock: Callable[[], date] = None
    ):
        self.store = store or TournamentStore()
        self.registrations = registrations or RegistrationCoordinator(
            tournaments=self.store, redis_client=redis_client
        )
        self.redis = redis_client
        self._clock = clock or date.today

    def today(self) -> date:
        return self._clock()

    def get(self, tournament_id: int) -> Optional[Tournament]:
        return self.store.get(tournament_id)

    def require(self, tournament_id: int) -> Tournament:
        tournament = self.store.get(tournament_id)
        if tournament is None:
            raise NotFound('Tournament', tournament_id)
        return tournament

    def list_tournaments(self) -> List[Tournament]:
        return self.store.get_all()

    def _validate(self, values: dict, registered: int = 0):
        start, end = values['start_date'], values['end_date']
        minimum = values['minimum_participants']
        maximum = values['maximum_participants']

        if end < start:
            raise InvalidWindow("End date cannot be before start date")
        if minimum > maximum:
            raise InvalidCapacity("Minimum participants cannot be greater than maximum")
        if start < self.today():
            raise PastStart("Tournament cannot start in the past")
        if maximum < registered:
            raise InvalidCapacity(f"Maximum participants cannot be below the "
                                  f"{registered} members already registered")

    def _commit(self, tournament_id: Optional[int], tournament: Tournament):
        try:
            self.store.save(tournament)
        except VersionConflict as e:
            raise ConflictRetry('Tournament', tournament_id) from e

    def create(self, data: dict) -> Tournament:
        values = {
            'minimum_participants': DEFAULT_MINIMUM_PARTICIPANTS,
            'maximum_participants': DEFAULT_MAXIMUM_PARTICIPANTS,
            'cash_prize_amount': 0.0,
        }
        values.update({k: v for k, v in data.items() if k in TOURNAMENT_FIELDS and v is not None})
        self._validate(values)

        tournament = Tournament(status=TournamentStatus.SCHEDULED.value, **values)
        self._commit(None, tournament)

        logger.info(f"Created tournament {tournament.id} at {tournament.location} "
                    f"({tournament.start_date} - {tournament.end_date})")
        publish(self.redis, Event(type=EventType.TOURNAMENT_CREATED,
                                  entity='tournament', entity_id=tournament.id))
        return tournament

    def update(self, tournament_id: int, data: dict, expected_version: int = None) -> Tournament:
        """Overwrite the definition fields. Status and registrations are kept."""
        tournament = self.require(tournament_id)
        if expected_version is not None and tournament.version != expected_version:
            raise ConflictRetry('Tournament', tournament_id,
                                f"Tournament {tournament_id} is at version {tournament.version}, "
                                f"not {expected_version}")

        values = {}
        for field in TOURNAMENT_FIELDS:
            value = data.get(field)
            values[field] = getattr(tournament, field) if value is None else value
        self._validate(values, registered=tournament.participant_count)

        for field, value in values.items():
            setattr(tournament, field, value)
        self._commit(tournament_id, tournament)

        logger.info(f"Updated tournament {tournament_id}")
        return tournament

    def delete(self, tournament_id: int):
        try:
            self.store.delete(tournament_id)
        except VersionConflict as e:
            raise ConflictRetry('Tournament', tournament_id) from e
        logger.info(f"Deleted tournament {tournament_id}")

    def set_status(self, tournament_id: int, status) -> Optional[Tournament]:
        """
        Move a tournament to ``status``.

        COMPLETED is terminal, and IN_PROGRESS requires the minimum number of
        registered members. Completing a tournament increments the play count
        of every registered member in the same commit. Unknown ids are ignored.
        """
        target = TournamentStatus(status)
        tournament = self.store.get(tournament_id)
        if tournament is None:
            return None

        sm = TournamentStateMachine.from_state_string(tournament.status)
        old_state = sm.state.value
        try:
            sm.transition(target, guard_context_for(tournament))
        except TransitionError as e:
            logger.warning(f"Rejected status change for tournament {tournament_id}: {e}")
            raise

        member_ids = []
        # Loading members must not flush the status change outside the commit
        with self.store.no_autoflush:
            tournament.status = sm.state.value
            if target == TournamentStatus.COMPLETED:
                member_ids = self.registrations.propagate_completion(tournament)
        self._commit(tournament_id, tournament)

        logger.info(f"Tournament {tournament_id} status {old_state} -> {target.value}")
        publish(self.redis, state_changed_event(tournament_id, old_state, target.value))
        if target == TournamentStatus.COMPLETED:
            logger.info(f"Tournament {tournament_id} completed, "
                        f"updated stats for {len(member_ids)} members")
            publish(self.redis, tournament_completed_event(tournament_id, member_ids))
        return tournament

    def revenue(self, tournament_id: int) -> float:
        tournament = self.store.get(tournament_id)
        if tournament is None:
            return 0.0
        return tournament.calculate_revenue()

    def total_revenue(self) -> float:
        completed = self.store.find_by_status(TournamentStatus.COMPLETED.value)
        return sum((t.calculate_revenue() for t in completed), 0.0)
