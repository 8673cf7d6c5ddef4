import logging
from typing import List, Tuple

import redis

from .errors import (
    NotFound, ConflictRetry, Full, MemberInactive, RegistrationClosed,
    AlreadyRegistered, NotRegistered
)
from .events import EventType, registration_event, publish
from .member_manager import MemberManager
from .models import Member, Tournament, Registration, TournamentStatus
from .store import TournamentStore, VersionConflict, ConstraintViolation

logger = logging.getLogger(__name__)


class RegistrationCoordinator:
    """
    Owns the member <-> tournament relationship.

    Registrations live in their own table. Linking or unlinking also bumps the
    version of both the member and the tournament in the same commit, so two
    concurrent registrations against one tournament cannot both pass the
    capacity check.
    """

    def __init__(
        self,
        members: MemberManager = None,
        tournaments: TournamentStore = None,
        redis_client: redis.Redis = None
    ):
        self.members = members or MemberManager(redis_client=redis_client)
        self.tournaments = tournaments or TournamentStore()
        self.redis = redis_client

    def _load(self, tournament_id: int, member_id: int) -> Tuple[Tournament, Member]:
        tournament = self.tournaments.get(tournament_id)
        if tournament is None:
            raise NotFound('Tournament', tournament_id)
        member = self.members.require(member_id)
        return tournament, member

    def _commit(self, tournament: Tournament, member: Member):
        tournament_id, member_id = tournament.id, member.id
        self.tournaments.touch(tournament, member)
        try:
            self.tournaments.save_all(tournament, member)
        except VersionConflict as e:
            raise ConflictRetry('Tournament', tournament_id) from e
        except ConstraintViolation as e:
            # The unique (tournament, member) pair was inserted concurrently
            raise AlreadyRegistered(f"Member {member_id} is already registered "
                                    f"for tournament {tournament_id}") from e

    def register(self, tournament_id: int, member_id: int) -> Tournament:
        tournament, member = self._load(tournament_id, member_id)

        if tournament.is_full:
            raise Full(f"Tournament {tournament_id} has reached maximum participants "
                       f"({tournament.maximum_participants})")
        if not member.is_active:
            raise MemberInactive(f"Member {member_id} is not active ({member.status})")
        if tournament.status != TournamentStatus.SCHEDULED.value:
            raise RegistrationClosed(f"Tournament {tournament_id} is not open for registration "
                                     f"({tournament.status})")
        if tournament.is_member_registered(member.id):
            raise AlreadyRegistered(f"Member {member_id} is already registered "
                                    f"for tournament {tournament_id}")

        registration = Registration(tournament=tournament, member=member)
        self.tournaments.stage(registration)
        self._commit(tournament, member)

        logger.info(f"Registered member {member_id} for tournament {tournament_id} "
                    f"({tournament.participant_count}/{tournament.maximum_participants})")
        publish(self.redis, registration_event(EventType.MEMBER_REGISTERED, tournament_id, member_id))
        return tournament

    def withdraw(self, tournament_id: int, member_id: int) -> Tournament:
        """Remove a registration. Permitted whatever the tournament status."""
        tournament, member = self._load(tournament_id, member_id)

        registration = next(
            (r for r in tournament.registrations if r.member_id == member.id), None
        )
        if registration is None:
            raise NotRegistered(f"Member {member_id} is not registered "
                                f"for tournament {tournament_id}")

        self.tournaments.discard(registration)
        self._commit(tournament, member)

        logger.info(f"Withdrew member {member_id} from tournament {tournament_id}")
        publish(self.redis, registration_event(EventType.MEMBER_WITHDRAWN, tournament_id, member_id))
        return tournament

    def propagate_completion(self, tournament: Tournament) -> List[int]:
        """
        Stage the completion fan-out: every registered member plays one more
        tournament. Winnings are not touched. The caller commits.
        """
        member_ids = [r.member_id for r in tournament.registrations]
        for member_id in member_ids:
            self.members.increment_tournaments_played(member_id)
        return member_ids

    def members_of(self, tournament_id: int) -> List[Member]:
        tournament = self.tournaments.get(tournament_id)
        if tournament is None:
            raise NotFound('Tournament', tournament_id)
        return sorted(tournament.members, key=lambda m: m.id)
