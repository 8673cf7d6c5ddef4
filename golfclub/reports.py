from datetime import date
from typing import Callable, List

from .models import Member, Tournament, MembershipStatus, TournamentStatus
from .store import MemberStore, TournamentStore


class ReportService:
    """Read-only member and tournament views. Nothing here writes."""

    def __init__(
        self,
        members: MemberStore = None,
        tournaments: TournamentStore = None,
        clock: Callable[[], date] = None
    ):
        self.members = members or MemberStore()
        self.tournaments = tournaments or TournamentStore()
        self._clock = clock or date.today

    def today(self) -> date:
        return self._clock()

    # ==================== Members ====================

    def search_members_by_name(self, name: str) -> List[Member]:
        return self.members.search_by_name(name)

    def search_members_by_phone(self, phone: str) -> List[Member]:
        return self.members.search_by_phone(phone)

    def members_by_status(self, status) -> List[Member]:
        return self.members.find_by_status(MembershipStatus(status).value)

    def active_members(self, on: date = None) -> List[Member]:
        """Members whose membership window covers ``on`` (default today)."""
        day = on or self.today()
        return [m for m in self.members.get_all() if m.is_current_on(day)]

    def members_with_tournaments_above(self, count: int) -> List[Member]:
        return self.members.find_by_tournaments_played_above(count)

    def members_with_winnings_above(self, amount: float) -> List[Member]:
        return self.members.find_by_winnings_above(amount)

    def members_joined_between(self, start: date, end: date) -> List[Member]:
        return self.members.find_by_start_date_between(start, end)

    def members_in_tournament(self, tournament_id: int) -> List[Member]:
        return self.members.find_by_tournament_id(tournament_id)

    def members_by_tournament_date(self, day: date) -> List[Member]:
        return self.members.find_by_tournament_date(day)

    def top_participants(self, limit: int = None) -> List[Member]:
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        ranked = self.members.find_top_participants()
        return ranked if limit is None else ranked[:limit]

    # ==================== Tournaments ====================

    def tournaments_by_location(self, location: str) -> List[Tournament]:
        return self.tournaments.search_by_location(location)

    def tournaments_by_status(self, status) -> List[Tournament]:
        return self.tournaments.find_by_status(TournamentStatus(status).value)

    def tournaments_between(self, start: date, end: date) -> List[Tournament]:
        return self.tournaments.find_by_start_date_between(start, end)

    def current_tournaments(self) -> List[Tournament]:
        return self.tournaments.find_current(self.today())

    def available_tournaments(self) -> List[Tournament]:
        """SCHEDULED tournaments with a free place."""
        scheduled = self.tournaments.find_by_status(TournamentStatus.SCHEDULED.value)
        return [t for t in scheduled if not t.is_full]

    def open_for_registration(self) -> List[Tournament]:
        today = self.today()
        return [t for t in self.available_tournaments() if t.is_registration_open(today)]

    def upcoming_tournaments(self) -> List[Tournament]:
        return self.tournaments.find_upcoming(self.today())

    def recently_completed_tournaments(self) -> List[Tournament]:
        return self.tournaments.find_recently_completed()

    def tournaments_with_prize_at_least(self, min_prize: float) -> List[Tournament]:
        return self.tournaments.find_by_minimum_prize(min_prize)

    def tournaments_with_fee_at_most(self, max_fee: float) -> List[Tournament]:
        return self.tournaments.find_by_maximum_entry_fee(max_fee)

    def tournaments_with_participants_at_least(self, count: int) -> List[Tournament]:
        return [t for t in self.tournaments.get_all() if t.participant_count >= count]
