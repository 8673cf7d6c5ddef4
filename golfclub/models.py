import calendar
from datetime import date, datetime
from enum import Enum

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class MembershipStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    SUSPENDED = "SUSPENDED"
    PENDING = "PENDING"


class TournamentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


def add_months(start: date, months: int) -> date:
    """Calendar-month addition, clamped to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class Registration(db.Model):
    __tablename__ = 'tournament_members'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id'), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='registrations')
    member = db.relationship('Member', back_populates='registrations')

    __table_args__ = (
        db.UniqueConstraint('tournament_id', 'member_id', name='unique_member_per_tournament'),
    )


class Member(db.Model):
    __tablename__ = 'members'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(12), unique=True, nullable=True, index=True)
    start_date = db.Column(db.Date, nullable=False)
    duration = db.Column(db.Integer, nullable=False)  # months
    status = db.Column(db.String(20), nullable=False, default=MembershipStatus.ACTIVE.value)
    total_tournaments_played = db.Column(db.Integer, nullable=False, default=0)
    total_winnings = db.Column(db.Float, nullable=False, default=0.0)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    registrations = db.relationship('Registration', back_populates='member',
                                    cascade='all, delete-orphan')

    __mapper_args__ = {'version_id_col': version}

    @property
    def tournaments(self):
        return [r.tournament for r in self.registrations]

    @property
    def membership_end(self) -> date:
        return add_months(self.start_date, self.duration)

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE.value

    def is_membership_expired(self, today: date) -> bool:
        return today > self.membership_end

    def is_current_on(self, day: date) -> bool:
        """Whether the membership window covers ``day`` (ignores status)."""
        return self.start_date <= day < self.membership_end

    def increment_tournaments_played(self):
        self.total_tournaments_played = (self.total_tournaments_played or 0) + 1

    def add_winnings(self, amount: float):
        self.total_winnings = (self.total_winnings or 0.0) + amount

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'email': self.email,
            'phone': self.phone,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'duration': self.duration,
            'status': self.status,
            'total_tournaments_played': self.total_tournaments_played,
            'total_winnings': self.total_winnings,
            'tournament_ids': [r.tournament_id for r in self.registrations],
            'version': self.version,
        }


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    location = db.Column(db.String(200), nullable=False)
    entry_fee = db.Column(db.Float, nullable=False)
    cash_prize_amount = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(20), nullable=False, default=TournamentStatus.SCHEDULED.value)
    minimum_participants = db.Column(db.Integer, nullable=False, default=2)
    maximum_participants = db.Column(db.Integer, nullable=False, default=100)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    registrations = db.relationship('Registration', back_populates='tournament',
                                    cascade='all, delete-orphan')

    __mapper_args__ = {'version_id_col': version}

    @property
    def members(self):
        return [r.member for r in self.registrations]

    @property
    def participant_count(self) -> int:
        return len(self.registrations)

    @property
    def is_full(self) -> bool:
        return self.participant_count >= self.maximum_participants

    def is_registration_open(self, today: date) -> bool:
        return (self.status == TournamentStatus.SCHEDULED.value
                and not self.is_full
                and today < self.start_date)

    def is_member_registered(self, member_id: int) -> bool:
        return any(r.member_id == member_id for r in self.registrations)

    def calculate_revenue(self) -> float:
        return self.entry_fee * self.participant_count

    def to_dict(self):
        return {
            'id': self.id,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'location': self.location,
            'entry_fee': self.entry_fee,
            'cash_prize_amount': self.cash_prize_amount,
            'status': self.status,
            'minimum_participants': self.minimum_participants,
            'maximum_participants': self.maximum_participants,
            'participant_count': self.participant_count,
            'member_ids': [r.member_id for r in self.registrations],
            'version': self.version,
        }

    def __repr__(self):
        return (f"<Tournament id={self.id} start={self.start_date} "
                f"location={self.location!r} status={self.status} "
                f"participants={self.participant_count}>")
