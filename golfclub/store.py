"""
Entity store backed by Flask-SQLAlchemy.

Members and tournaments carry a ``version`` column configured as the mapper's
``version_id_col``: every UPDATE is issued as ``... WHERE id = ? AND version = ?``
and bumps the counter, so a write based on a stale read matches no row and is
rejected with :class:`VersionConflict`.
"""
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from .models import db, Member, Tournament, Registration, TournamentStatus

logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass


class VersionConflict(StoreError):
    pass


class ConstraintViolation(StoreError):
    pass


class EntityStore:
    model = None

    def get(self, entity_id: int):
        if entity_id is None:
            return None
        return db.session.get(self.model, entity_id)

    def get_all(self) -> List:
        return self.model.query.order_by(self.model.id).all()

    def stage(self, entity):
        db.session.add(entity)
        return entity

    def touch(self, *entities):
        """Mark entities dirty so the next commit bumps their version."""
        now = datetime.utcnow()
        for entity in entities:
            entity.updated_at = now
            # An unchanged timestamp would otherwise leave the row clean
            flag_modified(entity, 'updated_at')

    @property
    def no_autoflush(self):
        """Defer flushing while a multi-entity change is staged."""
        return db.session.no_autoflush

    def discard(self, entity):
        db.session.delete(entity)

    def commit(self):
        """Flush all staged changes in one transaction."""
        try:
            db.session.commit()
        except StaleDataError as e:
            db.session.rollback()
            logger.warning(f"Version conflict on commit: {e}")
            raise VersionConflict(str(e)) from e
        except IntegrityError as e:
            db.session.rollback()
            logger.warning(f"Constraint violation on commit: {e.orig}")
            raise ConstraintViolation(str(e.orig)) from e

    def save(self, entity):
        self.stage(entity)
        self.commit()
        return entity

    def save_all(self, *entities: Iterable):
        for entity in entities:
            self.stage(entity)
        self.commit()
        return entities

    def delete(self, entity_id: int):
        entity = self.get(entity_id)
        if entity is None:
            return
        db.session.delete(entity)
        self.commit()


class MemberStore(EntityStore):
    model = Member

    def find_by_email(self, email: str) -> Optional[Member]:
        return Member.query.filter_by(email=email).first()

    def find_by_phone(self, phone: str) -> Optional[Member]:
        return Member.query.filter_by(phone=phone).first()

    def search_by_phone(self, partial: str) -> List[Member]:
        return Member.query.filter(Member.phone.contains(partial)).order_by(Member.id).all()

    def search_by_name(self, partial: str) -> List[Member]:
        return (Member.query
                .filter(func.lower(Member.name).contains(partial.lower()))
                .order_by(Member.id).all())

    def find_by_status(self, status: str) -> List[Member]:
        return Member.query.filter_by(status=status).order_by(Member.id).all()

    def find_by_start_date_between(self, start: date, end: date) -> List[Member]:
        return (Member.query
                .filter(Member.start_date.between(start, end))
                .order_by(Member.start_date).all())

    def find_by_tournaments_played_above(self, count: int) -> List[Member]:
        return (Member.query
                .filter(Member.total_tournaments_played > count)
                .order_by(Member.id).all())

    def find_by_winnings_above(self, amount: float) -> List[Member]:
        return Member.query.filter(Member.total_winnings > amount).order_by(Member.id).all()

    def find_by_tournament_id(self, tournament_id: int) -> List[Member]:
        return (Member.query
                .join(Registration, Registration.member_id == Member.id)
                .filter(Registration.tournament_id == tournament_id)
                .order_by(Member.id).all())

    def find_by_tournament_date(self, day: date) -> List[Member]:
        return (Member.query
                .join(Registration, Registration.member_id == Member.id)
                .join(Tournament, Tournament.id == Registration.tournament_id)
                .filter(Tournament.start_date == day)
                .distinct()
                .order_by(Member.id).all())

    def find_top_participants(self) -> List[Member]:
        return (Member.query
                .filter_by(status='ACTIVE')
                .order_by(Member.total_tournaments_played.desc(), Member.id)
                .all())


class TournamentStore(EntityStore):
    model = Tournament

    def find_by_status(self, status: str) -> List[Tournament]:
        return Tournament.query.filter_by(status=status).order_by(Tournament.id).all()

    def search_by_location(self, partial: str) -> List[Tournament]:
        return (Tournament.query
                .filter(func.lower(Tournament.location).contains(partial.lower()))
                .order_by(Tournament.id).all())

    def find_by_start_date_between(self, start: date, end: date) -> List[Tournament]:
        return (Tournament.query
                .filter(Tournament.start_date.between(start, end))
                .order_by(Tournament.start_date).all())

    def find_current(self, day: date) -> List[Tournament]:
        return (Tournament.query
                .filter(Tournament.start_date <= day, Tournament.end_date >= day)
                .order_by(Tournament.start_date).all())

    def find_upcoming(self, day: date) -> List[Tournament]:
        return (Tournament.query
                .filter(Tournament.status == TournamentStatus.SCHEDULED.value,
                        Tournament.start_date > day)
                .order_by(Tournament.start_date.asc()).all())

    def find_recently_completed(self) -> List[Tournament]:
        return (Tournament.query
                .filter_by(status=TournamentStatus.COMPLETED.value)
                .order_by(Tournament.end_date.desc()).all())

    def find_by_minimum_prize(self, min_prize: float) -> List[Tournament]:
        return (Tournament.query
                .filter(Tournament.cash_prize_amount >= min_prize)
                .order_by(Tournament.id).all())

    def find_by_maximum_entry_fee(self, max_fee: float) -> List[Tournament]:
        return (Tournament.query
                .filter(Tournament.entry_fee <= max_fee)
                .order_by(Tournament.id).all())
