import logging
from datetime import date
from typing import Callable, List, Optional

import redis

from .errors import NotFound, DuplicateContact, ConflictRetry
from .events import EventType, member_event, publish
from .models import Member, MembershipStatus
from .store import MemberStore, VersionConflict, ConstraintViolation

logger = logging.getLogger(__name__)

MEMBER_FIELDS = ('name', 'address', 'email', 'phone', 'start_date', 'duration')


class MemberManager:
    """
    Owns member state:
    - Create/update/delete member records with unique email and phone
    - Administrative status overrides and membership extensions
    - Lazy expiry reconciliation
    - Counter updates staged for the registration coordinator
    """

    def __init__(
        self,
        store: MemberStore = None,
        redis_client: redis.Redis = None,
        clock: Callable[[], date] = None
    ):
        self.store = store or MemberStore()
        self.redis = redis_client
        self._clock = clock or date.today

    def today(self) -> date:
        return self._clock()

    def get(self, member_id: int) -> Optional[Member]:
        return self.store.get(member_id)

    def require(self, member_id: int) -> Member:
        member = self.store.get(member_id)
        if member is None:
            raise NotFound('Member', member_id)
        return member

    def list_members(self) -> List[Member]:
        return self.store.get_all()

    def _check_contacts(self, email: Optional[str], phone: Optional[str], exclude_id: int = None):
        if email is not None:
            existing = self.store.find_by_email(email)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateContact('email', email)
        if phone is not None:
            existing = self.store.find_by_phone(phone)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateContact('phone', phone)

    def _commit(self, member_id: Optional[int], member: Member):
        email, phone = member.email, member.phone
        try:
            self.store.save(member)
        except VersionConflict as e:
            raise ConflictRetry('Member', member_id) from e
        except ConstraintViolation as e:
            # Lost a race with a concurrent create/update using the same contact
            self._check_contacts(email, phone, exclude_id=member_id)
            raise DuplicateContact('email or phone', f"{email} / {phone}") from e

    def create(self, data: dict) -> Member:
        """Persist a new ACTIVE member with zeroed counters."""
        self._check_contacts(data.get('email'), data.get('phone'))

        member = Member(
            name=data['name'],
            address=data['address'],
            email=data['email'],
            phone=data.get('phone'),
            start_date=data['start_date'],
            duration=data['duration'],
            status=MembershipStatus.ACTIVE.value,
            total_tournaments_played=0,
            total_winnings=0.0
        )
        self._commit(None, member)

        logger.info(f"Created member {member.id} ({member.email})")
        publish(self.redis, member_event(EventType.MEMBER_CREATED, member.id))
        return member

    def update(self, member_id: int, data: dict, expected_version: int = None) -> Member:
        """
        Overwrite a member's profile fields. Status and counters are kept.

        Contact fields are only checked against other members when they
        change, so resubmitting an unchanged email never collides with itself.
        """
        member = self.require(member_id)
        if expected_version is not None and member.version != expected_version:
            raise ConflictRetry('Member', member_id,
                                f"Member {member_id} is at version {member.version}, "
                                f"not {expected_version}")

        values = {field: data.get(field, getattr(member, field)) for field in MEMBER_FIELDS}
        self._check_contacts(
            values['email'] if values['email'] != member.email else None,
            values['phone'] if values['phone'] != member.phone else None,
            exclude_id=member.id
        )

        for field, value in values.items():
            setattr(member, field, value)
        self._commit(member_id, member)

        logger.info(f"Updated member {member_id}")
        return member

    def delete(self, member_id: int):
        try:
            self.store.delete(member_id)
        except VersionConflict as e:
            raise ConflictRetry('Member', member_id) from e
        logger.info(f"Deleted member {member_id}")

    def set_status(self, member_id: int, status) -> Optional[Member]:
        """Administrative override: any status may be set. Unknown ids are ignored."""
        status = MembershipStatus(status)
        member = self.store.get(member_id)
        if member is None:
            return None

        old_status = member.status
        member.status = status.value
        self._commit(member_id, member)

        logger.info(f"Member {member_id} status {old_status} -> {status.value}")
        publish(self.redis, member_event(
            EventType.MEMBER_STATUS_CHANGED, member_id,
            from_status=old_status, to_status=status.value
        ))
        return member

    def extend_duration(self, member_id: int, extra_months: int) -> Member:
        member = self.require(member_id)
        member.duration = member.duration + extra_months
        self._commit(member_id, member)

        logger.info(f"Extended member {member_id} by {extra_months} months to {member.duration}")
        return member

    def reconcile_expiry(self, member_id: int) -> Optional[Member]:
        """Mark the member EXPIRED if the membership window has passed."""
        member = self.store.get(member_id)
        if member is None:
            return None

        if (member.is_membership_expired(self.today())
                and member.status != MembershipStatus.EXPIRED.value):
            old_status = member.status
            member.status = MembershipStatus.EXPIRED.value
            self._commit(member_id, member)

            logger.info(f"Member {member_id} expired (ended {member.membership_end})")
            publish(self.redis, member_event(
                EventType.MEMBER_EXPIRED, member_id,
                from_status=old_status, membership_end=member.membership_end.isoformat()
            ))
        return member

    # Staged counter updates; the caller commits them with its own unit of work.

    def increment_tournaments_played(self, member_id: int) -> Member:
        member = self.require(member_id)
        member.increment_tournaments_played()
        self.store.stage(member)
        return member

    def add_winnings(self, member_id: int, amount: float) -> Member:
        if amount < 0:
            raise ValueError("Winnings amount cannot be negative")
        member = self.require(member_id)
        member.add_winnings(amount)
        self.store.stage(member)
        return member
