from enum import Enum
from dataclasses import dataclass
from datetime import datetime
import json
import logging

import redis

logger = logging.getLogger(__name__)

GLOBAL_CHANNEL = 'global:announcements'


class EventType(str, Enum):
    # Member lifecycle
    MEMBER_CREATED = "member.created"
    MEMBER_STATUS_CHANGED = "member.status_changed"
    MEMBER_EXPIRED = "member.expired"

    # Tournament lifecycle
    TOURNAMENT_CREATED = "tournament.created"
    STATE_CHANGED = "state.changed"
    TOURNAMENT_COMPLETED = "tournament.completed"

    # Registrations
    MEMBER_REGISTERED = "registration.created"
    MEMBER_WITHDRAWN = "registration.withdrawn"


@dataclass
class Event:
    type: EventType
    entity: str
    entity_id: int
    timestamp: str = None
    data: dict = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"
        if self.data is None:
            self.data = {}

    @property
    def channels(self):
        channels = [GLOBAL_CHANNEL]
        if self.entity == 'tournament':
            channels.append(f"tournament:{self.entity_id}:events")
        return channels

    def to_dict(self) -> dict:
        return {
            "type": self.type.value if isinstance(self.type, EventType) else self.type,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "timestamp": self.timestamp,
            "data": self.data
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        return cls(
            type=EventType(data["type"]) if data["type"] in [e.value for e in EventType] else data["type"],
            entity=data["entity"],
            entity_id=data["entity_id"],
            timestamp=data.get("timestamp"),
            data=data.get("data", {})
        )

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        return cls.from_dict(json.loads(json_str))


def publish(redis_client: redis.Redis, event: Event) -> bool:
    """Announce an already-committed change. Returns False if redis is unavailable."""
    if redis_client is None:
        return False
    try:
        for channel in event.channels:
            redis_client.publish(channel, event.to_json())
    except redis.exceptions.RedisError as e:
        logger.error(f"Failed to publish {event.type} for {event.entity} {event.entity_id}: {e}")
        return False
    return True


def member_event(event_type: EventType, member_id: int, **data) -> Event:
    return Event(type=event_type, entity='member', entity_id=member_id, data=data)


def state_changed_event(tournament_id: int, from_state: str, to_state: str) -> Event:
    return Event(
        type=EventType.STATE_CHANGED,
        entity='tournament',
        entity_id=tournament_id,
        data={
            "from_state": from_state,
            "to_state": to_state
        }
    )


def tournament_completed_event(tournament_id: int, member_ids: list) -> Event:
    return Event(
        type=EventType.TOURNAMENT_COMPLETED,
        entity='tournament',
        entity_id=tournament_id,
        data={
            "member_ids": member_ids,
            "participant_count": len(member_ids)
        }
    )


def registration_event(event_type: EventType, tournament_id: int, member_id: int) -> Event:
    return Event(
        type=event_type,
        entity='tournament',
        entity_id=tournament_id,
        data={"member_id": member_id}
    )
