"""
Error kinds raised by the lifecycle engine.

Each class carries a ``category`` that the HTTP layer maps to a status code:
``missing`` -> 404, ``conflict`` -> 409, ``bad_input`` -> 400.
"""


class GolfClubError(Exception):
    """Base class for every rule violation the engine reports."""
    category = 'conflict'

    def __init__(self, reason: str = None):
        self.reason = reason or self.__class__.__name__
        super().__init__(self.reason)


class NotFound(GolfClubError):
    category = 'missing'

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DuplicateContact(GolfClubError):
    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field.capitalize()} already exists: {value}")


class ConflictRetry(GolfClubError):
    """The record changed since it was read; re-fetch and retry."""

    def __init__(self, entity: str, entity_id, reason: str = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(reason or f"{entity} {entity_id} was modified concurrently, retry")


# Tournament definition constraints

class InvalidTournament(GolfClubError):
    category = 'bad_input'


class InvalidWindow(InvalidTournament):
    pass


class InvalidCapacity(InvalidTournament):
    pass


class PastStart(InvalidTournament):
    pass


# Status transitions

class TransitionError(GolfClubError):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(reason or f"Cannot transition from {from_state} to {to_state}")


class TerminalState(TransitionError):
    pass


class InsufficientParticipants(TransitionError):
    pass


# Registration rules

class RegistrationError(GolfClubError):
    pass


class Full(RegistrationError):
    pass


class MemberInactive(RegistrationError):
    pass


class RegistrationClosed(RegistrationError):
    pass


class AlreadyRegistered(RegistrationError):
    pass


class NotRegistered(RegistrationError):
    pass
