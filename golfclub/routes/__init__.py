from datetime import date

from flask import request

from ..errors import GolfClubError


class BadRequest(GolfClubError):
    category = 'bad_input'


def parse_enum(enum_cls, value: str):
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ', '.join(e.value for e in enum_cls)
        raise BadRequest(f"Invalid status '{value}', expected one of: {allowed}")


def parse_date_arg(name: str) -> date:
    raw = request.args.get(name)
    if not raw:
        raise BadRequest(f"{name} query parameter is required")
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise BadRequest(f"{name} must be an ISO date (YYYY-MM-DD), got '{raw}'")


def member_list(members) -> dict:
    return {
        'members': [m.to_dict() for m in members],
        'count': len(members)
    }


def tournament_list(tournaments) -> dict:
    return {
        'tournaments': [t.to_dict() for t in tournaments],
        'count': len(tournaments)
    }
