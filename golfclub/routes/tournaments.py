from flask import Blueprint, request, jsonify, current_app

from ..models import TournamentStatus
from ..schemas import TournamentPayload, StatusPayload, DateRangeQuery
from . import parse_date_arg, parse_enum, member_list, tournament_list

bp = Blueprint('tournaments', __name__, url_prefix='/api/v1/tournaments')


# ==================== CRUD ====================

@bp.route('', methods=['POST'])
def create_tournament():
    payload = TournamentPayload.model_validate(request.get_json(silent=True) or {})
    tournament = current_app.tournaments.create(payload.model_dump(exclude={'version'}))
    return jsonify({
        'message': 'Tournament created',
        'tournament': tournament.to_dict()
    }), 201


@bp.route('', methods=['GET'])
def list_tournaments():
    return jsonify(tournament_list(current_app.tournaments.list_tournaments()))


@bp.route('/<int:tournament_id>', methods=['GET'])
def get_tournament(tournament_id: int):
    tournament = current_app.tournaments.require(tournament_id)
    return jsonify(tournament.to_dict())


@bp.route('/<int:tournament_id>', methods=['PUT'])
def update_tournament(tournament_id: int):
    payload = TournamentPayload.model_validate(request.get_json(silent=True) or {})
    tournament = current_app.tournaments.update(
        tournament_id,
        payload.model_dump(exclude={'version'}),
        expected_version=payload.version
    )
    return jsonify(tournament.to_dict())


@bp.route('/<int:tournament_id>', methods=['DELETE'])
def delete_tournament(tournament_id: int):
    current_app.tournaments.delete(tournament_id)
    return jsonify({'message': 'Tournament deleted'})


# ==================== Lifecycle ====================

@bp.route('/<int:tournament_id>/status', methods=['PATCH'])
def update_status(tournament_id: int):
    payload = StatusPayload.model_validate(request.get_json(silent=True) or {})
    status = parse_enum(TournamentStatus, payload.status)
    tournament = current_app.tournaments.set_status(tournament_id, status)
    return jsonify({
        'message': 'Status updated',
        'tournament': tournament.to_dict() if tournament else None
    })


@bp.route('/<int:tournament_id>/revenue', methods=['GET'])
def tournament_revenue(tournament_id: int):
    return jsonify({
        'tournament_id': tournament_id,
        'revenue': current_app.tournaments.revenue(tournament_id)
    })


@bp.route('/revenue', methods=['GET'])
def total_revenue():
    return jsonify({'total_revenue': current_app.tournaments.total_revenue()})


# ==================== Registration ====================

@bp.route('/<int:tournament_id>/members', methods=['GET'])
def list_members(tournament_id: int):
    return jsonify(member_list(current_app.registrations.members_of(tournament_id)))


@bp.route('/<int:tournament_id>/members/<int:member_id>', methods=['POST'])
def register_member(tournament_id: int, member_id: int):
    tournament = current_app.registrations.register(tournament_id, member_id)
    return jsonify({
        'message': 'Member registered',
        'tournament': tournament.to_dict()
    }), 201


@bp.route('/<int:tournament_id>/members/<int:member_id>', methods=['DELETE'])
def withdraw_member(tournament_id: int, member_id: int):
    tournament = current_app.registrations.withdraw(tournament_id, member_id)
    return jsonify({
        'message': 'Member withdrawn',
        'tournament': tournament.to_dict()
    })


# ==================== Search ====================

@bp.route('/search/location/<location>', methods=['GET'])
def search_by_location(location: str):
    return jsonify(tournament_list(current_app.reports.tournaments_by_location(location)))


@bp.route('/search/status/<status>', methods=['GET'])
def search_by_status(status: str):
    status = parse_enum(TournamentStatus, status)
    return jsonify(tournament_list(current_app.reports.tournaments_by_status(status)))


@bp.route('/search/date-range', methods=['GET'])
def search_by_date_range():
    window = DateRangeQuery(start=parse_date_arg('start'), end=parse_date_arg('end'))
    return jsonify(tournament_list(current_app.reports.tournaments_between(window.start, window.end)))


@bp.route('/available', methods=['GET'])
def available_tournaments():
    return jsonify(tournament_list(current_app.reports.available_tournaments()))


@bp.route('/upcoming', methods=['GET'])
def upcoming_tournaments():
    return jsonify(tournament_list(current_app.reports.upcoming_tournaments()))


@bp.route('/current', methods=['GET'])
def current_tournaments():
    return jsonify(tournament_list(current_app.reports.current_tournaments()))


@bp.route('/completed', methods=['GET'])
def recently_completed_tournaments():
    return jsonify(tournament_list(current_app.reports.recently_completed_tournaments()))
