from flask import Blueprint, request, jsonify, current_app

from ..models import MembershipStatus
from ..schemas import MemberPayload, StatusPayload, DurationPayload
from . import BadRequest, parse_date_arg, parse_enum, member_list

bp = Blueprint('members', __name__, url_prefix='/api/v1/members')


# ==================== CRUD ====================

@bp.route('', methods=['POST'])
def create_member():
    payload = MemberPayload.model_validate(request.get_json(silent=True) or {})
    member = current_app.members.create(payload.model_dump(exclude={'version'}))
    return jsonify({
        'message': 'Member created',
        'member': member.to_dict()
    }), 201


@bp.route('', methods=['GET'])
def list_members():
    return jsonify(member_list(current_app.members.list_members()))


@bp.route('/<int:member_id>', methods=['GET'])
def get_member(member_id: int):
    member = current_app.members.require(member_id)
    return jsonify(member.to_dict())


@bp.route('/<int:member_id>', methods=['PUT'])
def update_member(member_id: int):
    payload = MemberPayload.model_validate(request.get_json(silent=True) or {})
    member = current_app.members.update(
        member_id,
        payload.model_dump(exclude={'version'}),
        expected_version=payload.version
    )
    return jsonify(member.to_dict())


@bp.route('/<int:member_id>', methods=['DELETE'])
def delete_member(member_id: int):
    current_app.members.delete(member_id)
    return jsonify({'message': 'Member deleted'})


# ==================== Lifecycle ====================

@bp.route('/<int:member_id>/status', methods=['PATCH'])
def update_status(member_id: int):
    payload = StatusPayload.model_validate(request.get_json(silent=True) or {})
    status = parse_enum(MembershipStatus, payload.status)
    member = current_app.members.set_status(member_id, status)
    return jsonify({
        'message': 'Status updated',
        'member': member.to_dict() if member else None
    })


@bp.route('/<int:member_id>/duration', methods=['PATCH'])
def extend_membership(member_id: int):
    payload = DurationPayload.model_validate(request.get_json(silent=True) or {})
    member = current_app.members.extend_duration(member_id, payload.months)
    return jsonify(member.to_dict())


@bp.route('/<int:member_id>/check-status', methods=['POST'])
def check_membership_status(member_id: int):
    member = current_app.members.reconcile_expiry(member_id)
    return jsonify({
        'message': 'Status checked',
        'member': member.to_dict() if member else None
    })


# ==================== Search ====================

@bp.route('/search/name/<name>', methods=['GET'])
def search_by_name(name: str):
    return jsonify(member_list(current_app.reports.search_members_by_name(name)))


@bp.route('/search/phone/<phone>', methods=['GET'])
def search_by_phone(phone: str):
    return jsonify(member_list(current_app.reports.search_members_by_phone(phone)))


@bp.route('/search/status/<status>', methods=['GET'])
def search_by_status(status: str):
    status = parse_enum(MembershipStatus, status)
    return jsonify(member_list(current_app.reports.members_by_status(status)))


@bp.route('/search/active', methods=['GET'])
def find_active_members():
    return jsonify(member_list(current_app.reports.active_members()))


@bp.route('/search/tournaments', methods=['GET'])
def find_by_minimum_tournaments():
    min_count = request.args.get('minCount', type=int)
    if min_count is None:
        raise BadRequest('minCount query parameter is required')
    return jsonify(member_list(current_app.reports.members_with_tournaments_above(min_count)))


@bp.route('/search/tournament-date', methods=['GET'])
def find_by_tournament_date():
    day = parse_date_arg('date')
    return jsonify(member_list(current_app.reports.members_by_tournament_date(day)))


@bp.route('/top-participants', methods=['GET'])
def top_participants():
    limit = request.args.get('limit', type=int)
    if limit is not None and limit < 1:
        raise BadRequest(f"limit must be at least 1, got {limit}")
    return jsonify(member_list(current_app.reports.top_participants(limit)))
