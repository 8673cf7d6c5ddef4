"""
Integration tests for API routes.
Tests the member and tournament blueprints and main app routes end to end.
"""
import json
from datetime import date, timedelta

import pytest


TODAY = date.today()


@pytest.fixture
def api(client, db_session):
    """Test client over freshly cleared tables."""
    return client


def member_json(n=1, **overrides):
    data = {
        'name': 'Nancy Lopez',
        'address': f'{n} Clubhouse Lane',
        'email': f'nancy{n}@example.com',
        'phone': f'555-100-{n:04d}',
        'start_date': (TODAY - timedelta(days=30)).isoformat(),
        'duration': 12,
    }
    data.update(overrides)
    return data


def tournament_json(**overrides):
    data = {
        'start_date': (TODAY + timedelta(days=14)).isoformat(),
        'end_date': (TODAY + timedelta(days=16)).isoformat(),
        'location': 'Muirfield',
        'entry_fee': 120.0,
        'cash_prize_amount': 8000.0,
        'minimum_participants': 2,
        'maximum_participants': 3,
    }
    data.update(overrides)
    return data


@pytest.fixture
def create_member(api):
    counter = iter(range(1, 1000))

    def create(**overrides):
        response = api.post('/api/v1/members', json=member_json(next(counter), **overrides))
        assert response.status_code == 201
        return json.loads(response.data)['member']

    return create


@pytest.fixture
def create_tournament(api):
    def create(**overrides):
        response = api.post('/api/v1/tournaments', json=tournament_json(**overrides))
        assert response.status_code == 201
        return json.loads(response.data)['tournament']

    return create


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_check(self, api):
        """Health check should return 200 with events disabled."""
        response = api.get('/health')
        assert response.status_code == 200

        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert data['database'] == 'connected'
        assert data['redis'] == 'disabled'

    def test_home(self, api):
        assert json.loads(api.get('/').data)['status'] == 'running'


class TestMemberCRUD:
    """Tests for member CRUD operations."""

    def test_create_member(self, api):
        """POST /api/v1/members should create an ACTIVE member."""
        response = api.post('/api/v1/members', json=member_json())

        assert response.status_code == 201
        member = json.loads(response.data)['member']
        assert member['status'] == 'ACTIVE'
        assert member['total_tournaments_played'] == 0
        assert member['version'] == 1

    def test_create_member_invalid_payload(self, api):
        """Shape errors are reported per field."""
        response = api.post('/api/v1/members', json=member_json(phone='12345', duration=0))

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data['kind'] == 'ValidationError'
        assert {d['field'] for d in data['details']} == {'phone', 'duration'}

    def test_create_member_duplicate_email(self, api, create_member):
        """Duplicate contact details should conflict."""
        create_member()
        response = api.post('/api/v1/members', json=member_json(1, phone='555-999-0000'))

        assert response.status_code == 409
        data = json.loads(response.data)
        assert data['kind'] == 'DuplicateContact'
        assert data['retry'] is False

    def test_get_member(self, api, create_member):
        member = create_member()

        response = api.get(f"/api/v1/members/{member['id']}")

        assert response.status_code == 200
        assert json.loads(response.data)['email'] == member['email']

    def test_get_member_not_found(self, api):
        response = api.get('/api/v1/members/9999')

        assert response.status_code == 404
        assert json.loads(response.data)['kind'] == 'NotFound'

    def test_list_members(self, api, create_member):
        create_member()
        create_member()

        data = json.loads(api.get('/api/v1/members').data)

        assert data['count'] == 2

    def test_update_member(self, api, create_member):
        member = create_member()

        response = api.put(f"/api/v1/members/{member['id']}",
                           json=member_json(1, name='Nancy Marie Lopez', version=1))

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['name'] == 'Nancy Marie Lopez'
        assert data['version'] == 2

    def test_update_with_stale_version(self, api, create_member):
        """A stale version stamp asks the client to retry."""
        member = create_member()
        api.put(f"/api/v1/members/{member['id']}", json=member_json(1, version=1))

        response = api.put(f"/api/v1/members/{member['id']}",
                           json=member_json(1, name='Someone Else', version=1))

        assert response.status_code == 409
        data = json.loads(response.data)
        assert data['kind'] == 'ConflictRetry'
        assert data['retry'] is True

    def test_delete_member(self, api, create_member):
        member = create_member()

        assert api.delete(f"/api/v1/members/{member['id']}").status_code == 200
        assert api.get(f"/api/v1/members/{member['id']}").status_code == 404

    def test_delete_missing_member(self, api):
        assert api.delete('/api/v1/members/9999').status_code == 200


class TestMemberLifecycle:
    """Tests for status, duration and expiry endpoints."""

    def test_set_status(self, api, create_member):
        member = create_member()

        response = api.patch(f"/api/v1/members/{member['id']}/status",
                             json={'status': 'suspended'})

        assert response.status_code == 200
        assert json.loads(response.data)['member']['status'] == 'SUSPENDED'

    def test_set_status_unknown_value(self, api, create_member):
        member = create_member()

        response = api.patch(f"/api/v1/members/{member['id']}/status",
                             json={'status': 'RETIRED'})

        assert response.status_code == 400

    def test_set_status_missing_member(self, api):
        """Administrative override on an absent id is a no-op."""
        response = api.patch('/api/v1/members/9999/status', json={'status': 'ACTIVE'})

        assert response.status_code == 200
        assert json.loads(response.data)['member'] is None

    def test_extend_duration(self, api, create_member):
        member = create_member()

        response = api.patch(f"/api/v1/members/{member['id']}/duration", json={'months': 6})

        assert json.loads(response.data)['duration'] == 18

    def test_check_status_expires_member(self, api, create_member):
        member = create_member(start_date='2020-01-01', duration=12)

        response = api.post(f"/api/v1/members/{member['id']}/check-status")

        assert json.loads(response.data)['member']['status'] == 'EXPIRED'


class TestMemberSearch:

    def test_search_by_name(self, api, create_member):
        create_member(name='Babe Zaharias')
        create_member()

        data = json.loads(api.get('/api/v1/members/search/name/zaharias').data)

        assert data['count'] == 1

    def test_search_by_status(self, api, create_member):
        create_member()

        data = json.loads(api.get('/api/v1/members/search/status/active').data)

        assert data['count'] == 1

    def test_search_active(self, api, create_member):
        create_member()
        create_member(start_date='2020-01-01', duration=12)

        data = json.loads(api.get('/api/v1/members/search/active').data)

        assert data['count'] == 1

    def test_search_by_tournaments_requires_min_count(self, api):
        assert api.get('/api/v1/members/search/tournaments').status_code == 400

    def test_search_by_tournament_date(self, api, create_member, create_tournament):
        member = create_member()
        tournament = create_tournament()
        api.post(f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}")

        data = json.loads(api.get('/api/v1/members/search/tournament-date',
                                  query_string={'date': tournament['start_date']}).data)

        assert [m['id'] for m in data['members']] == [member['id']]

    def test_search_by_tournament_date_bad_date(self, api):
        response = api.get('/api/v1/members/search/tournament-date',
                           query_string={'date': 'tomorrow'})
        assert response.status_code == 400

    def test_top_participants(self, api, create_member):
        create_member()
        create_member()

        data = json.loads(api.get('/api/v1/members/top-participants?limit=1').data)

        assert data['count'] == 1

    def test_top_participants_rejects_negative_limit(self, api, create_member):
        create_member()

        response = api.get('/api/v1/members/top-participants?limit=-1')

        assert response.status_code == 400
        assert json.loads(response.data)['kind'] == 'BadRequest'


class TestTournamentCRUD:
    """Tests for tournament CRUD operations."""

    def test_create_tournament(self, api):
        """POST /api/v1/tournaments should create a SCHEDULED tournament."""
        response = api.post('/api/v1/tournaments', json=tournament_json())

        assert response.status_code == 201
        tournament = json.loads(response.data)['tournament']
        assert tournament['status'] == 'SCHEDULED'
        assert tournament['participant_count'] == 0

    def test_create_tournament_end_before_start(self, api):
        response = api.post('/api/v1/tournaments', json=tournament_json(
            end_date=TODAY.isoformat()
        ))

        assert response.status_code == 400
        assert json.loads(response.data)['kind'] == 'InvalidWindow'

    def test_create_tournament_in_past(self, api):
        response = api.post('/api/v1/tournaments', json=tournament_json(
            start_date=(TODAY - timedelta(days=1)).isoformat()
        ))

        assert response.status_code == 400
        assert json.loads(response.data)['kind'] == 'PastStart'

    def test_create_tournament_bad_capacity(self, api):
        response = api.post('/api/v1/tournaments', json=tournament_json(
            minimum_participants=10, maximum_participants=5
        ))

        assert response.status_code == 400
        assert json.loads(response.data)['kind'] == 'InvalidCapacity'

    def test_get_tournament_not_found(self, api):
        assert api.get('/api/v1/tournaments/9999').status_code == 404

    def test_update_tournament(self, api, create_tournament):
        tournament = create_tournament()

        response = api.put(f"/api/v1/tournaments/{tournament['id']}",
                           json=tournament_json(location='Birkdale'))

        assert response.status_code == 200
        assert json.loads(response.data)['location'] == 'Birkdale'

    def test_delete_tournament(self, api, create_tournament):
        tournament = create_tournament()

        api.delete(f"/api/v1/tournaments/{tournament['id']}")

        assert json.loads(api.get('/api/v1/tournaments').data)['count'] == 0


class TestRegistration:
    """Tests for registering and withdrawing members."""

    def test_register_member(self, api, create_member, create_tournament):
        member = create_member()
        tournament = create_tournament()

        response = api.post(f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}")

        assert response.status_code == 201
        data = json.loads(response.data)['tournament']
        assert data['member_ids'] == [member['id']]
        fresh = json.loads(api.get(f"/api/v1/members/{member['id']}").data)
        assert fresh['tournament_ids'] == [tournament['id']]

    def test_register_twice(self, api, create_member, create_tournament):
        member = create_member()
        tournament = create_tournament()
        url = f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}"
        api.post(url)

        response = api.post(url)

        assert response.status_code == 409
        assert json.loads(response.data)['kind'] == 'AlreadyRegistered'

    def test_register_when_full(self, api, create_member, create_tournament):
        tournament = create_tournament()
        for _ in range(3):
            member = create_member()
            api.post(f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}")

        late = create_member()
        response = api.post(f"/api/v1/tournaments/{tournament['id']}/members/{late['id']}")

        assert response.status_code == 409
        assert json.loads(response.data)['kind'] == 'Full'

    def test_register_missing_member(self, api, create_tournament):
        tournament = create_tournament()

        response = api.post(f"/api/v1/tournaments/{tournament['id']}/members/9999")

        assert response.status_code == 404

    def test_withdraw(self, api, create_member, create_tournament):
        member = create_member()
        tournament = create_tournament()
        url = f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}"
        api.post(url)

        response = api.delete(url)

        assert response.status_code == 200
        assert json.loads(response.data)['tournament']['participant_count'] == 0

    def test_withdraw_not_registered(self, api, create_member, create_tournament):
        member = create_member()
        tournament = create_tournament()

        response = api.delete(f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}")

        assert response.status_code == 409
        assert json.loads(response.data)['kind'] == 'NotRegistered'

    def test_list_tournament_members(self, api, create_member, create_tournament):
        member = create_member()
        tournament = create_tournament()
        api.post(f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}")

        data = json.loads(api.get(f"/api/v1/tournaments/{tournament['id']}/members").data)

        assert data['count'] == 1


class TestTournamentLifecycle:
    """Tests for status changes, completion and revenue."""

    def register_players(self, api, tournament, create_member, count):
        players = [create_member() for _ in range(count)]
        for player in players:
            api.post(f"/api/v1/tournaments/{tournament['id']}/members/{player['id']}")
        return players

    def test_start_without_minimum(self, api, create_member, create_tournament):
        tournament = create_tournament()
        self.register_players(api, tournament, create_member, 1)

        response = api.patch(f"/api/v1/tournaments/{tournament['id']}/status",
                             json={'status': 'IN_PROGRESS'})

        assert response.status_code == 409
        assert json.loads(response.data)['kind'] == 'InsufficientParticipants'

    def test_full_lifecycle(self, api, create_member, create_tournament):
        tournament = create_tournament()
        players = self.register_players(api, tournament, create_member, 2)
        url = f"/api/v1/tournaments/{tournament['id']}/status"

        assert api.patch(url, json={'status': 'IN_PROGRESS'}).status_code == 200
        response = api.patch(url, json={'status': 'COMPLETED'})
        assert json.loads(response.data)['tournament']['status'] == 'COMPLETED'

        for player in players:
            fresh = json.loads(api.get(f"/api/v1/members/{player['id']}").data)
            assert fresh['total_tournaments_played'] == 1

        response = api.patch(url, json={'status': 'CANCELLED'})
        assert response.status_code == 409
        assert json.loads(response.data)['kind'] == 'TerminalState'

    def test_register_after_cancel(self, api, create_member, create_tournament):
        tournament = create_tournament()
        api.patch(f"/api/v1/tournaments/{tournament['id']}/status", json={'status': 'CANCELLED'})
        member = create_member()

        response = api.post(f"/api/v1/tournaments/{tournament['id']}/members/{member['id']}")

        assert json.loads(response.data)['kind'] == 'RegistrationClosed'

    def test_revenue(self, api, create_member, create_tournament):
        tournament = create_tournament(entry_fee=50.0)
        self.register_players(api, tournament, create_member, 3)

        data = json.loads(api.get(f"/api/v1/tournaments/{tournament['id']}/revenue").data)
        assert data['revenue'] == 150.0

        total = json.loads(api.get('/api/v1/tournaments/revenue').data)
        assert total['total_revenue'] == 0.0

        api.patch(f"/api/v1/tournaments/{tournament['id']}/status", json={'status': 'COMPLETED'})
        total = json.loads(api.get('/api/v1/tournaments/revenue').data)
        assert total['total_revenue'] == 150.0


class TestTournamentSearch:

    def test_search_by_location(self, api, create_tournament):
        create_tournament(location='Royal Birkdale')
        create_tournament()

        data = json.loads(api.get('/api/v1/tournaments/search/location/birkdale').data)

        assert data['count'] == 1

    def test_search_by_status(self, api, create_tournament):
        create_tournament()

        assert json.loads(api.get('/api/v1/tournaments/search/status/SCHEDULED').data)['count'] == 1
        assert api.get('/api/v1/tournaments/search/status/POSTPONED').status_code == 400

    def test_search_by_date_range(self, api, create_tournament):
        create_tournament()

        response = api.get('/api/v1/tournaments/search/date-range', query_string={
            'start': TODAY.isoformat(),
            'end': (TODAY + timedelta(days=30)).isoformat(),
        })

        assert json.loads(response.data)['count'] == 1

    def test_search_by_reversed_date_range(self, api):
        response = api.get('/api/v1/tournaments/search/date-range', query_string={
            'start': TODAY.isoformat(),
            'end': (TODAY - timedelta(days=1)).isoformat(),
        })

        assert response.status_code == 400

    def test_available_and_upcoming(self, api, create_tournament):
        create_tournament()

        assert json.loads(api.get('/api/v1/tournaments/available').data)['count'] == 1
        assert json.loads(api.get('/api/v1/tournaments/upcoming').data)['count'] == 1
        assert json.loads(api.get('/api/v1/tournaments/current').data)['count'] == 0
        assert json.loads(api.get('/api/v1/tournaments/completed').data)['count'] == 0
