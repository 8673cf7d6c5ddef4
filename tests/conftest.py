"""
Pytest configuration and fixtures for golf club service tests.
"""
import itertools
import os
import sys
from datetime import date, timedelta

import pytest
from sqlalchemy import text

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from golfclub.app import create_app
from golfclub.models import db
from golfclub.member_manager import MemberManager
from golfclub.registration import RegistrationCoordinator
from golfclub.reports import ReportService
from golfclub.store import MemberStore, TournamentStore
from golfclub.tournament_manager import TournamentManager

TODAY = date(2025, 2, 1)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create database session for testing."""
    with app.app_context():
        # Clear all tables before each test
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def clock():
    """Fixed 'today' for lifecycle rules."""
    return lambda: TODAY


@pytest.fixture
def member_manager(db_session, clock):
    return MemberManager(MemberStore(), clock=clock)


@pytest.fixture
def registrations(member_manager):
    return RegistrationCoordinator(member_manager, TournamentStore())


@pytest.fixture
def tournament_manager(registrations, clock):
    return TournamentManager(registrations.tournaments, registrations, clock=clock)


@pytest.fixture
def reports(db_session, clock):
    return ReportService(MemberStore(), TournamentStore(), clock=clock)


@pytest.fixture
def make_member(member_manager):
    """Factory creating members with unique contact details."""
    counter = itertools.count(1)

    def factory(**overrides):
        n = next(counter)
        data = {
            'name': f"Member {chr(ord('A') + (n - 1) % 26)}",
            'address': f"{n} Fairway Drive",
            'email': f"member{n}@example.com",
            'phone': f"555-000-{n:04d}",
            'start_date': date(2024, 6, 1),
            'duration': 12,
        }
        data.update(overrides)
        return member_manager.create(data)

    return factory


@pytest.fixture
def make_tournament(tournament_manager):
    """Factory creating SCHEDULED tournaments starting after TODAY."""
    def factory(**overrides):
        data = {
            'start_date': TODAY + timedelta(days=10),
            'end_date': TODAY + timedelta(days=12),
            'location': 'Pine Valley',
            'entry_fee': 50.0,
            'cash_prize_amount': 1000.0,
            'minimum_participants': 2,
            'maximum_participants': 100,
        }
        data.update(overrides)
        return tournament_manager.create(data)

    return factory


@pytest.fixture
def bump_version(db_session):
    """Simulate another writer committing to a row behind the session's back."""
    def bump(table: str, entity_id: int):
        with db.engine.begin() as conn:
            conn.execute(text(f"UPDATE {table} SET version = version + 1 WHERE id = :id"),
                         {'id': entity_id})
    return bump


@pytest.fixture
def mock_redis(mocker):
    """Redis client stand-in recording publishes."""
    return mocker.MagicMock()
