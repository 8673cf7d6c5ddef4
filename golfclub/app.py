import logging
import os

import redis
from flask import Flask, jsonify
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import config
from .errors import GolfClubError, ConflictRetry
from .member_manager import MemberManager
from .models import db
from .registration import RegistrationCoordinator
from .reports import ReportService
from .store import MemberStore, TournamentStore
from .tournament_manager import TournamentManager

logger = logging.getLogger(__name__)

STATUS_CODES = {
    'missing': 404,
    'conflict': 409,
    'bad_input': 400,
}


def create_app(config_name: str = None) -> Flask:
    """Application factory for the golf club service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)

    redis_client = None
    if app.config.get('ENABLE_EVENTS'):
        redis_client = redis.from_url(app.config['REDIS_URL'], decode_responses=True)

    # Initialize services
    member_store = MemberStore()
    tournament_store = TournamentStore()
    members = MemberManager(member_store, redis_client=redis_client)
    registrations = RegistrationCoordinator(members, tournament_store, redis_client=redis_client)
    tournaments = TournamentManager(tournament_store, registrations, redis_client=redis_client)

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.redis = redis_client
    app.members = members
    app.tournaments = tournaments
    app.registrations = registrations
    app.reports = ReportService(member_store, tournament_store)

    register_error_handlers(app)
    register_routes(app)

    from .routes import members as member_routes, tournaments as tournament_routes
    app.register_blueprint(member_routes.bp)
    app.register_blueprint(tournament_routes.bp)

    return app


def register_error_handlers(app: Flask):

    @app.errorhandler(GolfClubError)
    def handle_engine_error(e: GolfClubError):
        status = STATUS_CODES.get(e.category, 400)
        if status == 409:
            logger.warning(f"{type(e).__name__}: {e.reason}")
        return jsonify({
            'error': e.reason,
            'kind': type(e).__name__,
            'retry': isinstance(e, ConflictRetry)
        }), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return jsonify({
            'error': 'Invalid request payload',
            'kind': 'ValidationError',
            'details': [
                {'field': '.'.join(str(part) for part in err['loc']), 'message': err['msg']}
                for err in e.errors()
            ]
        }), 400


def register_routes(app: Flask):

    @app.route('/')
    def home():
        return jsonify({
            'status': 'running',
            'message': 'Golf Club API is running',
            'api_docs': 'Available endpoints: /api/v1/members/, /api/v1/tournaments/'
        })

    @app.route('/health')
    def health_check():
        try:
            db.session.execute(text('SELECT 1'))
            db_ok = True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            db_ok = False

        redis_state = 'disabled'
        if app.redis is not None:
            try:
                app.redis.ping()
                redis_state = 'connected'
            except redis.exceptions.RedisError as e:
                logger.error(f"Redis health check failed: {e}")
                redis_state = 'disconnected'

        healthy = db_ok and redis_state != 'disconnected'
        return jsonify({
            'status': 'healthy' if healthy else 'unhealthy',
            'database': 'connected' if db_ok else 'disconnected',
            'redis': redis_state
        }), 200 if healthy else 503
