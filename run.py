#!/usr/bin/env python3
"""
Entry point for the Golf Club service.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, production or testing (default: development)
    PORT: Port to run on (default: 5000)
    DATABASE_URL: SQLAlchemy database URL (default: sqlite:///golfclub.db)
    ENABLE_EVENTS / REDIS_URL: publish lifecycle events to redis
    LOG_LEVEL: logging level (default: INFO, DEBUG in development)
"""
import logging
import os


def run_service():
    """Run the golf club API."""
    from golfclub.app import create_app

    app = create_app()
    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    logging.getLogger(__name__).info(f"Starting Golf Club API on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    run_service()
