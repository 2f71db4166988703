"""
FlightRadar Flask Application.

Main entry point for the web application. Initializes:
- Database schema (statistics key-value store)
- Tracker with trails, coverage, statistics and enrichment cache
- Poll scheduler against the local readsb receiver
- API routes

Usage:
    python -m flightradar.app

Or with gunicorn:
    gunicorn 'flightradar.app:create_app()'
"""

import atexit
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from flask import Flask
from flask_cors import CORS

from flightradar.api import aircraft_bp, coverage_bp, metrics_bp
from flightradar.config import config
from flightradar.ingestion import AircraftTypeDirectory, AirportDirectory, ReadsbClient
from flightradar.models import init_db
from flightradar.models.aircraft import FeedResponse
from flightradar.services import (
    FlightInfoService,
    JsonFilePublisher,
    PhotoService,
    SqlStatisticsStore,
)
from flightradar.tracking import PollScheduler, StatisticsAggregator, Tracker

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def build_tracker() -> Tracker:
    """Wire a Tracker from configuration: store, lookups, services, publisher."""
    type_directory = AircraftTypeDirectory.default()

    statistics = StatisticsAggregator(store=SqlStatisticsStore())
    statistics.load()

    route_fetcher = None
    flight_info = FlightInfoService()
    if flight_info.is_configured:
        route_fetcher = flight_info.fetch_route

    tracker = Tracker(
        statistics=statistics,
        type_directory=type_directory,
        route_fetcher=route_fetcher,
        photo_fetcher=PhotoService().fetch_photo,
    )

    if config.publish.snapshot_path:
        tracker.publisher = JsonFilePublisher(
            config.publish.snapshot_path,
            route_lookup=tracker.route_for,
            type_directory=type_directory,
            reference_location=tracker.reference_location,
        )
        logger.info(f'Publishing widget snapshot to {config.publish.snapshot_path}')

    return tracker


def load_airports() -> AirportDirectory:
    if not config.airports.csv_path:
        return AirportDirectory()
    return AirportDirectory.from_csv(Path(config.airports.csv_path))


def create_app(
    start_polling: bool = True,
    tracker: Optional[Tracker] = None,
    fetch_fn: Optional[Callable[[], FeedResponse]] = None,
    airports: Optional[AirportDirectory] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        start_polling: Whether to start the background poll scheduler.
                       Set to False for testing.
        tracker: Pre-built tracker (tests); built from config if omitted.
        fetch_fn: Feed fetch function; defaults to the configured readsb.
        airports: Airport name lookup for route display.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Initialize database
    logger.info('Initializing database...')
    init_db()

    # Register API blueprints
    app.register_blueprint(aircraft_bp)
    app.register_blueprint(coverage_bp)
    app.register_blueprint(metrics_bp)

    tracker = build_tracker() if tracker is None else tracker
    scheduler = PollScheduler(tracker)
    fetch_fn = fetch_fn or ReadsbClient.from_config().fetcher()

    app.config['TRACKER'] = tracker
    app.config['SCHEDULER'] = scheduler
    app.config['FETCH_FN'] = fetch_fn
    app.config['AIRPORTS'] = load_airports() if airports is None else airports

    if start_polling:
        scheduler.start(fetch_fn, config.polling.interval)
        logger.info(f'Polling {config.receiver.base_url} every {config.polling.interval}s')

        def shutdown():
            scheduler.stop()
            tracker.shutdown()

        atexit.register(shutdown)

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    # Get port from environment or default
    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting FlightRadar on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate poll threads
    )


if __name__ == '__main__':
    run_development_server()
