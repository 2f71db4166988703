"""
Metrics and control API endpoints.

Provides endpoints for:
- GET /api/metrics/statistics - Session statistics summary
- POST /api/metrics/statistics/reset - Reset session statistics
- GET /api/metrics/status - System status and health
- POST /api/metrics/polling - Start or stop polling
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text

from flightradar.analytics import summarize_statistics
from flightradar.config import config
from flightradar.exceptions import ConfigError
from flightradar.models.base import SessionLocal

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')


@metrics_bp.route('/statistics', methods=['GET'])
def get_statistics():
    """
    Session statistics.

    Returns totals, top 5 aircraft types and the altitude distribution.
    """
    start_time = time.perf_counter()
    tracker = current_app.config['TRACKER']

    summary = summarize_statistics(tracker.statistics_snapshot())

    query_time_ms = (time.perf_counter() - start_time) * 1000
    result = summary.to_dict()
    result['timestamp'] = datetime.now(timezone.utc).isoformat()
    result['query_time_ms'] = round(query_time_ms, 2)
    return jsonify(result)


@metrics_bp.route('/statistics/reset', methods=['POST'])
def reset_statistics():
    """Zero all statistics and start a new session."""
    tracker = current_app.config['TRACKER']
    tracker.reset_statistics()
    logger.info('Statistics reset via API')

    return jsonify({
        'success': True,
        'statistics': tracker.statistics_snapshot().to_dict(),
    })


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - Polling scheduler status
    - Tracker state counts
    - Database connectivity
    - Configuration info
    """
    start_time = time.perf_counter()

    tracker = current_app.config['TRACKER']
    scheduler = current_app.config.get('SCHEDULER')
    scheduler_stats = scheduler.stats if scheduler else {'running': False}

    # Check database connectivity
    db_ok = True
    try:
        with SessionLocal() as session:
            session.execute(text('SELECT 1'))
    except Exception as e:
        db_ok = False
        logger.error(f'Database health check failed: {e}')

    tracker_stats = tracker.stats
    healthy = db_ok and scheduler_stats.get('running') and not tracker_stats['last_error']

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'status': 'healthy' if healthy else 'degraded',
        'database': {
            'connected': db_ok,
            'type': 'sqlite' if config.database.is_sqlite else 'other',
        },
        'polling': scheduler_stats,
        'tracker': tracker_stats,
        'receiver': {
            'url': config.receiver.base_url,
            'location': tracker.reference_location,
        },
        'config': {
            'poll_interval': config.polling.interval,
            'route_cooldown_seconds': config.enrichment.route_cooldown_seconds,
            'opensky_configured': config.opensky.is_configured,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@metrics_bp.route('/polling', methods=['POST'])
def control_polling():
    """
    Start or stop the poll scheduler.

    Body: {"action": "start" | "stop", "interval": float (optional)}
    """
    scheduler = current_app.config.get('SCHEDULER')
    if scheduler is None:
        return jsonify({'error': 'Polling not available'}), 503

    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    action = data.get('action')
    if action == 'stop':
        scheduler.stop()
    elif action == 'start':
        fetch_fn = current_app.config.get('FETCH_FN')
        if fetch_fn is None:
            return jsonify({'error': 'No feed configured'}), 503
        try:
            interval = float(data['interval']) if 'interval' in data else None
            scheduler.start(fetch_fn, interval)
        except (TypeError, ValueError, ConfigError) as e:
            return jsonify({'error': f'Invalid interval: {e}'}), 400
    else:
        return jsonify({'error': 'action must be start or stop'}), 400

    return jsonify({
        'success': True,
        'polling': scheduler.stats,
    })
