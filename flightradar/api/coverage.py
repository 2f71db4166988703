"""
Coverage API endpoints.

Provides endpoints for:
- GET /api/coverage - Coverage samples, optionally filtered by signal band
- GET /api/coverage/summary - Range and signal summary
"""

import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from flightradar.analytics import CoverageAnalyzer
from flightradar.tracking.coverage import SignalBand

coverage_bp = Blueprint('coverage', __name__, url_prefix='/api/coverage')


def _parse_band():
    try:
        return SignalBand(request.args.get('band', SignalBand.ALL.value).lower())
    except ValueError:
        return None


@coverage_bp.route('', methods=['GET'])
def list_samples():
    """
    Coverage samples.

    Query parameters:
    - band: all|strong|medium|weak (default all)
    """
    start_time = time.perf_counter()
    band = _parse_band()
    if band is None:
        valid = ', '.join(b.value for b in SignalBand)
        return jsonify({'error': f'band must be one of: {valid}'}), 400

    samples = current_app.config['TRACKER'].coverage_samples(band)

    query_time_ms = (time.perf_counter() - start_time) * 1000
    return jsonify({
        'band': band.value,
        'samples': [s.to_dict() for s in samples],
        'count': len(samples),
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@coverage_bp.route('/summary', methods=['GET'])
def coverage_summary():
    """Max range, RSSI statistics, band counts and polar range by sector."""
    start_time = time.perf_counter()
    tracker = current_app.config['TRACKER']

    analyzer = CoverageAnalyzer(reference_location=tracker.reference_location)
    summary = analyzer.summarize(tracker.coverage_samples())

    query_time_ms = (time.perf_counter() - start_time) * 1000
    result = summary.to_dict()
    result['query_time_ms'] = round(query_time_ms, 2)
    return jsonify(result)
