"""
Aircraft API endpoints.

Provides endpoints for:
- GET /api/aircraft - List currently visible aircraft
- GET /api/aircraft/nearest - Closest aircraft to the receiver
- GET /api/aircraft/<hex> - Single aircraft details
- GET /api/aircraft/<hex>/trail - Recent position trail
- POST /api/aircraft/<hex>/select - Select an aircraft and request enrichment

Everything is served from the tracker's fused state. Only the select
endpoint can trigger remote lookups, and those go through the enrichment
cache's throttle.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from flightradar.models.aircraft import AircraftSnapshot
from flightradar.models.enrichment import RouteInfo

logger = logging.getLogger(__name__)

aircraft_bp = Blueprint('aircraft', __name__, url_prefix='/api/aircraft')


def _tracker():
    return current_app.config['TRACKER']


def aircraft_to_dict(tracker, aircraft: AircraftSnapshot, include_enrichment: bool = True) -> dict:
    """Serialize one visible aircraft with derived fields."""
    distance = tracker.distance_to(aircraft)
    result = {
        'hex': aircraft.hex,
        'callsign': aircraft.callsign,
        'registration': aircraft.registration,
        'type': tracker.type_label(aircraft),
        'category': aircraft.category,
        'position': {
            'latitude': aircraft.lat,
            'longitude': aircraft.lon,
        },
        'telemetry': {
            'altitude_ft': aircraft.altitude,
            'on_ground': aircraft.on_ground,
            'ground_speed_kts': aircraft.ground_speed,
            'heading': aircraft.heading,
            'vertical_rate_fpm': aircraft.baro_rate,
        },
        'squawk': aircraft.squawk,
        'emergency': aircraft.emergency,
        'rssi': aircraft.rssi,
        'seen': aircraft.seen,
        'distance_km': round(distance, 2) if distance is not None else None,
    }

    # Cached enrichment only, never a remote call here
    if include_enrichment:
        route = tracker.route_for(aircraft.hex)
        photo = tracker.photo_for(aircraft.hex)
        result['route'] = _route_to_dict(route) if route else None
        result['photo'] = photo.to_dict() if photo else None

    return result


def _route_to_dict(route: RouteInfo) -> dict:
    airports = current_app.config.get('AIRPORTS')
    result = route.to_dict()
    result['origin_name'] = airports.name(route.origin) if airports is not None else None
    result['destination_name'] = airports.name(route.destination) if airports is not None else None
    return result


def _parse_limit(default: int = 100) -> Optional[int]:
    try:
        limit = int(request.args.get('limit', default))
    except ValueError:
        return None
    if limit < 0:
        return None
    return min(limit, 500)


@aircraft_bp.route('', methods=['GET'])
def list_aircraft():
    """
    List currently visible aircraft.

    Query parameters:
    - limit: int, max results to return (default 100)
    - sort: string, sort field (distance|altitude|speed, default distance)
    - include_enrichment: boolean, include cached route/photo (default true)
    """
    start_time = time.perf_counter()
    tracker = _tracker()

    limit = _parse_limit()
    if limit is None:
        return jsonify({'error': 'limit must be a non-negative integer'}), 400
    sort_by = request.args.get('sort', 'distance')
    include_enrichment = request.args.get('include_enrichment', 'true').lower() == 'true'

    aircraft = tracker.aircraft
    if sort_by == 'altitude':
        aircraft.sort(key=lambda a: a.altitude, reverse=True)
    elif sort_by == 'speed':
        aircraft.sort(key=lambda a: a.ground_speed, reverse=True)
    else:
        aircraft.sort(key=lambda a: tracker.distance_to(a) or 0)

    aircraft_dicts = [
        aircraft_to_dict(tracker, a, include_enrichment=include_enrichment)
        for a in aircraft[:limit]
    ]

    query_time_ms = (time.perf_counter() - start_time) * 1000
    last_update = tracker.last_update

    return jsonify({
        'aircraft': aircraft_dicts,
        'count': len(aircraft_dicts),
        'total': len(aircraft),
        'last_update': (
            datetime.fromtimestamp(last_update, tz=timezone.utc).isoformat()
            if last_update else None
        ),
        'error': tracker.last_error,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@aircraft_bp.route('/nearest', methods=['GET'])
def nearest_aircraft():
    """Closest visible aircraft to the receiver."""
    tracker = _tracker()
    nearest = tracker.nearest_aircraft()
    if nearest is None:
        return jsonify({'error': 'No aircraft visible'}), 404

    aircraft, distance = nearest
    result = aircraft_to_dict(tracker, aircraft)
    result['distance_km'] = round(distance, 2)
    return jsonify(result)


@aircraft_bp.route('/<hex_code>', methods=['GET'])
def get_aircraft(hex_code: str):
    """Details for one visible aircraft, including trail length."""
    start_time = time.perf_counter()
    tracker = _tracker()

    aircraft = tracker.get_aircraft(hex_code)
    if aircraft is None:
        return jsonify({'error': 'Aircraft not found'}), 404

    result = aircraft_to_dict(tracker, aircraft)
    result['trail_points'] = len(tracker.trail(aircraft.hex))
    result['selected'] = tracker.selected == aircraft.hex

    query_time_ms = (time.perf_counter() - start_time) * 1000
    result['query_time_ms'] = round(query_time_ms, 2)
    return jsonify(result)


@aircraft_bp.route('/<hex_code>/trail', methods=['GET'])
def get_trail(hex_code: str):
    """
    Recent positions for an aircraft.

    Trails outlive visibility for a few minutes, so this does not require
    the aircraft to be currently visible.
    """
    tracker = _tracker()
    hex_code = hex_code.lower()
    points = tracker.trail(hex_code)
    if not points:
        return jsonify({'error': 'No trail for aircraft'}), 404

    return jsonify({
        'hex': hex_code,
        'points': [p.to_dict() for p in points],
        'count': len(points),
    })


@aircraft_bp.route('/<hex_code>/select', methods=['POST'])
def select_aircraft(hex_code: str):
    """
    Select an aircraft and request its route and photo.

    Returns each lookup's status: cached (record included), pending
    (a fetch was started) or throttled (try again later).
    """
    tracker = _tracker()
    lookups = tracker.select_aircraft(hex_code)
    if lookups is None:
        return jsonify({'error': 'Aircraft not found'}), 404

    logger.debug(f'Selected {hex_code.lower()}: {[l.status.value for l in lookups.values()]}')
    return jsonify({
        'hex': hex_code.lower(),
        'lookups': {kind: lookup.to_dict() for kind, lookup in lookups.items()},
    })
