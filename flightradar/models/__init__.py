"""
Data models for FlightRadar.

In-memory value types for the fusion engine (snapshots, trail points,
coverage samples, enrichment records) plus the small SQLAlchemy schema
used for key-value persistence.
"""

from flightradar.models.base import (
    Base,
    engine,
    SessionLocal,
    create_db_engine,
    create_session_factory,
    init_db,
    get_session,
)
from flightradar.models.aircraft import AircraftSnapshot, FeedResponse
from flightradar.models.enrichment import PhotoRecord, RouteInfo
from flightradar.models.kv_store import KeyValueEntry
from flightradar.models.tracking import CoverageSample, TrailPoint

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'create_db_engine',
    'create_session_factory',
    'init_db',
    'get_session',
    'AircraftSnapshot',
    'FeedResponse',
    'PhotoRecord',
    'RouteInfo',
    'KeyValueEntry',
    'CoverageSample',
    'TrailPoint',
]
