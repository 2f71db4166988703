"""
External services for FlightRadar.

Route info (OpenSky), photos (planespotters.net), statistics persistence
and the condensed snapshot publisher.
"""

from flightradar.services.flight_info import FlightInfoService, airline_from_callsign
from flightradar.services.opensky_auth import OpenSkyTokenProvider
from flightradar.services.photos import PhotoService
from flightradar.services.publisher import JsonFilePublisher, build_snapshot
from flightradar.services.statistics_store import SqlStatisticsStore

__all__ = [
    'FlightInfoService',
    'OpenSkyTokenProvider',
    'PhotoService',
    'JsonFilePublisher',
    'SqlStatisticsStore',
    'airline_from_callsign',
    'build_snapshot',
]
