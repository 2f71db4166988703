"""
Data ingestion module for FlightRadar.

Handles polling the local readsb receiver and the load-once lookup
tables (aircraft types, airports) used to label what it reports.
"""

from flightradar.ingestion.aircraft_types import AircraftTypeDirectory, is_resolved_type
from flightradar.ingestion.airports import AirportDirectory
from flightradar.ingestion.readsb_client import ReadsbClient

__all__ = ['AircraftTypeDirectory', 'AirportDirectory', 'ReadsbClient', 'is_resolved_type']
