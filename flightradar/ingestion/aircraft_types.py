"""
Aircraft type lookup table.

Maps ICAO type designators (and the readsb emitter category as a fallback)
to human readable labels. The table is immutable and loaded once; build a
directory at startup and inject it into the components that need labels.

Usage:
    from flightradar.ingestion.aircraft_types import AircraftTypeDirectory

    types = AircraftTypeDirectory.default()
    types.name('B738')          # 'Boeing 737-800'
    types.label_for(snapshot)   # best label, or 'Unknown'
"""

import csv
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from flightradar.models.aircraft import AircraftSnapshot

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = 'Unknown'

# Labels that mean "type not resolved yet"
PLACEHOLDER_TYPES = frozenset({UNKNOWN_TYPE, 'N/A', ''})

# readsb 'type' values describe the message source, not the airframe
MESSAGE_SOURCE_TYPES = frozenset({
    'adsb_icao', 'adsb_icao_nt', 'adsr_icao', 'tisb_icao', 'adsc', 'mlat',
    'other', 'mode_s', 'adsb_other', 'adsr_other', 'tisb_other', 'tisb_trackfile',
    'unknown',
})


# Common aircraft type codes
AIRCRAFT_TYPES: Mapping[str, str] = {
    # Boeing
    'B712': 'Boeing 717-200',
    'B737': 'Boeing 737-700',
    'B738': 'Boeing 737-800',
    'B739': 'Boeing 737-900',
    'B38M': 'Boeing 737 MAX 8',
    'B39M': 'Boeing 737 MAX 9',
    'B744': 'Boeing 747-400',
    'B748': 'Boeing 747-8',
    'B752': 'Boeing 757-200',
    'B753': 'Boeing 757-300',
    'B762': 'Boeing 767-200',
    'B763': 'Boeing 767-300',
    'B764': 'Boeing 767-400',
    'B772': 'Boeing 777-200',
    'B773': 'Boeing 777-300',
    'B77L': 'Boeing 777-200LR',
    'B77W': 'Boeing 777-300ER',
    'B788': 'Boeing 787-8',
    'B789': 'Boeing 787-9',
    'B78X': 'Boeing 787-10',
    # Airbus
    'A319': 'Airbus A319',
    'A320': 'Airbus A320',
    'A321': 'Airbus A321',
    'A20N': 'Airbus A320neo',
    'A21N': 'Airbus A321neo',
    'A332': 'Airbus A330-200',
    'A333': 'Airbus A330-300',
    'A339': 'Airbus A330-900neo',
    'A359': 'Airbus A350-900',
    'A35K': 'Airbus A350-1000',
    'A388': 'Airbus A380-800',
    # Generic family codes (variant unknown)
    'A330': 'Airbus A330',
    'A350': 'Airbus A350',
    'A380': 'Airbus A380',
    'B73': 'Boeing 737',
    'B74': 'Boeing 747',
    'B75': 'Boeing 757',
    'B76': 'Boeing 767',
    'B77': 'Boeing 777',
    'B78': 'Boeing 787',
    # Embraer
    'E145': 'Embraer ERJ-145',
    'E170': 'Embraer E170',
    'E175': 'Embraer E175',
    'E190': 'Embraer E190',
    'E195': 'Embraer E195',
    # Bombardier / De Havilland
    'CRJ2': 'Bombardier CRJ-200',
    'CRJ7': 'Bombardier CRJ-700',
    'CRJ9': 'Bombardier CRJ-900',
    'DH8C': 'Bombardier Q300',
    'DH8D': 'Bombardier Q400',
    'DHC6': 'De Havilland Twin Otter',
    'DHC2': 'De Havilland Beaver',
    # Regional
    'AT72': 'ATR 72',
    'AT76': 'ATR 72-600',
    # Cargo
    'B74F': 'Boeing 747F',
    'B77F': 'Boeing 777F',
    'MD11': 'McDonnell Douglas MD-11',
    # General aviation
    'C172': 'Cessna 172',
    'C208': 'Cessna 208',
    'PC12': 'Pilatus PC-12',
    'SR22': 'Cirrus SR22',
}


# ADS-B emitter categories (DO-260B), used when no designator is known
CATEGORY_LABELS: Mapping[str, str] = {
    'A1': 'Light Aircraft',
    'A2': 'Small Aircraft',
    'A3': 'Large Aircraft',
    'A4': 'High Vortex Large Aircraft',
    'A5': 'Heavy Aircraft',
    'A6': 'High Performance Aircraft',
    'A7': 'Rotorcraft',
    'B1': 'Glider',
    'B2': 'Lighter-than-air',
    'B3': 'Parachutist',
    'B4': 'Ultralight',
    'B6': 'UAV',
    'B7': 'Space Vehicle',
    'C1': 'Emergency Vehicle',
    'C2': 'Service Vehicle',
    'C3': 'Ground Obstruction',
}


def is_resolved_type(label: Optional[str]) -> bool:
    """True when a type label is a real value rather than a placeholder."""
    return label is not None and label.strip() not in PLACEHOLDER_TYPES


class AircraftTypeDirectory:
    """
    Read-only type code to name lookup.

    Unknown codes fall back to the code itself, so a designator we have
    no name for is still a resolved type.
    """

    def __init__(
        self,
        types: Optional[Mapping[str, str]] = None,
        categories: Optional[Mapping[str, str]] = None,
    ):
        source = AIRCRAFT_TYPES if types is None else types
        self._types = MappingProxyType({k.upper(): v for k, v in source.items()})
        self._categories = MappingProxyType(
            dict(CATEGORY_LABELS if categories is None else categories)
        )

    @classmethod
    def default(cls) -> 'AircraftTypeDirectory':
        return cls()

    @classmethod
    def from_csv(cls, csv_path: Path) -> 'AircraftTypeDirectory':
        """
        Build a directory from the defaults plus a two-column CSV.

        Expected header: code,name
        """
        types = dict(AIRCRAFT_TYPES)
        if not csv_path.exists():
            logger.error(f'Aircraft type CSV not found: {csv_path}')
            return cls(types)

        loaded = 0
        with open(csv_path, 'r', encoding='utf-8', errors='ignore') as f:
            reader = csv.DictReader(f)
            for row in reader:
                code = (row.get('code') or '').strip().upper()
                name = (row.get('name') or '').strip()
                if code and name:
                    types[code] = name
                    loaded += 1

        logger.info(f'Loaded {loaded} aircraft type names from {csv_path}')
        return cls(types)

    def name(self, code: Optional[str]) -> str:
        """Name for a designator, the designator itself, or 'Unknown'."""
        if not code or not code.strip():
            return UNKNOWN_TYPE
        code = code.strip().upper()
        return self._types.get(code, code)

    def label_for(self, aircraft: AircraftSnapshot) -> str:
        """
        Best type label for a snapshot.

        Priority: type designator, airframe-like 'type' value, emitter
        category, then 'Unknown'.
        """
        if aircraft.type_code:
            return self.name(aircraft.type_code)

        source = aircraft.source_type
        if source and source.lower() not in MESSAGE_SOURCE_TYPES:
            return self.name(source)

        if aircraft.category:
            category = aircraft.category.strip().upper()
            return self._categories.get(category, UNKNOWN_TYPE)

        return UNKNOWN_TYPE

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, code: str) -> bool:
        return code.upper() in self._types
