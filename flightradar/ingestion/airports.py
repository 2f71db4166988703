"""
Airport code lookup.

Loads the OpenFlights airports database once and maps both IATA and
ICAO codes to airport names. Used to turn route-info codes (KSEA) into
display names (Seattle Tacoma International Airport).

OpenFlights row format:
    ID,"Name","City","Country","IATA","ICAO",lat,lon,...
"""

import csv
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# OpenFlights uses \N for null columns
_NULL = '\\N'


class AirportDirectory:
    """Immutable IATA/ICAO code to airport name mapping."""

    def __init__(self, names: Optional[Mapping[str, str]] = None):
        self._names = MappingProxyType(
            {k.upper(): v for k, v in (names or {}).items()}
        )

    @classmethod
    def from_csv(cls, csv_path: Path) -> 'AirportDirectory':
        """
        Load an OpenFlights airports file.

        Missing or unreadable files yield an empty directory; lookups
        then fall back to the raw code.
        """
        if not csv_path.exists():
            logger.error(f'Airports CSV not found: {csv_path}')
            return cls()

        names: Dict[str, str] = {}
        with open(csv_path, 'r', encoding='utf-8', errors='ignore', newline='') as f:
            for row in csv.reader(f):
                if len(row) < 6:
                    continue
                name = row[1].strip()
                iata = row[4].strip().upper()
                icao = row[5].strip().upper()

                if iata and iata != _NULL:
                    names[iata] = name
                if icao and icao != _NULL:
                    names[icao] = name

        logger.info(f'Loaded {len(names)} airport codes from {csv_path}')
        return cls(names)

    def name(self, code: Optional[str]) -> str:
        """Airport name for a code, the code itself, or 'Unknown'."""
        if not code or not code.strip():
            return 'Unknown'
        code = code.strip().upper()
        return self._names.get(code, code)

    def __len__(self) -> int:
        return len(self._names)
