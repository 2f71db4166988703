"""
AircraftSnapshot - one aircraft as reported by a single feed fetch.

readsb / tar1090 aircraft.json entry (fields we use):
    hex          - ICAO24 hex address ('~' prefix for non-ICAO addresses)
    flight       - Callsign, space padded to 8 chars
    alt_baro     - Barometric altitude in feet, or the string 'ground'
    alt_geom     - Geometric (GNSS) altitude in feet
    gs           - Ground speed in knots
    track        - True track over ground in degrees
    baro_rate    - Barometric vertical rate in ft/min
    squawk       - Mode A code
    emergency    - Emergency/priority status
    category     - Emitter category (A0-D7)
    type         - Message source type (adsb_icao, mlat, tisb_other, ...)
    r / t        - Registration and ICAO type designator (database lookups)
    lat / lon    - WGS84 position
    seen_pos     - Seconds since last position update
    seen         - Seconds since last message
    rssi         - Signal strength in dBFS
    messages     - Total Mode S messages received
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class AircraftSnapshot:
    """
    Immutable aircraft report produced wholesale by each fetch.

    Each cycle replaces the working set for the hex key; snapshots are
    never mutated after parsing.
    """
    hex: str
    flight: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    alt_baro: Optional[int] = None
    alt_geom: Optional[int] = None
    on_ground: bool = False
    gs: Optional[float] = None
    track: Optional[float] = None
    baro_rate: Optional[int] = None
    rssi: Optional[float] = None
    squawk: Optional[str] = None
    emergency: Optional[str] = None
    category: Optional[str] = None
    source_type: Optional[str] = None
    registration: Optional[str] = None
    type_code: Optional[str] = None
    seen: Optional[float] = None
    seen_pos: Optional[float] = None
    messages: Optional[int] = None

    @classmethod
    def from_json(cls, data: dict) -> Optional['AircraftSnapshot']:
        """
        Parse one aircraft.json entry.

        Returns None when the entry has no usable hex address.
        """
        if not isinstance(data, dict):
            return None

        hex_code = _as_str(data.get('hex'))
        if not hex_code:
            return None

        alt_baro_raw = data.get('alt_baro')
        on_ground = alt_baro_raw == 'ground'

        return cls(
            hex=hex_code.lower(),
            flight=_as_str(data.get('flight')),
            lat=_as_float(data.get('lat')),
            lon=_as_float(data.get('lon')),
            alt_baro=0 if on_ground else _as_int(alt_baro_raw),
            alt_geom=_as_int(data.get('alt_geom')),
            on_ground=on_ground,
            gs=_as_float(data.get('gs')),
            track=_as_float(data.get('track')),
            baro_rate=_as_int(data.get('baro_rate')),
            rssi=_as_float(data.get('rssi')),
            squawk=_as_str(data.get('squawk')),
            emergency=_as_str(data.get('emergency')),
            category=_as_str(data.get('category')),
            source_type=_as_str(data.get('type')),
            registration=_as_str(data.get('r')),
            type_code=_as_str(data.get('t')),
            seen=_as_float(data.get('seen')),
            seen_pos=_as_float(data.get('seen_pos')),
            messages=_as_int(data.get('messages')),
        )

    @property
    def has_position(self) -> bool:
        """Check if this report carries both coordinates."""
        return self.lat is not None and self.lon is not None

    @property
    def position(self) -> Optional[Tuple[float, float]]:
        if not self.has_position:
            return None
        return (self.lat, self.lon)

    @property
    def callsign(self) -> str:
        """Trimmed flight number, falling back to the hex address."""
        return self.flight or self.hex.upper()

    @property
    def altitude(self) -> int:
        """Best available altitude in feet (baro, then geometric, then 0)."""
        if self.alt_baro is not None:
            return self.alt_baro
        if self.alt_geom is not None:
            return self.alt_geom
        return 0

    @property
    def ground_speed(self) -> float:
        return self.gs or 0.0

    @property
    def heading(self) -> float:
        return self.track or 0.0


@dataclass(frozen=True)
class FeedResponse:
    """One aircraft.json document: receiver time, message count, aircraft."""
    now: float
    messages: int
    aircraft: List[AircraftSnapshot] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> 'FeedResponse':
        aircraft = []
        for entry in data.get('aircraft') or []:
            snapshot = AircraftSnapshot.from_json(entry)
            if snapshot is not None:
                aircraft.append(snapshot)

        return cls(
            now=_as_float(data.get('now')) or 0.0,
            messages=_as_int(data.get('messages')) or 0,
            aircraft=aircraft,
        )
