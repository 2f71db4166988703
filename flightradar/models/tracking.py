"""
Derived rolling-state records: trail points and coverage samples.

Both are plain immutable values; the stores that hold them own all
capacity and eviction rules.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TrailPoint:
    """One position in an aircraft's trail."""
    lat: float
    lon: float
    altitude: int
    timestamp: float

    @property
    def position(self) -> Tuple[float, float]:
        return (self.lat, self.lon)

    def to_dict(self) -> dict:
        return {
            'lat': self.lat,
            'lon': self.lon,
            'altitude': self.altitude,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class CoverageSample:
    """
    A single signal-strength / distance observation.

    distance_km is measured from the fixed receiver location.
    """
    lat: float
    lon: float
    rssi: float
    distance_km: float
    timestamp: float

    @property
    def position(self) -> Tuple[float, float]:
        return (self.lat, self.lon)

    def to_dict(self) -> dict:
        return {
            'lat': self.lat,
            'lon': self.lon,
            'rssi': self.rssi,
            'distance_km': round(self.distance_km, 2),
            'timestamp': self.timestamp,
        }
