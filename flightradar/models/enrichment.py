"""
Enrichment records fetched out-of-band from remote services.

RouteInfo comes from the OpenSky flights-by-aircraft endpoint,
PhotoRecord from planespotters.net. Both are cached per hex key for
as long as the aircraft stays visible.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class RouteInfo:
    """Route information for the most recent flight leg of an aircraft."""
    icao24: str
    callsign: Optional[str] = None
    origin: Optional[str] = None  # estimated departure airport (ICAO)
    destination: Optional[str] = None  # estimated arrival airport (ICAO)
    departure: Optional[datetime] = None
    arrival: Optional[datetime] = None
    aircraft: Optional[str] = None
    airline: Optional[str] = None

    @classmethod
    def from_opensky(cls, icao24: str, flight: dict) -> 'RouteInfo':
        """Build from one element of OpenSky's /flights/aircraft response."""
        callsign = flight.get('callsign')
        if callsign:
            callsign = callsign.strip() or None

        return cls(
            icao24=icao24.lower(),
            callsign=callsign,
            origin=flight.get('estDepartureAirport'),
            destination=flight.get('estArrivalAirport'),
            departure=_from_epoch(flight.get('firstSeen')),
            arrival=_from_epoch(flight.get('lastSeen')),
        )

    def to_dict(self) -> dict:
        return {
            'icao24': self.icao24,
            'callsign': self.callsign,
            'origin': self.origin,
            'destination': self.destination,
            'departure': self.departure.isoformat() if self.departure else None,
            'arrival': self.arrival.isoformat() if self.arrival else None,
            'aircraft': self.aircraft,
            'airline': self.airline,
        }


@dataclass(frozen=True)
class PhotoRecord:
    """Aircraft photo with attribution."""
    photo_url: str
    photographer: Optional[str] = None
    registration: Optional[str] = None
    type: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'photo_url': self.photo_url,
            'photographer': self.photographer,
            'registration': self.registration,
            'type': self.type,
        }


def _from_epoch(value) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
