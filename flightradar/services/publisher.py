"""
Condensed snapshot publisher.

After every applied batch the tracker hands its visible aircraft to a
publish sink. JsonFilePublisher writes the condensed form consumed by
home-screen widgets: aircraft count, last update, the nearest aircraft
and up to ten closest aircraft with their cached origin airport.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from flightradar.config import config
from flightradar.geo import distance_from
from flightradar.ingestion.aircraft_types import AircraftTypeDirectory
from flightradar.models.aircraft import AircraftSnapshot
from flightradar.models.enrichment import RouteInfo

logger = logging.getLogger(__name__)

RouteLookup = Callable[[str], Optional[RouteInfo]]


def build_snapshot(
    visible: List[AircraftSnapshot],
    nearest: Optional[Tuple[AircraftSnapshot, float]],
    last_update: Optional[float],
    reference_location: Tuple[float, float],
    type_directory: AircraftTypeDirectory,
    route_lookup: Optional[RouteLookup] = None,
    max_aircraft: int = 10,
) -> dict:
    """Condensed, JSON-serializable view of the fused state."""
    ordered = sorted(
        (a for a in visible if a.has_position),
        key=lambda a: distance_from(reference_location, a.position),
    )

    aircraft = []
    for snapshot in ordered[:max_aircraft]:
        route = route_lookup(snapshot.hex) if route_lookup else None
        aircraft.append({
            'id': snapshot.hex,
            'callsign': snapshot.callsign,
            'latitude': snapshot.lat,
            'longitude': snapshot.lon,
            'altitude': snapshot.altitude,
            'heading': snapshot.heading,
            'origin': route.origin if route else None,
            'aircraft_type': type_directory.label_for(snapshot),
        })

    nearest_dict = None
    if nearest is not None:
        nearest_aircraft, distance = nearest
        nearest_dict = {
            'callsign': nearest_aircraft.callsign,
            'altitude': nearest_aircraft.altitude,
            'distance_km': round(distance, 2),
            'heading': nearest_aircraft.heading,
        }

    return {
        'aircraft_count': len(visible),
        'last_update': (
            datetime.fromtimestamp(last_update, tz=timezone.utc).isoformat()
            if last_update is not None else None
        ),
        'nearest': nearest_dict,
        'aircraft': aircraft,
    }


class JsonFilePublisher:
    """Writes the condensed snapshot to a JSON file atomically."""

    def __init__(
        self,
        path: Optional[str] = None,
        route_lookup: Optional[RouteLookup] = None,
        type_directory: Optional[AircraftTypeDirectory] = None,
        reference_location: Optional[Tuple[float, float]] = None,
        max_aircraft: Optional[int] = None,
    ):
        self.path = path or config.publish.snapshot_path
        if not self.path:
            raise ValueError('JsonFilePublisher needs a snapshot path')
        self.route_lookup = route_lookup
        self.type_directory = AircraftTypeDirectory.default() if type_directory is None else type_directory
        self.reference_location = reference_location or config.receiver.location
        self.max_aircraft = max_aircraft or config.publish.max_aircraft
        self._publish_count = 0

    def publish(
        self,
        visible: List[AircraftSnapshot],
        nearest: Optional[Tuple[AircraftSnapshot, float]],
        last_update: Optional[float],
    ) -> None:
        snapshot = build_snapshot(
            visible,
            nearest,
            last_update,
            reference_location=self.reference_location,
            type_directory=self.type_directory,
            route_lookup=self.route_lookup,
            max_aircraft=self.max_aircraft,
        )

        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        # Write beside the target then rename, so readers never see a partial file
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(snapshot, f)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        self._publish_count += 1
        logger.debug(f'Published {snapshot["aircraft_count"]} aircraft to {self.path}')

    @property
    def publish_count(self) -> int:
        return self._publish_count
