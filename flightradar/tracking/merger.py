"""
Snapshot merger - folds one feed batch into the derived views.

Pipeline stages per batch:
1. Filter: only aircraft with both coordinates are visible
2. Trails: append the current position of every visible aircraft
3. Statistics: record first sightings whose type is resolved
4. Coverage: sample every visible report that carries an RSSI
5. Prune: drop trails of departed aircraft after the retention window

The merger holds the session "seen" set. An aircraft whose type is still
unresolved is deliberately left unseen so a later batch with better type
data can record it.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from flightradar.config import config
from flightradar.geo import distance_from
from flightradar.ingestion.aircraft_types import AircraftTypeDirectory, is_resolved_type
from flightradar.models.aircraft import AircraftSnapshot
from flightradar.tracking.coverage import CoverageSampler
from flightradar.tracking.statistics import StatisticsAggregator
from flightradar.tracking.trails import TrailStore

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """What one batch changed."""
    visible: List[AircraftSnapshot] = field(default_factory=list)
    dropped_without_position: int = 0
    new_sightings: List[str] = field(default_factory=list)
    coverage_added: int = 0
    trails_pruned: List[str] = field(default_factory=list)

    @property
    def visible_keys(self) -> Set[str]:
        return {a.hex for a in self.visible}


class SnapshotMerger:
    """
    Applies aircraft batches to the trail store, statistics and coverage.

    Not thread-safe on its own; the tracker serializes calls.
    """

    def __init__(
        self,
        trails: TrailStore,
        statistics: StatisticsAggregator,
        coverage: CoverageSampler,
        type_directory: Optional[AircraftTypeDirectory] = None,
        reference_location: Optional[Tuple[float, float]] = None,
        trail_retention_seconds: Optional[float] = None,
    ):
        self.trails = trails
        self.statistics = statistics
        self.coverage = coverage
        self.type_directory = AircraftTypeDirectory.default() if type_directory is None else type_directory
        self.reference_location = reference_location or config.receiver.location
        self.trail_retention_seconds = (
            config.trails.retention_seconds
            if trail_retention_seconds is None else trail_retention_seconds
        )
        self._seen: Set[str] = set()

    @property
    def seen(self) -> Set[str]:
        return set(self._seen)

    def reset_seen(self) -> None:
        """Forget first sightings (used with a statistics reset)."""
        self._seen.clear()

    def merge(self, batch: Iterable[AircraftSnapshot]) -> MergeResult:
        """Fold one batch into the derived views and return the visible set."""
        result = MergeResult()
        samples = []

        for aircraft in batch:
            position = aircraft.position
            if position is None:
                result.dropped_without_position += 1
                continue

            result.visible.append(aircraft)

            self.trails.add_point(aircraft.hex, position, aircraft.altitude)

            if aircraft.hex not in self._seen:
                type_label = self.type_directory.label_for(aircraft)
                if is_resolved_type(type_label):
                    self.statistics.record(type_label, aircraft.flight, aircraft.altitude)
                    self._seen.add(aircraft.hex)
                    result.new_sightings.append(aircraft.hex)

            if aircraft.rssi is not None:
                samples.append(self.coverage.make_sample(
                    position,
                    aircraft.rssi,
                    distance_from(self.reference_location, position),
                ))

        result.coverage_added = self.coverage.record_many(samples)
        self.statistics.note_position_reports(len(result.visible))

        result.trails_pruned = self.trails.prune_absent(
            result.visible_keys,
            self.trail_retention_seconds,
        )

        logger.debug(
            f'Merged {len(result.visible)} visible aircraft '
            f'({result.dropped_without_position} without position, '
            f'{len(result.new_sightings)} new, {result.coverage_added} coverage samples)'
        )
        return result
