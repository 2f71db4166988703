"""
Tracker - single owner of all fused live state.

Holds the current visible aircraft and every derived view (trails,
coverage, statistics, enrichment cache) behind one re-entrant lock, so
merges, cache writes and janitor sweeps never interleave. External calls
(feed fetch, route/photo lookups) happen outside the lock; only their
write-back enters it.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from flightradar.config import config
from flightradar.geo import distance_from
from flightradar.ingestion.aircraft_types import AircraftTypeDirectory
from flightradar.models.aircraft import AircraftSnapshot, FeedResponse
from flightradar.models.enrichment import PhotoRecord, RouteInfo
from flightradar.models.tracking import CoverageSample, TrailPoint
from flightradar.tracking.coverage import CoverageSampler, SignalBand
from flightradar.tracking.enrichment_cache import (
    EnrichmentCache,
    EnrichmentKind,
    EnrichmentLookup,
)
from flightradar.tracking.janitor import Janitor, JanitorReport
from flightradar.tracking.merger import MergeResult, SnapshotMerger
from flightradar.tracking.statistics import FlightStatistics, StatisticsAggregator
from flightradar.tracking.trails import TrailStore

logger = logging.getLogger(__name__)

RouteFetcher = Callable[[str], Optional[RouteInfo]]
PhotoFetcher = Callable[[str], Optional[PhotoRecord]]


class Tracker:
    """
    Live-state fusion engine.

    Typical wiring:
        tracker = Tracker(statistics=StatisticsAggregator(store))
        scheduler = PollScheduler(tracker)
        scheduler.start(ReadsbClient.from_config().fetcher(), interval=2.0)
    """

    def __init__(
        self,
        trails: Optional[TrailStore] = None,
        coverage: Optional[CoverageSampler] = None,
        statistics: Optional[StatisticsAggregator] = None,
        enrichment: Optional[EnrichmentCache] = None,
        type_directory: Optional[AircraftTypeDirectory] = None,
        publisher=None,
        route_fetcher: Optional[RouteFetcher] = None,
        photo_fetcher: Optional[PhotoFetcher] = None,
        reference_location: Optional[Tuple[float, float]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self.reference_location = reference_location or config.receiver.location
        self.type_directory = AircraftTypeDirectory.default() if type_directory is None else type_directory

        self.trails = TrailStore(clock=clock) if trails is None else trails
        self.coverage = CoverageSampler(clock=clock) if coverage is None else coverage
        self.statistics = statistics or StatisticsAggregator(clock=clock)
        self.enrichment = enrichment or EnrichmentCache(clock=clock)

        self.merger = SnapshotMerger(
            self.trails,
            self.statistics,
            self.coverage,
            type_directory=self.type_directory,
            reference_location=self.reference_location,
        )
        self.janitor = Janitor(self.enrichment, self.coverage, clock=clock)

        self.publisher = publisher
        self.route_fetcher = route_fetcher
        self.photo_fetcher = photo_fetcher

        self._lock = threading.RLock()
        self._aircraft: List[AircraftSnapshot] = []
        self._selected: Optional[str] = None
        self._last_update: Optional[float] = None
        self._feed_time: Optional[float] = None
        self._feed_messages: int = 0
        self._last_error: Optional[str] = None
        self._last_applied_sequence = 0
        self._error_count = 0

    # -------------------------------------------------------------------------
    # Mutations (serialized)
    # -------------------------------------------------------------------------

    def apply_batch(self, response: FeedResponse, token=None) -> Optional[MergeResult]:
        """
        Merge a successful fetch into fused state and publish.

        Returns None (and changes nothing) if ``token`` is older than a
        batch that has already been applied.
        """
        with self._lock:
            if token is not None:
                if token.sequence <= self._last_applied_sequence:
                    logger.debug(
                        f'Ignoring batch {token.sequence}, '
                        f'{self._last_applied_sequence} already applied'
                    )
                    return None

            result = self.merger.merge(response.aircraft)
            if token is not None:
                self._last_applied_sequence = token.sequence
            self._aircraft = result.visible
            self._last_update = self._clock()
            self._feed_time = response.now
            self._feed_messages = response.messages
            self._last_error = None

        self.publish()
        return result

    def report_error(self, error: Exception, token=None) -> None:
        """Record a failed cycle; fused state is left as it was."""
        with self._lock:
            if token is not None and token.sequence <= self._last_applied_sequence:
                return
            self._error_count += 1
            self._last_error = f'Failed to fetch aircraft: {error}'
        logger.error(f'Fetch cycle failed: {error}')

    def run_janitor(self) -> JanitorReport:
        """Sweep stale enrichment, coverage and throttle entries."""
        with self._lock:
            visible = {a.hex for a in self._aircraft}
            return self.janitor.sweep(visible)

    def reset_statistics(self) -> None:
        """Zero statistics and forget first sightings."""
        with self._lock:
            self.statistics.reset()
            self.merger.reset_seen()

    # -------------------------------------------------------------------------
    # Enrichment side channel
    # -------------------------------------------------------------------------

    def select_aircraft(self, hex_code: str) -> Optional[Dict[str, EnrichmentLookup]]:
        """
        Mark an aircraft as selected and request its route and photo.

        Returns the lookup per enrichment kind, or None if the aircraft is
        not currently visible.
        """
        hex_code = hex_code.lower()
        with self._lock:
            if self.get_aircraft(hex_code) is None:
                return None
            self._selected = hex_code

        lookups = {}
        if self.route_fetcher is not None:
            lookups[EnrichmentKind.ROUTE.value] = self.enrichment.get_or_fetch(
                hex_code, EnrichmentKind.ROUTE, self.route_fetcher
            )
        if self.photo_fetcher is not None:
            lookups[EnrichmentKind.PHOTO.value] = self.enrichment.get_or_fetch(
                hex_code, EnrichmentKind.PHOTO, self.photo_fetcher
            )
        return lookups

    def route_for(self, hex_code: str) -> Optional[RouteInfo]:
        return self.enrichment.get_cached(hex_code, EnrichmentKind.ROUTE)

    def photo_for(self, hex_code: str) -> Optional[PhotoRecord]:
        return self.enrichment.get_cached(hex_code, EnrichmentKind.PHOTO)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def aircraft(self) -> List[AircraftSnapshot]:
        with self._lock:
            return list(self._aircraft)

    @property
    def selected(self) -> Optional[str]:
        return self._selected

    @property
    def last_update(self) -> Optional[float]:
        return self._last_update

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def get_aircraft(self, hex_code: str) -> Optional[AircraftSnapshot]:
        hex_code = hex_code.lower()
        with self._lock:
            for aircraft in self._aircraft:
                if aircraft.hex == hex_code:
                    return aircraft
        return None

    def distance_to(self, aircraft: AircraftSnapshot) -> Optional[float]:
        position = aircraft.position
        if position is None:
            return None
        return distance_from(self.reference_location, position)

    def nearest_aircraft(self) -> Optional[Tuple[AircraftSnapshot, float]]:
        """Closest visible aircraft to the receiver and its distance in km."""
        nearest = None
        for aircraft in self.aircraft:
            distance = self.distance_to(aircraft)
            if distance is None:
                continue
            if nearest is None or distance < nearest[1]:
                nearest = (aircraft, distance)
        return nearest

    def trail(self, hex_code: str) -> List[TrailPoint]:
        with self._lock:
            return self.trails.get(hex_code.lower())

    def coverage_samples(self, band: SignalBand = SignalBand.ALL) -> List[CoverageSample]:
        with self._lock:
            return list(self.coverage.in_band(band))

    def statistics_snapshot(self) -> FlightStatistics:
        return self.statistics.snapshot()

    def type_label(self, aircraft: AircraftSnapshot) -> str:
        return self.type_directory.label_for(aircraft)

    # -------------------------------------------------------------------------
    # Publish
    # -------------------------------------------------------------------------

    def publish(self) -> None:
        """Hand the condensed state to the publish sink (fire-and-forget)."""
        if self.publisher is None:
            return

        with self._lock:
            visible = list(self._aircraft)
            last_update = self._last_update
        nearest = self.nearest_aircraft()

        try:
            self.publisher.publish(visible, nearest, last_update)
        except Exception as e:
            logger.warning(f'Publish failed: {e}')

    def shutdown(self) -> None:
        """Flush pending statistics and stop enrichment workers."""
        self.statistics.close()
        self.enrichment.shutdown()

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                'aircraft_count': len(self._aircraft),
                'trail_count': len(self.trails),
                'coverage_samples': len(self.coverage),
                'seen_count': len(self.merger.seen),
                'selected': self._selected,
                'last_update': self._last_update,
                'feed_time': self._feed_time,
                'feed_messages': self._feed_messages,
                'last_error': self._last_error,
                'error_count': self._error_count,
                'janitor_sweeps': self.janitor.sweep_count,
                'enrichment': self.enrichment.stats,
            }
