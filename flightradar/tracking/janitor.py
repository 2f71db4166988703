"""
Periodic cleanup of derived state.

Sweeps, in order:
1. Enrichment records for aircraft no longer visible
2. Coverage samples older than the coverage max age (1 hour)
3. Throttle ledger entries older than the retention horizon (5 minutes)

Trails are never touched here; the merger prunes them every cycle.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from flightradar.config import config
from flightradar.tracking.coverage import CoverageSampler
from flightradar.tracking.enrichment_cache import EnrichmentCache

logger = logging.getLogger(__name__)


@dataclass
class JanitorReport:
    """Counts removed by one sweep."""
    enrichment_evicted: int = 0
    coverage_evicted: int = 0
    throttle_evicted: int = 0

    @property
    def total(self) -> int:
        return self.enrichment_evicted + self.coverage_evicted + self.throttle_evicted

    def to_dict(self) -> dict:
        return {
            'enrichment_evicted': self.enrichment_evicted,
            'coverage_evicted': self.coverage_evicted,
            'throttle_evicted': self.throttle_evicted,
        }


class Janitor:
    """Evicts stale enrichment, coverage and throttle entries."""

    def __init__(
        self,
        enrichment: EnrichmentCache,
        coverage: CoverageSampler,
        coverage_max_age_seconds: Optional[float] = None,
        throttle_retention_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.enrichment = enrichment
        self.coverage = coverage
        self.coverage_max_age_seconds = (
            config.coverage.max_age_seconds
            if coverage_max_age_seconds is None else coverage_max_age_seconds
        )
        self.throttle_retention_seconds = (
            config.enrichment.throttle_retention_seconds
            if throttle_retention_seconds is None else throttle_retention_seconds
        )
        self._clock = clock
        self.sweep_count = 0

    def sweep(self, visible: Iterable[str]) -> JanitorReport:
        """Run all sweeps against the currently visible hex set."""
        now = self._clock()

        report = JanitorReport(
            enrichment_evicted=self.enrichment.evict_absent(visible),
            coverage_evicted=self.coverage.evict_older_than(now - self.coverage_max_age_seconds),
            throttle_evicted=self.enrichment.evict_throttle_older_than(
                now - self.throttle_retention_seconds
            ),
        )
        self.sweep_count += 1

        logger.info(
            f'Cleanup: removed {report.enrichment_evicted} enrichment records, '
            f'{report.coverage_evicted} coverage samples, '
            f'{report.throttle_evicted} throttle entries'
        )
        return report
