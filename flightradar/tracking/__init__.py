"""
Live-state fusion engine.

Folds each receiver snapshot into bounded derived views and gates
out-of-band enrichment lookups:

    scheduler.py        PollScheduler - fetch timer, cycle tokens, janitor cadence
    tracker.py          Tracker - single owner of fused state
    merger.py           SnapshotMerger - batch -> trails, statistics, coverage
    trails.py           TrailStore - per-aircraft bounded position history
    coverage.py         CoverageSampler - global bounded RSSI/distance samples
    statistics.py       StatisticsAggregator - session totals, debounced saves
    enrichment_cache.py EnrichmentCache - throttled route/photo lookups
    janitor.py          Janitor - periodic eviction of stale derived state
"""

from flightradar.tracking.coverage import CoverageSampler, SignalBand
from flightradar.tracking.enrichment_cache import (
    EnrichmentCache,
    EnrichmentKind,
    EnrichmentLookup,
    LookupStatus,
)
from flightradar.tracking.janitor import Janitor, JanitorReport
from flightradar.tracking.merger import MergeResult, SnapshotMerger
from flightradar.tracking.scheduler import CycleToken, PollScheduler
from flightradar.tracking.statistics import FlightStatistics, StatisticsAggregator
from flightradar.tracking.tracker import Tracker
from flightradar.tracking.trails import TrailStore

__all__ = [
    'CoverageSampler',
    'SignalBand',
    'EnrichmentCache',
    'EnrichmentKind',
    'EnrichmentLookup',
    'LookupStatus',
    'Janitor',
    'JanitorReport',
    'MergeResult',
    'SnapshotMerger',
    'CycleToken',
    'PollScheduler',
    'FlightStatistics',
    'StatisticsAggregator',
    'Tracker',
    'TrailStore',
]
