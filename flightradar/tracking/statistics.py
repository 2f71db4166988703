"""
Cumulative session statistics.

Counts distinct aircraft, unique callsigns, an altitude-band histogram and
a type histogram. Each aircraft is recorded once per session (the merger
owns the "seen" set); this module only aggregates.

Persistence is debounced: every mutation cancels the pending save timer
and starts a new one, so a burst of sightings produces a single write once
things have been quiet for the debounce window. Save failures are logged
and swallowed; the in-memory aggregate is authoritative for the session.
"""

import copy
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, Set, Tuple

from flightradar.config import config
from flightradar.ingestion.aircraft_types import is_resolved_type

logger = logging.getLogger(__name__)


# (upper bound exclusive in feet, label); anything above the last bound is 40k+
ALTITUDE_BANDS: List[Tuple[int, str]] = [
    (5000, '0-5k ft'),
    (10000, '5-10k ft'),
    (20000, '10-20k ft'),
    (30000, '20-30k ft'),
    (40000, '30-40k ft'),
]
TOP_ALTITUDE_BAND = '40k+ ft'
ALTITUDE_BAND_LABELS = [label for _, label in ALTITUDE_BANDS] + [TOP_ALTITUDE_BAND]


def altitude_band(altitude: int) -> str:
    """Bucket an altitude in feet into one of the six fixed bands."""
    for upper, label in ALTITUDE_BANDS:
        if altitude < upper:
            return label
    return TOP_ALTITUDE_BAND


@dataclass
class FlightStatistics:
    """Running totals for the current statistics session."""
    total_aircraft_seen: int = 0
    total_position_reports: int = 0
    session_start: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    aircraft_by_altitude: Dict[str, int] = field(default_factory=dict)
    most_common_types: Dict[str, int] = field(default_factory=dict)
    unique_callsigns: Set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        """JSON-serializable form (sets become sorted lists)."""
        return {
            'total_aircraft_seen': self.total_aircraft_seen,
            'total_position_reports': self.total_position_reports,
            'session_start': self.session_start.isoformat(),
            'aircraft_by_altitude': dict(self.aircraft_by_altitude),
            'most_common_types': dict(self.most_common_types),
            'unique_callsigns': sorted(self.unique_callsigns),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FlightStatistics':
        session_start = data.get('session_start')
        try:
            start = datetime.fromisoformat(session_start) if session_start else None
        except (TypeError, ValueError):
            start = None

        return cls(
            total_aircraft_seen=int(data.get('total_aircraft_seen', 0)),
            total_position_reports=int(data.get('total_position_reports', 0)),
            session_start=start or datetime.now(timezone.utc),
            aircraft_by_altitude={
                str(k): int(v) for k, v in (data.get('aircraft_by_altitude') or {}).items()
            },
            most_common_types={
                str(k): int(v) for k, v in (data.get('most_common_types') or {}).items()
            },
            unique_callsigns=set(data.get('unique_callsigns') or []),
        )


class StatisticsStore(Protocol):
    """Opaque persistence contract for the aggregate."""

    def save(self, statistics: FlightStatistics) -> None:
        ...

    def load(self) -> Optional[FlightStatistics]:
        ...


class StatisticsAggregator:
    """
    Owns the FlightStatistics aggregate and its debounced persistence.

    Mutations come from the tracker's serialized domain; the save timer
    runs on its own thread and only ever sees a copy of the aggregate.
    """

    def __init__(
        self,
        store: Optional[StatisticsStore] = None,
        debounce_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.debounce_seconds = (
            config.statistics.save_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self._clock = clock
        self._lock = threading.RLock()
        self._pending_save: Optional[threading.Timer] = None
        self._statistics = self._fresh()
        self._save_count = 0

    def _fresh(self) -> FlightStatistics:
        return FlightStatistics(
            session_start=datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        )

    @property
    def statistics(self) -> FlightStatistics:
        return self.snapshot()

    def snapshot(self) -> FlightStatistics:
        """Deep copy of the current aggregate."""
        with self._lock:
            return copy.deepcopy(self._statistics)

    def load(self) -> FlightStatistics:
        """
        Restore the last saved aggregate, or start from zero.

        A missing store, missing record or unreadable record all yield a
        fresh aggregate.
        """
        loaded = None
        if self.store is not None:
            try:
                loaded = self.store.load()
            except Exception as e:
                logger.warning(f'Failed to load statistics, starting fresh: {e}')

        with self._lock:
            self._statistics = loaded or self._fresh()
            logger.info(
                f'Statistics loaded: {self._statistics.total_aircraft_seen} aircraft '
                f'since {self._statistics.session_start.isoformat()}'
            )
            return copy.deepcopy(self._statistics)

    def record(self, type_label: Optional[str], callsign: Optional[str], altitude: int) -> None:
        """Record one newly sighted aircraft."""
        with self._lock:
            stats = self._statistics
            stats.total_aircraft_seen += 1

            if callsign and callsign.strip():
                stats.unique_callsigns.add(callsign.strip())

            band = altitude_band(altitude)
            stats.aircraft_by_altitude[band] = stats.aircraft_by_altitude.get(band, 0) + 1

            if is_resolved_type(type_label):
                label = type_label.strip()
                stats.most_common_types[label] = stats.most_common_types.get(label, 0) + 1

        self._schedule_save()

    def note_position_reports(self, count: int) -> None:
        """
        Add to the position-report total.

        Runs every cycle, so it does not reschedule the save; the total
        rides along with the next debounced write.
        """
        if count <= 0:
            return
        with self._lock:
            self._statistics.total_position_reports += count

    def reset(self) -> None:
        """Zero all counters and restart the session now."""
        with self._lock:
            self._statistics = self._fresh()
        logger.info('Statistics reset')
        self._schedule_save()

    # -------------------------------------------------------------------------
    # Debounced persistence
    # -------------------------------------------------------------------------

    @property
    def has_pending_save(self) -> bool:
        with self._lock:
            return self._pending_save is not None

    @property
    def save_count(self) -> int:
        return self._save_count

    def _schedule_save(self) -> None:
        if self.store is None:
            return

        with self._lock:
            if self._pending_save is not None:
                self._pending_save.cancel()

            timer = threading.Timer(self.debounce_seconds, self._run_pending_save)
            timer.daemon = True
            self._pending_save = timer
            timer.start()

    def _run_pending_save(self) -> None:
        with self._lock:
            # A newer mutation replaced this timer after it fired
            if self._pending_save is not threading.current_thread():
                return
            self._pending_save = None
        self._save()

    def flush(self) -> bool:
        """Cancel any pending timer and save immediately."""
        with self._lock:
            if self._pending_save is not None:
                self._pending_save.cancel()
                self._pending_save = None
        return self._save()

    def _save(self) -> bool:
        if self.store is None:
            return False

        snapshot = self.snapshot()
        try:
            self.store.save(snapshot)
        except Exception as e:
            logger.warning(f'Statistics save failed (keeping in-memory state): {e}')
            return False

        self._save_count += 1
        logger.debug(f'Statistics saved ({snapshot.total_aircraft_seen} aircraft)')
        return True

    def close(self) -> None:
        """Flush a pending save, if any, before shutdown."""
        if self.has_pending_save:
            self.flush()
