"""
Throttled, cached enrichment lookups.

Route info and photos are fetched out-of-band from rate-limited remote
services. Both kinds share one discipline, keyed by hex address:

1. A cached record (including a cached "nothing exists") is returned
   immediately and never refetched.
2. Otherwise the throttle ledger decides whether an attempt is allowed.
   A key with a fetch in flight is always throttled. Beyond that, route
   info allows one attempt per aircraft per cooldown window; photos have
   no cooldown.
3. The attempt timestamp and the in-flight mark are written *before* the
   fetch is submitted, so a second caller arriving while the first fetch
   runs is throttled rather than issuing a duplicate call.
4. On failure the attempt's own ledger entry is removed so the next
   request may retry straight away. A newer attempt's entry is left alone.

Fetches run on a thread pool; only the write-back takes the cache lock.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

from flightradar.config import config
from flightradar.exceptions import NotFound, TransientFetchFailure

logger = logging.getLogger(__name__)


class EnrichmentKind(str, Enum):
    """Independent enrichment lookup paths."""
    ROUTE = 'route'
    PHOTO = 'photo'


class LookupStatus(str, Enum):
    """
    Outcome of a get_or_fetch call.

    - CACHED: record (possibly None = checked, nothing exists) returned
    - PENDING: a fetch was started; ``future`` resolves to the record
    - THROTTLED: an attempt is in flight or within cooldown; nothing done
    """
    CACHED = 'cached'
    PENDING = 'pending'
    THROTTLED = 'throttled'


@dataclass
class EnrichmentLookup:
    """Result of one lookup request."""
    key: str
    kind: EnrichmentKind
    status: LookupStatus
    record: Optional[Any] = None
    future: Optional[Future] = None

    @property
    def is_available(self) -> bool:
        return self.status is LookupStatus.CACHED

    def to_dict(self) -> dict:
        record = self.record
        if record is not None and hasattr(record, 'to_dict'):
            record = record.to_dict()
        return {
            'kind': self.kind.value,
            'status': self.status.value,
            'record': record,
        }


class EnrichmentCache:
    """
    Per-aircraft enrichment cache with throttle ledgers.

    Records stay cached for as long as the aircraft is visible; the
    janitor evicts entries for aircraft that have left.
    """

    def __init__(
        self,
        route_cooldown_seconds: Optional[float] = None,
        executor: Optional[Executor] = None,
        max_workers: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        route_cooldown = (
            config.enrichment.route_cooldown_seconds
            if route_cooldown_seconds is None else route_cooldown_seconds
        )
        # None = no cooldown, only in-flight attempts block
        self._cooldowns: Dict[EnrichmentKind, Optional[float]] = {
            EnrichmentKind.ROUTE: route_cooldown,
            EnrichmentKind.PHOTO: None,
        }
        self._clock = clock
        self._lock = threading.RLock()

        self._records: Dict[EnrichmentKind, Dict[str, Optional[Any]]] = {
            kind: {} for kind in EnrichmentKind
        }
        self._ledger: Dict[EnrichmentKind, Dict[str, float]] = {
            kind: {} for kind in EnrichmentKind
        }
        self._in_flight: Dict[EnrichmentKind, Dict[str, float]] = {
            kind: {} for kind in EnrichmentKind
        }

        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers or config.enrichment.max_workers

        # Statistics
        self._hits = 0
        self._throttled = 0
        self._fetches = 0
        self._failures = 0

    def _get_executor(self) -> Executor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix='enrichment',
                )
            return self._executor

    def cooldown_for(self, kind: EnrichmentKind) -> Optional[float]:
        return self._cooldowns[kind]

    def get_cached(self, key: str, kind: EnrichmentKind) -> Optional[Any]:
        """Cached record or None (no network, no throttle bookkeeping)."""
        with self._lock:
            return self._records[kind].get(key.lower())

    def is_cached(self, key: str, kind: EnrichmentKind) -> bool:
        """True if the key has been checked, even with a negative result."""
        with self._lock:
            return key.lower() in self._records[kind]

    def get_or_fetch(
        self,
        key: str,
        kind: EnrichmentKind,
        fetcher: Callable[[str], Optional[Any]],
    ) -> EnrichmentLookup:
        """
        Return the cached record, or start at most one fetch for it.

        ``fetcher(key)`` may return None or raise NotFound to report that
        no data exists (cached as a terminal negative), or raise any other
        exception for a transient failure (throttle cleared, retry allowed).
        """
        key = key.lower()
        now = self._clock()

        with self._lock:
            records = self._records[kind]
            if key in records:
                self._hits += 1
                return EnrichmentLookup(key, kind, LookupStatus.CACHED, record=records[key])

            if not self._attempt_permitted(key, kind, now):
                self._throttled += 1
                logger.debug(f'{kind.value} lookup for {key} throttled')
                return EnrichmentLookup(key, kind, LookupStatus.THROTTLED)

            # Gate concurrent callers before the call goes out
            self._ledger[kind][key] = now
            self._in_flight[kind][key] = now
            self._fetches += 1

        try:
            future = self._get_executor().submit(self._run_fetch, key, kind, fetcher, now)
        except Exception:
            with self._lock:
                self._release_attempt(key, kind, now)
                self._fetches -= 1
            raise
        return EnrichmentLookup(key, kind, LookupStatus.PENDING, future=future)

    def _attempt_permitted(self, key: str, kind: EnrichmentKind, now: float) -> bool:
        if key in self._in_flight[kind]:
            return False

        last_attempt = self._ledger[kind].get(key)
        if last_attempt is None:
            return True

        cooldown = self._cooldowns[kind]
        if cooldown is None:
            return False
        return now - last_attempt > cooldown

    def _release_attempt(self, key: str, kind: EnrichmentKind, attempt_ts: float) -> None:
        """Clear the gate set for one attempt. Caller holds the lock."""
        self._clear_in_flight(key, kind, attempt_ts)
        if self._ledger[kind].get(key) == attempt_ts:
            del self._ledger[kind][key]

    def _clear_in_flight(self, key: str, kind: EnrichmentKind, attempt_ts: float) -> None:
        if self._in_flight[kind].get(key) == attempt_ts:
            del self._in_flight[kind][key]

    def _run_fetch(
        self,
        key: str,
        kind: EnrichmentKind,
        fetcher: Callable[[str], Optional[Any]],
        attempt_ts: float,
    ) -> Optional[Any]:
        try:
            record = fetcher(key)
        except NotFound:
            record = None
        except Exception as e:
            with self._lock:
                self._release_attempt(key, kind, attempt_ts)
                self._failures += 1
            logger.warning(f'{kind.value} lookup for {key} failed, retry allowed: {e}')
            if isinstance(e, TransientFetchFailure):
                raise
            raise TransientFetchFailure(f'{kind.value} lookup for {key} failed: {e}') from e

        with self._lock:
            self._records[kind][key] = record
            if self._cooldowns[kind] is None:
                # Cache presence alone prevents refetch
                self._release_attempt(key, kind, attempt_ts)
            else:
                self._clear_in_flight(key, kind, attempt_ts)

        if record is None:
            logger.info(f'No {kind.value} data for {key}')
        else:
            logger.debug(f'Cached {kind.value} for {key}')
        return record

    # -------------------------------------------------------------------------
    # Janitor support
    # -------------------------------------------------------------------------

    def evict_absent(self, visible: Iterable[str]) -> int:
        """Drop cached records for aircraft not in ``visible``."""
        visible = set(visible)
        removed = 0
        with self._lock:
            for kind in EnrichmentKind:
                records = self._records[kind]
                for key in [k for k in records if k not in visible]:
                    del records[key]
                    removed += 1
        return removed

    def evict_throttle_older_than(self, cutoff: float) -> int:
        """Drop ledger entries whose last attempt is before ``cutoff``."""
        removed = 0
        with self._lock:
            for kind in EnrichmentKind:
                ledger = self._ledger[kind]
                for key in [k for k, ts in ledger.items() if ts < cutoff]:
                    del ledger[key]
                    removed += 1
        return removed

    def last_attempt(self, key: str, kind: EnrichmentKind) -> Optional[float]:
        with self._lock:
            return self._ledger[kind].get(key.lower())

    def clear(self) -> None:
        with self._lock:
            for kind in EnrichmentKind:
                self._records[kind].clear()
                self._ledger[kind].clear()

    def shutdown(self, wait: bool = False) -> None:
        """Stop the worker pool if this cache created it."""
        with self._lock:
            executor = self._executor if self._owns_executor else None
            if self._owns_executor:
                self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            return {
                'routes_cached': len(self._records[EnrichmentKind.ROUTE]),
                'photos_cached': len(self._records[EnrichmentKind.PHOTO]),
                'throttle_entries': sum(len(l) for l in self._ledger.values()),
                'in_flight': sum(len(f) for f in self._in_flight.values()),
                'hits': self._hits,
                'throttled': self._throttled,
                'fetches': self._fetches,
                'failures': self._failures,
            }
