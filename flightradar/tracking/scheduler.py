"""
Poll scheduler - owns the fetch timer.

Runs the fetch capability immediately and then every ``interval`` seconds
on a background thread, handing successful batches to the tracker and
failures to its error sink. Every fetch carries a CycleToken; results whose
token belongs to an older generation (the scheduler was stopped or
restarted meanwhile) or whose sequence is older than one already applied
are discarded.

A counter of applied cycles triggers the janitor every N cycles, so
cleanup frequency follows update frequency without a second timer.
"""

import itertools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from flightradar.config import config
from flightradar.exceptions import ConfigError
from flightradar.models.aircraft import FeedResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleToken:
    """Identifies one fetch: scheduler generation and global sequence."""
    generation: int
    sequence: int


class PollScheduler:
    """
    Manages the polling lifecycle.

    ``start`` after ``stop`` is safe, ``stop`` is idempotent and a
    restart always stops the previous timer first.
    """

    def __init__(
        self,
        tracker,
        janitor_every_cycles: Optional[int] = None,
    ):
        self.tracker = tracker
        self.janitor_every_cycles = janitor_every_cycles or config.polling.janitor_every_cycles

        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._retired_thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self._generation = 0
        self._sequence = itertools.count(1)
        self.interval: Optional[float] = None

        # Statistics
        self._cycle_count = 0
        self._applied_count = 0
        self._discarded_count = 0
        self._error_count = 0
        self._last_fetch_time: float = 0

    @property
    def running(self) -> bool:
        with self._lock:
            return self._stop_event is not None and not self._stop_event.is_set()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def start(self, fetch_fn: Callable[[], FeedResponse], interval: Optional[float] = None) -> None:
        """Begin polling ``fetch_fn`` now and every ``interval`` seconds."""
        interval = config.polling.interval if interval is None else interval
        if interval <= 0:
            raise ConfigError(f'Poll interval must be positive, got {interval}')

        with self._lock:
            if self._stop_locked():
                logger.info('Restarting polling, previous cycle stopped')

            self._generation += 1
            generation = self._generation
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(fetch_fn, interval, generation, stop_event),
                name=f'poll-scheduler-{generation}',
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            self.interval = interval
            thread.start()

        logger.info(f'Polling started (interval={interval}s)')

    def stop(self) -> None:
        """
        Stop polling.

        In-flight work is allowed to finish but its result is discarded,
        and no new cycle starts.
        """
        with self._lock:
            stopped = self._stop_locked()
        if stopped:
            logger.info('Polling stopped')

    def _stop_locked(self) -> bool:
        if self._stop_event is None:
            return False
        self._stop_event.set()
        # Invalidate tokens issued by the old timer
        self._generation += 1
        self._stop_event = None
        self._retired_thread = self._thread
        self._thread = None
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the current polling thread (mainly for tests/shutdown)."""
        thread = self._thread or self._retired_thread
        if thread is not None:
            thread.join(timeout)

    def _run(
        self,
        fetch_fn: Callable[[], FeedResponse],
        interval: float,
        generation: int,
        stop_event: threading.Event,
    ) -> None:
        next_run = time.monotonic()
        while not stop_event.is_set():
            self.run_cycle(fetch_fn, generation)

            next_run += interval
            delay = next_run - time.monotonic()
            if delay < 0:
                # Overran the interval; start the next cycle now without bursting
                next_run = time.monotonic()
                delay = 0
            stop_event.wait(delay)

        logger.debug(f'Polling thread for generation {generation} exiting')

    def _issue_token(self, generation: Optional[int]) -> CycleToken:
        with self._lock:
            return CycleToken(
                generation=self._generation if generation is None else generation,
                sequence=next(self._sequence),
            )

    def _is_current(self, token: CycleToken) -> bool:
        with self._lock:
            return token.generation == self._generation

    def run_cycle(
        self,
        fetch_fn: Callable[[], FeedResponse],
        generation: Optional[int] = None,
    ) -> bool:
        """
        Execute one fetch/merge cycle.

        Returns True if a batch was applied. Never raises: fetch and merge
        failures go to the tracker's error sink.
        """
        token = self._issue_token(generation)

        try:
            response = fetch_fn()
        except Exception as e:
            if not self._is_current(token):
                self._count_discarded(token)
                return False
            with self._lock:
                self._error_count += 1
            self.tracker.report_error(e, token)
            return False

        self._last_fetch_time = time.time()

        if not self._is_current(token):
            self._count_discarded(token)
            return False

        try:
            result = self.tracker.apply_batch(response, token)
        except Exception as e:
            # A broken merge must not end the polling thread
            with self._lock:
                self._error_count += 1
            logger.error(f'Error applying fetch cycle {token.sequence}: {e}', exc_info=True)
            self.tracker.report_error(e, token)
            return False

        if result is None:
            self._count_discarded(token)
            return False

        with self._lock:
            self._applied_count += 1
            self._cycle_count += 1
            janitor_due = self._cycle_count % self.janitor_every_cycles == 0

        if janitor_due:
            try:
                self.tracker.run_janitor()
            except Exception as e:
                with self._lock:
                    self._error_count += 1
                logger.error(f'Janitor sweep failed: {e}', exc_info=True)

        return True

    def _count_discarded(self, token: CycleToken) -> None:
        with self._lock:
            self._discarded_count += 1
        logger.debug(f'Discarded stale fetch result (sequence {token.sequence})')

    @property
    def stats(self) -> dict:
        """Get polling statistics."""
        with self._lock:
            return {
                'running': self._stop_event is not None and not self._stop_event.is_set(),
                'interval': self.interval,
                'generation': self._generation,
                'cycle_count': self._cycle_count,
                'applied_count': self._applied_count,
                'discarded_count': self._discarded_count,
                'error_count': self._error_count,
                'last_fetch_time': self._last_fetch_time,
            }
