"""
Receiver coverage sampling.

Every position report that carries a signal strength becomes a coverage
sample: where the aircraft was, how strong it was received and how far it
was from the receiver. Samples live in one global buffer (not per
aircraft) capped at a fixed size, oldest first out.
"""

import logging
import time
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from flightradar.config import config
from flightradar.models.tracking import CoverageSample

logger = logging.getLogger(__name__)


class SignalBand(str, Enum):
    """
    Signal-strength bands used by coverage views.

    Thresholds are in dBFS:
    - STRONG: above -15
    - MEDIUM: above -25 and up to -15
    - WEAK: -25 and below
    """
    ALL = 'all'
    STRONG = 'strong'
    MEDIUM = 'medium'
    WEAK = 'weak'

    def matches(self, sample: CoverageSample) -> bool:
        if self is SignalBand.STRONG:
            return sample.rssi > -15
        if self is SignalBand.MEDIUM:
            return -25 < sample.rssi <= -15
        if self is SignalBand.WEAK:
            return sample.rssi <= -25
        return True

    @classmethod
    def for_rssi(cls, rssi: float) -> 'SignalBand':
        if rssi > -15:
            return cls.STRONG
        if rssi > -25:
            return cls.MEDIUM
        return cls.WEAK


class CoverageSampler:
    """Global bounded buffer of coverage samples."""

    def __init__(
        self,
        max_samples: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_samples = max_samples or config.coverage.max_samples
        self._clock = clock
        self._samples: List[CoverageSample] = []

    def make_sample(
        self,
        position: Tuple[float, float],
        signal_strength: float,
        distance: float,
    ) -> CoverageSample:
        """Build a sample stamped now without storing it."""
        return CoverageSample(
            lat=position[0],
            lon=position[1],
            rssi=signal_strength,
            distance_km=distance,
            timestamp=self._clock(),
        )

    def record(
        self,
        position: Tuple[float, float],
        signal_strength: float,
        distance: float,
    ) -> CoverageSample:
        """Append one sample stamped now."""
        sample = self.make_sample(position, signal_strength, distance)
        self._samples.append(sample)
        self._trim()
        return sample

    def record_many(self, samples: Iterable[CoverageSample]) -> int:
        """Append a whole cycle's samples, then trim once."""
        before = len(self._samples)
        self._samples.extend(samples)
        added = len(self._samples) - before
        self._trim()
        return added

    def _trim(self) -> None:
        excess = len(self._samples) - self.max_samples
        if excess > 0:
            del self._samples[:excess]

    def filter_by(self, predicate: Callable[[CoverageSample], bool]) -> Iterator[CoverageSample]:
        """
        Lazily yield samples matching ``predicate``.

        Iterates over a snapshot taken at call time, so later mutation of
        the store does not affect an iteration in progress. The returned
        generator can be consumed once.
        """
        snapshot = tuple(self._samples)
        return (sample for sample in snapshot if predicate(sample))

    def in_band(self, band: SignalBand) -> Iterator[CoverageSample]:
        return self.filter_by(band.matches)

    def evict_older_than(self, cutoff: float) -> int:
        """Drop samples stamped before ``cutoff``. Returns count removed."""
        before = len(self._samples)
        self._samples = [s for s in self._samples if s.timestamp >= cutoff]
        return before - len(self._samples)

    def samples(self) -> List[CoverageSample]:
        """Copy of all samples, oldest first."""
        return list(self._samples)

    def clear(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)
