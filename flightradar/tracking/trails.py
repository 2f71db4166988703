"""
Per-aircraft trail storage.

Each aircraft keeps an ordered list of its most recent positions. Trails
are append/evict only: points are stamped on insert, capacity is enforced
by dropping the oldest excess in one slice, and whole trails are removed
by the merger once an aircraft has been gone for the retention window.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from flightradar.config import config
from flightradar.models.tracking import TrailPoint

logger = logging.getLogger(__name__)


class TrailStore:
    """Bounded, time-ordered position history keyed by hex address."""

    def __init__(
        self,
        max_points: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.max_points = max_points or config.trails.max_points
        self._clock = clock
        self._trails: Dict[str, List[TrailPoint]] = {}

    def add_point(self, key: str, position: Tuple[float, float], altitude: int) -> TrailPoint:
        """Append a position stamped now, evicting the oldest excess."""
        point = TrailPoint(
            lat=position[0],
            lon=position[1],
            altitude=altitude,
            timestamp=self._clock(),
        )
        points = self._trails.setdefault(key, [])
        points.append(point)

        excess = len(points) - self.max_points
        if excess > 0:
            del points[:excess]

        return point

    def remove(self, key: str) -> bool:
        """Delete an aircraft's full trail. Returns True if one existed."""
        return self._trails.pop(key, None) is not None

    def get(self, key: str) -> List[TrailPoint]:
        """Copy of the trail, oldest first (empty if unknown)."""
        return list(self._trails.get(key, ()))

    def last_point(self, key: str) -> Optional[TrailPoint]:
        points = self._trails.get(key)
        return points[-1] if points else None

    def keys(self) -> Set[str]:
        return set(self._trails)

    def prune_absent(self, visible: Iterable[str], max_age_seconds: float) -> List[str]:
        """
        Remove trails of aircraft not in ``visible`` whose newest point
        is older than ``max_age_seconds``.

        Short gaps (a dropped cycle or two) keep their history.
        """
        visible = set(visible)
        now = self._clock()
        removed = []

        for key in [k for k in self._trails if k not in visible]:
            last = self.last_point(key)
            if last is None or now - last.timestamp > max_age_seconds:
                del self._trails[key]
                removed.append(key)

        if removed:
            logger.debug(f'Pruned {len(removed)} trails for departed aircraft')
        return removed

    def clear(self) -> None:
        self._trails.clear()

    def __len__(self) -> int:
        return len(self._trails)

    def __contains__(self, key: str) -> bool:
        return key in self._trails
