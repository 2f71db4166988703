"""
Receiver coverage and statistics summaries using NumPy.

Coverage samples are treated as a point cloud around the receiver:

1. Range: maximum and percentile distances of received positions
2. Signal: mean / min / max RSSI and counts per signal band
3. Polar coverage: maximum range per bearing sector (the "range ring"
   shape a coverage map draws)

Statistics summaries turn the raw histograms into what a statistics view
shows: the top aircraft types and the altitude distribution in fixed band
order with percentages.

All calculations are vectorized over the current sample snapshot; nothing
here mutates tracker state.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from flightradar.config import config
from flightradar.models.tracking import CoverageSample
from flightradar.tracking.coverage import SignalBand
from flightradar.tracking.statistics import ALTITUDE_BAND_LABELS, FlightStatistics

logger = logging.getLogger(__name__)


@dataclass
class CoverageSummary:
    """Aggregate view of the coverage buffer."""
    sample_count: int
    max_range_km: Optional[float] = None
    p95_range_km: Optional[float] = None
    average_rssi: Optional[float] = None
    min_rssi: Optional[float] = None
    max_rssi: Optional[float] = None
    band_counts: Dict[str, int] = field(default_factory=dict)
    # Max range per bearing sector, index 0 = sector starting at north
    range_by_sector: List[float] = field(default_factory=list)
    sector_degrees: int = 30

    def to_dict(self) -> dict:
        return {
            'sample_count': self.sample_count,
            'max_range_km': self.max_range_km,
            'p95_range_km': self.p95_range_km,
            'average_rssi': self.average_rssi,
            'min_rssi': self.min_rssi,
            'max_rssi': self.max_rssi,
            'band_counts': dict(self.band_counts),
            'sector_degrees': self.sector_degrees,
            'range_by_sector': [
                {'bearing': i * self.sector_degrees, 'max_range_km': r}
                for i, r in enumerate(self.range_by_sector)
            ],
        }


def bearings_from(
    reference: Tuple[float, float],
    lats: np.ndarray,
    lons: np.ndarray,
) -> np.ndarray:
    """Initial bearing in degrees (0-360) from ``reference`` to each point."""
    lat1 = np.radians(reference[0])
    lat2 = np.radians(lats)
    delta_lon = np.radians(lons - reference[1])

    x = np.sin(delta_lon) * np.cos(lat2)
    y = np.cos(lat1) * np.sin(lat2) - np.sin(lat1) * np.cos(lat2) * np.cos(delta_lon)
    return (np.degrees(np.arctan2(x, y)) + 360.0) % 360.0


class CoverageAnalyzer:
    """
    Summarizes coverage samples relative to the receiver.

    Configuration:
    - reference_location: receiver (lat, lon), defaults to config
    - sector_degrees: width of polar sectors (must divide 360)
    """

    def __init__(
        self,
        reference_location: Optional[Tuple[float, float]] = None,
        sector_degrees: int = 30,
    ):
        if sector_degrees <= 0 or 360 % sector_degrees:
            raise ValueError(f'sector_degrees must divide 360, got {sector_degrees}')
        self.reference_location = reference_location or config.receiver.location
        self.sector_degrees = sector_degrees

    def summarize(self, samples: Sequence[CoverageSample]) -> CoverageSummary:
        """Compute the coverage summary for a snapshot of samples."""
        sector_count = 360 // self.sector_degrees
        summary = CoverageSummary(
            sample_count=len(samples),
            band_counts={band.value: 0 for band in SignalBand if band is not SignalBand.ALL},
            range_by_sector=[0.0] * sector_count,
            sector_degrees=self.sector_degrees,
        )
        if not samples:
            return summary

        distances = np.array([s.distance_km for s in samples], dtype=np.float64)
        rssi = np.array([s.rssi for s in samples], dtype=np.float64)
        lats = np.array([s.lat for s in samples], dtype=np.float64)
        lons = np.array([s.lon for s in samples], dtype=np.float64)

        summary.max_range_km = float(np.max(distances))
        summary.p95_range_km = float(np.percentile(distances, 95))
        summary.average_rssi = float(np.mean(rssi))
        summary.min_rssi = float(np.min(rssi))
        summary.max_rssi = float(np.max(rssi))

        strong = rssi > -15
        weak = rssi <= -25
        summary.band_counts = {
            SignalBand.STRONG.value: int(np.count_nonzero(strong)),
            SignalBand.MEDIUM.value: int(np.count_nonzero(~strong & ~weak)),
            SignalBand.WEAK.value: int(np.count_nonzero(weak)),
        }

        # Polar max range: bucket bearings, then max distance per bucket
        bearings = bearings_from(self.reference_location, lats, lons)
        sectors = (bearings // self.sector_degrees).astype(np.int64) % sector_count
        ranges = np.zeros(sector_count, dtype=np.float64)
        np.maximum.at(ranges, sectors, distances)
        summary.range_by_sector = [float(r) for r in ranges]

        logger.debug(
            f'Coverage summary: {len(samples)} samples, '
            f'max range {summary.max_range_km:.1f} km'
        )
        return summary


@dataclass
class StatisticsSummary:
    """Presentation-ready view of FlightStatistics."""
    total_aircraft_seen: int
    total_position_reports: int
    unique_callsigns: int
    session_start: datetime
    session_seconds: float
    top_types: List[Tuple[str, int]] = field(default_factory=list)
    # (band label, count, percent of aircraft seen), fixed band order
    altitude_distribution: List[Tuple[str, int, float]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'total_aircraft_seen': self.total_aircraft_seen,
            'total_position_reports': self.total_position_reports,
            'unique_callsigns': self.unique_callsigns,
            'session_start': self.session_start.isoformat(),
            'session_seconds': self.session_seconds,
            'top_types': [
                {'type': label, 'count': count} for label, count in self.top_types
            ],
            'altitude_distribution': [
                {'band': band, 'count': count, 'percent': percent}
                for band, count, percent in self.altitude_distribution
            ],
        }


def summarize_statistics(
    statistics: FlightStatistics,
    top_n: int = 5,
    now: Optional[datetime] = None,
) -> StatisticsSummary:
    """Top types by count (ties by name) and the altitude distribution."""
    now = now or datetime.now(timezone.utc)

    top_types = sorted(
        statistics.most_common_types.items(),
        key=lambda item: (-item[1], item[0]),
    )[:top_n]

    counts = np.array(
        [statistics.aircraft_by_altitude.get(label, 0) for label in ALTITUDE_BAND_LABELS],
        dtype=np.float64,
    )
    total = counts.sum()
    percents = np.round(counts / total * 100.0, 1) if total > 0 else np.zeros_like(counts)

    return StatisticsSummary(
        total_aircraft_seen=statistics.total_aircraft_seen,
        total_position_reports=statistics.total_position_reports,
        unique_callsigns=len(statistics.unique_callsigns),
        session_start=statistics.session_start,
        session_seconds=max(0.0, (now - statistics.session_start).total_seconds()),
        top_types=top_types,
        altitude_distribution=[
            (label, int(count), float(percent))
            for label, count, percent in zip(ALTITUDE_BAND_LABELS, counts, percents)
        ],
    )
