from datetime import datetime, timedelta, timezone

import pytest

from flightradar.analytics import CoverageAnalyzer, bearings_from, summarize_statistics
from flightradar.geo import distance_from, initial_bearing
from flightradar.models.tracking import CoverageSample
from flightradar.tracking.statistics import FlightStatistics

RECEIVER = (49.0, -124.0)


def _sample(lat: float, lon: float, rssi: float) -> CoverageSample:
    return CoverageSample(
        lat=lat,
        lon=lon,
        rssi=rssi,
        distance_km=distance_from(RECEIVER, (lat, lon)),
        timestamp=0.0,
    )


def test_empty_coverage_summary() -> None:
    summary = CoverageAnalyzer(reference_location=RECEIVER).summarize([])

    assert summary.sample_count == 0
    assert summary.max_range_km is None
    assert summary.band_counts == {'strong': 0, 'medium': 0, 'weak': 0}
    assert summary.range_by_sector == [0.0] * 12


def test_coverage_summary() -> None:
    samples = [
        _sample(49.5, -124.0, -5.0),   # north, ~55 km
        _sample(49.0, -122.0, -20.0),  # east, ~146 km
        _sample(48.0, -124.0, -30.0),  # south, ~111 km
    ]

    summary = CoverageAnalyzer(reference_location=RECEIVER, sector_degrees=90).summarize(samples)

    assert summary.sample_count == 3
    assert summary.max_range_km == pytest.approx(samples[1].distance_km)
    assert summary.average_rssi == pytest.approx(-55.0 / 3)
    assert summary.band_counts == {'strong': 1, 'medium': 1, 'weak': 1}
    # Due east is an initial bearing just under 90, so it shares the north sector
    assert summary.range_by_sector[0] == pytest.approx(samples[1].distance_km)
    assert summary.range_by_sector[1] == 0.0
    assert summary.range_by_sector[2] == pytest.approx(samples[2].distance_km)
    assert summary.to_dict()['range_by_sector'][2]['bearing'] == 180


def test_vectorized_bearings_match_scalar() -> None:
    import numpy as np

    lats = np.array([50.0, 48.5, 49.0])
    lons = np.array([-124.0, -125.0, -123.0])

    bearings = bearings_from(RECEIVER, lats, lons)

    for lat, lon, bearing in zip(lats, lons, bearings):
        assert bearing == pytest.approx(initial_bearing(RECEIVER[0], RECEIVER[1], lat, lon))


def test_sector_width_must_divide_circle() -> None:
    with pytest.raises(ValueError):
        CoverageAnalyzer(reference_location=RECEIVER, sector_degrees=7)


def test_statistics_summary() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    stats = FlightStatistics(
        total_aircraft_seen=4,
        total_position_reports=100,
        session_start=start,
        aircraft_by_altitude={'30-40k ft': 3, '0-5k ft': 1},
        most_common_types={
            'A': 1, 'B': 5, 'C': 3, 'D': 3, 'E': 2, 'F': 1,
        },
        unique_callsigns={'ACA1', 'ACA2'},
    )

    summary = summarize_statistics(stats, now=start + timedelta(hours=1))

    assert summary.top_types == [('B', 5), ('C', 3), ('D', 3), ('E', 2), ('A', 1)]
    assert summary.session_seconds == 3600
    assert summary.unique_callsigns == 2
    assert [band for band, _, _ in summary.altitude_distribution] == [
        '0-5k ft', '5-10k ft', '10-20k ft', '20-30k ft', '30-40k ft', '40k+ ft',
    ]
    assert summary.altitude_distribution[0] == ('0-5k ft', 1, 25.0)
    assert summary.altitude_distribution[4] == ('30-40k ft', 3, 75.0)
    assert summary.to_dict()['top_types'][0] == {'type': 'B', 'count': 5}


def test_statistics_summary_empty() -> None:
    summary = summarize_statistics(FlightStatistics())

    assert summary.top_types == []
    assert all(percent == 0.0 for _, _, percent in summary.altitude_distribution)
