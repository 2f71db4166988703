import pytest
from conftest import FakeClock, make_aircraft

from flightradar.tracking.coverage import CoverageSampler
from flightradar.tracking.merger import SnapshotMerger
from flightradar.tracking.statistics import StatisticsAggregator
from flightradar.tracking.trails import TrailStore

RECEIVER = (49.284043, -124.792703)


@pytest.fixture
def parts(clock):
    trails = TrailStore(clock=clock)
    statistics = StatisticsAggregator(clock=clock)
    coverage = CoverageSampler(clock=clock)
    merger = SnapshotMerger(trails, statistics, coverage, reference_location=RECEIVER)
    return merger, trails, statistics, coverage


def test_merge_updates_trails_coverage_and_statistics(parts) -> None:
    merger, trails, statistics, coverage = parts

    result = merger.merge([make_aircraft('a1', lat=49.0, lon=-124.0, rssi=-10)])

    assert [a.hex for a in result.visible] == ['a1']
    assert result.new_sightings == ['a1']
    assert result.coverage_added == 1
    assert len(trails.get('a1')) == 1
    sample = coverage.samples()[0]
    assert sample.rssi == -10
    assert 60 < sample.distance_km < 75

    stats = statistics.snapshot()
    assert stats.total_aircraft_seen == 1
    assert stats.total_position_reports == 1
    assert stats.most_common_types == {'Boeing 737-800': 1}


def test_position_less_reports_are_dropped(parts) -> None:
    merger, trails, statistics, coverage = parts

    result = merger.merge([
        make_aircraft('a1'),
        make_aircraft('b2', lat=None, lon=None),
    ])

    assert result.visible_keys == {'a1'}
    assert result.dropped_without_position == 1
    assert 'b2' not in trails
    assert statistics.snapshot().total_position_reports == 1
    assert merger.seen == {'a1'}


def test_resighting_does_not_double_count(parts) -> None:
    merger, trails, statistics, _ = parts

    for _ in range(3):
        merger.merge([make_aircraft('a1')])

    stats = statistics.snapshot()
    assert stats.total_aircraft_seen == 1
    assert stats.total_position_reports == 3
    assert len(trails.get('a1')) == 3


def test_unknown_type_is_recorded_once_resolved(parts) -> None:
    merger, _, statistics, _ = parts

    first = merger.merge([make_aircraft('a1', type_code=None, category=None)])
    assert first.new_sightings == []
    assert statistics.snapshot().total_aircraft_seen == 0
    assert merger.seen == set()

    second = merger.merge([make_aircraft('a1', type_code='B738')])
    assert second.new_sightings == ['a1']
    stats = statistics.snapshot()
    assert stats.total_aircraft_seen == 1
    assert stats.most_common_types == {'Boeing 737-800': 1}


def test_missing_rssi_skips_coverage(parts) -> None:
    merger, _, _, coverage = parts

    result = merger.merge([make_aircraft('a1', rssi=None)])

    assert result.coverage_added == 0
    assert len(coverage) == 0


def test_absent_trail_survives_short_gap_and_is_pruned_later(clock, parts) -> None:
    merger, trails, _, _ = parts
    merger.merge([make_aircraft('a1', lat=49.0, lon=-124.0, rssi=-10)])

    clock.advance(8)
    merger.merge([])
    assert 'a1' in trails

    clock.advance(293)
    result = merger.merge([])
    assert result.trails_pruned == ['a1']
    assert 'a1' not in trails


def test_reset_seen_allows_recount(parts) -> None:
    merger, _, statistics, _ = parts
    merger.merge([make_aircraft('a1')])

    statistics.reset()
    merger.reset_seen()
    merger.merge([make_aircraft('a1')])

    assert statistics.snapshot().total_aircraft_seen == 1
