from conftest import FakeClock

from flightradar.tracking.trails import TrailStore


def test_trail_keeps_most_recent_points_up_to_capacity() -> None:
    clock = FakeClock()
    trails = TrailStore(max_points=500, clock=clock)

    for i in range(520):
        clock.advance(1)
        trails.add_point('a1', (49.0 + i * 0.001, -124.0), 30000 + i)

    points = trails.get('a1')
    assert len(points) == 500
    # oldest 20 evicted, order preserved
    assert points[0].altitude == 30020
    assert points[-1].altitude == 30519
    assert all(a.timestamp < b.timestamp for a, b in zip(points, points[1:]))


def test_add_point_stamps_with_clock() -> None:
    clock = FakeClock(start=100.0)
    trails = TrailStore(clock=clock)

    point = trails.add_point('a1', (49.0, -124.0), 1000)

    assert point.timestamp == 100.0
    assert trails.last_point('a1') == point
    assert 'a1' in trails
    assert len(trails) == 1


def test_get_returns_copy() -> None:
    trails = TrailStore(clock=FakeClock())
    trails.add_point('a1', (49.0, -124.0), 1000)

    points = trails.get('a1')
    points.clear()

    assert len(trails.get('a1')) == 1
    assert trails.get('unknown') == []


def test_prune_absent_keeps_recent_gap_and_removes_stale() -> None:
    clock = FakeClock()
    trails = TrailStore(clock=clock)
    trails.add_point('a1', (49.0, -124.0), 1000)

    clock.advance(8)
    assert trails.prune_absent(set(), 300) == []
    assert 'a1' in trails

    clock.advance(293)  # 301s since the last point
    assert trails.prune_absent(set(), 300) == ['a1']
    assert 'a1' not in trails


def test_prune_absent_never_removes_visible() -> None:
    clock = FakeClock()
    trails = TrailStore(clock=clock)
    trails.add_point('a1', (49.0, -124.0), 1000)

    clock.advance(10_000)

    assert trails.prune_absent({'a1'}, 300) == []
    assert 'a1' in trails


def test_remove_and_clear() -> None:
    trails = TrailStore(clock=FakeClock())
    trails.add_point('a1', (49.0, -124.0), 1000)
    trails.add_point('b2', (49.1, -124.1), 2000)

    assert trails.remove('a1') is True
    assert trails.remove('a1') is False
    assert trails.keys() == {'b2'}

    trails.clear()
    assert len(trails) == 0
