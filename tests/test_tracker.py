import pytest
from conftest import FakeClock, make_aircraft, make_feed

from flightradar.models.enrichment import PhotoRecord, RouteInfo
from flightradar.tracking.coverage import SignalBand
from flightradar.tracking.enrichment_cache import LookupStatus
from flightradar.tracking.tracker import Tracker

RECEIVER = (49.284043, -124.792703)


class RecordingPublisher:
    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def publish(self, visible, nearest, last_update):
        if self.fail:
            raise OSError('read-only filesystem')
        self.calls.append((visible, nearest, last_update))


def _route(hex_code):
    return RouteInfo(icao24=hex_code, origin='CYVR', destination='CYYZ')


def _photo(hex_code):
    return PhotoRecord(photo_url=f'https://example.com/{hex_code}.jpg', photographer='J. Doe')


@pytest.fixture
def clock():
    return FakeClock(start=5000.0)


@pytest.fixture
def tracker(clock):
    tracker = Tracker(
        route_fetcher=_route,
        photo_fetcher=_photo,
        reference_location=RECEIVER,
        clock=clock,
    )
    yield tracker
    tracker.shutdown()


def test_apply_batch_sets_visible_state(tracker) -> None:
    result = tracker.apply_batch(make_feed(
        make_aircraft('a1'),
        make_aircraft('b2', lat=None, lon=None),
    ))

    assert result.dropped_without_position == 1
    assert [a.hex for a in tracker.aircraft] == ['a1']
    assert tracker.last_update == 5000.0
    assert tracker.get_aircraft('A1').hex == 'a1'
    assert len(tracker.trail('a1')) == 1
    assert tracker.statistics_snapshot().total_aircraft_seen == 1


def test_nearest_aircraft(tracker) -> None:
    tracker.apply_batch(make_feed(
        make_aircraft('far', lat=50.5, lon=-126.0),
        make_aircraft('near', lat=49.3, lon=-124.8),
    ))

    aircraft, distance = tracker.nearest_aircraft()

    assert aircraft.hex == 'near'
    assert distance < 5


def test_nearest_aircraft_empty(tracker) -> None:
    assert tracker.nearest_aircraft() is None


def test_select_aircraft_fetches_route_and_photo(tracker) -> None:
    tracker.apply_batch(make_feed(make_aircraft('a1')))

    lookups = tracker.select_aircraft('A1')

    assert set(lookups) == {'route', 'photo'}
    assert lookups['route'].status is LookupStatus.PENDING
    lookups['route'].future.result(timeout=5)
    lookups['photo'].future.result(timeout=5)
    assert tracker.selected == 'a1'
    assert tracker.route_for('a1').origin == 'CYVR'
    assert tracker.photo_for('a1').photographer == 'J. Doe'

    again = tracker.select_aircraft('a1')
    assert again['route'].status is LookupStatus.CACHED
    assert again['photo'].status is LookupStatus.CACHED


def test_select_invisible_aircraft(tracker) -> None:
    assert tracker.select_aircraft('zzzzzz') is None
    assert tracker.selected is None


def test_select_without_fetchers_returns_no_lookups(clock) -> None:
    tracker = Tracker(clock=clock)
    tracker.apply_batch(make_feed(make_aircraft('a1')))

    assert tracker.select_aircraft('a1') == {}


def test_publish_after_each_applied_batch(clock) -> None:
    publisher = RecordingPublisher()
    tracker = Tracker(publisher=publisher, reference_location=RECEIVER, clock=clock)

    tracker.apply_batch(make_feed(make_aircraft('a1')))

    assert len(publisher.calls) == 1
    visible, nearest, last_update = publisher.calls[0]
    assert [a.hex for a in visible] == ['a1']
    assert nearest[0].hex == 'a1'
    assert last_update == 5000.0


def test_publish_failure_is_swallowed(clock) -> None:
    tracker = Tracker(publisher=RecordingPublisher(fail=True), clock=clock)

    result = tracker.apply_batch(make_feed(make_aircraft('a1')))

    assert result is not None
    assert [a.hex for a in tracker.aircraft] == ['a1']


def test_reset_statistics_clears_seen_set(tracker) -> None:
    tracker.apply_batch(make_feed(make_aircraft('a1')))

    tracker.reset_statistics()
    assert tracker.statistics_snapshot().total_aircraft_seen == 0

    tracker.apply_batch(make_feed(make_aircraft('a1')))
    assert tracker.statistics_snapshot().total_aircraft_seen == 1


def test_coverage_samples_by_band(tracker) -> None:
    tracker.apply_batch(make_feed(
        make_aircraft('a1', rssi=-5),
        make_aircraft('b2', rssi=-30),
    ))

    assert [s.rssi for s in tracker.coverage_samples(SignalBand.WEAK)] == [-30]
    assert len(tracker.coverage_samples()) == 2


def test_run_janitor_evicts_enrichment_for_departed(tracker) -> None:
    tracker.apply_batch(make_feed(make_aircraft('a1')))
    lookups = tracker.select_aircraft('a1')
    lookups['route'].future.result(timeout=5)
    lookups['photo'].future.result(timeout=5)

    tracker.apply_batch(make_feed())
    report = tracker.run_janitor()

    assert report.enrichment_evicted == 2
    assert tracker.route_for('a1') is None
