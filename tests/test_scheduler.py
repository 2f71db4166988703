import threading
import time

import pytest
from conftest import FakeClock, make_aircraft, make_feed

from flightradar.exceptions import ConfigError, TransientFetchFailure
from flightradar.tracking.scheduler import CycleToken, PollScheduler
from flightradar.tracking.tracker import Tracker


def _wait_until(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def tracker():
    tracker = Tracker(clock=FakeClock())
    yield tracker
    tracker.shutdown()


def test_run_cycle_applies_batch(tracker) -> None:
    scheduler = PollScheduler(tracker)

    assert scheduler.run_cycle(lambda: make_feed(make_aircraft('a1'))) is True

    assert [a.hex for a in tracker.aircraft] == ['a1']
    assert scheduler.stats['applied_count'] == 1


def test_fetch_failure_goes_to_error_sink_and_keeps_state(tracker) -> None:
    scheduler = PollScheduler(tracker)
    scheduler.run_cycle(lambda: make_feed(make_aircraft('a1')))

    def failing():
        raise TransientFetchFailure('connection refused')

    assert scheduler.run_cycle(failing) is False

    assert [a.hex for a in tracker.aircraft] == ['a1']
    assert tracker.last_error == 'Failed to fetch aircraft: connection refused'
    assert scheduler.stats['error_count'] == 1

    # Next success clears the error
    scheduler.run_cycle(lambda: make_feed(make_aircraft('a1')))
    assert tracker.last_error is None


def test_janitor_runs_every_n_applied_cycles(tracker) -> None:
    scheduler = PollScheduler(tracker, janitor_every_cycles=3)

    for _ in range(7):
        scheduler.run_cycle(lambda: make_feed(make_aircraft('a1')))

    assert tracker.janitor.sweep_count == 2


def test_result_from_old_generation_is_discarded(tracker) -> None:
    scheduler = PollScheduler(tracker)

    assert scheduler.run_cycle(lambda: make_feed(make_aircraft('a1')), generation=-1) is False
    assert tracker.aircraft == []
    assert scheduler.stats['discarded_count'] == 1


def test_out_of_order_batch_is_rejected(tracker) -> None:
    tracker.apply_batch(make_feed(make_aircraft('new')), CycleToken(generation=1, sequence=5))

    assert tracker.apply_batch(make_feed(make_aircraft('old')), CycleToken(generation=1, sequence=4)) is None
    assert [a.hex for a in tracker.aircraft] == ['new']


def test_stop_discards_in_flight_result(tracker) -> None:
    scheduler = PollScheduler(tracker)
    entered = threading.Event()
    release = threading.Event()

    def slow_fetch():
        entered.set()
        release.wait(5)
        return make_feed(make_aircraft('a1'))

    scheduler.start(slow_fetch, interval=10)
    assert entered.wait(5)

    scheduler.stop()
    release.set()
    scheduler.join(5)

    assert not scheduler.running
    assert tracker.aircraft == []
    assert scheduler.stats['discarded_count'] == 1


def test_start_stop_restart(tracker) -> None:
    scheduler = PollScheduler(tracker)
    fetch = lambda: make_feed(make_aircraft('a1'))

    scheduler.start(fetch, interval=0.05)
    assert scheduler.running
    assert _wait_until(lambda: scheduler.stats['applied_count'] >= 1)
    first_thread = scheduler._thread
    first_generation = scheduler.generation

    # Restart fully stops the previous timer
    scheduler.start(fetch, interval=0.05)
    first_thread.join(2)
    assert not first_thread.is_alive()
    assert scheduler.generation > first_generation

    scheduler.stop()
    scheduler.stop()
    scheduler.join(2)
    assert not scheduler.running

    # Start after stop is safe
    scheduler.start(fetch, interval=0.05)
    assert scheduler.running
    scheduler.stop()
    scheduler.join(2)


def test_start_rejects_non_positive_interval(tracker) -> None:
    scheduler = PollScheduler(tracker)

    with pytest.raises(ConfigError):
        scheduler.start(lambda: make_feed(), interval=0)
    assert not scheduler.running


def test_merge_failure_does_not_stop_polling(tracker) -> None:
    scheduler = PollScheduler(tracker)
    original_merge = tracker.merger.merge
    merge_calls = []

    def merge_failing_once(aircraft):
        merge_calls.append(len(aircraft))
        if len(merge_calls) == 1:
            raise RuntimeError('merge exploded')
        return original_merge(aircraft)

    tracker.merger.merge = merge_failing_once

    scheduler.start(lambda: make_feed(make_aircraft('a1')), interval=0.05)
    try:
        assert _wait_until(lambda: scheduler.stats['applied_count'] >= 2)
        assert scheduler._thread.is_alive()
    finally:
        scheduler.stop()
        scheduler.join(2)

    assert scheduler.stats['error_count'] == 1
    assert [a.hex for a in tracker.aircraft] == ['a1']
    # A later successful cycle clears the reported error
    assert tracker.last_error is None


def test_merge_failure_is_reported(tracker) -> None:
    scheduler = PollScheduler(tracker)

    def broken_merge(aircraft):
        raise RuntimeError('merge exploded')

    tracker.merger.merge = broken_merge

    assert scheduler.run_cycle(lambda: make_feed(make_aircraft('a1'))) is False
    assert tracker.last_error == 'Failed to fetch aircraft: merge exploded'
    assert scheduler.stats['error_count'] == 1
    assert scheduler.stats['applied_count'] == 0


def test_janitor_failure_keeps_applied_cycle(tracker) -> None:
    scheduler = PollScheduler(tracker, janitor_every_cycles=1)

    def broken_janitor():
        raise RuntimeError('sweep exploded')

    tracker.run_janitor = broken_janitor

    assert scheduler.run_cycle(lambda: make_feed(make_aircraft('a1'))) is True
    assert scheduler.run_cycle(lambda: make_feed(make_aircraft('a1'))) is True
    assert scheduler.stats['applied_count'] == 2
    assert scheduler.stats['error_count'] == 2
