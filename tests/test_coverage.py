import types

from conftest import FakeClock

from flightradar.models.tracking import CoverageSample
from flightradar.tracking.coverage import CoverageSampler, SignalBand


def _sample(rssi: float, timestamp: float = 0.0) -> CoverageSample:
    return CoverageSample(lat=49.0, lon=-124.0, rssi=rssi, distance_km=10.0, timestamp=timestamp)


def test_record_keeps_last_1000_samples() -> None:
    clock = FakeClock()
    sampler = CoverageSampler(max_samples=1000, clock=clock)

    for i in range(1001):
        clock.advance(1)
        sampler.record((49.0, -124.0), -float(i % 40), float(i))

    samples = sampler.samples()
    assert len(samples) == 1000
    assert samples[0].distance_km == 1.0
    assert samples[-1].distance_km == 1000.0


def test_record_many_trims_once() -> None:
    sampler = CoverageSampler(max_samples=5, clock=FakeClock())
    sampler.record_many(_sample(-10, timestamp=i) for i in range(3))

    added = sampler.record_many([_sample(-10, timestamp=i) for i in range(3, 8)])

    assert added == 5
    assert [s.timestamp for s in sampler.samples()] == [3, 4, 5, 6, 7]


def test_filter_by_is_lazy_and_does_not_mutate() -> None:
    sampler = CoverageSampler(clock=FakeClock())
    sampler.record_many([_sample(-10), _sample(-20), _sample(-30)])

    calls = []

    def predicate(sample):
        calls.append(sample)
        return sample.rssi > -25

    result = sampler.filter_by(predicate)
    assert isinstance(result, types.GeneratorType)
    assert calls == []

    # Mutations after the call do not affect the iteration
    sampler.clear()
    assert [s.rssi for s in result] == [-10, -20]
    # Consumed once
    assert list(result) == []
    assert len(sampler) == 0


def test_signal_bands() -> None:
    sampler = CoverageSampler(clock=FakeClock())
    sampler.record_many([_sample(-5), _sample(-15), _sample(-20), _sample(-25), _sample(-40)])

    assert [s.rssi for s in sampler.in_band(SignalBand.STRONG)] == [-5]
    assert [s.rssi for s in sampler.in_band(SignalBand.MEDIUM)] == [-15, -20]
    assert [s.rssi for s in sampler.in_band(SignalBand.WEAK)] == [-25, -40]
    assert len(list(sampler.in_band(SignalBand.ALL))) == 5
    assert SignalBand.for_rssi(-14.9) is SignalBand.STRONG
    assert SignalBand.for_rssi(-25) is SignalBand.WEAK


def test_evict_older_than() -> None:
    sampler = CoverageSampler(clock=FakeClock())
    sampler.record_many([_sample(-10, timestamp=t) for t in (10, 20, 30)])

    assert sampler.evict_older_than(20) == 1
    assert [s.timestamp for s in sampler.samples()] == [20, 30]


def test_clear_is_idempotent() -> None:
    sampler = CoverageSampler(clock=FakeClock())
    sampler.record((49.0, -124.0), -10, 5.0)

    sampler.clear()
    sampler.clear()

    assert len(sampler) == 0
