import os

# Keep the module-level engine off disk before flightradar is imported
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('RECEIVER_LOCATION', '49.284043,-124.792703')

from typing import Optional

import pytest

from flightradar.models.aircraft import AircraftSnapshot, FeedResponse


class FakeClock:
    """Manually advanced clock for time-based eviction tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStatisticsStore:
    def __init__(self, loaded=None, fail_save: bool = False, fail_load: bool = False):
        self.saved = []
        self.loaded = loaded
        self.fail_save = fail_save
        self.fail_load = fail_load

    def save(self, statistics) -> None:
        if self.fail_save:
            raise OSError('disk full')
        self.saved.append(statistics)

    def load(self):
        if self.fail_load:
            raise OSError('unreadable')
        return self.loaded


def make_aircraft(
    hex_code: str = 'a1b2c3',
    lat: Optional[float] = 49.0,
    lon: Optional[float] = -124.0,
    alt_baro: Optional[int] = 35000,
    rssi: Optional[float] = -10.0,
    flight: Optional[str] = 'ACA123',
    type_code: Optional[str] = 'B738',
    category: Optional[str] = None,
    **kwargs,
) -> AircraftSnapshot:
    return AircraftSnapshot(
        hex=hex_code,
        flight=flight,
        lat=lat,
        lon=lon,
        alt_baro=alt_baro,
        rssi=rssi,
        type_code=type_code,
        category=category,
        **kwargs,
    )


def make_feed(*aircraft: AircraftSnapshot, now: float = 1_700_000_000.0) -> FeedResponse:
    return FeedResponse(now=now, messages=1000, aircraft=list(aircraft))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeStatisticsStore:
    return FakeStatisticsStore()
