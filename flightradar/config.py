"""
Configuration management for FlightRadar.

Loads settings from environment variables with sensible defaults.
All tunables for the fusion engine (capacities, retention windows,
cooldowns) live here so components never hard-code them.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

# Default receiver site used for coverage distances and "nearest aircraft"
DEFAULT_RECEIVER_LOCATION = (49.284043, -124.792703)


def _parse_location(value: str) -> Optional[Tuple[float, float]]:
    """Parse 'lat,lon' string into tuple, or None if empty/invalid."""
    if not value:
        return None
    try:
        lat, lon = value.split(',')
        return (float(lat.strip()), float(lon.strip()))
    except (ValueError, AttributeError):
        return None


def _base_url(address: str) -> str:
    """Prefix a bare host:port with http:// the way users type it."""
    address = address.strip().rstrip('/')
    if address.startswith('http'):
        return address
    return f'http://{address}'


@dataclass(frozen=True)
class ReceiverConfig:
    """readsb / tar1090 receiver settings."""
    address: str = os.getenv('READSB_URL', '127.0.0.1:8080')
    location: Tuple[float, float] = (
        _parse_location(os.getenv('RECEIVER_LOCATION', '')) or DEFAULT_RECEIVER_LOCATION
    )
    request_timeout: float = float(os.getenv('READSB_TIMEOUT_SECONDS', '5'))

    @property
    def base_url(self) -> str:
        return _base_url(self.address)


@dataclass(frozen=True)
class PollingConfig:
    """Fetch cycle settings."""
    interval: float = float(os.getenv('POLL_INTERVAL_SECONDS', '2.0'))
    # ~100 seconds at the default interval
    janitor_every_cycles: int = 50


@dataclass(frozen=True)
class TrailConfig:
    """Per-aircraft trail settings."""
    max_points: int = 500
    retention_seconds: float = 300.0


@dataclass(frozen=True)
class CoverageConfig:
    """Coverage sampler settings."""
    max_samples: int = 1000
    max_age_seconds: float = 3600.0


@dataclass(frozen=True)
class EnrichmentConfig:
    """Route/photo lookup throttling."""
    route_cooldown_seconds: float = 60.0
    throttle_retention_seconds: float = 300.0
    max_workers: int = int(os.getenv('ENRICHMENT_WORKERS', '4'))


@dataclass(frozen=True)
class StatisticsConfig:
    """Statistics persistence settings."""
    save_debounce_seconds: float = 10.0
    storage_key: str = 'flightStatistics'


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky Network OAuth2 client credentials and endpoints."""
    client_id: Optional[str] = os.getenv('OPENSKY_CLIENT_ID') or None
    client_secret: Optional[str] = os.getenv('OPENSKY_CLIENT_SECRET') or None
    base_url: str = 'https://opensky-network.org/api'
    auth_url: str = (
        'https://auth.opensky-network.org/auth/realms/opensky-network'
        '/protocol/openid-connect/token'
    )
    # Flight history window queried for route info
    lookback_seconds: int = 86400

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class PhotoConfig:
    """Aircraft photo API settings."""
    base_url: str = 'https://api.planespotters.net/pub/photos/hex'


@dataclass(frozen=True)
class PublishConfig:
    """Condensed snapshot for out-of-process consumers (widgets)."""
    snapshot_path: Optional[str] = os.getenv('WIDGET_SNAPSHOT_PATH') or None
    max_aircraft: int = 10


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///flightradar.db')

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')


@dataclass(frozen=True)
class AirportConfig:
    """OpenFlights airports.dat / airports.csv location."""
    csv_path: Optional[str] = os.getenv('AIRPORTS_CSV') or None


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    receiver: ReceiverConfig
    polling: PollingConfig
    trails: TrailConfig
    coverage: CoverageConfig
    enrichment: EnrichmentConfig
    statistics: StatisticsConfig
    opensky: OpenSkyConfig
    photos: PhotoConfig
    publish: PublishConfig
    database: DatabaseConfig
    airports: AirportConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        receiver=ReceiverConfig(),
        polling=PollingConfig(),
        trails=TrailConfig(),
        coverage=CoverageConfig(),
        enrichment=EnrichmentConfig(),
        statistics=StatisticsConfig(),
        opensky=OpenSkyConfig(),
        photos=PhotoConfig(),
        publish=PublishConfig(),
        database=DatabaseConfig(),
        airports=AirportConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
