"""
Flight information service - route data for an aircraft.

Queries OpenSky's flights-by-aircraft endpoint for the last day and
returns the most recent leg (estimated departure/arrival airports and
times). This is the route-info fetch capability the enrichment cache
throttles; it performs exactly one remote call per invocation and
leaves caching and rate limiting to the cache.
"""

import logging
from dataclasses import replace
import time
from typing import Callable, Dict, Optional

import requests

from flightradar.config import config
from flightradar.exceptions import AuthenticationError, TransientFetchFailure
from flightradar.models.enrichment import RouteInfo
from flightradar.services.opensky_auth import OpenSkyTokenProvider

logger = logging.getLogger(__name__)


# Common airline ICAO prefixes for display enrichment
AIRLINE_NAMES: Dict[str, str] = {
    'AAL': 'American Airlines',
    'ACA': 'Air Canada',
    'AFR': 'Air France',
    'ASA': 'Alaska Airlines',
    'BAW': 'British Airways',
    'CPA': 'Cathay Pacific',
    'DAL': 'Delta Air Lines',
    'DLH': 'Lufthansa',
    'EVA': 'EVA Air',
    'FDX': 'FedEx Express',
    'HAL': 'Hawaiian Airlines',
    'JAL': 'Japan Airlines',
    'JZA': 'Jazz Aviation',
    'KAL': 'Korean Air',
    'QXE': 'Horizon Air',
    'ROU': 'Air Canada Rouge',
    'SKW': 'SkyWest Airlines',
    'SWA': 'Southwest Airlines',
    'TSC': 'Air Transat',
    'UAL': 'United Airlines',
    'UPS': 'UPS Airlines',
    'WJA': 'WestJet',
    'WEN': 'WestJet Encore',
}


def airline_from_callsign(callsign: Optional[str]) -> Optional[str]:
    """
    Airline name from the 3-letter ICAO prefix of a callsign.

    E.g., 'ACA123' -> 'Air Canada'
    """
    if not callsign or len(callsign) < 4:
        return None
    prefix = callsign[:3].upper()
    if not prefix.isalpha():
        return None
    return AIRLINE_NAMES.get(prefix)


class FlightInfoService:
    """
    Fetch route information from the OpenSky Network.

    Authenticated with a bearer token from OpenSkyTokenProvider.
    """

    def __init__(
        self,
        token_provider: Optional[OpenSkyTokenProvider] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        lookback_seconds: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.token_provider = token_provider or OpenSkyTokenProvider()
        self.base_url = (base_url or config.opensky.base_url).rstrip('/')
        self.session = session or requests.Session()
        self.lookback_seconds = lookback_seconds or config.opensky.lookback_seconds
        self._clock = clock
        self._requests = 0

    @property
    def is_configured(self) -> bool:
        return self.token_provider.is_configured

    def fetch_route(self, icao24: str) -> Optional[RouteInfo]:
        """
        Most recent flight leg for an aircraft.

        Returns None if OpenSky has no flight for it in the lookback
        window (HTTP 404 or an empty list).

        Raises:
            TransientFetchFailure on network, auth, HTTP or parse errors
        """
        icao24 = icao24.lower()
        token = self.token_provider.get_token()

        end = int(self._clock())
        params = {
            'icao24': icao24,
            'begin': end - self.lookback_seconds,
            'end': end,
        }

        logger.info(f'Fetching route info from OpenSky for {icao24}')
        try:
            response = self.session.get(
                f'{self.base_url}/flights/aircraft',
                params=params,
                headers={'Authorization': f'Bearer {token}'},
                timeout=10,
            )
            self._requests += 1
        except requests.RequestException as e:
            raise TransientFetchFailure(f'Route request for {icao24} failed: {e}') from e

        # OpenSky returns 404 when no flights are found
        if response.status_code == 404:
            logger.debug(f'No flight data found for {icao24}')
            return None

        if response.status_code in (401, 403):
            self.token_provider.invalidate()
            raise AuthenticationError(
                f'OpenSky rejected token ({response.status_code})',
                status_code=response.status_code,
            )

        if response.status_code != 200:
            logger.warning(f'OpenSky API error: {response.status_code}')
            raise TransientFetchFailure(
                f'OpenSky API error {response.status_code}',
                status_code=response.status_code,
            )

        try:
            flights = response.json()
        except ValueError as e:
            raise TransientFetchFailure(f'Invalid route JSON for {icao24}') from e

        if not isinstance(flights, list):
            raise TransientFetchFailure(f'Unexpected route payload for {icao24}')
        if not flights:
            return None

        # Most recent leg = latest lastSeen
        latest = max(flights, key=lambda f: f.get('lastSeen') or 0)
        route = RouteInfo.from_opensky(icao24, latest)
        airline = airline_from_callsign(route.callsign)
        if airline:
            route = replace(route, airline=airline)

        logger.info(f'Got route for {icao24}: {route.origin} -> {route.destination}')
        return route

    @property
    def stats(self) -> dict:
        """Get service statistics."""
        return {
            'requests': self._requests,
            'api_configured': self.is_configured,
        }
