"""
readsb / tar1090 receiver client.

Fetches ``<base_url>/data/aircraft.json`` from a local ADS-B decoder and
parses it into a FeedResponse. This is the sensor-feed fetch capability
handed to the PollScheduler; every transport or parse problem surfaces as
TransientFetchFailure so a failed cycle never touches fused state.
"""

import logging
from typing import Callable, Optional

import requests

from flightradar.config import config
from flightradar.exceptions import TransientFetchFailure
from flightradar.models.aircraft import FeedResponse

logger = logging.getLogger(__name__)


class ReadsbClient:
    """
    Client for a readsb JSON endpoint.

    Handles:
    - GET requests to /data/aircraft.json
    - Connection reuse via a requests.Session
    - Translation of transport/HTTP/JSON errors into TransientFetchFailure
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.receiver.base_url).rstrip('/')
        self.timeout = timeout or config.receiver.request_timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls) -> 'ReadsbClient':
        """Create client from application configuration."""
        return cls(
            base_url=config.receiver.base_url,
            timeout=config.receiver.request_timeout,
        )

    def fetch(self, base_url: Optional[str] = None) -> FeedResponse:
        """
        Fetch the current aircraft snapshot.

        Args:
            base_url: Override the configured receiver URL for this call

        Returns:
            FeedResponse with receiver time, message count and aircraft

        Raises:
            TransientFetchFailure on network, HTTP or decoding errors
        """
        url = f'{(base_url or self.base_url).rstrip("/")}/data/aircraft.json'

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            logger.warning(f'readsb request timed out: {url}')
            raise TransientFetchFailure(f'Timeout fetching {url}') from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.warning(f'readsb HTTP error {status} from {url}')
            raise TransientFetchFailure(f'HTTP {status} from {url}', status_code=status) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f'readsb request failed: {e}')
            raise TransientFetchFailure(f'Request to {url} failed: {e}') from e
        except ValueError as e:
            logger.warning(f'readsb returned invalid JSON: {e}')
            raise TransientFetchFailure(f'Invalid JSON from {url}') from e

        if not isinstance(data, dict):
            raise TransientFetchFailure(f'Unexpected payload type from {url}')

        feed = FeedResponse.from_json(data)
        logger.debug(f'Received {len(feed.aircraft)} aircraft from {url}')
        return feed

    def fetcher(self, base_url: Optional[str] = None) -> Callable[[], FeedResponse]:
        """Zero-argument fetch function bound to a receiver URL."""
        return lambda: self.fetch(base_url)
