"""
OpenSky Network OAuth2 token provider.

Implements the client-credentials grant against the OpenSky Keycloak
realm and caches the bearer token until shortly before it expires.
Everything else in the package treats this as an opaque "get a valid
token" capability.
"""

import logging
import threading
import time
from typing import Callable, Optional

import requests

from flightradar.config import config
from flightradar.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class OpenSkyTokenProvider:
    """Fetches and caches OpenSky access tokens."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        auth_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        refresh_margin_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id or config.opensky.client_id
        self.client_secret = client_secret or config.opensky.client_secret
        self.auth_url = auth_url or config.opensky.auth_url
        self.session = session or requests.Session()
        self.refresh_margin_seconds = refresh_margin_seconds
        self._clock = clock

        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at: float = 0

        if not self.is_configured:
            logger.warning('OpenSky client credentials not configured - route lookups disabled')

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def invalidate(self) -> None:
        """Forget the cached token (e.g. after a 401)."""
        with self._lock:
            self._token = None
            self._expires_at = 0

    def get_token(self) -> str:
        """
        Return a valid access token, requesting a new one if needed.

        Raises:
            AuthenticationError if credentials are missing or rejected
        """
        with self._lock:
            if self._token and self._clock() < self._expires_at:
                return self._token

            if not self.is_configured:
                raise AuthenticationError('OpenSky client credentials not configured')

            logger.debug('Requesting new OpenSky access token')
            try:
                response = self.session.post(
                    self.auth_url,
                    data={
                        'grant_type': 'client_credentials',
                        'client_id': self.client_id,
                        'client_secret': self.client_secret,
                    },
                    timeout=10,
                )
            except requests.RequestException as e:
                raise AuthenticationError(f'Token request failed: {e}') from e

            if response.status_code != 200:
                logger.warning(f'OpenSky token request rejected: {response.status_code}')
                raise AuthenticationError(
                    f'Token request rejected ({response.status_code})',
                    status_code=response.status_code,
                )

            try:
                data = response.json()
                token = data['access_token']
                expires_in = int(data['expires_in'])
            except (ValueError, KeyError, TypeError) as e:
                raise AuthenticationError(f'Malformed token response: {e}') from e

            self._token = token
            # Refresh a little early so a token never expires mid-request
            self._expires_at = self._clock() + expires_in - self.refresh_margin_seconds
            logger.info(f'Obtained OpenSky access token (expires in {expires_in}s)')
            return token
