"""
Aircraft photo lookups via planespotters.net.

One GET per call against ``/pub/photos/hex/<HEX>``; the first photo's
large thumbnail and photographer credit become a PhotoRecord.
"""

import logging
from typing import Optional

import requests

from flightradar.config import config
from flightradar.exceptions import TransientFetchFailure
from flightradar.models.enrichment import PhotoRecord

logger = logging.getLogger(__name__)


class PhotoService:
    """Fetch aircraft photos by transponder address."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or config.photos.base_url).rstrip('/')
        self.session = session or requests.Session()

    def fetch_photo(self, hex_code: str) -> Optional[PhotoRecord]:
        """
        First available photo for an aircraft, or None if there is none.

        Raises:
            TransientFetchFailure on network or server errors
        """
        url = f'{self.base_url}/{hex_code.upper()}'
        try:
            response = self.session.get(
                url,
                headers={'Accept': 'application/json'},
                timeout=10,
            )
        except requests.RequestException as e:
            raise TransientFetchFailure(f'Photo request for {hex_code} failed: {e}') from e

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            raise TransientFetchFailure(
                f'Photo API error {response.status_code}',
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransientFetchFailure(f'Invalid photo JSON for {hex_code}') from e

        photos = data.get('photos') if isinstance(data, dict) else None
        if not photos:
            logger.debug(f'No photos for {hex_code}')
            return None

        photo = photos[0]
        thumbnail = (photo.get('thumbnail_large') or {}).get('src')
        if not thumbnail:
            return None

        return PhotoRecord(
            photo_url=thumbnail,
            photographer=photo.get('photographer'),
        )
