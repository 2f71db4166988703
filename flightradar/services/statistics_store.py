"""
SQL-backed statistics persistence.

Stores the FlightStatistics aggregate as one JSON document in the
``kv_store`` table under a fixed key. Loading tolerates a missing or
unreadable row by returning None, which the aggregator treats as "start
fresh".
"""

import json
import logging
from typing import Optional

from sqlalchemy.engine import Engine

from flightradar.config import config
from flightradar.models.base import create_session_factory, engine, get_session, init_db
from flightradar.models.kv_store import KeyValueEntry
from flightradar.tracking.statistics import FlightStatistics

logger = logging.getLogger(__name__)


class SqlStatisticsStore:
    """Save/load contract for StatisticsAggregator over SQLAlchemy."""

    def __init__(
        self,
        db_engine: Optional[Engine] = None,
        key: Optional[str] = None,
        create_schema: bool = True,
    ):
        self.engine = db_engine or engine
        self.key = key or config.statistics.storage_key
        self._session_factory = create_session_factory(self.engine)
        if create_schema:
            init_db(self.engine)

    def save(self, statistics: FlightStatistics) -> None:
        """Upsert the aggregate. Errors propagate to the caller."""
        payload = json.dumps(statistics.to_dict())
        with get_session(self._session_factory) as session:
            session.merge(KeyValueEntry(key=self.key, value=payload))
        logger.debug(f'Persisted statistics under {self.key!r} ({len(payload)} bytes)')

    def load(self) -> Optional[FlightStatistics]:
        """Last saved aggregate, or None if nothing usable is stored."""
        with get_session(self._session_factory) as session:
            entry = session.get(KeyValueEntry, self.key)
            value = entry.value if entry is not None else None

        if value is None:
            return None

        try:
            data = json.loads(value)
        except ValueError as e:
            logger.warning(f'Stored statistics are not valid JSON, ignoring: {e}')
            return None

        if not isinstance(data, dict):
            logger.warning('Stored statistics have unexpected shape, ignoring')
            return None

        return FlightStatistics.from_dict(data)

    def clear(self) -> None:
        """Delete the stored aggregate."""
        with get_session(self._session_factory) as session:
            entry = session.get(KeyValueEntry, self.key)
            if entry is not None:
                session.delete(entry)
