"""
KeyValueEntry model - opaque key/value persistence.

Backs the statistics save/load contract. Values are JSON documents
stored as text; callers own the encoding.
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from flightradar.models.base import Base


class KeyValueEntry(Base):
    """One persisted value, upserted by key."""

    __tablename__ = 'kv_store'

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        comment='Storage key'
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment='JSON encoded value'
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        comment='Last write timestamp'
    )

    def __repr__(self) -> str:
        return f'<KeyValueEntry {self.key} ({len(self.value)} bytes)>'
