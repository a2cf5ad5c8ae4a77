"""StoreEntry model - generic key-value store with JSON-serialized values."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text

from database import Base
from models.utils import generate_uuid


class StoreEntry(Base):
    """A single key-value entry stored as a JSON-serialized value."""

    __tablename__ = "kv_store"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    key = Column(String, unique=True, index=True, nullable=False)
    value = Column(Text, nullable=False)  # JSON-serialized
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
