"""SQLAlchemy ORM models."""

from .store_entry import StoreEntry
from .utils import generate_uuid

__all__ = ["StoreEntry", "generate_uuid"]
