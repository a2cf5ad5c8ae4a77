"""Store service - key-value persistence with JSON-serialized values."""

import json
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.store_entry import StoreEntry

logger = logging.getLogger(__name__)


class StoreService:
    """Key-value store over the kv_store table.

    Reads use ``populate_existing()`` so a long-lived session still sees
    values committed by other sessions (request handlers vs. the refresh
    job).
    """

    @staticmethod
    def get(db: Session, key: str, default: Any = None) -> Any:
        """Get a single value by key, or ``default`` if not found."""
        entry = StoreService.get_record(db, key)
        if entry is None:
            return default
        return json.loads(entry.value)

    @staticmethod
    def get_record(db: Session, key: str) -> StoreEntry | None:
        return (
            db.query(StoreEntry)
            .populate_existing()
            .filter(StoreEntry.key == key)
            .first()
        )

    @staticmethod
    def set(db: Session, key: str, value: Any) -> StoreEntry:
        """Create or update an entry and commit. Returns the StoreEntry."""
        entry = db.query(StoreEntry).filter(StoreEntry.key == key).first()
        serialized = json.dumps(value, ensure_ascii=False)

        if entry is None:
            entry = StoreEntry(key=key, value=serialized)
            db.add(entry)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                entry = db.query(StoreEntry).filter(StoreEntry.key == key).first()
                entry.value = serialized
                db.commit()
                logger.info("Updated store entry (concurrent insert): %s", key)
            else:
                logger.debug("Created store entry: %s", key)
        else:
            entry.value = serialized
            db.commit()
            logger.debug("Updated store entry: %s", key)

        db.refresh(entry)
        return entry
