"""Unit tests for SQLAlchemy models."""

import pytest
from sqlalchemy.exc import IntegrityError

from models import StoreEntry, generate_uuid


def test_store_entry_creation(db):
    """Test StoreEntry model creation."""
    entry = StoreEntry(key="portfolio.holdings", value="[]")
    db.add(entry)
    db.commit()
    db.refresh(entry)

    assert entry.id is not None
    assert entry.created_at is not None
    assert entry.updated_at is not None


def test_store_entry_key_unique(db):
    """Two entries cannot share a key."""
    db.add(StoreEntry(key="app.settings", value="{}"))
    db.commit()

    db.add(StoreEntry(key="app.settings", value="{}"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_generate_uuid_unique():
    assert generate_uuid() != generate_uuid()
    assert len(generate_uuid()) == 36
