"""Tests for SettingsService."""

from decimal import Decimal

from schemas.settings import AppSettingsUpdate
from services.settings_service import SETTINGS_KEY, SettingsService
from services.store_service import StoreService


class TestSettingsService:
    def test_defaults_from_config(self, db):
        current = SettingsService.get_settings(db)

        assert current.target_domestic_pct == 50
        assert current.rebalance_threshold == Decimal("10000")
        assert current.auto_refresh_enabled is True
        assert current.refresh_interval_minutes == 10

    def test_partial_update_keeps_other_fields(self, db):
        SettingsService.update_settings(db, AppSettingsUpdate(target_domestic_pct=70))

        current = SettingsService.get_settings(db)
        assert current.target_domestic_pct == 70
        assert current.refresh_interval_minutes == 10

    def test_update_persisted(self, db):
        SettingsService.update_settings(
            db, AppSettingsUpdate(auto_refresh_enabled=False, rebalance_threshold=Decimal("5000"))
        )

        stored = StoreService.get(db, SETTINGS_KEY)
        assert stored["auto_refresh_enabled"] is False
        assert Decimal(stored["rebalance_threshold"]) == Decimal("5000")

    def test_unknown_stored_keys_ignored(self, db):
        StoreService.set(db, SETTINGS_KEY, {"target_domestic_pct": 40, "legacy_flag": True})

        current = SettingsService.get_settings(db)
        assert current.target_domestic_pct == 40
        assert not hasattr(current, "legacy_flag")
