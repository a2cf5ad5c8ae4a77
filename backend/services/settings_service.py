"""User-editable settings stored in the key-value store."""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from config import settings
from schemas.settings import AppSettings, AppSettingsUpdate
from services.store_service import StoreService

logger = logging.getLogger(__name__)

SETTINGS_KEY = "app.settings"


class SettingsService:
    """Stored overrides on top of the config defaults."""

    @staticmethod
    def defaults() -> AppSettings:
        return AppSettings(
            target_domestic_pct=settings.REBALANCE_TARGET_DOMESTIC_PCT,
            rebalance_threshold=Decimal(settings.REBALANCE_THRESHOLD),
            auto_refresh_enabled=settings.AUTO_REFRESH_ENABLED,
            refresh_interval_minutes=settings.AUTO_REFRESH_INTERVAL_MINUTES,
        )

    @staticmethod
    def get_settings(db: Session) -> AppSettings:
        stored = StoreService.get(db, SETTINGS_KEY, default={}) or {}
        merged = SettingsService.defaults().model_dump()
        merged.update({k: v for k, v in stored.items() if k in merged and v is not None})
        return AppSettings.model_validate(merged)

    @staticmethod
    def update_settings(db: Session, data: AppSettingsUpdate) -> AppSettings:
        current = SettingsService.get_settings(db)
        updated = current.model_copy(update=data.model_dump(exclude_none=True))
        StoreService.set(db, SETTINGS_KEY, updated.model_dump(mode="json"))
        logger.info("Settings updated: %s", data.model_dump(exclude_none=True, mode="json"))
        return updated
