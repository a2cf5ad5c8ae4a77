"""Application settings endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import scheduler
from database import get_db
from schemas.settings import AppSettings, AppSettingsUpdate
from services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=AppSettings)
def get_settings(db: Session = Depends(get_db)):
    return SettingsService.get_settings(db)


@router.put("", response_model=AppSettings)
def update_settings(body: AppSettingsUpdate, db: Session = Depends(get_db)):
    """Update settings; auto refresh changes apply immediately."""
    updated = SettingsService.update_settings(db, body)
    if body.auto_refresh_enabled is not None or body.refresh_interval_minutes is not None:
        try:
            scheduler.apply_schedule(updated.auto_refresh_enabled, updated.refresh_interval_minutes)
        except Exception:
            logger.warning("Failed to apply auto refresh schedule", exc_info=True)
    return updated
