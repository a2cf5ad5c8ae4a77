"""Pydantic schemas for user-editable application settings."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class AppSettings(BaseModel):
    """Settings persisted in the key-value store, defaulted from config."""

    target_domestic_pct: int = Field(ge=0, le=100)
    rebalance_threshold: Decimal = Field(ge=0)
    auto_refresh_enabled: bool
    refresh_interval_minutes: int = Field(ge=1)


class AppSettingsUpdate(BaseModel):
    """Partial update; omitted fields are unchanged."""

    target_domestic_pct: Optional[int] = Field(default=None, ge=0, le=100)
    rebalance_threshold: Optional[Decimal] = Field(default=None, ge=0)
    auto_refresh_enabled: Optional[bool] = None
    refresh_interval_minutes: Optional[int] = Field(default=None, ge=1)
