"""Pydantic schemas for quote and FX endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class QuoteResponse(BaseModel):
    """Resolved quote for one code."""

    success: bool = True
    code: str
    price: Decimal
    change: Optional[str] = None
    currency: str
    source: str
    source_url: str
    name: Optional[str] = None
    synthetic: bool = False


class FxResponse(BaseModel):
    """Current USD/JPY rate."""

    success: bool = True
    rate: Decimal
    fetched_at: Optional[datetime] = None
    source: str
    fallback: bool
