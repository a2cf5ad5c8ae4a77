"""Pydantic schemas for portfolio snapshot, refresh and rebalancing endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel

from schemas.holding import Holding


class PortfolioTotals(BaseModel):
    """Totals in the reporting currency, grouped by market and instrument type."""

    domestic_equity: Decimal = Decimal("0")
    foreign_equity: Decimal = Decimal("0")
    domestic_fund: Decimal = Decimal("0")
    foreign_fund: Decimal = Decimal("0")
    domestic_total: Decimal = Decimal("0")
    foreign_total: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")


class PortfolioSnapshot(BaseModel):
    """Holdings plus totals, always derived from the holdings list."""

    holdings: list[Holding]
    totals: PortfolioTotals
    fx_rate: Decimal
    fx_fallback: bool = True
    unvalued_count: int = 0  # Holdings never priced yet
    synthetic_count: int = 0
    last_updated_at: Optional[datetime] = None


class HoldingRefreshResponse(BaseModel):
    holding_id: str
    code: str
    price: Optional[Decimal] = None
    value: Optional[Decimal] = None
    source: Optional[str] = None
    synthetic: bool = False
    error: Optional[str] = None


class RefreshResponse(BaseModel):
    """Response for a completed refresh run."""

    started_at: datetime
    finished_at: datetime
    fx_rate: Decimal
    fx_source: str
    fx_fallback: bool
    results: list[HoldingRefreshResponse]
    reconciled_codes: list[str]
    dropped_ids: list[str]
    snapshot: PortfolioSnapshot


class RebalanceSide(BaseModel):
    """Current and target position of one market side."""

    current: Decimal
    current_pct: Decimal
    target: Decimal
    target_pct: Decimal
    difference: Decimal  # target - current; positive means under-weight


class RebalanceAction(BaseModel):
    action: Literal["buy", "overweight"]
    market: Literal["domestic", "foreign"]
    amount: Decimal
    description: str


class RebalanceAnalysis(BaseModel):
    """Result of comparing the domestic/foreign split to its target."""

    total: Decimal
    target_domestic_pct: int
    threshold: Decimal
    balanced: bool
    domestic: Optional[RebalanceSide] = None
    foreign: Optional[RebalanceSide] = None
    actions: list[RebalanceAction] = []
