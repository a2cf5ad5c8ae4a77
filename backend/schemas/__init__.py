"""Pydantic schemas for API request/response validation."""

from schemas.holding import (
    Holding,
    HoldingCreate,
    HoldingImportRecord,
    HoldingUpdate,
    ImportRequest,
    ImportResult,
    ImportSkip,
    TransferChunk,
)
from schemas.portfolio import (
    HoldingRefreshResponse,
    PortfolioSnapshot,
    PortfolioTotals,
    RebalanceAction,
    RebalanceAnalysis,
    RebalanceSide,
    RefreshResponse,
)
from schemas.quote import FxResponse, QuoteResponse
from schemas.settings import AppSettings, AppSettingsUpdate

__all__ = [
    "AppSettings",
    "AppSettingsUpdate",
    "FxResponse",
    "Holding",
    "HoldingCreate",
    "HoldingImportRecord",
    "HoldingRefreshResponse",
    "HoldingUpdate",
    "ImportRequest",
    "ImportResult",
    "ImportSkip",
    "PortfolioSnapshot",
    "PortfolioTotals",
    "QuoteResponse",
    "RebalanceAction",
    "RebalanceAnalysis",
    "RebalanceSide",
    "RefreshResponse",
    "TransferChunk",
]
