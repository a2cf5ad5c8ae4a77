"""Portfolio snapshot, refresh and rebalancing endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas.portfolio import (
    HoldingRefreshResponse,
    PortfolioSnapshot,
    RebalanceAnalysis,
    RefreshResponse,
)
from services.fx_rate_service import FxRateService
from services.holding_store import HoldingStore
from services.rebalance_service import RebalanceService
from services.refresh_service import RefreshInProgressError, RefreshResult, RefreshService
from services.settings_service import SettingsService
from services.valuation_service import ValuationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])

# Dependency injection for testing
_refresh_service_override: Optional[RefreshService] = None


def get_refresh_service() -> RefreshService:
    """Get RefreshService instance, allowing for test overrides."""
    if _refresh_service_override is not None:
        return _refresh_service_override
    return RefreshService()


def set_refresh_service_override(service: Optional[RefreshService]) -> None:
    """Set a RefreshService override for testing."""
    global _refresh_service_override
    _refresh_service_override = service


def _current_snapshot(db: Session) -> PortfolioSnapshot:
    return ValuationService.build_snapshot(HoldingStore(db).load(), FxRateService.current())


def _to_response(result: RefreshResult) -> RefreshResponse:
    return RefreshResponse(
        started_at=result.started_at,
        finished_at=result.finished_at,
        fx_rate=result.fx.rate,
        fx_source=result.fx.source_id,
        fx_fallback=result.fx.fallback,
        results=[
            HoldingRefreshResponse(
                holding_id=r.holding_id,
                code=r.code,
                price=r.quote.price if r.quote else None,
                value=r.value,
                source=r.quote.source_id if r.quote else None,
                synthetic=r.quote.synthetic if r.quote else False,
                error=r.error,
            )
            for r in result.results
        ],
        reconciled_codes=result.reconciled_codes,
        dropped_ids=result.dropped_ids,
        snapshot=result.snapshot,
    )


@router.get("", response_model=PortfolioSnapshot)
def get_portfolio(db: Session = Depends(get_db)):
    """Holdings with totals at their last refreshed values."""
    return _current_snapshot(db)


@router.post("/refresh", response_model=RefreshResponse)
def refresh_portfolio(
    db: Session = Depends(get_db),
    refresh_service: RefreshService = Depends(get_refresh_service),
):
    """Re-price every holding and return the new snapshot.

    Raises:
        HTTPException:
            - 409 Conflict: A refresh is already in progress
            - 500 Internal Server Error: Unexpected refresh error
    """
    if refresh_service.is_refresh_in_progress():
        raise HTTPException(
            status_code=409,
            detail="Refresh already in progress. Please wait for the current refresh to complete.",
        )

    try:
        result = refresh_service.trigger_refresh(db)
    except RefreshInProgressError:
        raise HTTPException(
            status_code=409,
            detail="Refresh already in progress. Please wait for the current refresh to complete.",
        )
    except Exception:
        # Never expose str(e)
        logger.error("Unexpected error during refresh", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="An unexpected error occurred during refresh.",
        )
    return _to_response(result)


@router.get("/rebalance", response_model=RebalanceAnalysis)
def get_rebalance(db: Session = Depends(get_db)):
    """Compare the domestic/foreign split with the configured target."""
    app_settings = SettingsService.get_settings(db)
    return RebalanceService.analyze(
        _current_snapshot(db),
        app_settings.target_domestic_pct,
        app_settings.rebalance_threshold,
    )
