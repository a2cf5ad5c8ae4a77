"""Refresh service - re-prices every holding and publishes a new snapshot."""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.orm import Session

from config import settings
from integrations.quote_protocol import FxRate, ResolvedQuote
from schemas.holding import Holding
from schemas.portfolio import PortfolioSnapshot
from services.classification_service import ClassificationService
from services.fx_rate_service import FxRateService
from services.holding_store import HoldingStore
from services.quote_resolver import QuoteResolver
from services.valuation_service import ValuationService

logger = logging.getLogger(__name__)

# Fields the user edits. When one was edited mid-refresh the stored
# version wins over the refreshed one.
USER_FIELDS = ("shares", "instrument_type", "market", "user_pinned_market", "name")


class RefreshInProgressError(Exception):
    """Raised when a refresh is triggered while another one is running."""

    def __init__(self):
        super().__init__("Refresh already in progress")


@dataclass
class HoldingRefreshResult:
    """Outcome of re-pricing one holding."""

    holding_id: str
    code: str
    quote: Optional[ResolvedQuote] = None
    value: Optional[Decimal] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RefreshResult:
    started_at: datetime
    finished_at: datetime
    fx: FxRate
    results: list[HoldingRefreshResult]
    snapshot: PortfolioSnapshot
    reconciled_codes: list[str] = field(default_factory=list)
    dropped_ids: list[str] = field(default_factory=list)


class RefreshService:
    """Runs refresh cycles over the persisted holdings list."""

    # Class-level lock shared across all instances so the API and the
    # scheduler never run two refreshes at once within this process.
    _refresh_lock = threading.Lock()

    def __init__(
        self,
        resolver: Optional[QuoteResolver] = None,
        fx_service: Optional[FxRateService] = None,
        pacing_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize with optional collaborators for dependency injection.

        Args:
            resolver: Quote resolver. Defaults to one over the shared registry.
            fx_service: FX rate service. Defaults to one over the shared registry.
            pacing_seconds: Delay between holdings. Defaults to
                            settings.REFRESH_PACING_SECONDS.
            sleep: Sleep function, replaceable in tests.
        """
        self.resolver = resolver or QuoteResolver()
        self.fx_service = fx_service or FxRateService()
        self.pacing_seconds = (
            settings.REFRESH_PACING_SECONDS if pacing_seconds is None else pacing_seconds
        )
        self._sleep = sleep

    @classmethod
    def is_refresh_in_progress(cls) -> bool:
        acquired = cls._refresh_lock.acquire(blocking=False)
        if acquired:
            cls._refresh_lock.release()
            return False
        return True

    def trigger_refresh(self, db: Session) -> RefreshResult:
        """Run one refresh cycle.

        Raises:
            RefreshInProgressError: If a refresh is already running. Nothing
                                    else happens in that case.
        """
        acquired = self._refresh_lock.acquire(blocking=False)
        if not acquired:
            logger.warning("Refresh blocked: another refresh is already in progress")
            raise RefreshInProgressError()

        logger.info("Refresh lock acquired")
        try:
            return self._run(db)
        finally:
            self._refresh_lock.release()
            logger.info("Refresh lock released")

    def _run(self, db: Session) -> RefreshResult:
        started_at = datetime.now(timezone.utc)
        store = HoldingStore(db)
        working = store.load()
        baseline = {h.id: h.model_copy(deep=True) for h in working}
        logger.info("Refresh started: %d holdings", len(working))

        fx = self.fx_service.refresh()

        results: list[HoldingRefreshResult] = []
        for index, holding in enumerate(working):
            if index > 0 and self.pacing_seconds > 0:
                self._sleep(self.pacing_seconds)
            results.append(self._refresh_holding(holding, fx.rate))

        merged, reconciled_codes, dropped_ids = self._reconcile(
            working, baseline, store.load(), fx.rate
        )
        store.save(merged)

        snapshot = ValuationService.build_snapshot(merged, fx)
        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Refresh finished: %d holdings, %d failed, %d reconciled, %d dropped",
            len(results), failed, len(reconciled_codes), len(dropped_ids),
        )
        return RefreshResult(
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            fx=fx,
            results=results,
            snapshot=snapshot,
            reconciled_codes=reconciled_codes,
            dropped_ids=dropped_ids,
        )

    def _refresh_holding(self, holding: Holding, fx_rate: Decimal) -> HoldingRefreshResult:
        """Resolve and value one holding in place. Never raises."""
        try:
            quote = self.resolver.resolve(holding.code, holding.market, holding.instrument_type)
            value = ValuationService.value(quote, holding, fx_rate)
        except Exception as e:
            logger.error("Failed to refresh %s", holding.code, exc_info=True)
            return HoldingRefreshResult(
                holding_id=holding.id,
                code=holding.code,
                error=f"{type(e).__name__}: {e}",
            )

        holding.last_price = quote.price
        holding.last_value = value
        holding.last_updated_at = datetime.now(timezone.utc)
        holding.currency = quote.currency
        holding.synthetic = quote.synthetic
        holding.price_source = quote.source_id
        holding.change_text = quote.change_text
        if quote.display_name:
            holding.name = quote.display_name
        return HoldingRefreshResult(
            holding_id=holding.id, code=holding.code, quote=quote, value=value
        )

    def _reconcile(
        self,
        working: list[Holding],
        baseline: dict[str, Holding],
        persisted: list[Holding],
        fx_rate: Decimal,
    ) -> tuple[list[Holding], list[str], list[str]]:
        """Merge refreshed holdings with whatever was committed meanwhile.

        - A working holding whose id is gone from the store was deleted
          during the refresh and is dropped.
        - A holding whose user fields in the store differ from the values
          read at the start of the refresh takes the stored user fields and
          is revalued at the refreshed price.
        - Stored holdings whose code is not in the working list (added or
          imported during the refresh) are appended as stored.

        Returns:
            Tuple of (merged list, re-appended codes, dropped ids).
        """
        persisted_by_id = {h.id: h for h in persisted}
        merged: list[Holding] = []
        dropped_ids: list[str] = []

        for holding in working:
            latest = persisted_by_id.get(holding.id)
            if latest is None:
                logger.info("Dropping %s: deleted during refresh", holding.code)
                dropped_ids.append(holding.id)
                continue

            original = baseline[holding.id]
            changed = [f for f in USER_FIELDS if getattr(latest, f) != getattr(original, f)]
            if changed:
                logger.info(
                    "Holding %s edited during refresh (%s); keeping stored values",
                    holding.code, ", ".join(changed),
                )
                for name in changed:
                    setattr(holding, name, getattr(latest, name))
                holding.currency = ClassificationService.currency_for(
                    holding.code, holding.market, holding.instrument_type
                )
                value = ValuationService.revalue(holding, fx_rate)
                if value is not None:
                    holding.last_value = value
            merged.append(holding)

        merged_keys = {ClassificationService.code_key(h.code) for h in merged}
        reconciled_codes: list[str] = []
        for latest in persisted:
            key = ClassificationService.code_key(latest.code)
            if key not in merged_keys:
                logger.warning("Re-appending %s added during refresh", latest.code)
                merged.append(latest)
                merged_keys.add(key)
                reconciled_codes.append(latest.code)

        return merged, reconciled_codes, dropped_ids
