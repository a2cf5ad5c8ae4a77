"""Valuation engine: converts prices into reporting-currency values."""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from integrations.quote_protocol import FxRate, InstrumentType, Market, ResolvedQuote
from schemas.holding import Holding
from schemas.portfolio import PortfolioSnapshot, PortfolioTotals
from services.classification_service import ClassificationService

logger = logging.getLogger(__name__)

# Japanese fund NAVs are quoted per 10,000 units
FUND_UNIT_DIVISOR = Decimal("10000")


class ValuationService:
    """Every value shown or stored goes through this class.

    Precedence:
    1. Fund: price * shares / 10000 (NAV per 10,000 units, always JPY)
    2. Foreign equity (foreign market, non-numeric code): price * shares * fx
    3. Otherwise: price * shares

    Arithmetic is exact Decimal; the result is rounded half away from zero
    to a whole yen only at the end.
    """

    @staticmethod
    def value_price(
        price: Decimal,
        shares: Decimal,
        code: str,
        market: Market,
        instrument_type: InstrumentType,
        fx_rate: Decimal,
    ) -> Decimal:
        if instrument_type == InstrumentType.FUND:
            raw = price * shares / FUND_UNIT_DIVISOR
        elif ClassificationService.is_foreign_equity(code, market, instrument_type):
            raw = price * shares * fx_rate
        else:
            raw = price * shares
        return ValuationService.round_amount(raw)

    @staticmethod
    def value(quote: ResolvedQuote, holding: Holding, fx_rate: Decimal) -> Decimal:
        """Value a holding at a freshly resolved quote."""
        return ValuationService.value_price(
            quote.price,
            holding.shares,
            holding.code,
            holding.market,
            holding.instrument_type,
            fx_rate,
        )

    @staticmethod
    def revalue(holding: Holding, fx_rate: Decimal) -> Optional[Decimal]:
        """Value a holding at its last known price, or None if never priced."""
        if holding.last_price is None:
            return None
        return ValuationService.value_price(
            holding.last_price,
            holding.shares,
            holding.code,
            holding.market,
            holding.instrument_type,
            fx_rate,
        )

    @staticmethod
    def round_amount(amount: Decimal) -> Decimal:
        return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)

    @staticmethod
    def build_snapshot(holdings: Iterable[Holding], fx: FxRate) -> PortfolioSnapshot:
        """Derive the snapshot and totals from a holdings list.

        Totals group by the stored market; holdings without a value count
        as zero and are reported in ``unvalued_count``.
        """
        holdings = list(holdings)
        totals = PortfolioTotals()
        unvalued = 0
        synthetic = 0
        last_updated = None

        for holding in holdings:
            if holding.synthetic:
                synthetic += 1
            if holding.last_updated_at and (last_updated is None or holding.last_updated_at > last_updated):
                last_updated = holding.last_updated_at
            if holding.last_value is None:
                unvalued += 1
                continue

            field = f"{holding.market.value}_{holding.instrument_type.value}"
            setattr(totals, field, getattr(totals, field) + holding.last_value)

        totals.domestic_total = totals.domestic_equity + totals.domestic_fund
        totals.foreign_total = totals.foreign_equity + totals.foreign_fund
        totals.grand_total = totals.domestic_total + totals.foreign_total

        return PortfolioSnapshot(
            holdings=holdings,
            totals=totals,
            fx_rate=fx.rate,
            fx_fallback=fx.fallback,
            unvalued_count=unvalued,
            synthetic_count=synthetic,
            last_updated_at=last_updated,
        )
