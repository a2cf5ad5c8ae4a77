"""Rebalancing analysis between domestic and foreign holdings."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from schemas.portfolio import (
    PortfolioSnapshot,
    RebalanceAction,
    RebalanceAnalysis,
    RebalanceSide,
)
from services.valuation_service import ValuationService

logger = logging.getLogger(__name__)

_HUNDRED = Decimal("100")
_PCT_PLACES = Decimal("0.1")


def _pct(part: Decimal, whole: Decimal) -> Decimal:
    return (part / whole * _HUNDRED).quantize(_PCT_PLACES, rounding=ROUND_HALF_UP)


class RebalanceService:
    """Compares the domestic/foreign split with a target ratio.

    Only buying is recommended: the under-weight side gets a ``buy`` action
    for the gap, the over-weight side an ``overweight`` notice.
    """

    @staticmethod
    def analyze(
        snapshot: PortfolioSnapshot,
        target_domestic_pct: int,
        threshold: Decimal,
    ) -> RebalanceAnalysis:
        totals = snapshot.totals
        total = totals.grand_total
        if total <= 0:
            return RebalanceAnalysis(
                total=total,
                target_domestic_pct=target_domestic_pct,
                threshold=threshold,
                balanced=True,
            )

        target_domestic = ValuationService.round_amount(
            total * Decimal(target_domestic_pct) / _HUNDRED
        )
        target_foreign = total - target_domestic
        domestic = RebalanceSide(
            current=totals.domestic_total,
            current_pct=_pct(totals.domestic_total, total),
            target=target_domestic,
            target_pct=Decimal(target_domestic_pct),
            difference=target_domestic - totals.domestic_total,
        )
        foreign = RebalanceSide(
            current=totals.foreign_total,
            current_pct=_pct(totals.foreign_total, total),
            target=target_foreign,
            target_pct=Decimal(100 - target_domestic_pct),
            difference=target_foreign - totals.foreign_total,
        )

        balanced = abs(domestic.difference) < threshold and abs(foreign.difference) < threshold
        actions: list[RebalanceAction] = []
        if not balanced:
            for market, side in (("domestic", domestic), ("foreign", foreign)):
                if side.difference > 0:
                    actions.append(RebalanceAction(
                        action="buy",
                        market=market,
                        amount=side.difference,
                        description=f"Buy {side.difference:,} JPY of {market} holdings",
                    ))
                elif side.difference < 0:
                    actions.append(RebalanceAction(
                        action="overweight",
                        market=market,
                        amount=-side.difference,
                        description=(
                            f"{market.capitalize()} holdings are {-side.difference:,} JPY "
                            "over target; hold off on new purchases"
                        ),
                    ))

        logger.debug(
            "Rebalance: domestic %s%% vs target %s%%, balanced=%s",
            domestic.current_pct, target_domestic_pct, balanced,
        )
        return RebalanceAnalysis(
            total=total,
            target_domestic_pct=target_domestic_pct,
            threshold=threshold,
            balanced=balanced,
            domestic=domestic,
            foreign=foreign,
            actions=actions,
        )
