"""Quote resolver: walks the source chain for one code."""

import hashlib
import logging
from decimal import Decimal
from typing import Optional

from integrations.quote_protocol import (
    InstrumentType,
    Market,
    QuoteResult,
    ResolvedQuote,
)
from integrations.source_registry import SourceRegistry
from services.classification_service import ClassificationService

logger = logging.getLogger(__name__)

SYNTHETIC_SOURCE_ID = "synthetic"


def synthetic_price(code: str, market: Market, instrument_type: InstrumentType) -> Decimal:
    """Deterministic placeholder price derived only from the code.

    Codes ending in four digits use those digits as the seed; other codes
    use a hash of the upper-cased code. Ranges are plausible for the
    instrument class (fund NAV 10,000-19,999; domestic equity
    1,000-9,999 JPY; foreign equity 100-999 USD).
    """
    code = code.strip()
    tail = code[-4:]
    if len(tail) == 4 and tail.isdigit():
        seed = int(tail)
    else:
        seed = int(hashlib.sha256(code.upper().encode("utf-8")).hexdigest()[:8], 16)

    if instrument_type == InstrumentType.FUND:
        return Decimal(10000 + seed % 10000)
    if ClassificationService.is_foreign_equity(code, market, instrument_type):
        return Decimal(100 + seed % 900)
    return Decimal(1000 + seed % 9000)


class QuoteResolver:
    """Resolves a code to a single quote using the registered sources.

    Sources are consulted in priority order until one returns a validated
    price. No source is contacted after the winner. When every source comes
    back empty the quote is synthetic, so callers always get a price.
    """

    def __init__(self, registry: Optional[SourceRegistry] = None):
        """Initialize with an optional registry for dependency injection.

        Args:
            registry: Source registry. If None, the shared default registry
                      is used on first resolve.
        """
        self._registry = registry

    @property
    def registry(self) -> SourceRegistry:
        if self._registry is None:
            from integrations.source_registry import get_source_registry

            self._registry = get_source_registry()
        return self._registry

    def resolve(
        self,
        code: str,
        market: Optional[Market] = None,
        instrument_type: InstrumentType = InstrumentType.EQUITY,
    ) -> ResolvedQuote:
        """Resolve the current price for a code.

        Args:
            code: Security code (trimmed here).
            market: Stored or requested market; numeric codes override it.
            instrument_type: Equity or fund.

        Returns:
            ResolvedQuote; ``synthetic`` is True when no source succeeded.

        Raises:
            ValueError: If the code is empty.
        """
        code = ClassificationService.normalize_code(code)
        if not code:
            raise ValueError("code is required")

        resolved_market = ClassificationService.resolve_market(code, market)
        currency = ClassificationService.currency_for(code, resolved_market, instrument_type)

        consulted: list[QuoteResult] = []
        winner: Optional[QuoteResult] = None
        for source in self.registry.sources_for(resolved_market, instrument_type):
            try:
                result = source.fetch(code, resolved_market, instrument_type)
            except Exception:
                # Sources report failures as absent prices; this guards against bugs
                logger.warning(
                    "Source %s raised while fetching %s", source.source_id, code, exc_info=True
                )
                continue
            consulted.append(result)
            if result.has_price:
                winner = result
                break

        if winner is None:
            price = synthetic_price(code, resolved_market, instrument_type)
            logger.warning(
                "No source returned a price for %s (%s %s); using synthetic %s",
                code, resolved_market.value, instrument_type.value, price,
            )
            return ResolvedQuote(
                code=code,
                price=price,
                currency=currency,
                source_id=SYNTHETIC_SOURCE_ID,
                source_url=consulted[0].fetched_url if consulted else "",
                display_name=_first_attr(consulted, "display_name"),
                change_text=None,
                synthetic=True,
            )

        logger.info("Resolved %s = %s %s via %s", code, winner.price, currency, winner.source_id)
        return ResolvedQuote(
            code=code,
            price=winner.price,
            currency=currency,
            source_id=winner.source_id,
            source_url=winner.fetched_url,
            display_name=winner.display_name or _first_attr(consulted, "display_name"),
            change_text=winner.change_text or _first_attr(consulted, "change_text"),
            synthetic=False,
        )


def _first_attr(results: list[QuoteResult], attr: str) -> Optional[str]:
    for result in results:
        value = getattr(result, attr)
        if value:
            return value
    return None
