"""Service for classifying holdings by market from their security code."""

import logging
import re
from typing import Optional

from integrations.quote_protocol import (
    FOREIGN_CURRENCY,
    REPORTING_CURRENCY,
    InstrumentType,
    Market,
)

logger = logging.getLogger(__name__)

_NUMERIC_CODE = re.compile(r"^\d+$")
_LETTER_TICKER = re.compile(r"^[A-Z]+$")


class ClassificationService:
    """The one place that derives a holding's market from its code.

    Rules:
    1. Numeric-only codes (TSE securities, JP fund codes) are domestic,
       whatever market the caller suggests.
    2. Otherwise an explicit market from the caller is used.
    3. Otherwise an upper-case letters-only code is a US ticker (foreign);
       anything else defaults to domestic.
    """

    @staticmethod
    def normalize_code(code: str) -> str:
        return code.strip()

    @staticmethod
    def code_key(code: str) -> str:
        """Comparison key for codes: trimmed and case-insensitive."""
        return code.strip().upper()

    @staticmethod
    def is_numeric_code(code: str) -> bool:
        return bool(_NUMERIC_CODE.match(code.strip()))

    @staticmethod
    def resolve_market(code: str, market_hint: Optional[Market] = None) -> Market:
        """Market used for quoting and valuation.

        Args:
            code: Security code.
            market_hint: Market stored on the holding or passed by the caller.

        Returns:
            The derived market.
        """
        if ClassificationService.is_numeric_code(code):
            if market_hint == Market.FOREIGN:
                logger.debug("Numeric code %s overrides foreign market hint", code)
            return Market.DOMESTIC
        if market_hint is not None:
            return market_hint
        if _LETTER_TICKER.match(code.strip()):
            return Market.FOREIGN
        return Market.DOMESTIC

    @staticmethod
    def classify_new_holding(
        code: str,
        requested_market: Optional[Market] = None,
        pin: bool = False,
    ) -> tuple[Market, bool]:
        """Market and pin flag for a holding being created.

        An explicit request that disagrees with the code shape, or an
        explicit ``pin``, pins the market so it is never reclassified.

        Returns:
            Tuple of (market, user_pinned_market).
        """
        if pin and requested_market is not None:
            return requested_market, True
        derived = ClassificationService.resolve_market(code, requested_market)
        if requested_market is not None and requested_market != derived:
            return requested_market, True
        return derived, False

    @staticmethod
    def currency_for(
        code: str, market: Market, instrument_type: InstrumentType
    ) -> str:
        """Quote currency: foreign equities trade in USD, everything else in JPY."""
        if instrument_type == InstrumentType.FUND:
            return REPORTING_CURRENCY
        if ClassificationService.is_foreign_equity(code, market, instrument_type):
            return FOREIGN_CURRENCY
        return REPORTING_CURRENCY

    @staticmethod
    def is_foreign_equity(
        code: str, market: Market, instrument_type: InstrumentType
    ) -> bool:
        return (
            instrument_type == InstrumentType.EQUITY
            and market == Market.FOREIGN
            and not ClassificationService.is_numeric_code(code)
        )
