"""Quote source protocol definitions.

Defines the classification enums, the per-source result types, and the
interface every quote source (HTML page scraper or JSON API) implements.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Protocol

REPORTING_CURRENCY = "JPY"
FOREIGN_CURRENCY = "USD"


class Market(str, Enum):
    """Listing market of a holding."""

    DOMESTIC = "domestic"
    FOREIGN = "foreign"


class InstrumentType(str, Enum):
    """Instrument type; selects the valuation formula."""

    EQUITY = "equity"
    FUND = "fund"


@dataclass
class QuoteResult:
    """Outcome of one fetch against one source.

    An absent price is a normal outcome meaning "try the next source".
    """

    source_id: str
    fetched_url: str
    price: Decimal | None = None
    change_text: str | None = None  # Day-over-day change as displayed by the source
    display_name: str | None = None

    @property
    def has_price(self) -> bool:
        return self.price is not None


@dataclass
class ResolvedQuote:
    """Final quote for a code after walking the source chain."""

    code: str
    price: Decimal
    currency: str
    source_id: str
    source_url: str
    display_name: str | None = None
    change_text: str | None = None
    synthetic: bool = False  # Deterministic placeholder, no source succeeded


@dataclass
class FxRate:
    """USD/JPY rate used to convert foreign equity values."""

    rate: Decimal
    fetched_at: datetime | None = None
    source_id: str = "default"
    fallback: bool = True  # True until a fetch has succeeded


class QuoteSource(Protocol):
    """Protocol for quote sources.

    Implementations must never raise for transport or parsing problems;
    they return a QuoteResult with an absent price instead.
    """

    @property
    def source_id(self) -> str:
        """Return the source identifier (e.g., 'yahoo_jp')."""
        ...

    def fetch(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> QuoteResult:
        """Fetch a quote for one code.

        Args:
            code: Security code as entered by the user.
            market: Market after classification.
            instrument_type: Equity or fund.

        Returns:
            QuoteResult, with price None when nothing validated.
        """
        ...


class FxSource(Protocol):
    """Protocol for USD/JPY rate sources. Same no-raise contract as QuoteSource."""

    @property
    def source_id(self) -> str:
        ...

    def fetch_rate(self) -> QuoteResult:
        """Fetch the current rate; ``price`` carries the rate or None."""
        ...
