"""External quote integrations.

This package contains:
- Quote protocol: classification enums, result types, source interfaces
- Extraction strategies: ranked price extraction and validation
- Source clients: Yahoo, Google Finance, Japanese fund sites
- Source registry: priority order per instrument class
"""

from integrations.quote_protocol import (
    FxRate,
    FxSource,
    InstrumentType,
    Market,
    QuoteResult,
    QuoteSource,
    ResolvedQuote,
)
from integrations.source_registry import SourceRegistry, get_source_registry

__all__ = [
    "FxRate",
    "FxSource",
    "InstrumentType",
    "Market",
    "QuoteResult",
    "QuoteSource",
    "ResolvedQuote",
    "SourceRegistry",
    "get_source_registry",
]
