"""Registry of quote sources and their priority per instrument class.

The registry is responsible for:
- Instantiating each known source once
- Holding the ordered source list for every (market, instrument type)
- Holding the ordered FX sources
"""

import importlib
import logging
from functools import lru_cache

from integrations.quote_protocol import FxSource, InstrumentType, Market, QuoteSource

logger = logging.getLogger(__name__)

# Each tuple is (source_id, module_path, class_name).
SOURCE_DEFINITIONS: list[tuple[str, str, str]] = [
    ("yahoo_jp", "integrations.yahoo_finance_client", "YahooJapanClient"),
    ("yahoo_us", "integrations.yahoo_finance_client", "YahooUSClient"),
    ("google", "integrations.google_finance_client", "GoogleFinanceClient"),
    ("sbi", "integrations.fund_site_clients", "SBISecuritiesClient"),
    ("rakuten", "integrations.fund_site_clients", "RakutenSecuritiesClient"),
    ("minkabu", "integrations.fund_site_clients", "MinkabuFundClient"),
    ("morningstar", "integrations.fund_site_clients", "MorningstarJapanClient"),
]

FX_SOURCE_DEFINITIONS: list[tuple[str, str, str]] = [
    ("yahoo_chart", "integrations.yahoo_finance_client", "YahooChartFxClient"),
    ("yahoo_jp_fx", "integrations.yahoo_finance_client", "YahooJapanFxClient"),
]

_FUND_ROUTE = ["yahoo_jp", "sbi", "rakuten", "minkabu", "morningstar"]

# Priority order of source ids per instrument class. Foreign funds are
# Japanese-domiciled funds investing abroad, so they use the fund sites too.
DEFAULT_ROUTES: dict[tuple[Market, InstrumentType], list[str]] = {
    (Market.DOMESTIC, InstrumentType.EQUITY): ["yahoo_jp", "google"],
    (Market.FOREIGN, InstrumentType.EQUITY): ["google", "yahoo_us"],
    (Market.DOMESTIC, InstrumentType.FUND): list(_FUND_ROUTE),
    (Market.FOREIGN, InstrumentType.FUND): list(_FUND_ROUTE),
}


class SourceRegistry:
    """Ordered quote sources per (market, instrument type).

    Example:
        registry = get_source_registry()
        for source in registry.sources_for(Market.DOMESTIC, InstrumentType.FUND):
            result = source.fetch(code, Market.DOMESTIC, InstrumentType.FUND)
    """

    def __init__(self):
        self._sources: dict[str, QuoteSource] = {}
        self._routes: dict[tuple[Market, InstrumentType], list[str]] = {}
        self._fx_sources: list[FxSource] = []

    def register_source(self, source: QuoteSource) -> None:
        self._sources[source.source_id] = source

    def register_fx_source(self, source: FxSource) -> None:
        self._fx_sources.append(source)

    def set_route(
        self, market: Market, instrument_type: InstrumentType, source_ids: list[str]
    ) -> None:
        """Set the priority order for one instrument class.

        Raises:
            ValueError: If any source id is not registered.
        """
        unknown = [s for s in source_ids if s not in self._sources]
        if unknown:
            raise ValueError(f"Unknown quote sources: {', '.join(unknown)}")
        self._routes[(market, instrument_type)] = list(source_ids)

    def get_source(self, source_id: str) -> QuoteSource:
        """Get a source by id.

        Raises:
            ValueError: If the source is not registered.
        """
        if source_id not in self._sources:
            raise ValueError(f"Quote source '{source_id}' is not registered")
        return self._sources[source_id]

    def sources_for(
        self, market: Market, instrument_type: InstrumentType
    ) -> list[QuoteSource]:
        """Sources to consult for an instrument class, highest priority first."""
        return [self._sources[s] for s in self._routes.get((market, instrument_type), [])]

    def fx_sources(self) -> list[FxSource]:
        return list(self._fx_sources)

    def list_sources(self) -> list[str]:
        return list(self._sources.keys())

    def initialize_default_sources(self) -> None:
        """Instantiate every known source and install the default routes."""
        for source_id, module_path, class_name in SOURCE_DEFINITIONS:
            source = self._try_init_source(source_id, module_path, class_name)
            if source is not None:
                self.register_source(source)

        for source_id, module_path, class_name in FX_SOURCE_DEFINITIONS:
            source = self._try_init_source(source_id, module_path, class_name)
            if source is not None:
                self.register_fx_source(source)

        for (market, instrument_type), source_ids in DEFAULT_ROUTES.items():
            available = [s for s in source_ids if s in self._sources]
            self.set_route(market, instrument_type, available)

        logger.info(
            "Quote sources registered: %s (fx: %s)",
            ", ".join(self.list_sources()),
            ", ".join(s.source_id for s in self._fx_sources),
        )

    def _try_init_source(self, source_id: str, module_path: str, class_name: str):
        try:
            module = importlib.import_module(module_path)
            return getattr(module, class_name)()
        except Exception:
            logger.warning("Quote source failed to initialize: %s", source_id, exc_info=True)
            return None


@lru_cache
def get_source_registry() -> SourceRegistry:
    """Return the process-wide registry with the default sources.

    Cached so every caller shares one set of HTTP clients.
    """
    registry = SourceRegistry()
    registry.initialize_default_sources()
    return registry
