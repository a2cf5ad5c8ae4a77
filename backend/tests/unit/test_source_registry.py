"""Unit tests for SourceRegistry."""

import pytest

from integrations.quote_protocol import InstrumentType, Market
from integrations.source_registry import DEFAULT_ROUTES, SourceRegistry
from tests.fixtures.mocks import MockFxSource, MockQuoteSource


class TestSourceRegistry:
    def test_register_and_get(self):
        registry = SourceRegistry()
        source = MockQuoteSource("a")
        registry.register_source(source)

        assert registry.get_source("a") is source
        assert registry.list_sources() == ["a"]

    def test_get_unknown_source_raises(self):
        with pytest.raises(ValueError, match="not registered"):
            SourceRegistry().get_source("missing")

    def test_route_order_preserved(self):
        registry = SourceRegistry()
        a, b = MockQuoteSource("a"), MockQuoteSource("b")
        registry.register_source(a)
        registry.register_source(b)
        registry.set_route(Market.DOMESTIC, InstrumentType.EQUITY, ["b", "a"])

        assert registry.sources_for(Market.DOMESTIC, InstrumentType.EQUITY) == [b, a]
        assert registry.sources_for(Market.FOREIGN, InstrumentType.EQUITY) == []

    def test_route_with_unknown_source_rejected(self):
        registry = SourceRegistry()
        with pytest.raises(ValueError, match="Unknown quote sources"):
            registry.set_route(Market.DOMESTIC, InstrumentType.FUND, ["nope"])

    def test_fx_sources(self):
        registry = SourceRegistry()
        fx = MockFxSource()
        registry.register_fx_source(fx)
        assert registry.fx_sources() == [fx]


class TestDefaultSources:
    def test_default_registry_routes(self):
        registry = SourceRegistry()
        registry.initialize_default_sources()

        domestic = [s.source_id for s in registry.sources_for(Market.DOMESTIC, InstrumentType.EQUITY)]
        foreign = [s.source_id for s in registry.sources_for(Market.FOREIGN, InstrumentType.EQUITY)]
        funds = [s.source_id for s in registry.sources_for(Market.DOMESTIC, InstrumentType.FUND)]

        assert domestic == ["yahoo_jp", "google"]
        assert foreign == ["google", "yahoo_us"]
        assert funds == ["yahoo_jp", "sbi", "rakuten", "minkabu", "morningstar"]
        assert [s.source_id for s in registry.fx_sources()] == ["yahoo_chart", "yahoo_jp_fx"]

    def test_every_instrument_class_has_a_route(self):
        for market in Market:
            for instrument_type in InstrumentType:
                assert DEFAULT_ROUTES[(market, instrument_type)]
