"""Yahoo Finance quote sources (Japan pages, US pages, chart API)."""

import logging
import re
from decimal import Decimal
from typing import Optional

from integrations.extraction import (
    MIN_FX_RATE,
    ExtractionStrategy,
    JsonPathStrategy,
    LabeledValueStrategy,
    NumericSpanStrategy,
    PatternStrategy,
    PriceValidator,
    QuoteDocument,
    SelectorAttributeStrategy,
    SelectorTextStrategy,
    first_text,
    parse_price,
)
from integrations.quote_protocol import InstrumentType, Market, QuoteResult
from integrations.quote_source import HttpQuoteSource, quote_code

logger = logging.getLogger(__name__)

USDJPY_SYMBOL = "USDJPY=X"

# Yahoo Japan renders price and change in the same obfuscated class;
# the first match is the price, the second the change.
_JP_PRICE_CLASS = "span._3rXWJKZF"
_JP_FUND_NAME_SUFFIX = re.compile(r"の基準価額\s*・*\s*投資信託情報$")


class YahooJapanClient(HttpQuoteSource):
    """Yahoo! Finance Japan quote pages for TSE equities and mutual funds."""

    source_id = "yahoo_jp"
    base_url = "https://finance.yahoo.co.jp/quote"

    def build_urls(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> list[str]:
        return [f"{self.base_url}/{quote_code(code)}"]

    def price_strategies(
        self, market: Market, instrument_type: InstrumentType
    ) -> list[ExtractionStrategy]:
        if instrument_type == InstrumentType.FUND:
            return [
                LabeledValueStrategy("基準価額"),
                NumericSpanStrategy(min_length=5),
                PatternStrategy(r"([0-9]{1,3},[0-9]{3})円", source="html"),
                PatternStrategy(r"基準価額[^\d]*([0-9,]+)", source="text"),
                SelectorTextStrategy(_JP_PRICE_CLASS),
                PatternStrategy(r"([0-9],[0-9]{3})", source="html"),
            ]
        return [
            SelectorTextStrategy(_JP_PRICE_CLASS, 0),
            PatternStrategy(r"現在値[^\d]*([0-9,]+(?:\.[0-9]+)?)", source="text"),
        ]

    def extract_name(self, document: QuoteDocument) -> Optional[str]:
        return self.clean_name(first_text(document, ["h1"]))

    def clean_name(self, name: Optional[str]) -> Optional[str]:
        if not name:
            return None
        return _JP_FUND_NAME_SUFFIX.sub("", name).strip() or None

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        if instrument_type == InstrumentType.FUND:
            return first_text(document, ["span._3BGK5SVf"])
        elements = document.soup.select(_JP_PRICE_CLASS)
        if len(elements) > 1:
            return elements[1].get_text(strip=True) or None
        return None


class YahooUSClient(HttpQuoteSource):
    """Yahoo! Finance US quote pages for US-listed equities."""

    source_id = "yahoo_us"
    base_url = "https://finance.yahoo.com/quote"
    name_selectors = ["h1"]

    def build_urls(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> list[str]:
        return [f"{self.base_url}/{quote_code(code).upper()}"]

    def price_strategies(
        self, market: Market, instrument_type: InstrumentType
    ) -> list[ExtractionStrategy]:
        return [
            SelectorAttributeStrategy(
                'fin-streamer[data-field="regularMarketPrice"]', "data-value"
            ),
            SelectorTextStrategy('fin-streamer[data-field="regularMarketPrice"]'),
            SelectorTextStrategy('[data-test="qsp-price"]'),
            SelectorTextStrategy('[data-testid="qsp-price"]'),
        ]

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        change = _streamer_value(document, "regularMarketChange")
        percent = _streamer_value(document, "regularMarketChangePercent")
        if change is None:
            return None
        sign = "+" if change >= 0 else ""
        if percent is None:
            return f"{sign}{change:.2f}"
        return f"{sign}{change:.2f} ({sign}{percent:.2f}%)"


def _streamer_value(document: QuoteDocument, field: str) -> Optional[Decimal]:
    element = document.soup.select_one(f'fin-streamer[data-field="{field}"]')
    if element is None:
        return None
    return parse_price(element.get("data-value") or element.get_text(strip=True))


class YahooChartFxClient(HttpQuoteSource):
    """USD/JPY from the Yahoo chart JSON API."""

    source_id = "yahoo_chart"
    base_url = "https://query1.finance.yahoo.com/v8/finance/chart"

    def fetch_rate(self) -> QuoteResult:
        """Fetch the current USD/JPY rate; price is None on failure."""
        return self._fetch_first(
            [f"{self.base_url}/{USDJPY_SYMBOL}"],
            [JsonPathStrategy("chart.result.0.meta.regularMarketPrice")],
            PriceValidator(USDJPY_SYMBOL, MIN_FX_RATE),
            Market.FOREIGN,
            InstrumentType.EQUITY,
        )

    def extract_name(self, document: QuoteDocument) -> Optional[str]:
        return None

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        return None


class YahooJapanFxClient(HttpQuoteSource):
    """USD/JPY scraped from the Yahoo! Finance Japan quote page."""

    source_id = "yahoo_jp_fx"
    base_url = "https://finance.yahoo.co.jp/quote"

    def fetch_rate(self) -> QuoteResult:
        """Fetch the current USD/JPY rate; price is None on failure."""
        return self._fetch_first(
            [f"{self.base_url}/{USDJPY_SYMBOL}"],
            [
                SelectorTextStrategy(_JP_PRICE_CLASS),
                SelectorTextStrategy('span[data-test="qsp-price"]'),
            ],
            PriceValidator(USDJPY_SYMBOL, MIN_FX_RATE),
            Market.FOREIGN,
            InstrumentType.EQUITY,
        )

    def extract_name(self, document: QuoteDocument) -> Optional[str]:
        return None

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        return None
