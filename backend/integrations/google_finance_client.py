"""Google Finance quote pages."""

import re
from typing import Optional

from integrations.extraction import ExtractionStrategy, QuoteDocument, SelectorTextStrategy
from integrations.quote_protocol import InstrumentType, Market
from integrations.quote_source import HttpQuoteSource, quote_code

_DOLLAR_AMOUNT = re.compile(r"[+-]?\$[\d.,]+")


class GoogleFinanceClient(HttpQuoteSource):
    """Google Finance for TSE listings and US listings.

    Domestic codes are looked up on TYO. Foreign codes try NASDAQ first and
    fall back to NYSE when NASDAQ has no page or no usable price.
    """

    source_id = "google"
    base_url = "https://www.google.com/finance/quote"
    name_selectors = ["div.zzDege"]
    change_selectors = [".P6K39c"]

    domestic_exchanges = ("TYO",)
    foreign_exchanges = ("NASDAQ", "NYSE")

    def build_urls(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> list[str]:
        exchanges = self.foreign_exchanges if market == Market.FOREIGN else self.domestic_exchanges
        symbol = quote_code(code)
        if market == Market.FOREIGN:
            symbol = symbol.upper()
        return [f"{self.base_url}/{symbol}:{exchange}" for exchange in exchanges]

    def price_strategies(
        self, market: Market, instrument_type: InstrumentType
    ) -> list[ExtractionStrategy]:
        return [SelectorTextStrategy(".YMlKec.fxKbKc")]

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        change = super().extract_change(document, market, instrument_type)
        if change and market == Market.FOREIGN:
            # The change block also carries the percentage; keep the dollar amount
            match = _DOLLAR_AMOUNT.search(change)
            if match:
                return match.group(0)
        return change
