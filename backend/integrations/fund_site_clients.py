"""Japanese mutual fund quote sites.

Each site publishes the fund's NAV (基準価額, per 10,000 units) on a
detail page keyed by the fund's association code. The classes below only
differ in URL shape and selectors.
"""

from typing import Optional

from integrations.extraction import (
    ExtractionStrategy,
    QuoteDocument,
    SelectorTextStrategy,
    TableCellAfterLabelStrategy,
)
from integrations.quote_protocol import InstrumentType, Market
from integrations.quote_source import HttpQuoteSource, quote_code


class FundSiteClient(HttpQuoteSource):
    """Fund detail page with the price behind fixed CSS selectors."""

    url_template = ""
    price_selectors: list[str] = []
    nav_label: Optional[str] = "基準価額"

    def build_urls(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> list[str]:
        return [self.url_template.format(code=quote_code(code))]

    def price_strategies(
        self, market: Market, instrument_type: InstrumentType
    ) -> list[ExtractionStrategy]:
        strategies: list[ExtractionStrategy] = [
            SelectorTextStrategy(selector) for selector in self.price_selectors
        ]
        if self.nav_label:
            strategies.append(TableCellAfterLabelStrategy(self.nav_label))
        return strategies


class SBISecuritiesClient(FundSiteClient):
    source_id = "sbi"
    url_template = "https://site0.sbisec.co.jp/marble/fund/detail/achievement.do?Param6={code}"
    name_selectors = ["span.fnt_14.fwb"]
    price_selectors = ["td.alR.fwb"]

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        # Right-aligned cells: NAV, change, change percent
        cells = document.soup.select("td.alR")
        if len(cells) < 2:
            return None
        change = cells[1].get_text(strip=True)
        if len(cells) > 2:
            percent = cells[2].get_text(strip=True)
            if percent:
                return f"{change} ({percent})"
        return change or None


class RakutenSecuritiesClient(FundSiteClient):
    source_id = "rakuten"
    url_template = "https://www.rakuten-sec.co.jp/web/fund/detail/?ID={code}"
    name_selectors = ["h1.fund-detail-header-title"]
    price_selectors = [".fund-price-value"]
    change_selectors = [".fund-price-change"]


class MinkabuFundClient(FundSiteClient):
    source_id = "minkabu"
    url_template = "https://itf.minkabu.jp/fund/{code}"
    name_selectors = ["h1.md_h1"]
    price_selectors = [".stock_price"]
    change_selectors = [".stock_price_change"]


class MorningstarJapanClient(FundSiteClient):
    source_id = "morningstar"
    url_template = "https://www.morningstar.co.jp/FundData/SnapShot.do?fnc={code}"
    name_selectors = [".page_title h1"]
    price_selectors = ["table.fund_data_table tr:nth-child(1) td:nth-child(2)"]
    change_selectors = ["table.fund_data_table tr:nth-child(2) td:nth-child(2)"]
