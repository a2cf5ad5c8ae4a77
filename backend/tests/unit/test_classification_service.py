"""Tests for ClassificationService."""

from integrations.quote_protocol import InstrumentType, Market
from services.classification_service import ClassificationService


class TestResolveMarket:
    def test_numeric_code_is_domestic(self):
        assert ClassificationService.resolve_market("7203") == Market.DOMESTIC

    def test_numeric_code_overrides_foreign_hint(self):
        assert ClassificationService.resolve_market("7203", Market.FOREIGN) == Market.DOMESTIC

    def test_letters_only_ticker_is_foreign(self):
        assert ClassificationService.resolve_market("AAPL") == Market.FOREIGN

    def test_hint_used_for_non_numeric_code(self):
        assert ClassificationService.resolve_market("AAPL", Market.DOMESTIC) == Market.DOMESTIC
        assert ClassificationService.resolve_market("BRK-B", Market.FOREIGN) == Market.FOREIGN

    def test_mixed_code_defaults_domestic(self):
        assert ClassificationService.resolve_market("0331418A") == Market.DOMESTIC

    def test_whitespace_ignored(self):
        assert ClassificationService.resolve_market("  9984 ", Market.FOREIGN) == Market.DOMESTIC


class TestClassifyNewHolding:
    def test_no_request_derives_market(self):
        assert ClassificationService.classify_new_holding("AAPL") == (Market.FOREIGN, False)
        assert ClassificationService.classify_new_holding("7203") == (Market.DOMESTIC, False)

    def test_request_matching_shape_not_pinned(self):
        assert ClassificationService.classify_new_holding("AAPL", Market.FOREIGN) == (Market.FOREIGN, False)

    def test_request_against_shape_pins(self):
        # A numeric-coded fund the user files under foreign holdings
        assert ClassificationService.classify_new_holding("03311187", Market.FOREIGN) == (Market.FOREIGN, True)

    def test_explicit_pin(self):
        assert ClassificationService.classify_new_holding("AAPL", Market.FOREIGN, pin=True) == (Market.FOREIGN, True)


class TestCurrency:
    def test_foreign_equity_usd(self):
        assert ClassificationService.currency_for("AAPL", Market.FOREIGN, InstrumentType.EQUITY) == "USD"

    def test_domestic_equity_jpy(self):
        assert ClassificationService.currency_for("7203", Market.DOMESTIC, InstrumentType.EQUITY) == "JPY"

    def test_fund_always_jpy(self):
        assert ClassificationService.currency_for("VTIFUND", Market.FOREIGN, InstrumentType.FUND) == "JPY"

    def test_numeric_code_in_foreign_market_jpy(self):
        assert ClassificationService.currency_for("7203", Market.FOREIGN, InstrumentType.EQUITY) == "JPY"


class TestCodeKey:
    def test_case_and_whitespace_insensitive(self):
        assert ClassificationService.code_key(" aapl ") == ClassificationService.code_key("AAPL")
