"""Tests for ValuationService."""

from decimal import Decimal

from integrations.quote_protocol import FxRate, InstrumentType, Market, ResolvedQuote
from services.valuation_service import ValuationService
from tests.fixtures import make_holding


def _quote(code: str, price: str, currency: str = "JPY") -> ResolvedQuote:
    return ResolvedQuote(
        code=code, price=Decimal(price), currency=currency, source_id="test", source_url=""
    )


class TestValue:
    def test_fund_per_ten_thousand_units(self):
        holding = make_holding("0331418A", 10000, instrument_type=InstrumentType.FUND)
        assert ValuationService.value(_quote("0331418A", "12345"), holding, Decimal("150")) == Decimal("12345")

    def test_foreign_equity_converted(self):
        holding = make_holding("AAPL", 10, market=Market.FOREIGN)
        assert ValuationService.value(_quote("AAPL", "150.00", "USD"), holding, Decimal("150")) == Decimal("225000")

    def test_domestic_equity(self):
        holding = make_holding("7203", 100)
        assert ValuationService.value(_quote("7203", "3000"), holding, Decimal("150")) == Decimal("300000")

    def test_foreign_fund_not_converted(self):
        holding = make_holding("GLOBALFUND", 20000, instrument_type=InstrumentType.FUND, market=Market.FOREIGN)
        assert ValuationService.value(_quote("GLOBALFUND", "15000"), holding, Decimal("150")) == Decimal("30000")

    def test_numeric_code_in_foreign_market_not_converted(self):
        holding = make_holding("7203", 100, market=Market.FOREIGN)
        assert ValuationService.value(_quote("7203", "3000"), holding, Decimal("150")) == Decimal("300000")

    def test_round_half_away_from_zero_at_end(self):
        # 0.5 is exact in Decimal, so half-up rounding is observable
        assert ValuationService.round_amount(Decimal("100.5")) == Decimal("101")
        assert ValuationService.round_amount(Decimal("100.49")) == Decimal("100")
        assert ValuationService.round_amount(Decimal("-100.5")) == Decimal("-101")

    def test_no_intermediate_rounding(self):
        # 3 * 33.335 * 150.1 = 15010.7505 -> 15011
        holding = make_holding("XYZ", 3, market=Market.FOREIGN)
        assert ValuationService.value(_quote("XYZ", "33.335", "USD"), holding, Decimal("150.1")) == Decimal("15011")


class TestRevalue:
    def test_uses_last_price(self):
        holding = make_holding("7203", 200, last_price=Decimal("3000"))
        assert ValuationService.revalue(holding, Decimal("150")) == Decimal("600000")

    def test_never_priced(self):
        assert ValuationService.revalue(make_holding("7203", 200), Decimal("150")) is None


class TestBuildSnapshot:
    def test_totals_by_group(self):
        holdings = [
            make_holding("7203", 100, last_value=Decimal("300000")),
            make_holding("AAPL", 10, market=Market.FOREIGN, last_value=Decimal("225000")),
            make_holding("0331418A", 10000, instrument_type=InstrumentType.FUND, last_value=Decimal("12345")),
            make_holding("GLOBALFUND", 1, instrument_type=InstrumentType.FUND, market=Market.FOREIGN, last_value=Decimal("5000")),
            make_holding("9984", 100),
        ]
        snapshot = ValuationService.build_snapshot(holdings, FxRate(rate=Decimal("150")))

        totals = snapshot.totals
        assert totals.domestic_equity == Decimal("300000")
        assert totals.foreign_equity == Decimal("225000")
        assert totals.domestic_fund == Decimal("12345")
        assert totals.foreign_fund == Decimal("5000")
        assert totals.domestic_total == Decimal("312345")
        assert totals.foreign_total == Decimal("230000")
        assert totals.grand_total == Decimal("542345")
        assert snapshot.unvalued_count == 1
        assert snapshot.fx_rate == Decimal("150")
        assert snapshot.fx_fallback is True
        assert len(snapshot.holdings) == 5

    def test_empty(self):
        snapshot = ValuationService.build_snapshot([], FxRate(rate=Decimal("150")))
        assert snapshot.totals.grand_total == Decimal("0")
        assert snapshot.holdings == []
        assert snapshot.last_updated_at is None

    def test_deterministic(self):
        holdings = [make_holding("7203", 100, last_value=Decimal("300000"))]
        fx = FxRate(rate=Decimal("150"))
        assert ValuationService.build_snapshot(holdings, fx) == ValuationService.build_snapshot(holdings, fx)
