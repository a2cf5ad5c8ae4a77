"""Test fixtures and sample data."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from integrations.quote_protocol import InstrumentType, Market
from schemas.holding import Holding
from services.holding_store import HoldingStore


def make_holding(
    code: str,
    shares: str | int = 100,
    instrument_type: InstrumentType = InstrumentType.EQUITY,
    market: Market = Market.DOMESTIC,
    **kwargs,
) -> Holding:
    """Build a Holding with sensible defaults for tests."""
    return Holding(
        code=code,
        shares=Decimal(str(shares)),
        instrument_type=instrument_type,
        market=market,
        currency="USD" if market == Market.FOREIGN and instrument_type == InstrumentType.EQUITY else "JPY",
        **kwargs,
    )


def save_holdings(db: Session, holdings: list[Holding]) -> list[Holding]:
    HoldingStore(db).save(holdings)
    return holdings


@pytest.fixture
def sample_holdings(db: Session) -> list[Holding]:
    """A domestic equity, a foreign equity and a domestic fund, never priced."""
    return save_holdings(db, [
        make_holding("7203", 100),
        make_holding("AAPL", 10, market=Market.FOREIGN),
        make_holding("0331418A", 10000, instrument_type=InstrumentType.FUND),
    ])


@pytest.fixture
def priced_holdings(db: Session) -> list[Holding]:
    """Holdings that already carry a price and value."""
    updated = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
    return save_holdings(db, [
        make_holding(
            "7203", 100,
            last_price=Decimal("3000"), last_value=Decimal("300000"), last_updated_at=updated,
        ),
        make_holding(
            "AAPL", 10, market=Market.FOREIGN,
            last_price=Decimal("150"), last_value=Decimal("225000"), last_updated_at=updated,
        ),
        make_holding(
            "0331418A", 10000, instrument_type=InstrumentType.FUND,
            last_price=Decimal("12345"), last_value=Decimal("12345"), last_updated_at=updated,
        ),
    ])
