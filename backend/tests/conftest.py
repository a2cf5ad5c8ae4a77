"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401  (registers tables on Base.metadata)
from api.portfolio import get_refresh_service
from api.quotes import get_fx_rate_service, get_quote_resolver
from database import Base, get_db
from main import app
from services.fx_rate_service import FxRateService
from services.quote_resolver import QuoteResolver
from services.refresh_service import RefreshService
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import priced_holdings, sample_holdings  # noqa: F401
from tests.fixtures.mocks import MockFxSource, MockQuoteSource, MockSourceRegistry


@pytest.fixture(name="db")
def db_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_fx_state():
    """FX state is process-wide; start every test from the default rate."""
    FxRateService.reset()
    yield
    FxRateService.reset()


@pytest.fixture(name="mock_source")
def mock_source_fixture():
    """A source that knows a domestic equity, a US equity and a fund."""
    return MockQuoteSource(
        "mock",
        prices={
            "7203": Decimal("3000"),
            "AAPL": Decimal("150.00"),
            "0331418A": Decimal("12345"),
        },
        names={"7203": "Toyota Motor", "AAPL": "Apple Inc"},
        changes={"7203": "+25"},
    )


@pytest.fixture(name="mock_fx_source")
def mock_fx_source_fixture():
    return MockFxSource(rate=Decimal("150"))


@pytest.fixture(name="mock_registry")
def mock_registry_fixture(mock_source, mock_fx_source):
    return MockSourceRegistry([mock_source], fx_sources=[mock_fx_source])


@pytest.fixture(name="refresh_service")
def refresh_service_fixture(mock_registry):
    """RefreshService over mock sources with no pacing delay."""
    return RefreshService(
        resolver=QuoteResolver(registry=mock_registry),
        fx_service=FxRateService(registry=mock_registry),
        pacing_seconds=0,
    )


@pytest.fixture(name="client")
def client_fixture(db, mock_registry, refresh_service):
    """Create a test client with the test database and mock sources."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_resolver] = lambda: QuoteResolver(registry=mock_registry)
    app.dependency_overrides[get_fx_rate_service] = lambda: FxRateService(registry=mock_registry)
    app.dependency_overrides[get_refresh_service] = lambda: refresh_service
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="client_with_failing_sources")
def client_with_failing_sources_fixture(db):
    """Create a test client whose sources never return a price."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    failing_registry = MockSourceRegistry(
        [MockQuoteSource("empty"), MockQuoteSource("broken", should_raise=True)],
        fx_sources=[MockFxSource(rate=None)],
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_resolver] = lambda: QuoteResolver(registry=failing_registry)
    app.dependency_overrides[get_fx_rate_service] = lambda: FxRateService(registry=failing_registry)
    app.dependency_overrides[get_refresh_service] = lambda: RefreshService(
        resolver=QuoteResolver(registry=failing_registry),
        fx_service=FxRateService(registry=failing_registry),
        pacing_seconds=0,
    )
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
