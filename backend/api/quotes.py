"""Quote and FX API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from config import settings
from integrations.quote_protocol import InstrumentType, Market
from schemas.quote import FxResponse, QuoteResponse
from services.classification_service import ClassificationService
from services.fx_rate_service import FxRateService
from services.quote_resolver import QuoteResolver, synthetic_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["quotes"])

# Dependency injection for testing
_quote_resolver_override: Optional[QuoteResolver] = None
_fx_rate_service_override: Optional[FxRateService] = None


def get_quote_resolver() -> QuoteResolver:
    """Get QuoteResolver instance, allowing for test overrides."""
    if _quote_resolver_override is not None:
        return _quote_resolver_override
    return QuoteResolver()


def set_quote_resolver_override(resolver: Optional[QuoteResolver]) -> None:
    global _quote_resolver_override
    _quote_resolver_override = resolver


def get_fx_rate_service() -> FxRateService:
    """Get FxRateService instance, allowing for test overrides."""
    if _fx_rate_service_override is not None:
        return _fx_rate_service_override
    return FxRateService()


def set_fx_rate_service_override(service: Optional[FxRateService]) -> None:
    global _fx_rate_service_override
    _fx_rate_service_override = service


@router.get("/quote", response_model=QuoteResponse)
def get_quote(
    code: Optional[str] = Query(None, description="Security code, e.g. 7203, AAPL, 0331418A"),
    market: Optional[Market] = Query(None, description="Market hint; numeric codes are always domestic"),
    instrument_type: InstrumentType = Query(InstrumentType.EQUITY),
    resolver: QuoteResolver = Depends(get_quote_resolver),
):
    """Resolve the current price for one code.

    Always answers with a price: when no source succeeds the price is a
    deterministic placeholder and ``synthetic`` is true.
    """
    if code is None or not code.strip():
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "code is required"},
        )
    code = code.strip()

    try:
        quote = resolver.resolve(code, market, instrument_type)
    except Exception:
        # Never expose str(e); answer with the placeholder price
        logger.error("Unexpected error resolving quote for %s", code, exc_info=True)
        resolved_market = ClassificationService.resolve_market(code, market)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to fetch quote",
                "code": code,
                "price": str(synthetic_price(code, resolved_market, instrument_type)),
                "synthetic": True,
            },
        )

    return QuoteResponse(
        code=quote.code,
        price=quote.price,
        change=quote.change_text,
        currency=quote.currency,
        source=quote.source_id,
        source_url=quote.source_url,
        name=quote.display_name,
        synthetic=quote.synthetic,
    )


@router.get("/fx", response_model=FxResponse)
def get_fx_rate(service: FxRateService = Depends(get_fx_rate_service)):
    """Fetch the current USD/JPY rate.

    Falls back to the last good rate, or the configured default, when the
    sources fail.
    """
    try:
        fx = service.refresh()
    except Exception:
        logger.error("Unexpected error fetching FX rate", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to fetch exchange rate",
                "rate": str(settings.DEFAULT_FX_RATE),
            },
        )

    return FxResponse(
        rate=fx.rate,
        fetched_at=fx.fetched_at,
        source=fx.source_id,
        fallback=fx.fallback,
    )
