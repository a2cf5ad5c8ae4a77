"""Base class for HTML/JSON quote sources fetched over HTTP."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from config import settings
from integrations.exceptions import (
    QuoteSourceConnectionError,
    QuoteSourceError,
    QuoteSourceHTTPError,
)
from integrations.extraction import (
    ExtractionStrategy,
    PriceValidator,
    QuoteDocument,
    extract_price,
    first_text,
    validator_for,
)
from integrations.quote_protocol import InstrumentType, Market, QuoteResult

logger = logging.getLogger(__name__)


def quote_code(code: str) -> str:
    """URL-encode a security code for use in a path or query string."""
    return quote(code.strip(), safe="=")


class HttpQuoteSource:
    """A quote source backed by one website or API.

    Subclasses define the URL shape and the ranked extraction strategies.
    ``fetch()`` never raises: transport errors, HTTP errors, timeouts and
    unparseable pages all come back as a QuoteResult without a price.
    """

    source_id = "http"
    user_agent: Optional[str] = None  # None means settings.QUOTE_USER_AGENT
    name_selectors: list[str] = []
    change_selectors: list[str] = []

    def __init__(
        self,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the HTTP client.

        Args:
            timeout: Per-request timeout in seconds. Defaults to
                     settings.QUOTE_HTTP_TIMEOUT_SECONDS.
            client: Pre-built httpx client, mainly for tests.
        """
        self._timeout = timeout if timeout is not None else settings.QUOTE_HTTP_TIMEOUT_SECONDS
        self._client = client or httpx.Client(
            headers={
                "User-Agent": self.user_agent or settings.QUOTE_USER_AGENT,
                "Accept-Language": "ja,en-US;q=0.9,en;q=0.8",
            },
            timeout=self._timeout,
            follow_redirects=True,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    # -- request shape -----------------------------------------------------

    def build_urls(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> list[str]:
        """URLs to try in order; the first one with a validated price wins."""
        raise NotImplementedError

    def price_strategies(
        self, market: Market, instrument_type: InstrumentType
    ) -> list[ExtractionStrategy]:
        raise NotImplementedError

    # -- metadata ------------------------------------------------------------

    def extract_name(self, document: QuoteDocument) -> Optional[str]:
        return self.clean_name(first_text(document, self.name_selectors))

    def extract_change(
        self, document: QuoteDocument, market: Market, instrument_type: InstrumentType
    ) -> Optional[str]:
        return first_text(document, self.change_selectors)

    def clean_name(self, name: Optional[str]) -> Optional[str]:
        return name or None

    # -- fetch -----------------------------------------------------------------

    def fetch(
        self, code: str, market: Market, instrument_type: InstrumentType
    ) -> QuoteResult:
        """Fetch and extract a quote for one code."""
        urls = self.build_urls(code, market, instrument_type)
        validator = validator_for(code, market, instrument_type)
        return self._fetch_first(
            urls,
            self.price_strategies(market, instrument_type),
            validator,
            market,
            instrument_type,
        )

    def _fetch_first(
        self,
        urls: list[str],
        strategies: list[ExtractionStrategy],
        validator: PriceValidator,
        market: Market,
        instrument_type: InstrumentType,
    ) -> QuoteResult:
        result = QuoteResult(source_id=self.source_id, fetched_url=urls[0] if urls else "")
        for url in urls:
            try:
                document = self._get_document(url)
            except QuoteSourceHTTPError as e:
                if e.not_found:
                    logger.debug("%s: %s not found", self.source_id, url)
                else:
                    logger.warning("%s: HTTP %s from %s", self.source_id, e.status_code, url)
                continue
            except QuoteSourceError as e:
                logger.warning("%s: fetch failed for %s: %s", self.source_id, url, e)
                continue

            try:
                result = self._parse(document, url, strategies, validator, market, instrument_type)
            except Exception:
                logger.warning(
                    "%s: failed to parse %s", self.source_id, url, exc_info=True
                )
                result = QuoteResult(source_id=self.source_id, fetched_url=url)
                continue

            if result.has_price:
                return result
            logger.info("%s: no validated price for %s at %s", self.source_id, validator.code, url)
        return result

    def _get_document(self, url: str) -> QuoteDocument:
        """GET a URL and wrap the body.

        Raises:
            QuoteSourceConnectionError: On timeouts and transport failures.
            QuoteSourceHTTPError: On 4xx/5xx responses.
        """
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as e:
            raise QuoteSourceConnectionError(
                f"timed out after {self._timeout}s", self.source_id, timed_out=True
            ) from e
        except httpx.HTTPError as e:
            raise QuoteSourceConnectionError(str(e), self.source_id) from e

        if response.status_code >= 400:
            raise QuoteSourceHTTPError(
                f"HTTP {response.status_code}",
                self.source_id,
                status_code=response.status_code,
            )
        return QuoteDocument(response.text, url)

    def _parse(
        self,
        document: QuoteDocument,
        url: str,
        strategies: list[ExtractionStrategy],
        validator: PriceValidator,
        market: Market,
        instrument_type: InstrumentType,
    ) -> QuoteResult:
        candidate = extract_price(document, strategies, validator)
        return QuoteResult(
            source_id=self.source_id,
            fetched_url=url,
            price=candidate.value if candidate else None,
            change_text=self.extract_change(document, market, instrument_type),
            display_name=self.extract_name(document),
        )
