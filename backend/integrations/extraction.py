"""Price extraction strategies for fetched quote documents.

Each strategy encodes one place a price tends to live on a page (a CSS
selector, an attribute, the value next to a label, a regex over the raw
markup, a path into a JSON payload). Sources hold a ranked list of
strategies; the first candidate the PriceValidator accepts wins.

Strategies are pure: they only read the document they are given.
"""

import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterator, Optional

from bs4 import BeautifulSoup

from integrations.quote_protocol import InstrumentType, Market

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[-+]?\d[\d,]*(?:\.\d+)?")

# Labels that mark a number as something other than a unit price:
# net assets in millions/hundreds of millions of yen, rankings, percentages.
DEFAULT_UNIT_MARKERS: tuple[str, ...] = ("百万円", "億円", "位", "%")

# Minimum plausible prices per instrument class. Fund NAVs are quoted per
# 10,000 units and sit in the thousands, so anything under 100 is noise.
MIN_FUND_PRICE = Decimal("100")
MIN_DOMESTIC_EQUITY_PRICE = Decimal("1")
MIN_FOREIGN_EQUITY_PRICE = Decimal("0.01")
MIN_FX_RATE = Decimal("1")

# Characters of trailing context kept with regex matches so unit markers
# directly after the number are still visible to the validator.
_TRAILING_CONTEXT = 4

_MISSING = object()


def parse_price(raw: Any) -> Optional[Decimal]:
    """Parse the first numeric token in a displayed value.

    Strips thousands separators and ignores currency symbols, so
    ``"9,970円"`` -> 9970 and ``"$123.45$123.45"`` -> 123.45.

    Returns:
        The parsed Decimal, or None if the text has no finite number.
    """
    if raw is None:
        return None
    match = _NUMBER_RE.search(str(raw))
    if not match:
        return None
    try:
        value = Decimal(match.group(0).replace(",", ""))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


class QuoteDocument:
    """A fetched response body with lazily parsed HTML and JSON views."""

    def __init__(self, body: str, url: str = ""):
        self.body = body
        self.url = url
        self._soup: Optional[BeautifulSoup] = None
        self._text: Optional[str] = None
        self._json: Any = _MISSING

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.body, "html.parser")
        return self._soup

    @property
    def text(self) -> str:
        """Visible text of the page, whitespace-joined."""
        if self._text is None:
            self._text = self.soup.get_text(" ", strip=True)
        return self._text

    def json(self) -> Any:
        """Body decoded as JSON, or None if it is not JSON."""
        if self._json is _MISSING:
            try:
                self._json = json.loads(self.body)
            except (ValueError, TypeError):
                self._json = None
        return self._json


@dataclass
class PriceCandidate:
    """A number found by a strategy, with the raw text it came from."""

    raw: str
    value: Optional[Decimal]
    strategy: str


class ExtractionStrategy:
    """Base class for price extraction strategies.

    Subclasses implement ``candidates()``; ``attempt()`` returns the first
    candidate that passes the optional ``accept`` predicate.
    """

    name = "strategy"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        raise NotImplementedError

    def attempt(
        self,
        document: QuoteDocument,
        accept: Optional[Callable[[PriceCandidate], bool]] = None,
    ) -> Optional[PriceCandidate]:
        for candidate in self.candidates(document):
            if candidate.value is None:
                continue
            if accept is None or accept(candidate):
                return candidate
        return None

    def _candidate(self, raw: str) -> PriceCandidate:
        return PriceCandidate(raw=raw, value=parse_price(raw), strategy=self.name)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class SelectorTextStrategy(ExtractionStrategy):
    """Text of the n-th element matching a CSS selector."""

    def __init__(self, selector: str, index: int = 0):
        self.selector = selector
        self.index = index
        self.name = f"text:{selector}[{index}]"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        elements = document.soup.select(self.selector)
        if len(elements) > self.index:
            text = elements[self.index].get_text(strip=True)
            if text:
                yield self._candidate(text)


class SelectorAttributeStrategy(ExtractionStrategy):
    """Attribute value of the first element matching a CSS selector."""

    def __init__(self, selector: str, attribute: str):
        self.selector = selector
        self.attribute = attribute
        self.name = f"attr:{selector}@{attribute}"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        element = document.soup.select_one(self.selector)
        if element is None:
            return
        value = element.get(self.attribute)
        if value:
            yield self._candidate(str(value))


class LabeledValueStrategy(ExtractionStrategy):
    """Value in the block following the block that carries a label.

    Matches layouts like ``<div><span>基準価額</span></div><div>9,970円</div>``.
    Only text matching ``value_pattern`` counts, so labels next to unrelated
    numbers are skipped.
    """

    def __init__(self, label: str, value_pattern: str = r"([0-9,]+(?:\.[0-9]+)?)円"):
        self.label = label
        self.value_pattern = re.compile(value_pattern)
        self.name = f"label:{label}"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        for node in document.soup.find_all(string=re.compile(re.escape(self.label))):
            element = node.parent
            container = element.parent if element is not None else None
            if container is None:
                continue
            sibling = container.find_next_sibling()
            if sibling is None:
                continue
            text = sibling.get_text(strip=True)
            match = self.value_pattern.search(text)
            if match:
                yield self._candidate(text[match.start():match.end() + _TRAILING_CONTEXT])


class TableCellAfterLabelStrategy(ExtractionStrategy):
    """The table cell immediately following a label cell."""

    def __init__(self, label: str):
        self.label = label
        self.name = f"cell:{label}"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        for cell in document.soup.find_all(["th", "td"]):
            if self.label not in cell.get_text(strip=True):
                continue
            value_cell = cell.find_next_sibling(["td", "th"])
            if value_cell is not None:
                text = value_cell.get_text(strip=True)
                if text:
                    yield self._candidate(text)


class NumericSpanStrategy(ExtractionStrategy):
    """Spans whose whole text is a comma-grouped number of some length.

    Fund pages render the NAV as a bare large number, while most other
    numbers carry units or signs.
    """

    _DIGITS_ONLY = re.compile(r"^[0-9,]+$")

    def __init__(self, min_length: int = 5):
        self.min_length = min_length
        self.name = f"numeric-span:{min_length}"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        for span in document.soup.find_all("span"):
            text = span.get_text(strip=True)
            if len(text) >= self.min_length and self._DIGITS_ONLY.match(text):
                yield self._candidate(text)


def _is_fragment(haystack: str, start: int, end: int) -> bool:
    """True if haystack[start:end] is cut out of a longer number like 4,512,345."""
    before = haystack[start - 1] if start > 0 else ""
    after = haystack[end] if end < len(haystack) else ""
    if before.isdigit() or after.isdigit():
        return True
    if before == "," and start > 1 and haystack[start - 2].isdigit():
        return True
    if after in ",." and end + 1 < len(haystack) and haystack[end + 1].isdigit():
        return True
    return False


class PatternStrategy(ExtractionStrategy):
    """Regex matches over the page text or the raw markup.

    The first capture group is the number; a few characters after the
    full match are kept in ``raw`` so trailing unit markers are visible.
    Matches cut out of a longer number are skipped.
    """

    def __init__(self, pattern: str, source: str = "text"):
        if source not in ("text", "html"):
            raise ValueError(f"source must be 'text' or 'html', got {source!r}")
        self.pattern = re.compile(pattern)
        self.source = source
        self.name = f"pattern:{source}:{pattern}"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        haystack = document.text if self.source == "text" else document.body
        for match in self.pattern.finditer(haystack):
            group = 1 if match.groups() else 0
            if _is_fragment(haystack, match.start(group), match.end(group)):
                continue
            number = match.group(group)
            tail = haystack[match.end():match.end() + _TRAILING_CONTEXT]
            yield PriceCandidate(
                raw=number + tail,
                value=parse_price(number),
                strategy=self.name,
            )


class JsonPathStrategy(ExtractionStrategy):
    """Dotted path into a JSON document; integer segments index lists."""

    def __init__(self, path: str):
        self.path = path
        self.name = f"json:{path}"

    def candidates(self, document: QuoteDocument) -> Iterator[PriceCandidate]:
        node = document.json()
        for segment in self.path.split("."):
            if isinstance(node, list) and segment.isdigit():
                index = int(segment)
                node = node[index] if index < len(node) else None
            elif isinstance(node, dict):
                node = node.get(segment)
            else:
                node = None
            if node is None:
                return
        if isinstance(node, (int, float, str)) and not isinstance(node, bool):
            yield self._candidate(str(node))


class PriceValidator:
    """Rejects candidates that are clearly not this security's price."""

    def __init__(
        self,
        code: str,
        min_value: Decimal,
        unit_markers: tuple[str, ...] = DEFAULT_UNIT_MARKERS,
    ):
        self.code = code.strip()
        self.min_value = min_value
        self.unit_markers = unit_markers

    def accepts(self, candidate: PriceCandidate) -> bool:
        reason = self.rejection_reason(candidate)
        if reason:
            logger.debug(
                "Rejected candidate %r from %s for %s: %s",
                candidate.raw, candidate.strategy, self.code, reason,
            )
            return False
        return True

    def rejection_reason(self, candidate: PriceCandidate) -> Optional[str]:
        """Return why a candidate is rejected, or None if it is acceptable."""
        if candidate.value is None:
            return "not a number"
        if any(marker in candidate.raw for marker in self.unit_markers):
            return "unit marker"
        if self._equals_code(candidate):
            return "equals security code"
        if candidate.value < self.min_value:
            return f"below minimum {self.min_value}"
        return None

    def _equals_code(self, candidate: PriceCandidate) -> bool:
        normalized = re.sub(r"[\s,$¥円]", "", candidate.raw)
        if normalized.upper() == self.code.upper():
            return True
        return self.code.isdigit() and candidate.value == Decimal(self.code)


def min_price_for(market: Market, instrument_type: InstrumentType) -> Decimal:
    """Minimum plausible price for an instrument class."""
    if instrument_type == InstrumentType.FUND:
        return MIN_FUND_PRICE
    if market == Market.FOREIGN:
        return MIN_FOREIGN_EQUITY_PRICE
    return MIN_DOMESTIC_EQUITY_PRICE


def validator_for(code: str, market: Market, instrument_type: InstrumentType) -> PriceValidator:
    """Build the validator for one security."""
    return PriceValidator(code, min_price_for(market, instrument_type))


def extract_price(
    document: QuoteDocument,
    strategies: list[ExtractionStrategy],
    validator: PriceValidator,
) -> Optional[PriceCandidate]:
    """Run strategies in order; return the first validated candidate."""
    for strategy in strategies:
        try:
            candidate = strategy.attempt(document, validator.accepts)
        except Exception:
            # A malformed page must not stop the remaining strategies
            logger.debug("Strategy %s failed", strategy.name, exc_info=True)
            continue
        if candidate is not None:
            logger.debug(
                "Extracted %s for %s via %s", candidate.value, validator.code, strategy.name
            )
            return candidate
    return None


def first_text(document: QuoteDocument, selectors: list[str]) -> Optional[str]:
    """First non-empty text among CSS selectors, used for names and change strings."""
    for selector in selectors:
        element = document.soup.select_one(selector)
        if element is None:
            continue
        text = element.get_text(strip=True)
        if text:
            return text
    return None
