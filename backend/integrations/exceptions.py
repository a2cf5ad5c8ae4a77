"""Typed exception hierarchy for quote source errors.

These are raised inside a source while fetching and parsing, and are
caught at the source boundary so a failing site degrades to an absent
quote instead of aborting resolution.
"""


class QuoteSourceError(Exception):
    """Base exception for all quote source errors.

    Carries the source id so callers can identify which source failed.
    """

    def __init__(self, message: str, source_id: str = ""):
        self.source_id = source_id
        super().__init__(message)


class QuoteSourceConnectionError(QuoteSourceError):
    """Network failures such as timeouts or refused connections."""

    def __init__(self, message: str, source_id: str = "", timed_out: bool = False):
        self.timed_out = timed_out
        super().__init__(message, source_id)


class QuoteSourceHTTPError(QuoteSourceError):
    """HTTP 4xx/5xx responses from the source."""

    def __init__(
        self,
        message: str,
        source_id: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, source_id)

    @property
    def not_found(self) -> bool:
        """404 means the code is unknown to this source (e.g. wrong exchange)."""
        return self.status_code == 404


class QuoteSourceDataError(QuoteSourceError):
    """Malformed or unparseable document from the source."""

    pass
