"""Unit tests for the quote source exception hierarchy."""

import pytest

from integrations.exceptions import (
    QuoteSourceConnectionError,
    QuoteSourceDataError,
    QuoteSourceError,
    QuoteSourceHTTPError,
)


class TestExceptionHierarchy:
    """All quote source exceptions are caught by except QuoteSourceError."""

    def test_catch_all_source_errors(self):
        exceptions = [
            QuoteSourceConnectionError("conn", source_id="yahoo_jp", timed_out=True),
            QuoteSourceHTTPError("http", source_id="google", status_code=503),
            QuoteSourceDataError("data", source_id="sbi"),
        ]
        for exc in exceptions:
            with pytest.raises(QuoteSourceError):
                raise exc

    def test_source_id_and_message(self):
        exc = QuoteSourceDataError("no price", source_id="minkabu")
        assert exc.source_id == "minkabu"
        assert str(exc) == "no price"

    def test_timed_out_flag(self):
        assert QuoteSourceConnectionError("t", timed_out=True).timed_out is True
        assert QuoteSourceConnectionError("refused").timed_out is False


class TestHTTPErrorNotFound:
    def test_404_is_not_found(self):
        assert QuoteSourceHTTPError("missing", status_code=404).not_found is True

    def test_500_is_not_not_found(self):
        assert QuoteSourceHTTPError("server", status_code=500).not_found is False

    def test_none_status(self):
        assert QuoteSourceHTTPError("unknown").not_found is False
