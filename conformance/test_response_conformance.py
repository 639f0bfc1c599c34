"""Response classifier conformance tests.

Verifies all-or-nothing rate-limit extraction and the error fallback
chain (JSON entries, envelope markup, raw text).
"""
from __future__ import annotations

from datetime import UTC, datetime

import pytest

from tweetwire.core.errors import ApiError
from tweetwire.core.types import RateLimitStatus
from tweetwire.response.classifier import create_api_error, read_rate_limit

RATE_HEADERS = {
    "x-rate-limit-limit": "900",
    "x-rate-limit-remaining": "899",
    "x-rate-limit-reset": "1700000900",
}


# ===================================================================
# Rate limits
# ===================================================================

class TestRateLimitExtraction:
    """The rate-limit status MUST be complete or absent."""

    def test_MUST_populate_exact_values(self) -> None:
        """All three headers MUST populate exact integers and timestamp."""
        assert read_rate_limit(RATE_HEADERS) == RateLimitStatus(
            limit=900,
            remaining=899,
            reset=datetime.fromtimestamp(1700000900, tz=UTC),
        )

    @pytest.mark.parametrize("missing", sorted(RATE_HEADERS))
    def test_MUST_be_absent_when_any_header_is_missing(self, missing: str) -> None:
        """Any missing header MUST leave the status absent."""
        headers = {k: v for k, v in RATE_HEADERS.items() if k != missing}
        assert read_rate_limit(headers) is None

    def test_MUST_attach_to_api_errors(self) -> None:
        """API errors MUST carry the status of their response."""
        error = create_api_error(429, "Rate limit exceeded", RATE_HEADERS)
        assert error.rate_limit is not None
        assert error.rate_limit.remaining == 899


# ===================================================================
# Error fallback chain
# ===================================================================

class TestErrorFallbackChain:
    """Every error body MUST yield at least one error entry."""

    def test_MUST_parse_json_errors(self) -> None:
        """A JSON errors array MUST yield its codes."""
        error = create_api_error(401, '{"errors":[{"code":32,"message":"Could not authenticate you"}]}')
        assert isinstance(error, ApiError)
        assert len(error.errors) == 1
        assert error.errors[0].code == 32
        assert error.errors[0].message == "Could not authenticate you"

    def test_MUST_parse_html_envelope(self) -> None:
        """An HTML h1 envelope MUST yield its text."""
        error = create_api_error(503, "<html><h1>Service Unavailable</h1></html>")
        assert len(error.errors) == 1
        assert error.errors[0].message == "Service Unavailable"
        assert error.errors[0].code is None

    def test_MUST_fall_back_to_raw_text(self) -> None:
        """Unrecognized text MUST become the message verbatim."""
        error = create_api_error(500, "boom")
        assert len(error.errors) == 1
        assert error.errors[0].message == "boom"
        assert error.raw == "boom"
        assert error.status_code == 500
