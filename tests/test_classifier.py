"""Tests for response classification.

Covers:

1. **Rate limits** -- all-or-nothing extraction, case-insensitive names.
2. **Error bodies** -- JSON ``errors`` arrays, ``error`` strings, HTML and
   XML envelopes, raw-body fallback.
3. **Success bodies** -- JSON decoding, ``json_path`` selection, empty
   bodies, malformed JSON.
4. **Form bodies** -- token endpoint responses.
"""
from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest

from tweetwire.core.errors import ApiError, MalformedJson, TweetWireError
from tweetwire.core.types import ErrorEntry, RateLimitStatus
from tweetwire.response.classifier import (
    create_api_error,
    decode_json,
    errors_from_envelope,
    errors_from_json,
    parse_errors,
    parse_form_response,
    parse_response,
    raise_for_status,
    read_rate_limit,
    select_json_path,
)

RATE_HEADERS = {
    "x-rate-limit-limit": "180",
    "x-rate-limit-remaining": "179",
    "x-rate-limit-reset": "1700000000",
}


# =========================================================================
# Rate limits
# =========================================================================


class TestReadRateLimit:
    """Tests for read_rate_limit()."""

    def test_all_headers_present(self) -> None:
        """All three headers populate the status exactly."""
        status = read_rate_limit(RATE_HEADERS)
        assert status == RateLimitStatus(
            limit=180,
            remaining=179,
            reset=datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC),
        )

    @pytest.mark.parametrize("missing", sorted(RATE_HEADERS))
    def test_any_header_missing(self, missing: str) -> None:
        """Without any one of the headers there is no status at all."""
        headers = {k: v for k, v in RATE_HEADERS.items() if k != missing}
        assert read_rate_limit(headers) is None

    def test_non_numeric_value(self) -> None:
        """A garbled value yields no status rather than an error."""
        assert read_rate_limit({**RATE_HEADERS, "x-rate-limit-remaining": "many"}) is None

    def test_header_names_are_case_insensitive(self) -> None:
        """Mixed-case header names are recognized."""
        headers = {
            "X-Rate-Limit-Limit": "15",
            "X-RATE-LIMIT-REMAINING": "0",
            "x-rate-limit-reset": "0",
        }
        status = read_rate_limit(headers)
        assert status is not None
        assert status.remaining == 0
        assert status.reset == datetime(1970, 1, 1, tzinfo=UTC)

    def test_httpx_headers(self) -> None:
        """httpx.Headers work as input."""
        assert read_rate_limit(httpx.Headers(RATE_HEADERS)) is not None


# =========================================================================
# Error bodies
# =========================================================================


class TestParseErrors:
    """Tests for the error fallback chain."""

    def test_errors_array(self) -> None:
        """Each element of 'errors' becomes one entry."""
        body = '{"errors":[{"code":32,"message":"Could not authenticate you"}]}'
        assert parse_errors(body) == [ErrorEntry(code=32, message="Could not authenticate you")]

    def test_errors_array_with_several_entries(self) -> None:
        """Codes are optional per element."""
        body = '{"errors":[{"code":88,"message":"Rate limit exceeded"},{"message":"Also"}]}'
        assert parse_errors(body) == [
            ErrorEntry(code=88, message="Rate limit exceeded"),
            ErrorEntry(code=None, message="Also"),
        ]

    def test_error_string_is_split_per_line(self) -> None:
        """An 'error' string holds one message per line."""
        body = '{"error":"first problem\\nsecond problem"}'
        assert parse_errors(body) == [
            ErrorEntry(message="first problem"),
            ErrorEntry(message="second problem"),
        ]

    def test_error_string_with_escaped_newline(self) -> None:
        """A literal backslash-n also separates messages."""
        body = '{"error":"first\\\\nsecond"}'
        assert [e.message for e in parse_errors(body)] == ["first", "second"]

    def test_errors_as_string(self) -> None:
        """Some endpoints send 'errors' as a plain string."""
        assert parse_errors('{"errors":"Not authorized."}') == [ErrorEntry(message="Not authorized.")]

    def test_h1_envelope(self) -> None:
        """An HTML <h1> is extracted."""
        body = "<html><h1>Service Unavailable</h1></html>"
        assert parse_errors(body) == [ErrorEntry(message="Service Unavailable")]

    def test_xml_error_envelope(self) -> None:
        """An XML <error> element is extracted."""
        body = '<?xml version="1.0"?><hash><error>Not found</error></hash>'
        assert parse_errors(body) == [ErrorEntry(message="Not found")]

    def test_reason_envelope(self) -> None:
        """A 'Reason:' preformatted block is extracted and trimmed."""
        body = "<html><body><h2>Error 401</h2>Reason:\n<pre>    Unauthorized</pre></body></html>"
        assert parse_errors(body) == [ErrorEntry(message="Unauthorized")]

    def test_plain_text_fallback(self) -> None:
        """Unrecognized text is kept verbatim as the single message."""
        assert parse_errors("boom") == [ErrorEntry(message="boom")]

    def test_json_without_errors_falls_back_to_body(self) -> None:
        """JSON that carries no error field degrades to the raw body."""
        assert parse_errors('{"foo": 1}') == [ErrorEntry(message='{"foo": 1}')]
        assert parse_errors('{"errors": []}') == [ErrorEntry(message='{"errors": []}')]
        assert parse_errors("[1, 2]") == [ErrorEntry(message="[1, 2]")]

    def test_empty_body(self) -> None:
        """Even an empty body produces one entry."""
        assert parse_errors("") == [ErrorEntry(message="")]

    def test_deeply_nested_body_falls_back_to_raw(self) -> None:
        """A body too deep to decode still yields one entry instead of raising."""
        body = "[" * 200_000
        assert parse_errors(body) == [ErrorEntry(message=body)]
        error = create_api_error(502, body)
        assert error.status_code == 502
        assert error.raw == body

    def test_parts_of_the_chain(self) -> None:
        """The individual steps report 'nothing found' as an empty list."""
        assert errors_from_json([1]) == []
        assert errors_from_json({"error": 5}) == []
        assert errors_from_envelope("plain") == []


class TestApiError:
    """Tests for ApiError construction."""

    def test_create_api_error(self) -> None:
        """The error carries status, entries, raw body and rate limit."""
        body = '{"errors":[{"code":88,"message":"Rate limit exceeded"}]}'
        error = create_api_error(429, body, RATE_HEADERS)
        assert isinstance(error, TweetWireError)
        assert error.code == "TW-E400"
        assert error.status_code == 429
        assert error.errors == [ErrorEntry(code=88, message="Rate limit exceeded")]
        assert error.raw == body
        assert error.rate_limit is not None
        assert error.rate_limit.remaining == 179
        assert error.message == "Rate limit exceeded"
        assert error.to_dict()["error"]["detail"]["status_code"] == 429

    def test_raise_for_status(self) -> None:
        """2xx passes, anything else raises."""
        raise_for_status(200, "")
        raise_for_status(204, "")
        with pytest.raises(ApiError) as excinfo:
            raise_for_status(503, "<h1>Over capacity</h1>")
        assert excinfo.value.errors[0].message == "Over capacity"
        assert excinfo.value.rate_limit is None


# =========================================================================
# Success bodies
# =========================================================================


class TestParseResponse:
    """Tests for parse_response()."""

    def test_decodes_json(self) -> None:
        """The document, raw text and rate limit are returned."""
        body = '{"id": 20, "text": "just setting up my twttr"}'
        response = parse_response(200, RATE_HEADERS, body)
        assert response.status_code == 200
        assert response.data == {"id": 20, "text": "just setting up my twttr"}
        assert response.raw == body
        assert response.rate_limit is not None

    def test_json_path(self) -> None:
        """A dotted path selects a sub-document."""
        body = '{"statuses": [{"id": 1, "user": {"screen_name": "a"}}], "search_metadata": {}}'
        assert parse_response(200, {}, body, json_path="statuses").data == [
            {"id": 1, "user": {"screen_name": "a"}}
        ]
        assert parse_response(200, {}, body, json_path="statuses.0.user.screen_name").data == "a"

    def test_missing_json_path(self) -> None:
        """A path that does not exist is a parse error."""
        with pytest.raises(MalformedJson):
            parse_response(200, {}, '{"a": [1]}', json_path="a.5")
        with pytest.raises(MalformedJson):
            select_json_path({"a": 1}, "b")

    def test_empty_body(self) -> None:
        """An empty success body decodes to None."""
        assert parse_response(200, {}, "").data is None
        assert decode_json("  ") is None

    def test_malformed_json(self) -> None:
        """A success body that is not JSON raises MalformedJson with the text."""
        with pytest.raises(MalformedJson) as excinfo:
            parse_response(200, {}, "<html>oops</html>")
        assert excinfo.value.raw == "<html>oops</html>"

    def test_deeply_nested_json(self) -> None:
        """Nesting beyond the decoder's depth is MalformedJson too."""
        body = "[" * 200_000
        with pytest.raises(MalformedJson) as excinfo:
            decode_json(body)
        assert excinfo.value.raw == body

    def test_error_status_raises_api_error(self) -> None:
        """Non-2xx responses raise ApiError before any decoding."""
        with pytest.raises(ApiError) as excinfo:
            parse_response(401, RATE_HEADERS, '{"errors":[{"code":89,"message":"Invalid or expired token."}]}')
        assert excinfo.value.status_code == 401
        assert excinfo.value.errors[0].code == 89
        assert excinfo.value.rate_limit is not None


class TestParseFormResponse:
    """Tests for parse_form_response()."""

    def test_token_response(self) -> None:
        """Token endpoints answer with a url-encoded form."""
        body = "oauth_token=Z6eEdO8M&oauth_token_secret=Kd75W4OQ%2Bx&oauth_callback_confirmed=true\n"
        assert parse_form_response(body) == {
            "oauth_token": "Z6eEdO8M",
            "oauth_token_secret": "Kd75W4OQ+x",
            "oauth_callback_confirmed": "true",
        }
