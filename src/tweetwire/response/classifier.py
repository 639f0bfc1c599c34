"""Response classification: rate limits, API errors and JSON decoding.

Error bodies are interpreted through a fallback chain that never raises:

1. JSON with an ``errors`` array (``{"code": 32, "message": "..."}``
   elements) or an ``error`` string holding one message per line;
2. a known HTML or XML envelope -- ``<h1>...</h1>``,
   ``<error>...</error>`` or a ``Reason:`` ``<pre>`` block;
3. the raw body as a single message.
"""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qsl

from tweetwire.core.errors import ApiError, MalformedJson
from tweetwire.core.types import ApiResponse, ErrorEntry, RateLimitStatus

RATE_LIMIT_LIMIT = "x-rate-limit-limit"
RATE_LIMIT_REMAINING = "x-rate-limit-remaining"
RATE_LIMIT_RESET = "x-rate-limit-reset"

_ENVELOPE_RE = re.compile(
    r"Reason:\n<pre>\s+?([^<]+)</pre>|<h1>([^<]+)</h1>|<error>([^<]+)</error>"
)


# ---------------------------------------------------------------------------
# Rate limits
# ---------------------------------------------------------------------------

def read_rate_limit(headers: Mapping[str, str]) -> RateLimitStatus | None:
    """Return the rate-limit window of a response.

    All three ``x-rate-limit-*`` headers must be present and numeric;
    otherwise ``None`` is returned.  Header names are matched
    case-insensitively.
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    try:
        limit = int(lowered[RATE_LIMIT_LIMIT])
        remaining = int(lowered[RATE_LIMIT_REMAINING])
        reset = datetime.fromtimestamp(int(lowered[RATE_LIMIT_RESET]), tz=UTC)
    except (KeyError, ValueError, OverflowError, OSError):
        return None
    return RateLimitStatus(limit=limit, remaining=remaining, reset=reset)


# ---------------------------------------------------------------------------
# Error bodies
# ---------------------------------------------------------------------------

def _split_messages(text: str) -> list[ErrorEntry]:
    lines = text.replace("\\n", "\n").split("\n")
    return [ErrorEntry(message=line) for line in lines if line]


def _entry_from_json(item: Any) -> ErrorEntry | None:
    if isinstance(item, str):
        return ErrorEntry(message=item)
    if not isinstance(item, Mapping):
        return None
    code = item.get("code")
    if isinstance(code, bool) or not isinstance(code, int):
        code = None
    message = item.get("message")
    return ErrorEntry(code=code, message=message if isinstance(message, str) else "")


def errors_from_json(document: Any) -> list[ErrorEntry]:
    """Extract error entries from a decoded JSON body ([] when none)."""
    if not isinstance(document, Mapping):
        return []
    errors = document.get("errors")
    if isinstance(errors, list):
        entries = [entry for entry in map(_entry_from_json, errors) if entry is not None]
        if entries:
            return entries
    elif isinstance(errors, str):
        entries = _split_messages(errors)
        if entries:
            return entries
    error = document.get("error")
    if isinstance(error, str):
        return _split_messages(error)
    return []


def errors_from_envelope(body: str) -> list[ErrorEntry]:
    """Extract the message of the first known HTML/XML error envelope."""
    match = _ENVELOPE_RE.search(body)
    if match is None:
        return []
    reason = next(group for group in match.groups() if group is not None)
    return [ErrorEntry(message=reason.strip())]


def parse_errors(body: str) -> list[ErrorEntry]:
    """Interpret an error body; the result is never empty.

    Examples
    --------
    >>> parse_errors('{"errors":[{"code":32,"message":"Could not authenticate you"}]}')
    [ErrorEntry(code=32, message='Could not authenticate you')]
    >>> parse_errors("<html><h1>Service Unavailable</h1></html>")
    [ErrorEntry(code=None, message='Service Unavailable')]
    >>> parse_errors("boom")
    [ErrorEntry(code=None, message='boom')]
    """
    try:
        document = json.loads(body)
    except (ValueError, RecursionError):
        entries = errors_from_envelope(body)
    else:
        entries = errors_from_json(document)
    return entries or [ErrorEntry(message=body)]


def create_api_error(
    status_code: int,
    body: str,
    headers: Mapping[str, str] | None = None,
) -> ApiError:
    """Build the :class:`ApiError` of a non-success response."""
    return ApiError(
        status_code,
        parse_errors(body),
        raw=body,
        rate_limit=read_rate_limit(headers or {}),
    )


def raise_for_status(
    status_code: int,
    body: str,
    headers: Mapping[str, str] | None = None,
) -> None:
    """Raise :class:`ApiError` unless *status_code* is 2xx."""
    if not 200 <= status_code < 300:
        raise create_api_error(status_code, body, headers)


# ---------------------------------------------------------------------------
# Success bodies
# ---------------------------------------------------------------------------

def select_json_path(document: Any, json_path: str) -> Any:
    """Drill into *document* along a dotted path such as ``statuses`` or ``a.0.b``.

    Raises
    ------
    MalformedJson
        If a segment does not exist.
    """
    current = document
    for segment in json_path.split("."):
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            raise MalformedJson(
                f"JSON path {json_path!r} not found in response",
                details={"json_path": json_path, "segment": segment},
            )
    return current


def decode_json(text: str) -> Any:
    """Decode *text*; an empty body decodes to ``None``.

    Raises
    ------
    MalformedJson
        If *text* is not valid JSON.
    """
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        raise MalformedJson(f"Invalid JSON in response: {exc}", raw=text) from exc


def parse_response(
    status_code: int,
    headers: Mapping[str, str],
    body: str,
    *,
    json_path: str | None = None,
) -> ApiResponse:
    """Classify a completed response.

    Parameters
    ----------
    status_code:
        The HTTP status.
    headers:
        The response headers.
    body:
        The decoded response text.
    json_path:
        Optional dotted path of the sub-document to return as ``data``.

    Returns
    -------
    ApiResponse
        The decoded document with its raw text and rate-limit window.

    Raises
    ------
    ApiError
        If the status is not 2xx.
    MalformedJson
        If the body is not JSON, or *json_path* does not exist.
    """
    raise_for_status(status_code, body, headers)
    data = decode_json(body)
    if json_path:
        data = select_json_path(data, json_path)
    return ApiResponse(
        status_code=status_code,
        data=data,
        raw=body,
        rate_limit=read_rate_limit(headers),
    )


def parse_form_response(body: str) -> dict[str, str]:
    """Decode an ``application/x-www-form-urlencoded`` body (OAuth token endpoints)."""
    return dict(parse_qsl(body.strip(), keep_blank_values=True))
