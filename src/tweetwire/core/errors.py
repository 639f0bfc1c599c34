"""tweetwire error-code hierarchy.

Every failure the request pipeline can surface is represented as a
concrete exception class carrying a stable ``TW-Exxx`` code.

Hierarchy
---------
::

    TweetWireError
    +-- CallerError          (TW-E1xx)  malformed parameters, detected before I/O
    +-- TransportError       (TW-E2xx)  DNS / connect / TLS / I/O failures
    +-- RequestTimeout       (TW-E300)  the call ran out of time
    +-- RequestCancelled     (TW-E310)  the caller asked to stop
    +-- ApiError             (TW-E400)  the server answered with a non-success status
    +-- ProtocolParseError   (TW-E5xx)  a body or stream line has an unexpected shape

Usage
-----
Catch by category::

    try:
        client.post("statuses/update", status="hello")
    except ApiError as exc:
        for entry in exc.errors:
            print(entry.code, entry.message)
    except CallerError:
        # DuplicateParameter, MissingReservedParameter, ...
        raise

No class in this module retries anything; retry policy belongs to the
caller.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tweetwire.core.types import ErrorEntry, RateLimitStatus

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class TweetWireError(Exception):
    """Base exception for all tweetwire errors.

    Attributes
    ----------
    code : str
        Error code, e.g. ``"TW-E100"``.
    message : str
        Human-readable description (never contains credential material).
    details : dict[str, Any]
        Machine-readable context specific to the error instance.
    resolution : str
        Suggested action for the caller.
    """

    code: str = "TW-E000"
    message: str = "Unknown tweetwire error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a plain dictionary (for logs or APIs)."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# TW-E1xx  Caller errors
# ===================================================================

class CallerError(TweetWireError):
    """TW-E1xx -- Malformed call arguments, raised before any I/O."""

    code = "TW-E1XX"


class DuplicateParameter(CallerError):
    """TW-E100 -- The same parameter key was supplied more than once."""

    code = "TW-E100"
    message = "Duplicate parameter key"
    resolution = "Pass every parameter key exactly once."


class MissingReservedParameter(CallerError):
    """TW-E101 -- A URL path segment parameter is missing or ambiguous."""

    code = "TW-E101"
    message = "Required path parameter is missing"
    resolution = (
        "Supply exactly one value for every {placeholder} in the endpoint path."
    )


class NullArgument(CallerError):
    """TW-E102 -- A required argument was ``None``."""

    code = "TW-E102"
    message = "Required argument is None"


class InvalidParameterValue(CallerError):
    """TW-E103 -- A parameter value has no wire rendering."""

    code = "TW-E103"
    message = "Parameter value cannot be rendered"
    resolution = (
        "Use strings, numbers, booleans, dates, enums, sequences of those, "
        "or a binary payload."
    )


class MissingRequiredParameter(CallerError):
    """TW-E104 -- None of the parameters a call requires was supplied."""

    code = "TW-E104"
    message = "A required parameter is missing"


# ===================================================================
# TW-E2xx  Transport errors
# ===================================================================

class TransportError(TweetWireError):
    """TW-E2xx -- The HTTP exchange could not be completed."""

    code = "TW-E2XX"


class ConnectionFailed(TransportError):
    """TW-E200 -- DNS, connect, TLS or socket I/O failure."""

    code = "TW-E200"
    message = "Connection to the remote host failed"
    resolution = "Check network connectivity and proxy settings."


# ===================================================================
# TW-E3xx  Timeout and cancellation
# ===================================================================

class RequestTimeout(TweetWireError):
    """TW-E300 -- The exchange did not complete within the configured timeout."""

    code = "TW-E300"
    message = "Request timed out"
    resolution = "Increase ConnectionOptions.timeout or retry later."


class RequestCancelled(TweetWireError):
    """TW-E310 -- The caller cancelled the call while it was in flight."""

    code = "TW-E310"
    message = "Request was cancelled"


# ===================================================================
# TW-E4xx  API errors
# ===================================================================

class ApiError(TweetWireError):
    """TW-E400 -- The server completed the exchange with a non-success status.

    Attributes
    ----------
    status_code : int
        The HTTP status code.
    errors : list[ErrorEntry]
        The parsed error entries (never empty).
    raw : str
        The raw response body.
    rate_limit : RateLimitStatus | None
        The rate-limit snapshot of the response, when present.
    """

    code = "TW-E400"
    message = "The API reported an error"

    def __init__(
        self,
        status_code: int,
        errors: list[ErrorEntry],
        *,
        raw: str = "",
        rate_limit: RateLimitStatus | None = None,
    ) -> None:
        self.status_code = status_code
        self.errors = errors
        self.raw = raw
        self.rate_limit = rate_limit
        first = errors[0].message if errors else self.message
        super().__init__(
            first,
            details={
                "status_code": status_code,
                "errors": [{"code": e.code, "message": e.message} for e in errors],
            },
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code!r}, "
            f"message={self.message!r})"
        )


# ===================================================================
# TW-E5xx  Protocol parse errors
# ===================================================================

class ProtocolParseError(TweetWireError):
    """TW-E5xx -- A response body or stream line has an unexpected shape.

    Attributes
    ----------
    raw : str
        The text that could not be interpreted.
    """

    code = "TW-E5XX"
    message = "Could not parse the response"

    def __init__(
        self,
        message: str | None = None,
        *,
        raw: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.raw = raw
        super().__init__(message, details=details)


class MalformedJson(ProtocolParseError):
    """TW-E500 -- The text is not valid JSON (or not the expected JSON shape)."""

    code = "TW-E500"
    message = "Malformed JSON"


class UnknownStreamMessage(ProtocolParseError):
    """TW-E501 -- A stream line is valid JSON but matches no known message type."""

    code = "TW-E501"
    message = "Unsupported streaming message type"


# ---------------------------------------------------------------------------
# Code -> class lookup
# ---------------------------------------------------------------------------

_CODE_MAP: dict[str, type[TweetWireError]] = {
    cls.code: cls
    for cls in [
        DuplicateParameter,
        MissingReservedParameter,
        NullArgument,
        InvalidParameterValue,
        MissingRequiredParameter,
        ConnectionFailed,
        RequestTimeout,
        RequestCancelled,
        MalformedJson,
        UnknownStreamMessage,
    ]
}


def error_from_code(code: str, message: str | None = None) -> TweetWireError:
    """Instantiate the exception class registered for *code*.

    :class:`ApiError` is not included because it needs a status code and
    an error list to be meaningful.

    Raises
    ------
    KeyError
        If *code* is not a recognised tweetwire error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()
