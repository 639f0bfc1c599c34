"""tweetwire transport -- encoding selection, request building and HTTP I/O.

* :mod:`tweetwire.transport.exchange` -- :func:`build_exchange`, the pure
  step that signs and serializes a request.
* :mod:`tweetwire.transport.multipart` -- ``multipart/form-data`` bodies.
* :mod:`tweetwire.transport.cancellation` -- :class:`CancelToken`.
* :mod:`tweetwire.transport.http` -- blocking and asyncio execution over
  ``httpx``, including streaming connections.
"""
from __future__ import annotations

from tweetwire.transport.cancellation import CancelToken
from tweetwire.transport.exchange import (
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    HttpExchange,
    append_query,
    build_exchange,
    select_encoding,
)
from tweetwire.transport.http import (
    AsyncStreamConnection,
    AsyncTransport,
    HttpResult,
    StreamConnection,
    SyncTransport,
    client_settings,
    pool_key,
    translate_error,
    translate_errors,
)
from tweetwire.transport.multipart import (
    BINARY_CONTENT_TYPE,
    DEFAULT_FILENAME,
    MultipartBody,
    escape_header_value,
    new_boundary,
)

__all__ = [
    # Cancellation
    "CancelToken",
    # Exchange
    "HttpExchange",
    "build_exchange",
    "select_encoding",
    "append_query",
    "FORM_CONTENT_TYPE",
    "JSON_CONTENT_TYPE",
    # HTTP
    "SyncTransport",
    "AsyncTransport",
    "StreamConnection",
    "AsyncStreamConnection",
    "HttpResult",
    "pool_key",
    "client_settings",
    "translate_error",
    "translate_errors",
    # Multipart
    "MultipartBody",
    "escape_header_value",
    "new_boundary",
    "BINARY_CONTENT_TYPE",
    "DEFAULT_FILENAME",
]
