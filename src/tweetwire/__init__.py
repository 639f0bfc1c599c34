"""tweetwire -- OAuth 1.0a signed-request client core.

Signs and sends API calls, classifies their responses and demultiplexes
the line-delimited JSON streaming feed.

Layers
------
0. Core types, errors, configuration and interfaces (:mod:`tweetwire.core`)
1. Parameter Normalizer (:mod:`tweetwire.params`)
2. Request Signer and token flows (:mod:`tweetwire.auth`)
3. Transport Selector & Request Builder (:mod:`tweetwire.transport`)
4. Response Classifier (:mod:`tweetwire.response`)
5. Streaming Demultiplexer (:mod:`tweetwire.streaming`)
6. Blocking and asyncio clients (:mod:`tweetwire.client`)
"""
from __future__ import annotations

__version__ = "0.1.0a1"

# ---------------------------------------------------------------------------
# Layer 0 -- Core types, errors, config, interfaces
# ---------------------------------------------------------------------------
from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import (
    ApiError,
    CallerError,
    ConnectionFailed,
    DuplicateParameter,
    InvalidParameterValue,
    MalformedJson,
    MissingRequiredParameter,
    MissingReservedParameter,
    NullArgument,
    ProtocolParseError,
    RequestCancelled,
    RequestTimeout,
    TransportError,
    TweetWireError,
    UnknownStreamMessage,
)
from tweetwire.core.interfaces import Authenticator, ParameterSource, ProgressObserver
from tweetwire.core.types import (
    ApiResponse,
    BinaryPayload,
    BodyEncoding,
    BytesPayload,
    ErrorEntry,
    FilePayload,
    MethodType,
    Parameter,
    ParameterList,
    RateLimitStatus,
    StreamPayload,
)

# ---------------------------------------------------------------------------
# Layer 1 -- Parameter Normalizer
# ---------------------------------------------------------------------------
from tweetwire.params import ApiParameters, Iso8601, format_value, normalize

# ---------------------------------------------------------------------------
# Layer 2 -- Request Signer and token flows
# ---------------------------------------------------------------------------
from tweetwire.auth import (
    BasicAuthenticator,
    BearerAuthenticator,
    OAuth1Authenticator,
    OAuth1Credentials,
    OAuthSession,
    OAuthTokens,
    async_authorize,
    async_get_bearer_token,
    async_get_tokens,
    async_invalidate_bearer_token,
    authorize,
    get_bearer_token,
    get_tokens,
    invalidate_bearer_token,
)

# ---------------------------------------------------------------------------
# Layer 3 -- Transport Selector & Request Builder
# ---------------------------------------------------------------------------
from tweetwire.transport import (
    AsyncTransport,
    CancelToken,
    HttpExchange,
    SyncTransport,
    build_exchange,
)

# ---------------------------------------------------------------------------
# Layer 4 -- Response Classifier
# ---------------------------------------------------------------------------
from tweetwire.response import parse_errors, parse_response, read_rate_limit

# ---------------------------------------------------------------------------
# Layer 5 -- Streaming Demultiplexer
# ---------------------------------------------------------------------------
from tweetwire.streaming import (
    MessageType,
    StreamingType,
    StreamMessage,
    iter_messages,
    parse_stream_message,
    parse_stream_message_or_raw,
)

# ---------------------------------------------------------------------------
# Layer 6 -- Clients
# ---------------------------------------------------------------------------
from tweetwire.client import AsyncClient, Client

__all__ = [
    "__version__",
    # Core
    "ConnectionOptions",
    "TweetWireError",
    "CallerError",
    "DuplicateParameter",
    "MissingReservedParameter",
    "MissingRequiredParameter",
    "NullArgument",
    "InvalidParameterValue",
    "TransportError",
    "ConnectionFailed",
    "RequestTimeout",
    "RequestCancelled",
    "ApiError",
    "ProtocolParseError",
    "MalformedJson",
    "UnknownStreamMessage",
    "Authenticator",
    "ParameterSource",
    "ProgressObserver",
    "MethodType",
    "BodyEncoding",
    "BinaryPayload",
    "BytesPayload",
    "StreamPayload",
    "FilePayload",
    "Parameter",
    "ParameterList",
    "RateLimitStatus",
    "ErrorEntry",
    "ApiResponse",
    # Params
    "ApiParameters",
    "Iso8601",
    "format_value",
    "normalize",
    # Auth
    "OAuth1Credentials",
    "OAuth1Authenticator",
    "BearerAuthenticator",
    "BasicAuthenticator",
    "OAuthSession",
    "OAuthTokens",
    "authorize",
    "async_authorize",
    "get_tokens",
    "async_get_tokens",
    "get_bearer_token",
    "async_get_bearer_token",
    "invalidate_bearer_token",
    "async_invalidate_bearer_token",
    # Transport
    "CancelToken",
    "HttpExchange",
    "build_exchange",
    "SyncTransport",
    "AsyncTransport",
    # Response
    "read_rate_limit",
    "parse_errors",
    "parse_response",
    # Streaming
    "StreamingType",
    "MessageType",
    "StreamMessage",
    "parse_stream_message",
    "parse_stream_message_or_raw",
    "iter_messages",
    # Clients
    "Client",
    "AsyncClient",
]
