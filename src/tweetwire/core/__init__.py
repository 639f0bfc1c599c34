"""tweetwire core -- errors, configuration, shared types and interfaces."""
from __future__ import annotations

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
    error_from_code,
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
    ParameterValue,
    RateLimitStatus,
    StreamPayload,
)

__all__ = [
    # Config
    "ConnectionOptions",
    # Errors
    "TweetWireError",
    "CallerError",
    "DuplicateParameter",
    "MissingReservedParameter",
    "NullArgument",
    "InvalidParameterValue",
    "MissingRequiredParameter",
    "TransportError",
    "ConnectionFailed",
    "RequestTimeout",
    "RequestCancelled",
    "ApiError",
    "ProtocolParseError",
    "MalformedJson",
    "UnknownStreamMessage",
    "error_from_code",
    # Interfaces
    "Authenticator",
    "ParameterSource",
    "ProgressObserver",
    # Types
    "MethodType",
    "BodyEncoding",
    "BinaryPayload",
    "BytesPayload",
    "StreamPayload",
    "FilePayload",
    "Parameter",
    "ParameterList",
    "ParameterValue",
    "RateLimitStatus",
    "ErrorEntry",
    "ApiResponse",
]
