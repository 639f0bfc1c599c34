"""tweetwire streaming -- the line-delimited JSON feed.

* :mod:`tweetwire.streaming.messages` -- the message variants.
* :mod:`tweetwire.streaming.parser` -- per-line classification.
* :mod:`tweetwire.streaming.reader` -- iteration over a line source.
* :mod:`tweetwire.streaming.api` -- stream kinds and their endpoints.
"""
from __future__ import annotations

from tweetwire.streaming.api import (
    FILTER_PREDICATES,
    StreamEndpoint,
    StreamingType,
    resolve_stream_endpoint,
    validate_stream_parameters,
)
from tweetwire.streaming.messages import (
    ControlMessage,
    DeleteMessage,
    DirectMessageMessage,
    DisconnectCode,
    DisconnectMessage,
    EnvelopeMessage,
    EventCode,
    EventMessage,
    EventTargetType,
    FriendsMessage,
    LimitMessage,
    MessageType,
    RawJsonMessage,
    ScrubGeoMessage,
    StatusMessage,
    StatusWithheldMessage,
    StreamMessage,
    UserAction,
    UserMessage,
    UserWithheldMessage,
    WarningMessage,
)
from tweetwire.streaming.parser import (
    classify,
    parse_event_code,
    parse_stream_message,
    parse_stream_message_or_raw,
    parse_timestamp_ms,
)
from tweetwire.streaming.reader import aiter_messages, iter_messages

__all__ = [
    # API
    "StreamingType",
    "StreamEndpoint",
    "FILTER_PREDICATES",
    "resolve_stream_endpoint",
    "validate_stream_parameters",
    # Messages
    "MessageType",
    "DisconnectCode",
    "EventCode",
    "EventTargetType",
    "UserAction",
    "StreamMessage",
    "StatusMessage",
    "DirectMessageMessage",
    "FriendsMessage",
    "EventMessage",
    "EnvelopeMessage",
    "ControlMessage",
    "DeleteMessage",
    "ScrubGeoMessage",
    "LimitMessage",
    "StatusWithheldMessage",
    "UserWithheldMessage",
    "UserMessage",
    "DisconnectMessage",
    "WarningMessage",
    "RawJsonMessage",
    # Parsing
    "classify",
    "parse_stream_message",
    "parse_stream_message_or_raw",
    "parse_event_code",
    "parse_timestamp_ms",
    "iter_messages",
    "aiter_messages",
]
