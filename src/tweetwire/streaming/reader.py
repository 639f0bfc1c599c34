"""Iteration over stream lines as typed messages."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator

from tweetwire.streaming.messages import DisconnectMessage, StreamMessage, WarningMessage
from tweetwire.streaming.parser import parse_stream_message, parse_stream_message_or_raw

logger = logging.getLogger(__name__)


def _parser(raw_fallback: bool) -> Callable[[str], StreamMessage]:
    return parse_stream_message_or_raw if raw_fallback else parse_stream_message


def _log_notice(message: StreamMessage) -> None:
    if isinstance(message, DisconnectMessage):
        logger.warning(
            "Server disconnect notice: code=%s stream=%s reason=%s",
            message.code, message.stream_name, message.reason,
        )
    elif isinstance(message, WarningMessage):
        logger.warning("Server stream warning %s: %s", message.code, message.message)


def iter_messages(
    lines: Iterable[str],
    *,
    raw_fallback: bool = False,
) -> Iterator[StreamMessage]:
    """Yield one message per non-blank line.

    Blank lines are keep-alives and are skipped.  With *raw_fallback* an
    unparseable line is yielded as a
    :class:`~tweetwire.streaming.messages.RawJsonMessage`; otherwise the
    :class:`~tweetwire.core.errors.ProtocolParseError` propagates.
    """
    parse = _parser(raw_fallback)
    for line in lines:
        if not line.strip():
            continue
        message = parse(line)
        _log_notice(message)
        yield message


async def aiter_messages(
    lines: AsyncIterable[str],
    *,
    raw_fallback: bool = False,
) -> AsyncIterator[StreamMessage]:
    """Asynchronous variant of :func:`iter_messages`."""
    parse = _parser(raw_fallback)
    async for line in lines:
        if not line.strip():
            continue
        message = parse(line)
        _log_notice(message)
        yield message
