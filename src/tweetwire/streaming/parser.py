"""Classification of stream lines into :mod:`~tweetwire.streaming.messages`.

A line is decoded as a JSON object and dispatched on its top-level keys.
Payload-bearing keys are checked first, in this order::

    text, direct_message, friends, event, for_user, control

followed by the notice keys::

    disconnect, warning, delete, scrub_geo, limit, status_withheld,
    user_withheld, user_delete, user_undelete, user_suspend

A line matching none of them raises :class:`UnknownStreamMessage`.
:func:`parse_stream_message_or_raw` is the opt-in variant that returns a
:class:`RawJsonMessage` instead of raising.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from tweetwire.core.errors import MalformedJson, ProtocolParseError, UnknownStreamMessage
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

logger = logging.getLogger(__name__)

EVENT_DATETIME_FORMAT = "%a %b %d %H:%M:%S %z %Y"

_EVENT_CODES = {code.value.replace("_", ""): code for code in EventCode}

Builder = Callable[[Mapping[str, Any], str], StreamMessage]


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def parse_timestamp_ms(value: Any) -> datetime | None:
    """Convert a ``timestamp_ms`` value (string or number) to a UTC datetime."""
    if value is None:
        return None
    millis = int(value)
    return datetime.fromtimestamp(millis // 1000, tz=UTC) + timedelta(milliseconds=millis % 1000)


def parse_event_datetime(value: Any) -> datetime | None:
    """Parse ``Wed Aug 27 13:08:45 +0000 2008``."""
    if value is None:
        return None
    return datetime.strptime(str(value).strip(), EVENT_DATETIME_FORMAT)


def parse_event_code(name: str) -> EventCode:
    """Map an event name such as ``list_member_added`` to its :class:`EventCode`."""
    key = name.replace("objectType", "").replace("_", "").lower()
    try:
        return _EVENT_CODES[key]
    except KeyError:
        raise UnknownStreamMessage(
            f"Unsupported event: {name!r}",
            details={"event": name},
        ) from None


def event_target_type(name: str) -> EventTargetType:
    if "list" in name:
        return EventTargetType.LIST
    if "favorite" in name:
        return EventTargetType.STATUS
    return EventTargetType.NONE


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def _object(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedJson(
            f"Stream field {key!r} is not a JSON object",
            details={"key": key},
        )
    return value


def _compact(document: Any) -> str:
    return json.dumps(document, ensure_ascii=False, separators=(",", ":"))


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def _status(document: Mapping[str, Any], raw: str) -> StreamMessage:
    return StatusMessage(
        raw=raw,
        status=dict(document),
        timestamp=parse_timestamp_ms(document.get("timestamp_ms")),
    )


def _direct_message(document: Mapping[str, Any], raw: str) -> StreamMessage:
    return DirectMessageMessage(
        raw=raw,
        direct_message=dict(_object(document["direct_message"], "direct_message")),
    )


def _friends(document: Mapping[str, Any], raw: str) -> StreamMessage:
    return FriendsMessage(raw=raw, friends=tuple(int(i) for i in document["friends"]))


def _event(document: Mapping[str, Any], raw: str) -> StreamMessage:
    name = str(document["event"])
    target_type = event_target_type(name)
    target_object = document.get("target_object")
    return EventMessage(
        raw=raw,
        event=parse_event_code(name),
        event_name=name,
        source=document.get("source"),
        target=document.get("target"),
        target_type=target_type,
        target_status=target_object if target_type is EventTargetType.STATUS else None,
        target_list=target_object if target_type is EventTargetType.LIST else None,
        created_at=parse_event_datetime(document.get("created_at")),
    )


def _envelope(document: Mapping[str, Any], raw: str) -> StreamMessage:
    nested = _object(document["message"], "message")
    return EnvelopeMessage(
        raw=raw,
        for_user=int(document["for_user"]),
        message=classify(nested, _compact(nested)),
    )


def _control(document: Mapping[str, Any], raw: str) -> StreamMessage:
    control = document["control"]
    if isinstance(control, Mapping):
        uri = control.get("control_uri")
    else:
        uri = document.get("control_uri")
    return ControlMessage(raw=raw, control_uri=uri)


def _disconnect(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["disconnect"], "disconnect")
    code = int(body["code"])
    try:
        code = DisconnectCode(code)
    except ValueError:
        pass
    return DisconnectMessage(
        raw=raw,
        code=code,
        stream_name=body.get("stream_name"),
        reason=body.get("reason"),
    )


def _warning(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["warning"], "warning")
    return WarningMessage(
        raw=raw,
        code=str(body.get("code", "")),
        message=body.get("message"),
        percent_full=_optional_int(body.get("percent_full")),
        user_id=_optional_int(body.get("user_id")),
        timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
    )


def _delete(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["delete"], "delete")
    if "status" in body:
        target = _object(body["status"], "status")
        direct_message = False
    else:
        target = _object(body["direct_message"], "direct_message")
        direct_message = True
    return DeleteMessage(
        raw=raw,
        id=int(target["id"]),
        user_id=_optional_int(target.get("user_id")),
        direct_message=direct_message,
        timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
    )


def _scrub_geo(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["scrub_geo"], "scrub_geo")
    return ScrubGeoMessage(
        raw=raw,
        user_id=int(body["user_id"]),
        up_to_status_id=int(body["up_to_status_id"]),
        timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
    )


def _limit(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["limit"], "limit")
    return LimitMessage(
        raw=raw,
        track=int(body["track"]),
        timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
    )


def _status_withheld(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["status_withheld"], "status_withheld")
    return StatusWithheldMessage(
        raw=raw,
        id=int(body["id"]),
        user_id=int(body["user_id"]),
        withheld_in_countries=tuple(body.get("withheld_in_countries") or ()),
        timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
    )


def _user_withheld(document: Mapping[str, Any], raw: str) -> StreamMessage:
    body = _object(document["user_withheld"], "user_withheld")
    return UserWithheldMessage(
        raw=raw,
        id=int(body["id"]),
        withheld_in_countries=tuple(body.get("withheld_in_countries") or ()),
        timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
    )


def _user(action: UserAction) -> Builder:
    def build(document: Mapping[str, Any], raw: str) -> StreamMessage:
        body = _object(document[action.value], action.value)
        return UserMessage(
            raw=raw,
            id=int(body["id"]),
            action=action,
            timestamp=parse_timestamp_ms(body.get("timestamp_ms")),
        )
    return build


# Presence of a non-null value selects the builder.
PAYLOAD_KEYS: tuple[tuple[str, Builder], ...] = (
    ("text", _status),
    ("direct_message", _direct_message),
    ("friends", _friends),
    ("event", _event),
    ("for_user", _envelope),
    ("control", _control),
)

# Presence of the key alone selects the builder.
NOTICE_KEYS: tuple[tuple[str, Builder], ...] = (
    ("disconnect", _disconnect),
    ("warning", _warning),
    ("delete", _delete),
    ("scrub_geo", _scrub_geo),
    ("limit", _limit),
    ("status_withheld", _status_withheld),
    ("user_withheld", _user_withheld),
    ("user_delete", _user(UserAction.DELETE)),
    ("user_undelete", _user(UserAction.UNDELETE)),
    ("user_suspend", _user(UserAction.SUSPEND)),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify(document: Mapping[str, Any], raw: str) -> StreamMessage:
    """Dispatch a decoded JSON object on its discriminating keys.

    Raises
    ------
    UnknownStreamMessage
        If no known key is present.
    """
    for key, build in PAYLOAD_KEYS:
        if document.get(key) is not None:
            return build(document, raw)
    for key, build in NOTICE_KEYS:
        if key in document:
            return build(document, raw)
    raise UnknownStreamMessage(
        "Unsupported streaming message type",
        raw=raw,
        details={"keys": sorted(document)},
    )


def parse_stream_message(line: str) -> StreamMessage:
    """Classify one stream line.

    Raises
    ------
    MalformedJson
        If the line is not a JSON object, or a known variant is missing
        a required field.
    UnknownStreamMessage
        If the object matches no known variant.
    """
    try:
        document = json.loads(line)
    except (ValueError, RecursionError) as exc:
        raise MalformedJson(f"Invalid JSON on stream: {exc}", raw=line) from exc
    if not isinstance(document, dict):
        raise MalformedJson("Stream line is not a JSON object", raw=line)
    try:
        return classify(document, line)
    except ProtocolParseError as exc:
        if not exc.raw:
            exc.raw = line
        raise
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
        raise MalformedJson(
            f"Unexpected stream message shape: {type(exc).__name__}: {exc}",
            raw=line,
        ) from exc


def parse_stream_message_or_raw(line: str) -> StreamMessage:
    """Like :func:`parse_stream_message`, but unparseable lines become
    :class:`RawJsonMessage` carrying the exact line text.
    """
    try:
        return parse_stream_message(line)
    except ProtocolParseError as exc:
        logger.debug("Keeping unparsed stream line as raw JSON: %s", exc.message)
        return RawJsonMessage(raw=line)
