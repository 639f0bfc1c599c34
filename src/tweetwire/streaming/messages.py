"""Typed messages of the line-delimited streaming feed.

Every message is an immutable record that keeps the JSON line it was
built from in ``raw``.  The ``message_type`` property identifies the
variant without ``isinstance`` checks.
"""
from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar


class MessageType(enum.StrEnum):
    """Every variant a stream line can classify as."""

    STATUS = "status"
    DIRECT_MESSAGE = "direct_message"
    FRIENDS = "friends"
    EVENT = "event"
    ENVELOPE = "envelope"
    CONTROL = "control"
    DELETE_STATUS = "delete_status"
    DELETE_DIRECT_MESSAGE = "delete_direct_message"
    SCRUB_GEO = "scrub_geo"
    LIMIT = "limit"
    STATUS_WITHHELD = "status_withheld"
    USER_WITHHELD = "user_withheld"
    USER_DELETE = "user_delete"
    USER_UNDELETE = "user_undelete"
    USER_SUSPEND = "user_suspend"
    DISCONNECT = "disconnect"
    WARNING = "warning"
    RAW_JSON = "raw_json"


class DisconnectCode(enum.IntEnum):
    """Reason codes of a ``disconnect`` notice."""

    SHUTDOWN = 1
    DUPLICATE_STREAM = 2
    CONTROL_REQUEST = 3
    STALL = 4
    NORMAL = 5
    TOKEN_REVOKED = 6
    ADMIN_LOGOUT = 7
    RESERVED = 8
    MAX_MESSAGE_LIMIT = 9
    STREAM_EXCEPTION = 10
    BROKER_STALL = 11
    SHED_LOAD = 12


class EventCode(enum.StrEnum):
    """Names of user-stream events."""

    BLOCK = "block"
    UNBLOCK = "unblock"
    FAVORITE = "favorite"
    UNFAVORITE = "unfavorite"
    FOLLOW = "follow"
    UNFOLLOW = "unfollow"
    LIST_CREATED = "list_created"
    LIST_DESTROYED = "list_destroyed"
    LIST_UPDATED = "list_updated"
    LIST_MEMBER_ADDED = "list_member_added"
    LIST_MEMBER_REMOVED = "list_member_removed"
    LIST_USER_SUBSCRIBED = "list_user_subscribed"
    LIST_USER_UNSUBSCRIBED = "list_user_unsubscribed"
    USER_UPDATE = "user_update"
    MUTE = "mute"
    UNMUTE = "unmute"
    FAVORITED_RETWEET = "favorited_retweet"


class EventTargetType(enum.StrEnum):
    """Which nested object of an event is populated."""

    LIST = "list"
    STATUS = "status"
    NONE = "none"


class UserAction(enum.StrEnum):
    """Account-level notices about a user."""

    DELETE = "user_delete"
    UNDELETE = "user_undelete"
    SUSPEND = "user_suspend"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, kw_only=True)
class StreamMessage:
    """Base of every stream message."""

    TYPE: ClassVar[MessageType]

    raw: str = ""

    @property
    def message_type(self) -> MessageType:
        return self.TYPE


# ---------------------------------------------------------------------------
# Payload-bearing variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, kw_only=True)
class StatusMessage(StreamMessage):
    """A new status; ``status`` is the full record."""

    TYPE: ClassVar[MessageType] = MessageType.STATUS

    status: dict[str, Any]
    timestamp: datetime | None = None

    @property
    def id(self) -> int | None:
        return self.status.get("id")

    @property
    def text(self) -> str | None:
        return self.status.get("text")


@dataclass(frozen=True, slots=True, kw_only=True)
class DirectMessageMessage(StreamMessage):
    TYPE: ClassVar[MessageType] = MessageType.DIRECT_MESSAGE

    direct_message: dict[str, Any]


@dataclass(frozen=True, slots=True, kw_only=True)
class FriendsMessage(StreamMessage):
    """The friend ids sent at the start of a user stream."""

    TYPE: ClassVar[MessageType] = MessageType.FRIENDS

    friends: tuple[int, ...] = ()

    def __iter__(self) -> Iterator[int]:
        return iter(self.friends)

    def __len__(self) -> int:
        return len(self.friends)


@dataclass(frozen=True, slots=True, kw_only=True)
class EventMessage(StreamMessage):
    """A user-stream event.

    ``target_status`` is set for favorite events and ``target_list`` for
    list events; for every other event both are ``None``.
    """

    TYPE: ClassVar[MessageType] = MessageType.EVENT

    event: EventCode
    event_name: str
    source: dict[str, Any] | None = None
    target: dict[str, Any] | None = None
    target_type: EventTargetType = EventTargetType.NONE
    target_status: dict[str, Any] | None = None
    target_list: dict[str, Any] | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class EnvelopeMessage(StreamMessage):
    """A site-stream envelope addressed to ``for_user``."""

    TYPE: ClassVar[MessageType] = MessageType.ENVELOPE

    for_user: int
    message: StreamMessage


# ---------------------------------------------------------------------------
# Notices
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, kw_only=True)
class ControlMessage(StreamMessage):
    TYPE: ClassVar[MessageType] = MessageType.CONTROL

    control_uri: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DeleteMessage(StreamMessage):
    """Deletion of a status or of a direct message."""

    TYPE: ClassVar[MessageType] = MessageType.DELETE_STATUS

    id: int
    user_id: int | None = None
    direct_message: bool = False
    timestamp: datetime | None = None

    @property
    def message_type(self) -> MessageType:
        if self.direct_message:
            return MessageType.DELETE_DIRECT_MESSAGE
        return MessageType.DELETE_STATUS


@dataclass(frozen=True, slots=True, kw_only=True)
class ScrubGeoMessage(StreamMessage):
    TYPE: ClassVar[MessageType] = MessageType.SCRUB_GEO

    user_id: int
    up_to_status_id: int
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class LimitMessage(StreamMessage):
    """``track`` statuses matched the filter but were not delivered."""

    TYPE: ClassVar[MessageType] = MessageType.LIMIT

    track: int
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class StatusWithheldMessage(StreamMessage):
    TYPE: ClassVar[MessageType] = MessageType.STATUS_WITHHELD

    id: int
    user_id: int
    withheld_in_countries: tuple[str, ...] = ()
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UserWithheldMessage(StreamMessage):
    TYPE: ClassVar[MessageType] = MessageType.USER_WITHHELD

    id: int
    withheld_in_countries: tuple[str, ...] = ()
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UserMessage(StreamMessage):
    """A user was deleted, undeleted or suspended."""

    TYPE: ClassVar[MessageType] = MessageType.USER_DELETE

    id: int
    action: UserAction = UserAction.DELETE
    timestamp: datetime | None = None

    @property
    def message_type(self) -> MessageType:
        return MessageType(self.action.value)


@dataclass(frozen=True, slots=True, kw_only=True)
class DisconnectMessage(StreamMessage):
    """The server is about to close the connection.

    ``code`` is a plain ``int`` when the server sends an unknown code.
    """

    TYPE: ClassVar[MessageType] = MessageType.DISCONNECT

    code: DisconnectCode | int
    stream_name: str | None = None
    reason: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class WarningMessage(StreamMessage):
    """A stall warning or a follow-limit warning."""

    TYPE: ClassVar[MessageType] = MessageType.WARNING

    code: str
    message: str | None = None
    percent_full: int | None = None
    user_id: int | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RawJsonMessage(StreamMessage):
    """A line that could not be classified; only ``raw`` is meaningful."""

    TYPE: ClassVar[MessageType] = MessageType.RAW_JSON
