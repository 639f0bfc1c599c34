"""Textual rendering of parameter values.

Each kind of value a caller may pass has exactly one wire rendering:

* ``str`` -- unchanged.
* ``bool`` -- ``true`` / ``false``.
* ``int`` -- plain decimal digits.
* ``float`` / ``Decimal`` -- fixed-point, shortest exact digits, trailing
  zeros trimmed but at least one fractional digit (``1.0``, ``0.0000001``).
* ``datetime`` -- ``yyyyMMddHHmm`` in UTC; naive values are taken as UTC.
* :class:`Iso8601` -- ``YYYY-MM-DDTHH:MM:SSZ`` in UTC.
* ``date`` -- ``YYYY-MM-DD``.
* ``enum.Flag`` -- active member names in declaration order, comma-joined.
* other ``enum.Enum`` -- the lower-cased member name.
* sequences -- the element renderings, comma-joined.
* ``None`` -- no rendering; the pair is dropped.
* binary data (``bytes``, binary file objects, ``pathlib`` paths,
  :class:`~tweetwire.core.types.BinaryPayload`) -- passed through as a
  payload for multipart encoding.

An enum member may provide its own text through a ``wire_name``
attribute (e.g. a ``property`` on the enum class).
"""
from __future__ import annotations

import enum
import io
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import PurePath
from typing import Any

from tweetwire.core.errors import InvalidParameterValue
from tweetwire.core.types import (
    BinaryPayload,
    BytesPayload,
    FilePayload,
    ParameterValue,
    StreamPayload,
)

SEARCH_DATETIME_FORMAT = "%Y%m%d%H%M"
ISO8601_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True, slots=True)
class Iso8601:
    """Marks a datetime that must be sent in ISO 8601 form."""

    value: datetime


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_datetime(value: datetime) -> str:
    """Render *value* as ``yyyyMMddHHmm`` in UTC."""
    return _to_utc(value).strftime(SEARCH_DATETIME_FORMAT)


def format_iso8601(value: datetime) -> str:
    """Render *value* as ``YYYY-MM-DDTHH:MM:SSZ`` in UTC."""
    return _to_utc(value).strftime(ISO8601_FORMAT)


def format_decimal(value: Decimal) -> str:
    """Render a finite decimal in fixed-point with at least one fractional digit."""
    if not value.is_finite():
        raise InvalidParameterValue(
            f"Non-finite number {value} has no wire rendering",
            details={"value": str(value)},
        )
    text = format(value, "f")
    if "." not in text:
        return text + ".0"
    text = text.rstrip("0")
    if text.endswith("."):
        text += "0"
    return text


def format_float(value: float) -> str:
    """Render *value* with the shortest digits that round-trip, in fixed-point."""
    if not math.isfinite(value):
        raise InvalidParameterValue(
            f"Non-finite number {value!r} has no wire rendering",
            details={"value": repr(value)},
        )
    return format_decimal(Decimal(repr(value)))


def enum_wire_name(member: enum.Enum) -> str:
    """Return the wire text of a single enum member."""
    wire_name = getattr(member, "wire_name", None)
    if isinstance(wire_name, str):
        return wire_name
    if member.name is None:
        raise InvalidParameterValue(
            f"Enum value {member!r} has no symbolic name",
        )
    return member.name.lower()


def format_flag(value: enum.Flag) -> str:
    """Render the active members of *value* in declaration order."""
    return ",".join(
        enum_wire_name(member) for member in type(value) if member in value
    )


def _is_binary(value: Any) -> bool:
    return isinstance(
        value,
        (BinaryPayload, bytes, bytearray, memoryview, PurePath,
         io.RawIOBase, io.BufferedIOBase),
    )


def to_payload(value: Any) -> BinaryPayload:
    """Wrap raw binary data in the matching :class:`BinaryPayload`."""
    if isinstance(value, BinaryPayload):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BytesPayload(value)
    if isinstance(value, PurePath):
        return FilePayload(value)
    if isinstance(value, (io.RawIOBase, io.BufferedIOBase)):
        return StreamPayload(value)
    raise InvalidParameterValue(
        f"{type(value).__name__} is not binary data",
        details={"type": type(value).__name__},
    )


def format_scalar(value: Any) -> str:
    """Render a non-sequence, non-binary value.

    Raises
    ------
    InvalidParameterValue
        If *value* is of an unsupported type.
    """
    # Enum checks come first: StrEnum and IntEnum members are also str/int.
    if isinstance(value, enum.Flag):
        return format_flag(value)
    if isinstance(value, enum.Enum):
        return enum_wire_name(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, Decimal):
        return format_decimal(value)
    if isinstance(value, Iso8601):
        return format_iso8601(value.value)
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    raise InvalidParameterValue(
        f"Unsupported parameter value type: {type(value).__name__}",
        details={"type": type(value).__name__},
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def format_value(value: Any) -> ParameterValue | None:
    """Render *value* for the wire.

    Returns
    -------
    str | BinaryPayload | None
        The wire text, a binary payload, or ``None`` when the value is
        absent and the pair must be dropped.
    """
    if value is None:
        return None
    if _is_binary(value):
        return to_payload(value)
    if isinstance(value, (str, enum.Enum)):
        return format_scalar(value)
    if isinstance(value, Mapping):
        raise InvalidParameterValue(
            "Mappings cannot be used as parameter values",
            details={"type": type(value).__name__},
        )
    if isinstance(value, Iterable):
        return format_sequence(value)
    return format_scalar(value)


def format_sequence(values: Iterable[Any]) -> str:
    """Render a sequence of scalars as a comma-joined list.

    ``None`` elements are skipped; nested sequences and binary data are
    rejected.
    """
    rendered: list[str] = []
    for item in values:
        if item is None:
            continue
        if _is_binary(item) or (
            isinstance(item, Iterable) and not isinstance(item, (str, enum.Enum))
        ):
            raise InvalidParameterValue(
                "Sequence elements must be scalar values",
                details={"type": type(item).__name__},
            )
        rendered.append(format_scalar(item))
    return ",".join(rendered)
