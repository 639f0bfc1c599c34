"""tweetwire shared domain types.

This module defines the value types shared across the request pipeline.
All public symbols are re-exported from ``tweetwire.core``.

Key design decisions:
* ``ParameterList`` is an immutable, ordered sequence of ``(key, value)``
  pairs whose values are either wire text or a :class:`BinaryPayload`.
  Duplicate keys are rejected at construction time.
* Binary payloads are plain Python classes (not Pydantic) because they
  wrap live resources (buffers, file objects, paths).
* Response metadata (``RateLimitStatus``, ``ErrorEntry``, ``ApiResponse``)
  are frozen Pydantic v2 models.
* Enums use *string* values so they print cleanly in logs.
"""
from __future__ import annotations

import enum
import os
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime
from typing import IO, Any, NamedTuple, overload

from pydantic import BaseModel, ConfigDict, Field

from tweetwire.core.errors import (
    DuplicateParameter,
    InvalidParameterValue,
    MissingReservedParameter,
)

DEFAULT_CHUNK_SIZE = 81920

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class MethodType(enum.StrEnum):
    """HTTP methods used by the API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def uses_query(self) -> bool:
        """``True`` when parameters travel in the query string."""
        return self in (MethodType.GET, MethodType.DELETE)


class BodyEncoding(enum.StrEnum):
    """How the parameters of an exchange are put on the wire."""

    QUERY = "query"
    FORM = "form"
    MULTIPART = "multipart"
    JSON = "json"


# ---------------------------------------------------------------------------
# Binary payloads
# ---------------------------------------------------------------------------

class BinaryPayload:
    """Base class of every binary parameter value.

    A parameter list that contains at least one payload is sent as
    ``multipart/form-data``.
    """

    __slots__ = ("filename",)

    def __init__(self, filename: str | None = None) -> None:
        self.filename = filename

    @property
    def length(self) -> int | None:
        """Number of bytes that will be sent, or ``None`` when unknown."""
        return None

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the payload content in chunks of at most *chunk_size* bytes."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(filename={self.filename!r}, length={self.length!r})"


class BytesPayload(BinaryPayload):
    """An in-memory binary payload."""

    __slots__ = ("data",)

    def __init__(
        self,
        data: bytes | bytearray | memoryview,
        filename: str | None = None,
    ) -> None:
        super().__init__(filename)
        self.data = bytes(data)

    @property
    def length(self) -> int:
        return len(self.data)

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        for start in range(0, len(self.data), chunk_size):
            yield self.data[start:start + chunk_size]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BytesPayload):
            return self.data == other.data and self.filename == other.filename
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.data, self.filename))


class StreamPayload(BinaryPayload):
    """A payload read from an open binary file object.

    The length is taken from *length* when given, otherwise computed for
    seekable streams; non-seekable streams have an unknown length and are
    sent with chunked transfer encoding.  The stream is not closed.
    """

    __slots__ = ("stream", "_length")

    def __init__(
        self,
        stream: IO[bytes],
        filename: str | None = None,
        *,
        length: int | None = None,
    ) -> None:
        if filename is None:
            name = getattr(stream, "name", None)
            if isinstance(name, str):
                filename = os.path.basename(name)
        super().__init__(filename)
        self.stream = stream
        self._length = length

    @property
    def length(self) -> int | None:
        if self._length is not None:
            return self._length
        seekable = getattr(self.stream, "seekable", None)
        if seekable is None or not seekable():
            return None
        position = self.stream.tell()
        end = self.stream.seek(0, os.SEEK_END)
        self.stream.seek(position)
        return end - position

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        while True:
            chunk = self.stream.read(chunk_size)
            if not chunk:
                break
            yield chunk


class FilePayload(BinaryPayload):
    """A payload read from a file on disk, opened only while it is sent."""

    __slots__ = ("path",)

    def __init__(self, path: str | os.PathLike[str], filename: str | None = None) -> None:
        super().__init__(filename or os.path.basename(os.fspath(path)))
        self.path = os.fspath(path)

    @property
    def length(self) -> int:
        return os.path.getsize(self.path)

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        with open(self.path, "rb") as fp:
            while True:
                chunk = fp.read(chunk_size)
                if not chunk:
                    break
                yield chunk


ParameterValue = str | BinaryPayload
"""A normalized parameter value: wire text or a binary payload."""


# ---------------------------------------------------------------------------
# ParameterList
# ---------------------------------------------------------------------------

class Parameter(NamedTuple):
    """A single normalized ``key=value`` pair."""

    key: str
    value: ParameterValue


class ParameterList(Sequence[Parameter]):
    """Immutable ordered list of normalized parameters.

    Keys are unique; constructing a list with a repeated key raises
    :class:`~tweetwire.core.errors.DuplicateParameter`.  Declaration order
    is preserved so that reserved-key extraction is deterministic.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, ParameterValue]] = ()) -> None:
        seen: set[str] = set()
        result: list[Parameter] = []
        for key, value in items:
            if key in seen:
                raise DuplicateParameter(
                    f"Duplicate parameter key: {key!r}",
                    details={"key": key},
                )
            seen.add(key)
            result.append(Parameter(key, value))
        self._items: tuple[Parameter, ...] = tuple(result)

    @overload
    def __getitem__(self, index: int) -> Parameter: ...

    @overload
    def __getitem__(self, index: slice) -> ParameterList: ...

    def __getitem__(self, index: int | slice) -> Parameter | ParameterList:
        if isinstance(index, slice):
            return ParameterList(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ParameterList):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return list(self._items) == [tuple(item) for item in other]
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        return f"ParameterList({[tuple(p) for p in self._items]!r})"

    def keys(self) -> list[str]:
        """Return the parameter keys in declaration order."""
        return [p.key for p in self._items]

    def get(self, key: str, default: ParameterValue | None = None) -> ParameterValue | None:
        """Return the value stored under *key*, or *default*."""
        for p in self._items:
            if p.key == key:
                return p.value
        return default

    @property
    def has_binary(self) -> bool:
        """``True`` if any value is a :class:`BinaryPayload`."""
        return any(isinstance(p.value, BinaryPayload) for p in self._items)

    def text_items(self) -> list[tuple[str, str]]:
        """Return the pairs as ``(str, str)`` tuples.

        Raises
        ------
        InvalidParameterValue
            If the list contains a binary payload.
        """
        result: list[tuple[str, str]] = []
        for key, value in self._items:
            if not isinstance(value, str):
                raise InvalidParameterValue(
                    f"Parameter {key!r} carries binary data and cannot be "
                    "rendered as text",
                    details={"key": key},
                )
            result.append((key, value))
        return result

    def pop(self, key: str) -> tuple[ParameterValue, ParameterList]:
        """Return the value of *key* and a new list without it.

        Raises
        ------
        MissingReservedParameter
            If *key* is not present.
        """
        matches = [p for p in self._items if p.key == key]
        if len(matches) != 1:
            raise MissingReservedParameter(
                f"Required parameter {key!r} is missing",
                details={"key": key},
            )
        return matches[0].value, ParameterList(p for p in self._items if p.key != key)

    def merged(self, other: Iterable[tuple[str, ParameterValue]]) -> ParameterList:
        """Return a new list with the pairs of *other* appended."""
        return ParameterList([*self._items, *other])


# ---------------------------------------------------------------------------
# Response metadata
# ---------------------------------------------------------------------------

class RateLimitStatus(BaseModel):
    """Rate-limit window reported by the ``x-rate-limit-*`` headers."""

    model_config = ConfigDict(strict=True, frozen=True)

    limit: int
    remaining: int
    reset: datetime = Field(description="When the current window resets (UTC).")


class ErrorEntry(BaseModel):
    """A single error reported by the API."""

    model_config = ConfigDict(strict=True, frozen=True)

    code: int | None = None
    message: str


class ApiResponse(BaseModel):
    """Result of a successful call.

    ``data`` is the decoded JSON document (or the sub-document selected
    by a ``json_path``); ``raw`` is the response text.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    data: Any = None
    raw: str = ""
    rate_limit: RateLimitStatus | None = None
