"""``multipart/form-data`` bodies for requests carrying binary payloads.

Layout of one body::

    --{boundary}\\r\\n
    Content-Disposition: form-data; name="status"\\r\\n
    \\r\\n
    hello\\r\\n
    --{boundary}\\r\\n
    Content-Disposition: form-data; name="media"; filename="cat.png"\\r\\n
    Content-Type: application/octet-stream\\r\\n
    \\r\\n
    <bytes>\\r\\n
    --{boundary}--\\r\\n

A fresh random boundary is drawn for every body.  Part names and file
names have control characters and ``"`` percent-escaped so that a
caller-supplied name can never inject a header line.
"""
from __future__ import annotations

import asyncio
import re
import uuid
from collections.abc import AsyncIterator, Iterator

from tweetwire.core.interfaces import ProgressObserver
from tweetwire.core.types import DEFAULT_CHUNK_SIZE, BinaryPayload, ParameterList

DEFAULT_FILENAME = "file"
BINARY_CONTENT_TYPE = "application/octet-stream"
CRLF = b"\r\n"

_UNSAFE_HEADER_CHARS = re.compile(r'[\x00-\x1f\x7f"]')


def escape_header_value(value: str) -> str:
    """Percent-escape control characters and quotes in a quoted header value."""
    return _UNSAFE_HEADER_CHARS.sub(lambda match: f"%{ord(match.group()):02X}", value)


def new_boundary() -> str:
    return str(uuid.uuid4())


class MultipartBody:
    """A lazily produced multipart body.

    Parameters
    ----------
    parameters:
        The normalized parameters; one part is emitted per pair, in order.
    boundary:
        Part delimiter; a fresh UUID when omitted.
    observer:
        Called with ``(sent, total)`` after each chunk has been consumed by
        the transport.  ``total`` is ``None`` when the length is unknown.
    chunk_size:
        Maximum size of the chunks read from binary payloads.
    """

    def __init__(
        self,
        parameters: ParameterList,
        *,
        boundary: str | None = None,
        observer: ProgressObserver | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.parameters = parameters
        self.boundary = boundary or new_boundary()
        self.observer = observer
        self.chunk_size = chunk_size

    def __repr__(self) -> str:
        return f"MultipartBody(boundary={self.boundary!r}, parts={len(self.parameters)})"

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def _part_header(self, key: str, value: str | BinaryPayload) -> bytes:
        disposition = f'Content-Disposition: form-data; name="{escape_header_value(key)}"'
        lines = [f"--{self.boundary}"]
        if isinstance(value, BinaryPayload):
            filename = escape_header_value(value.filename or DEFAULT_FILENAME)
            lines.append(f'{disposition}; filename="{filename}"')
            lines.append(f"Content-Type: {BINARY_CONTENT_TYPE}")
        else:
            lines.append(disposition)
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

    def _closing(self) -> bytes:
        return f"--{self.boundary}--\r\n".encode("ascii")

    @property
    def length(self) -> int | None:
        """Total body size in bytes, or ``None`` if any payload length is unknown."""
        total = len(self._closing())
        for key, value in self.parameters:
            total += len(self._part_header(key, value)) + len(CRLF)
            if isinstance(value, BinaryPayload):
                size = value.length
                if size is None:
                    return None
                total += size
            else:
                total += len(value.encode("utf-8"))
        return total

    @property
    def headers(self) -> dict[str, str]:
        """``Content-Type`` plus ``Content-Length`` when the length is known.

        Without a length the transport falls back to chunked transfer
        encoding.
        """
        result = {"Content-Type": self.content_type}
        size = self.length
        if size is not None:
            result["Content-Length"] = str(size)
        return result

    def _iter_raw(self) -> Iterator[bytes]:
        for key, value in self.parameters:
            yield self._part_header(key, value)
            if isinstance(value, BinaryPayload):
                yield from value.iter_chunks(self.chunk_size)
            else:
                yield value.encode("utf-8")
            yield CRLF
        yield self._closing()

    def __iter__(self) -> Iterator[bytes]:
        total = self.length if self.observer is not None else None
        sent = 0
        for chunk in self._iter_raw():
            if not chunk:
                continue
            yield chunk
            sent += len(chunk)
            if self.observer is not None:
                self.observer(sent, total)

    async def aiter(self) -> AsyncIterator[bytes]:
        """Asynchronous variant of iteration, for ``httpx.AsyncClient``.

        Payload reads run in a worker thread so that files and pipes never
        block the event loop; the observer is still called on the loop.
        """
        total = self.length if self.observer is not None else None
        sent = 0
        chunks = self._iter_raw()
        try:
            while True:
                chunk = await asyncio.to_thread(next, chunks, None)
                if chunk is None:
                    return
                if not chunk:
                    continue
                yield chunk
                sent += len(chunk)
                if self.observer is not None:
                    self.observer(sent, total)
        finally:
            chunks.close()

    def to_bytes(self) -> bytes:
        """Materialize the whole body (mainly for inspection in tests)."""
        return b"".join(self._iter_raw())
