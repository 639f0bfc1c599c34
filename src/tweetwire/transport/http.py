"""HTTP execution over ``httpx``.

This is the only layer that performs I/O.  It provides:

* **SyncTransport** -- blocking execution over :class:`httpx.Client`.
* **AsyncTransport** -- asyncio execution over :class:`httpx.AsyncClient`.
* **StreamConnection** / **AsyncStreamConnection** -- scoped, line-oriented
  readers for long-lived streaming responses.

Both transports keep one ``httpx`` client (and so one connection pool)
per distinct combination of proxy, compression, timeout and keep-alive
settings.  A call picks its pool from the options snapshot it was given,
so replacing a client's options never affects a call already in flight.

Failures are translated into the tweetwire hierarchy:

* an ``httpx`` timeout, or the overall timer firing -> :class:`RequestTimeout`;
* the :class:`CancelToken` firing -> :class:`RequestCancelled`;
* any other ``httpx`` request failure -> :class:`ConnectionFailed`.

On timeout or cancellation the underlying socket is shut down, which wakes
a blocked read, the response is closed and any data already received is
discarded.  Blocking exchanges run on a worker thread so that the caller
returns as soon as either fires.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
import threading
from collections.abc import AsyncIterator, Callable, Iterator
from dataclasses import dataclass
from typing import Any

import httpx

from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import (
    ConnectionFailed,
    RequestCancelled,
    RequestTimeout,
    TweetWireError,
)
from tweetwire.transport.cancellation import CancelToken
from tweetwire.transport.exchange import HttpExchange
from tweetwire.transport.multipart import MultipartBody

logger = logging.getLogger(__name__)

PoolKey = tuple[Any, ...]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class HttpResult:
    """A completed, fully read HTTP response."""

    status_code: int
    headers: httpx.Headers
    text: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def pool_key(options: ConnectionOptions) -> PoolKey:
    """Return the pool-cache key of an options snapshot."""
    return (
        options.use_proxy,
        options.proxy if options.use_proxy else None,
        options.use_compression,
        options.timeout,
        options.read_write_timeout,
        options.disable_keep_alive,
    )


def client_settings(options: ConnectionOptions) -> dict[str, Any]:
    """Keyword arguments for an ``httpx`` client built from *options*."""
    settings: dict[str, Any] = {
        "timeout": httpx.Timeout(
            connect=options.timeout,
            read=options.read_write_timeout,
            write=options.read_write_timeout,
            pool=options.timeout,
        ),
        "trust_env": options.use_proxy,
        "follow_redirects": False,
    }
    if options.use_proxy and options.proxy:
        settings["proxy"] = options.proxy
    if options.disable_keep_alive:
        settings["limits"] = httpx.Limits(max_keepalive_connections=0)
    return settings


def translate_error(exchange: HttpExchange, exc: Exception) -> TweetWireError:
    """Return the tweetwire error matching an ``httpx`` failure."""
    if isinstance(exc, httpx.TimeoutException):
        return RequestTimeout(
            f"{exchange.method} {exchange.base_url} timed out: {type(exc).__name__}",
            details={"url": exchange.base_url},
        )
    return ConnectionFailed(
        f"{exchange.method} {exchange.base_url} failed: {exc}",
        details={"url": exchange.base_url, "exception_type": type(exc).__name__},
    )


@contextlib.contextmanager
def translate_errors(exchange: HttpExchange) -> Iterator[None]:
    """Map ``httpx`` failures to :class:`RequestTimeout` / :class:`ConnectionFailed`."""
    try:
        yield
    except (httpx.RequestError, httpx.StreamError) as exc:
        raise translate_error(exchange, exc) from exc


def _sync_content(exchange: HttpExchange) -> Any:
    if isinstance(exchange.content, MultipartBody):
        return iter(exchange.content)
    return exchange.content


def _async_content(exchange: HttpExchange) -> Any:
    if isinstance(exchange.content, MultipartBody):
        return exchange.content.aiter()
    return exchange.content


_CONNECT_EVENTS = frozenset({"connection.connect_tcp.complete", "connection.start_tls.complete"})


def response_socket(response: httpx.Response) -> socket.socket | None:
    """Return the socket a response is read from, when the transport exposes one."""
    stream = response.extensions.get("network_stream")
    if stream is None:
        return None
    return stream.get_extra_info("socket")


def shutdown_socket(sock: socket.socket | None) -> None:
    """Shut both directions of *sock* down, waking any thread blocked on it."""
    if sock is None:
        return
    with contextlib.suppress(OSError):
        sock.shutdown(socket.SHUT_RDWR)


class _InFlight:
    """A blocking exchange running on a worker thread.

    The caller waits until the exchange settles, the cancel token fires or
    the overall timeout expires.  Aborting shuts down the connection the
    worker is blocked on, so it ends promptly and its response is closed.
    """

    def __init__(self, client: httpx.Client, exchange: HttpExchange) -> None:
        self._client = client
        self._exchange = exchange
        self._lock = threading.Lock()
        self._settled = threading.Event()
        self._done = False
        self._reason: type[TweetWireError] | None = None
        self._sockets: list[socket.socket] = []
        self._response: httpx.Response | None = None
        self._result: HttpResult | None = None
        self._error: Exception | None = None

    def start(self) -> None:
        if self._settled.is_set():
            return
        worker = threading.Thread(
            target=self._run, name=f"tweetwire-{self._exchange.method}", daemon=True
        )
        worker.start()

    def _trace(self, event: str, info: dict[str, Any]) -> None:
        # httpcore reports every new connection; keep its socket for aborts.
        if event not in _CONNECT_EVENTS:
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        if sock is None:
            return
        with self._lock:
            self._sockets.append(sock)
            aborted = self._reason is not None
        if aborted:
            shutdown_socket(sock)

    def _attach(self, response: httpx.Response) -> bool:
        sock = response_socket(response)
        with self._lock:
            self._response = response
            if sock is not None:
                self._sockets.append(sock)
            return self._reason is None

    def _run(self) -> None:
        exchange = self._exchange
        try:
            request = self._client.build_request(
                str(exchange.method),
                exchange.url,
                headers=exchange.headers,
                content=_sync_content(exchange),
                extensions={"trace": self._trace},
            )
            with translate_errors(exchange):
                response = self._client.send(request, stream=True)
                try:
                    if not self._attach(response):
                        return
                    response.read()
                finally:
                    response.close()
            self._result = HttpResult(response.status_code, response.headers, response.text)
        except Exception as exc:
            # Re-raised in the calling thread by wait().
            self._error = exc
        finally:
            with self._lock:
                self._done = True
            self._settled.set()

    def abort(self, reason: type[TweetWireError]) -> None:
        with self._lock:
            if self._done or self._reason is not None:
                return
            self._reason = reason
            sockets = list(self._sockets)
            response = self._response
        logger.debug(
            "Aborting %s %s: %s",
            self._exchange.method, self._exchange.base_url, reason.__name__,
        )
        for sock in sockets:
            shutdown_socket(sock)
        if response is not None:
            response.close()
        self._settled.set()

    def wait(self, timeout: float | None) -> HttpResult:
        if not self._settled.wait(timeout):
            self.abort(RequestTimeout)
        if self._reason is not None:
            raise self._reason(details={"url": self._exchange.base_url})
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result


# ---------------------------------------------------------------------------
# Blocking transport
# ---------------------------------------------------------------------------

class SyncTransport:
    """Executes exchanges with blocking I/O.

    Parameters
    ----------
    transport:
        Optional ``httpx`` transport used by every pool (for example an
        :class:`httpx.MockTransport` in tests).
    """

    def __init__(self, *, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport
        self._pools: dict[PoolKey, httpx.Client] = {}
        self._lock = threading.Lock()

    def client_for(self, options: ConnectionOptions) -> httpx.Client:
        """Return the cached ``httpx.Client`` for *options*, creating it on first use."""
        key = pool_key(options)
        with self._lock:
            client = self._pools.get(key)
            if client is None:
                logger.debug("Creating connection pool for %r", key)
                client = httpx.Client(transport=self._transport, **client_settings(options))
                self._pools[key] = client
            return client

    def send(
        self,
        exchange: HttpExchange,
        options: ConnectionOptions,
        *,
        cancel: CancelToken | None = None,
    ) -> HttpResult:
        """Send *exchange* and read the whole response.

        Raises
        ------
        RequestCancelled
            If *cancel* fires before the response has been returned.
        RequestTimeout
            If an ``httpx`` timeout expires or the call exceeds
            ``options.timeout`` overall.
        ConnectionFailed
            On any other transport failure.
        """
        if cancel is not None:
            cancel.raise_if_cancelled()
        client = self.client_for(options)
        in_flight = _InFlight(client, exchange)
        unregister = (
            cancel.register(lambda: in_flight.abort(RequestCancelled))
            if cancel is not None
            else None
        )
        logger.debug("Sending %s %s", exchange.method, exchange.base_url)
        try:
            in_flight.start()
            result = in_flight.wait(options.timeout)
        finally:
            if unregister is not None:
                unregister()
        logger.debug(
            "Received %d from %s %s",
            result.status_code, exchange.method, exchange.base_url,
        )
        return result

    @contextlib.contextmanager
    def open_stream(
        self,
        exchange: HttpExchange,
        options: ConnectionOptions,
        *,
        cancel: CancelToken | None = None,
    ) -> Iterator[StreamConnection]:
        """Open a streaming response; it is closed when the block exits."""
        if cancel is not None:
            cancel.raise_if_cancelled()
        client = self.client_for(options)
        request = client.build_request(
            str(exchange.method),
            exchange.url,
            headers=exchange.headers,
            content=_sync_content(exchange),
        )
        logger.debug("Opening stream %s %s", exchange.method, exchange.base_url)
        with translate_errors(exchange):
            response = client.send(request, stream=True)
        connection = StreamConnection(exchange, response)
        unregister = cancel.register(connection.close) if cancel is not None else None
        try:
            yield connection
        finally:
            if unregister is not None:
                unregister()
            connection.close()

    def close(self) -> None:
        """Close every cached pool."""
        with self._lock:
            pools, self._pools = list(self._pools.values()), {}
        for client in pools:
            client.close()


class StreamConnection:
    """A blocking streaming response read line by line.

    Closing the connection, from any thread, ends :meth:`iter_lines`
    without an error.
    """

    def __init__(self, exchange: HttpExchange, response: httpx.Response) -> None:
        self._exchange = exchange
        self._response = response
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def closed(self) -> bool:
        return self._closed

    def read_text(self) -> str:
        """Read the remaining body (used for error responses)."""
        with translate_errors(self._exchange):
            self._response.read()
        return self._response.text

    def iter_lines(self) -> Iterator[str]:
        """Yield response lines until the server or the caller ends the stream."""
        try:
            for line in self._response.iter_lines():
                yield line
                if self._closed:
                    return
        except (httpx.RequestError, httpx.StreamError) as exc:
            if self._closed:
                logger.debug("Stream %s closed during read", self._exchange.base_url)
                return
            raise translate_error(self._exchange, exc) from exc
        logger.debug("Stream %s ended by the server", self._exchange.base_url)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._response.is_closed:
            # A plain close does not wake a thread blocked in recv.
            shutdown_socket(response_socket(self._response))
        self._response.close()
        logger.debug("Closed stream %s", self._exchange.base_url)


# ---------------------------------------------------------------------------
# Asynchronous transport
# ---------------------------------------------------------------------------

async def _race(
    task: asyncio.Future[HttpResult],
    exchange: HttpExchange,
    cancel: CancelToken | None,
    timeout: float | None,
) -> HttpResult:
    """Wait for *task*, the cancel token or the timeout, whichever comes first."""
    loop = asyncio.get_running_loop()
    cancelled: asyncio.Future[None] = loop.create_future()

    def _on_cancel() -> None:
        loop.call_soon_threadsafe(_resolve, cancelled)

    unregister: Callable[[], None] | None = None
    if cancel is not None:
        unregister = cancel.register(_on_cancel)
    try:
        done, _ = await asyncio.wait(
            {task, cancelled}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if unregister is not None:
            unregister()

    if cancelled in done or task not in done:
        task.cancel()
        # Let the exchange close its response before reporting.
        await asyncio.gather(task, return_exceptions=True)
        reason = RequestCancelled if cancelled in done else RequestTimeout
        raise reason(details={"url": exchange.base_url})
    cancelled.cancel()
    return task.result()


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


_EOF = object()


async def _next_line(lines: AsyncIterator[str]) -> Any:
    return await anext(lines, _EOF)


class AsyncTransport:
    """Executes exchanges on the running asyncio event loop.

    The overall timeout and the cancel token are raced against the I/O
    task; whichever finishes first decides the outcome.

    Parameters
    ----------
    transport:
        Optional ``httpx`` async transport used by every pool.
    """

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport
        self._pools: dict[PoolKey, httpx.AsyncClient] = {}

    def client_for(self, options: ConnectionOptions) -> httpx.AsyncClient:
        """Return the cached ``httpx.AsyncClient`` for *options*."""
        key = pool_key(options)
        client = self._pools.get(key)
        if client is None:
            logger.debug("Creating async connection pool for %r", key)
            client = httpx.AsyncClient(transport=self._transport, **client_settings(options))
            self._pools[key] = client
        return client

    async def _exchange(
        self,
        client: httpx.AsyncClient,
        exchange: HttpExchange,
    ) -> HttpResult:
        request = client.build_request(
            str(exchange.method),
            exchange.url,
            headers=exchange.headers,
            content=_async_content(exchange),
        )
        with translate_errors(exchange):
            response = await client.send(request, stream=True)
            try:
                await response.aread()
            finally:
                await response.aclose()
        logger.debug(
            "Received %d from %s %s",
            response.status_code, exchange.method, exchange.base_url,
        )
        return HttpResult(response.status_code, response.headers, response.text)

    async def send(
        self,
        exchange: HttpExchange,
        options: ConnectionOptions,
        *,
        cancel: CancelToken | None = None,
    ) -> HttpResult:
        """Send *exchange* and read the whole response.

        Raises the same errors as :meth:`SyncTransport.send`.
        """
        if cancel is not None:
            cancel.raise_if_cancelled()
        client = self.client_for(options)
        logger.debug("Sending %s %s", exchange.method, exchange.base_url)
        task = asyncio.ensure_future(self._exchange(client, exchange))
        return await _race(task, exchange, cancel, options.timeout)

    @contextlib.asynccontextmanager
    async def open_stream(
        self,
        exchange: HttpExchange,
        options: ConnectionOptions,
        *,
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[AsyncStreamConnection]:
        """Open a streaming response; it is closed when the block exits."""
        if cancel is not None:
            cancel.raise_if_cancelled()
        client = self.client_for(options)
        request = client.build_request(
            str(exchange.method),
            exchange.url,
            headers=exchange.headers,
            content=_async_content(exchange),
        )
        logger.debug("Opening stream %s %s", exchange.method, exchange.base_url)
        with translate_errors(exchange):
            response = await client.send(request, stream=True)
        connection = AsyncStreamConnection(exchange, response)
        unregister = (
            cancel.register(connection.close_threadsafe) if cancel is not None else None
        )
        try:
            yield connection
        finally:
            if unregister is not None:
                unregister()
            await connection.aclose()

    async def aclose(self) -> None:
        """Close every cached pool."""
        pools, self._pools = list(self._pools.values()), {}
        for client in pools:
            await client.aclose()


class AsyncStreamConnection:
    """An asyncio streaming response read line by line.

    Closing the connection, or cancelling the token it was opened with,
    ends :meth:`aiter_lines` without an error.
    """

    def __init__(self, exchange: HttpExchange, response: httpx.Response) -> None:
        self._exchange = exchange
        self._response = response
        self._loop = asyncio.get_running_loop()
        self._stop: asyncio.Future[None] = self._loop.create_future()

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def closed(self) -> bool:
        return self._stop.done()

    async def read_text(self) -> str:
        """Read the remaining body (used for error responses)."""
        with translate_errors(self._exchange):
            await self._response.aread()
        return self._response.text

    async def aiter_lines(self) -> AsyncIterator[str]:
        """Yield response lines until the server or the caller ends the stream."""
        lines = self._response.aiter_lines()
        try:
            while not self._stop.done():
                pending = asyncio.ensure_future(_next_line(lines))
                done, _ = await asyncio.wait(
                    {pending, self._stop}, return_when=asyncio.FIRST_COMPLETED
                )
                if pending not in done:
                    pending.cancel()
                    await asyncio.gather(pending, return_exceptions=True)
                    logger.debug("Stream %s closed during read", self._exchange.base_url)
                    return
                try:
                    line = pending.result()
                except (httpx.RequestError, httpx.StreamError) as exc:
                    if self._stop.done():
                        return
                    raise translate_error(self._exchange, exc) from exc
                if line is _EOF:
                    logger.debug("Stream %s ended by the server", self._exchange.base_url)
                    return
                yield line
        finally:
            await lines.aclose()

    def close_threadsafe(self) -> None:
        """Request the end of the stream from any thread."""
        self._loop.call_soon_threadsafe(_resolve, self._stop)

    async def aclose(self) -> None:
        _resolve(self._stop)
        if not self._response.is_closed:
            await self._response.aclose()
            logger.debug("Closed stream %s", self._exchange.base_url)
