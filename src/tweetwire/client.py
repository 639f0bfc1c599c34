"""Blocking and asyncio clients.

Both clients run the same pipeline::

    parameters -> normalize -> expand {segments} -> build_exchange (sign)
        -> transport -> parse_response

Everything except the transport call lives in :class:`_ClientBase`, so
the normalization, signing and classification logic exists once.  Each
call captures ``self.options`` when it starts; assigning new options to
a client affects only the calls made afterwards.
"""
from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from typing import Any, Self

from pydantic import SecretStr

from tweetwire.auth.bearer import BearerAuthenticator
from tweetwire.auth.oauth1 import OAuth1Authenticator, OAuth1Credentials
from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import NullArgument
from tweetwire.core.interfaces import Authenticator, ProgressObserver
from tweetwire.core.types import ApiResponse, MethodType
from tweetwire.params.normalizer import expand_url_template, normalize
from tweetwire.response.classifier import parse_response, raise_for_status
from tweetwire.streaming.api import (
    StreamingType,
    resolve_stream_endpoint,
    validate_stream_parameters,
)
from tweetwire.streaming.messages import StreamMessage
from tweetwire.streaming.reader import aiter_messages, iter_messages
from tweetwire.transport.cancellation import CancelToken
from tweetwire.transport.exchange import HttpExchange, build_exchange
from tweetwire.transport.http import AsyncTransport, HttpResult, SyncTransport

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "media/"


class _ClientBase:
    """Request preparation and response classification shared by both clients.

    Parameters
    ----------
    authenticator:
        Produces the ``Authorization`` header of every request.
    options:
        Connection settings; defaults to :class:`ConnectionOptions` ().
    """

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        options: ConnectionOptions | None = None,
    ) -> None:
        if authenticator is None:
            raise NullArgument("authenticator must not be None")
        self.authenticator = authenticator
        self.options = options or ConnectionOptions()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(authenticator={self.authenticator!r})"

    # -- constructors -----------------------------------------------------

    @classmethod
    def from_oauth1(
        cls,
        consumer_key: str,
        consumer_secret: str | SecretStr,
        access_token: str | None = None,
        access_token_secret: str | SecretStr | None = None,
        **kwargs: Any,
    ) -> Self:
        """Create a client signing with OAuth 1.0a credentials."""
        credentials = OAuth1Credentials(
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
            access_token=access_token,
            access_token_secret=access_token_secret,
        )
        return cls(OAuth1Authenticator(credentials), **kwargs)

    @classmethod
    def from_bearer(cls, token: str | SecretStr, **kwargs: Any) -> Self:
        """Create an application-only client using an OAuth 2 bearer token."""
        return cls(BearerAuthenticator(token), **kwargs)

    # -- pipeline ---------------------------------------------------------

    @staticmethod
    def resolve_url(endpoint: str, options: ConnectionOptions) -> str:
        """Turn an endpoint name such as ``statuses/update`` into a URL.

        Absolute URLs are used unchanged; ``media/*`` endpoints go to the
        upload host.
        """
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        endpoint = endpoint.strip("/")
        if endpoint.startswith(UPLOAD_PREFIX):
            return options.get_url(options.upload_url, f"{endpoint}.json")
        return options.api_endpoint(endpoint)

    def prepare(
        self,
        method: MethodType | str,
        endpoint: str,
        params: Any,
        kwargs: Mapping[str, Any],
        options: ConnectionOptions,
        *,
        json_body: Any = None,
        observer: ProgressObserver | None = None,
    ) -> HttpExchange:
        """Normalize the parameters and build the signed exchange."""
        parameters = normalize(params, **kwargs)
        endpoint, parameters = expand_url_template(endpoint, parameters)
        return build_exchange(
            method,
            self.resolve_url(endpoint, options),
            parameters,
            self.authenticator,
            options,
            json_body=json_body,
            observer=observer,
        )

    def prepare_stream(
        self,
        kind: StreamingType | str,
        params: Any,
        kwargs: Mapping[str, Any],
    ) -> tuple[HttpExchange, ConnectionOptions]:
        """Build the exchange opening a stream, with its streaming options snapshot."""
        options = self.options.for_streaming()
        parameters = normalize(params, **kwargs)
        validate_stream_parameters(kind, parameters)
        endpoint = resolve_stream_endpoint(kind, options)
        exchange = build_exchange(
            endpoint.method, endpoint.url, parameters, self.authenticator, options
        )
        return exchange, options

    @staticmethod
    def finish(result: HttpResult, json_path: str | None = None) -> ApiResponse:
        """Classify a completed response."""
        return parse_response(
            result.status_code, result.headers, result.text, json_path=json_path
        )


# ---------------------------------------------------------------------------
# Blocking client
# ---------------------------------------------------------------------------

class Client(_ClientBase):
    """Blocking API client.

    Usage::

        with Client.from_oauth1("ck", "cs", "at", "ats") as client:
            client.post("statuses/update", status="hello world")
            tweets = client.get("search/tweets", q="python", json_path="statuses")

            with client.stream("filter", track="python") as messages:
                for message in messages:
                    ...
    """

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        options: ConnectionOptions | None = None,
        transport: SyncTransport | None = None,
    ) -> None:
        super().__init__(authenticator, options=options)
        self.transport = transport or SyncTransport()

    def request(
        self,
        method: MethodType | str,
        endpoint: str,
        params: Any = None,
        /,
        *,
        json_body: Any = None,
        json_path: str | None = None,
        observer: ProgressObserver | None = None,
        cancel: CancelToken | None = None,
        **kwargs: Any,
    ) -> ApiResponse:
        """Call *endpoint* and return its decoded response.

        Parameters
        ----------
        method:
            The HTTP method.
        endpoint:
            An endpoint name (``statuses/show/{id}``) or an absolute URL.
            ``{name}`` segments are filled from the parameters.
        params:
            Parameters in any shape accepted by
            :func:`~tweetwire.params.normalizer.normalize`.
        json_body:
            A JSON document sent as the request body.
        json_path:
            Dotted path of the sub-document returned as ``data``.
        observer:
            Upload progress observer for multipart requests.
        cancel:
            Cancels the call while it is in flight.
        **kwargs:
            Additional parameters.

        Raises
        ------
        CallerError
            Malformed parameters; nothing was sent.
        ApiError
            The server answered with a non-success status.
        RequestTimeout, RequestCancelled, ConnectionFailed
            The exchange did not complete.
        """
        options = self.options
        exchange = self.prepare(
            method, endpoint, params, kwargs, options,
            json_body=json_body, observer=observer,
        )
        result = self.transport.send(exchange, options, cancel=cancel)
        return self.finish(result, json_path)

    def get(self, endpoint: str, params: Any = None, /, **kwargs: Any) -> ApiResponse:
        return self.request(MethodType.GET, endpoint, params, **kwargs)

    def post(self, endpoint: str, params: Any = None, /, **kwargs: Any) -> ApiResponse:
        return self.request(MethodType.POST, endpoint, params, **kwargs)

    @contextlib.contextmanager
    def stream(
        self,
        kind: StreamingType | str,
        params: Any = None,
        /,
        *,
        raw_fallback: bool = False,
        cancel: CancelToken | None = None,
        **kwargs: Any,
    ) -> Iterator[Iterator[StreamMessage]]:
        """Open a streaming connection and yield its message iterator.

        The connection is closed when the ``with`` block exits; cancelling
        *cancel* ends the iteration cleanly.

        Raises
        ------
        ApiError
            The server refused to open the stream.
        """
        exchange, options = self.prepare_stream(kind, params, kwargs)
        with self.transport.open_stream(exchange, options, cancel=cancel) as connection:
            if not 200 <= connection.status_code < 300:
                raise_for_status(
                    connection.status_code, connection.read_text(), connection.headers
                )
            logger.debug("Streaming %s", StreamingType(kind))
            yield iter_messages(connection.iter_lines(), raw_fallback=raw_fallback)

    def close(self) -> None:
        """Close the connection pools."""
        self.transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Asyncio client
# ---------------------------------------------------------------------------

class AsyncClient(_ClientBase):
    """Asyncio API client; the methods mirror :class:`Client`.

    Usage::

        async with AsyncClient.from_bearer(token) as client:
            response = await client.get("statuses/show/{id}", id=20)

            async with client.stream("sample") as messages:
                async for message in messages:
                    ...
    """

    def __init__(
        self,
        authenticator: Authenticator,
        *,
        options: ConnectionOptions | None = None,
        transport: AsyncTransport | None = None,
    ) -> None:
        super().__init__(authenticator, options=options)
        self.transport = transport or AsyncTransport()

    async def request(
        self,
        method: MethodType | str,
        endpoint: str,
        params: Any = None,
        /,
        *,
        json_body: Any = None,
        json_path: str | None = None,
        observer: ProgressObserver | None = None,
        cancel: CancelToken | None = None,
        **kwargs: Any,
    ) -> ApiResponse:
        """Call *endpoint*; see :meth:`Client.request`."""
        options = self.options
        exchange = self.prepare(
            method, endpoint, params, kwargs, options,
            json_body=json_body, observer=observer,
        )
        result = await self.transport.send(exchange, options, cancel=cancel)
        return self.finish(result, json_path)

    async def get(self, endpoint: str, params: Any = None, /, **kwargs: Any) -> ApiResponse:
        return await self.request(MethodType.GET, endpoint, params, **kwargs)

    async def post(self, endpoint: str, params: Any = None, /, **kwargs: Any) -> ApiResponse:
        return await self.request(MethodType.POST, endpoint, params, **kwargs)

    @contextlib.asynccontextmanager
    async def stream(
        self,
        kind: StreamingType | str,
        params: Any = None,
        /,
        *,
        raw_fallback: bool = False,
        cancel: CancelToken | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[AsyncIterator[StreamMessage]]:
        """Open a streaming connection; see :meth:`Client.stream`."""
        exchange, options = self.prepare_stream(kind, params, kwargs)
        async with self.transport.open_stream(exchange, options, cancel=cancel) as connection:
            if not 200 <= connection.status_code < 300:
                raise_for_status(
                    connection.status_code, await connection.read_text(), connection.headers
                )
            logger.debug("Streaming %s", StreamingType(kind))
            yield aiter_messages(connection.aiter_lines(), raw_fallback=raw_fallback)

    async def aclose(self) -> None:
        """Close the connection pools."""
        await self.transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
