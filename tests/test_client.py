"""Tests for the blocking and asyncio clients.

Covers:

1. **Construction** -- authenticators, factories, null checks.
2. **Requests** -- URL resolution, templates, bodies, ``json_path``,
   API errors, caller errors raised before I/O, option snapshots.
3. **Streams** -- typed messages, streaming options, refused streams,
   cancellation.
4. **AsyncClient** -- the same pipeline on the event loop.
"""
from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from tweetwire.auth.bearer import BearerAuthenticator
from tweetwire.auth.oauth1 import OAuth1Authenticator
from tweetwire.client import AsyncClient, Client
from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import (
    ApiError,
    DuplicateParameter,
    MissingRequiredParameter,
    MissingReservedParameter,
    NullArgument,
    RequestCancelled,
)
from tweetwire.streaming.messages import (
    DeleteMessage,
    LimitMessage,
    MessageType,
    RawJsonMessage,
    StatusMessage,
)
from tweetwire.transport.cancellation import CancelToken
from tweetwire.transport.http import AsyncTransport, SyncTransport

Handler = Callable[[httpx.Request], httpx.Response]

STREAM_BODY = (
    b'{"friends": [1, 2]}\r\n'
    b"\r\n"
    b'{"id": 1, "text": "first"}\r\n'
    b'{"delete": {"status": {"id": 1, "user_id": 2}}}\r\n'
    b'{"limit": {"track": 3}}\r\n'
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Recorder:
    """A MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code: int = 200, body: bytes = b"{}", headers: dict[str, str] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.body = body
        self.headers = headers or {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.body, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _make_client(handler: Handler, **kwargs: object) -> Client:
    transport = SyncTransport(transport=httpx.MockTransport(handler))
    return Client(BearerAuthenticator("token"), transport=transport, **kwargs)


def _make_async_client(handler: Handler, **kwargs: object) -> AsyncClient:
    transport = AsyncTransport(transport=httpx.MockTransport(handler))
    return AsyncClient(BearerAuthenticator("token"), transport=transport, **kwargs)


# =========================================================================
# Construction
# =========================================================================


class TestConstruction:
    """Tests for client construction."""

    def test_none_authenticator(self) -> None:
        """A client cannot be built without an authenticator."""
        with pytest.raises(NullArgument):
            Client(None)  # type: ignore[arg-type]

    def test_from_oauth1(self) -> None:
        """from_oauth1() builds an OAuth 1.0a signing client."""
        recorder = Recorder()
        transport = SyncTransport(transport=httpx.MockTransport(recorder))
        with Client.from_oauth1("ck", "cs", "at", "ts", transport=transport) as client:
            assert isinstance(client.authenticator, OAuth1Authenticator)
            client.get("account/verify_credentials")
        header = recorder.last.headers["Authorization"]
        assert header.startswith("OAuth ")
        assert 'oauth_token="at"' in header

    def test_from_bearer(self) -> None:
        """from_bearer() builds an application-only client."""
        client = Client.from_bearer("AAAA", transport=SyncTransport())
        assert isinstance(client.authenticator, BearerAuthenticator)
        assert "AAAA" not in repr(client)
        client.close()

    def test_default_options(self) -> None:
        """Clients start with the default options."""
        client = Client.from_bearer("AAAA")
        assert client.options == ConnectionOptions()
        client.close()


# =========================================================================
# Requests
# =========================================================================


class TestRequests:
    """Tests for Client.request() and its shortcuts."""

    def test_get(self) -> None:
        """GET parameters travel in the query string."""
        recorder = Recorder(body=b'{"statuses": [{"id": 1}]}')
        client = _make_client(recorder)
        response = client.get("search/tweets", q="python", count=2)
        assert str(recorder.last.url) == "https://api.twitter.com/1.1/search/tweets.json?q=python&count=2"
        assert recorder.last.headers["Authorization"] == "Bearer token"
        assert response.data == {"statuses": [{"id": 1}]}
        assert response.raw == '{"statuses": [{"id": 1}]}'

    def test_url_template(self) -> None:
        """Placeholders in the endpoint name are filled from the parameters."""
        recorder = Recorder()
        _make_client(recorder).get("statuses/show/{id}", id=20, trim_user=True)
        assert str(recorder.last.url) == "https://api.twitter.com/1.1/statuses/show/20.json?trim_user=true"

    def test_missing_template_parameter(self) -> None:
        """A missing placeholder value is raised before any I/O."""
        recorder = Recorder()
        with pytest.raises(MissingReservedParameter):
            _make_client(recorder).get("statuses/show/{id}")
        assert recorder.requests == []

    def test_duplicate_parameter(self) -> None:
        """Duplicated keys are raised before any I/O."""
        recorder = Recorder()
        with pytest.raises(DuplicateParameter):
            _make_client(recorder).get("search/tweets", {"q": "a"}, q="b")
        assert recorder.requests == []

    def test_post_form(self) -> None:
        """POST parameters form a url-encoded body."""
        recorder = Recorder(body=b'{"id": 2}')
        _make_client(recorder).post("statuses/update", status="hello world")
        assert recorder.last.method == "POST"
        assert recorder.last.content == b"status=hello%20world"

    def test_delete_method(self) -> None:
        """request() accepts any supported method name."""
        recorder = Recorder()
        _make_client(recorder).request("DELETE", "lists/destroy", list_id=7)
        assert recorder.last.method == "DELETE"
        assert recorder.last.url.params["list_id"] == "7"

    def test_media_upload_goes_to_upload_host(self) -> None:
        """media/* endpoints use the upload URL and multipart bodies."""
        recorder = Recorder(body=b'{"media_id": 1}')
        _make_client(recorder).post("media/upload", media=b"\x89PNG")
        assert str(recorder.last.url) == "https://upload.twitter.com/1.1/media/upload.json"
        assert recorder.last.headers["Content-Type"].startswith("multipart/form-data")

    def test_absolute_url(self) -> None:
        """Absolute URLs are used as given."""
        recorder = Recorder()
        _make_client(recorder).get("https://ads-api.twitter.com/6/accounts", with_deleted=True)
        assert str(recorder.last.url) == "https://ads-api.twitter.com/6/accounts?with_deleted=true"

    def test_json_body(self) -> None:
        """A JSON document is sent as application/json."""
        recorder = Recorder()
        _make_client(recorder).post(
            "direct_messages/events/new",
            json_body={"event": {"type": "message_create"}},
        )
        assert recorder.last.headers["Content-Type"].startswith("application/json")
        assert recorder.last.content == b'{"event": {"type": "message_create"}}'

    def test_json_path(self) -> None:
        """json_path selects the returned sub-document."""
        recorder = Recorder(body=b'{"statuses": [{"id": 1}], "search_metadata": {}}')
        response = _make_client(recorder).get("search/tweets", q="x", json_path="statuses")
        assert response.data == [{"id": 1}]

    def test_api_error(self) -> None:
        """Error statuses raise ApiError with parsed entries and rate limit."""
        recorder = Recorder(
            status_code=429,
            body=b'{"errors":[{"code":88,"message":"Rate limit exceeded"}]}',
            headers={
                "x-rate-limit-limit": "15",
                "x-rate-limit-remaining": "0",
                "x-rate-limit-reset": "1700000900",
            },
        )
        with pytest.raises(ApiError) as excinfo:
            _make_client(recorder).get("friends/ids")
        error = excinfo.value
        assert error.status_code == 429
        assert error.errors[0].code == 88
        assert error.rate_limit.remaining == 0

    def test_rate_limit_on_success(self) -> None:
        """Successful responses expose their rate-limit window."""
        recorder = Recorder(
            headers={
                "x-rate-limit-limit": "15",
                "x-rate-limit-remaining": "14",
                "x-rate-limit-reset": "1700000900",
            }
        )
        response = _make_client(recorder).get("friends/ids")
        assert response.rate_limit.limit == 15

    def test_options_are_captured_per_call(self) -> None:
        """Replacing the options affects only later calls."""
        recorder = Recorder()
        client = _make_client(recorder)
        client.get("help/configuration")
        client.options = ConnectionOptions(api_url="https://api.example.com", user_agent="bot/2.0")
        client.get("help/configuration")
        first, second = recorder.requests
        assert first.url.host == "api.twitter.com"
        assert second.url.host == "api.example.com"
        assert second.headers["User-Agent"] == "bot/2.0"

    def test_cancelled_request(self) -> None:
        """A cancelled token is honoured by request()."""
        token = CancelToken()
        token.cancel()
        with pytest.raises(RequestCancelled):
            _make_client(Recorder()).get("help/configuration", cancel=token)


# =========================================================================
# Streams
# =========================================================================


class TestStreams:
    """Tests for Client.stream()."""

    def test_filter_stream(self) -> None:
        """A filter stream is a signed POST yielding typed messages."""
        recorder = Recorder(body=STREAM_BODY)
        client = _make_client(recorder)
        with client.stream("filter", track="python") as messages:
            types = [message.message_type for message in messages]
        assert types == [
            MessageType.FRIENDS,
            MessageType.STATUS,
            MessageType.DELETE_STATUS,
            MessageType.LIMIT,
        ]
        request = recorder.last
        assert request.method == "POST"
        assert str(request.url) == "https://stream.twitter.com/1.1/statuses/filter.json"
        assert request.content == b"track=python"

    def test_streams_are_not_compressed(self) -> None:
        """Streaming requests never ask for compression."""
        recorder = Recorder(body=b"")
        with _make_client(recorder).stream("sample") as messages:
            assert list(messages) == []
        assert recorder.last.headers["Accept-Encoding"] == "identity"
        assert recorder.last.method == "GET"

    def test_missing_predicate(self) -> None:
        """A filter stream without predicates fails before any I/O."""
        recorder = Recorder()
        with pytest.raises(MissingRequiredParameter):
            with _make_client(recorder).stream("filter", stall_warnings=True):
                pass
        assert recorder.requests == []

    def test_refused_stream(self) -> None:
        """A non-2xx answer to a stream raises ApiError."""
        recorder = Recorder(status_code=420, body=b"<html><h1>Enhance Your Calm</h1></html>")
        with pytest.raises(ApiError) as excinfo:
            with _make_client(recorder).stream("sample"):
                pass
        assert excinfo.value.status_code == 420
        assert excinfo.value.errors[0].message == "Enhance Your Calm"

    def test_raw_fallback(self) -> None:
        """raw_fallback keeps unknown lines instead of raising."""
        recorder = Recorder(body=b'{"surprise": true}\r\n{"limit": {"track": 1}}\r\n')
        with _make_client(recorder).stream("sample", raw_fallback=True) as messages:
            result = list(messages)
        assert isinstance(result[0], RawJsonMessage)
        assert result[0].raw == '{"surprise": true}'
        assert isinstance(result[1], LimitMessage)

    def test_cancel_ends_iteration(self) -> None:
        """Cancelling the token stops the message loop cleanly."""
        token = CancelToken()
        received = []
        with _make_client(Recorder(body=STREAM_BODY)).stream("sample", cancel=token) as messages:
            for message in messages:
                received.append(message)
                if isinstance(message, StatusMessage):
                    token.cancel()
        assert [m.message_type for m in received] == [MessageType.FRIENDS, MessageType.STATUS]


# =========================================================================
# AsyncClient
# =========================================================================


class TestAsyncClient:
    """Tests for AsyncClient."""

    async def test_get(self) -> None:
        """Async requests share the synchronous pipeline."""
        recorder = Recorder(body=b'{"id": 20}')
        async with _make_async_client(recorder) as client:
            response = await client.get("statuses/show/{id}", id=20)
        assert response.data == {"id": 20}
        assert str(recorder.last.url) == "https://api.twitter.com/1.1/statuses/show/20.json"

    async def test_post(self) -> None:
        """Async POST sends a form body."""
        recorder = Recorder()
        client = _make_async_client(recorder)
        await client.post("statuses/update", status="hi")
        await client.aclose()
        assert recorder.last.content == b"status=hi"

    async def test_api_error(self) -> None:
        """Async error statuses raise ApiError."""
        recorder = Recorder(status_code=401, body=b'{"errors":[{"code":32,"message":"Could not authenticate you"}]}')
        with pytest.raises(ApiError) as excinfo:
            await _make_async_client(recorder).get("account/verify_credentials")
        assert excinfo.value.errors[0].code == 32

    async def test_stream(self) -> None:
        """Async streams yield typed messages."""
        recorder = Recorder(body=STREAM_BODY)
        client = _make_async_client(recorder)
        async with client.stream("user") as messages:
            received = [message async for message in messages]
        assert str(recorder.last.url) == "https://userstream.twitter.com/1.1/user.json"
        assert isinstance(received[2], DeleteMessage)
        assert len(received) == 4

    async def test_refused_stream(self) -> None:
        """A refused async stream raises ApiError."""
        recorder = Recorder(status_code=401, body=b"Unauthorized")
        with pytest.raises(ApiError) as excinfo:
            async with _make_async_client(recorder).stream("sample"):
                pass
        assert excinfo.value.errors[0].message == "Unauthorized"
