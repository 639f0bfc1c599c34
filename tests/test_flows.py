"""Tests for the token acquisition flows.

Covers:

1. **Three-legged OAuth 1.0a** -- request token, authorize URL, access
   token exchange.
2. **Application-only OAuth 2** -- bearer token and its invalidation.
3. **Failures** -- error statuses and incomplete token responses.
"""
from __future__ import annotations

import httpx
import pytest

from tweetwire.auth.flows import (
    OAuthSession,
    async_authorize,
    async_get_bearer_token,
    async_get_tokens,
    async_invalidate_bearer_token,
    authorize,
    get_bearer_token,
    get_tokens,
    invalidate_bearer_token,
)
from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import ApiError, ProtocolParseError
from tweetwire.transport.http import AsyncTransport, SyncTransport

REQUEST_TOKEN_BODY = "oauth_token=rt&oauth_token_secret=rts&oauth_callback_confirmed=true"
ACCESS_TOKEN_BODY = "oauth_token=at&oauth_token_secret=ats&user_id=6253282&screen_name=twitterapi"
BASIC_CK_CS = "Basic Y2s6Y3M="


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TokenServer:
    """Answers every request with one canned response and records requests."""

    def __init__(self, body: str, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)

    def sync(self) -> SyncTransport:
        return SyncTransport(transport=httpx.MockTransport(self))

    def asynchronous(self) -> AsyncTransport:
        return AsyncTransport(transport=httpx.MockTransport(self))


def _make_session() -> OAuthSession:
    return OAuthSession(
        consumer_key="ck",
        consumer_secret="cs",
        request_token="rt",
        request_token_secret="rts",
        authorize_url="https://api.twitter.com/oauth/authorize?oauth_token=rt",
    )


# =========================================================================
# OAuth 1.0a
# =========================================================================


class TestThreeLegged:
    """Tests for authorize() and get_tokens()."""

    def test_authorize(self) -> None:
        """The request token is fetched with an out-of-band callback."""
        server = TokenServer(REQUEST_TOKEN_BODY)
        session = authorize("ck", "cs", transport=server.sync())
        request = server.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api.twitter.com/oauth/request_token"
        header = request.headers["Authorization"]
        assert header.startswith("OAuth ")
        assert 'oauth_callback="oob"' in header
        assert "oauth_token=" not in header
        assert session.request_token == "rt"
        assert session.request_token_secret.get_secret_value() == "rts"
        assert session.authorize_url == "https://api.twitter.com/oauth/authorize?oauth_token=rt"

    def test_authorize_with_callback(self) -> None:
        """A callback URL is percent-encoded into the header."""
        server = TokenServer(REQUEST_TOKEN_BODY)
        authorize("ck", "cs", callback="https://example.com/cb", transport=server.sync())
        header = server.requests[0].headers["Authorization"]
        assert 'oauth_callback="https%3A%2F%2Fexample.com%2Fcb"' in header

    def test_authorize_honours_api_url(self) -> None:
        """The OAuth endpoints follow the configured API URL."""
        server = TokenServer(REQUEST_TOKEN_BODY)
        options = ConnectionOptions(api_url="https://api.example.com")
        session = authorize("ck", "cs", options=options, transport=server.sync())
        assert server.requests[0].url.host == "api.example.com"
        assert session.authorize_url.startswith("https://api.example.com/oauth/authorize?")

    def test_get_tokens(self) -> None:
        """The verifier is signed together with the request token."""
        server = TokenServer(ACCESS_TOKEN_BODY)
        tokens = get_tokens(_make_session(), "123456", transport=server.sync())
        request = server.requests[0]
        assert str(request.url) == "https://api.twitter.com/oauth/access_token"
        header = request.headers["Authorization"]
        assert 'oauth_verifier="123456"' in header
        assert 'oauth_token="rt"' in header
        assert tokens.credentials.access_token == "at"
        assert tokens.credentials.token_secret == "ats"
        assert tokens.credentials.consumer_key == "ck"
        assert tokens.user_id == 6253282
        assert tokens.screen_name == "twitterapi"

    def test_missing_token_field(self) -> None:
        """A token response without the secret is a parse error."""
        server = TokenServer("oauth_token=rt")
        with pytest.raises(ProtocolParseError) as excinfo:
            authorize("ck", "cs", transport=server.sync())
        assert excinfo.value.raw == "oauth_token=rt"

    def test_rejected(self) -> None:
        """An error status raises ApiError."""
        server = TokenServer(
            '{"errors":[{"code":32,"message":"Could not authenticate you."}]}',
            status_code=401,
        )
        with pytest.raises(ApiError) as excinfo:
            get_tokens(_make_session(), "bad", transport=server.sync())
        assert excinfo.value.errors[0].code == 32

    async def test_async_flow(self) -> None:
        """The asyncio variants run the same exchanges."""
        server = TokenServer(REQUEST_TOKEN_BODY)
        session = await async_authorize("ck", "cs", transport=server.asynchronous())
        assert session.request_token == "rt"
        server.body = ACCESS_TOKEN_BODY
        tokens = await async_get_tokens(session, "123456", transport=server.asynchronous())
        assert tokens.user_id == 6253282
        assert len(server.requests) == 2


# =========================================================================
# OAuth 2
# =========================================================================


class TestApplicationOnly:
    """Tests for get_bearer_token() and invalidate_bearer_token()."""

    def test_get_bearer_token(self) -> None:
        """Client credentials are posted with Basic authentication."""
        server = TokenServer('{"token_type":"bearer","access_token":"AAAA%2FBBBB"}')
        token = get_bearer_token("ck", "cs", transport=server.sync())
        request = server.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.twitter.com/oauth2/token"
        assert request.headers["Authorization"] == BASIC_CK_CS
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.content == b"grant_type=client_credentials"
        assert token == "AAAA%2FBBBB"

    def test_wrong_token_type(self) -> None:
        """A token of another type is rejected."""
        server = TokenServer('{"token_type":"mac","access_token":"x"}')
        with pytest.raises(ProtocolParseError):
            get_bearer_token("ck", "cs", transport=server.sync())

    def test_missing_access_token(self) -> None:
        """A response without access_token is rejected."""
        server = TokenServer('{"token_type":"bearer"}')
        with pytest.raises(ProtocolParseError):
            get_bearer_token("ck", "cs", transport=server.sync())

    def test_forbidden(self) -> None:
        """Invalid client credentials raise ApiError."""
        server = TokenServer(
            '{"errors":[{"code":99,"label":"authenticity_token_error",'
            '"message":"Unable to verify your credentials"}]}',
            status_code=403,
        )
        with pytest.raises(ApiError) as excinfo:
            get_bearer_token("ck", "cs", transport=server.sync())
        assert excinfo.value.status_code == 403
        assert excinfo.value.errors[0].message == "Unable to verify your credentials"

    def test_invalidate(self) -> None:
        """The token is posted to oauth2/invalidate_token."""
        server = TokenServer('{"access_token":"AAAA"}')
        assert invalidate_bearer_token("ck", "cs", "AAAA", transport=server.sync()) == "AAAA"
        request = server.requests[0]
        assert str(request.url) == "https://api.twitter.com/oauth2/invalidate_token"
        assert request.content == b"access_token=AAAA"
        assert request.headers["Authorization"] == BASIC_CK_CS

    async def test_async_variants(self) -> None:
        """The asyncio variants parse the same documents."""
        server = TokenServer('{"token_type":"bearer","access_token":"AAAA"}')
        assert await async_get_bearer_token("ck", "cs", transport=server.asynchronous()) == "AAAA"
        assert (
            await async_invalidate_bearer_token("ck", "cs", "AAAA", transport=server.asynchronous())
            == "AAAA"
        )
