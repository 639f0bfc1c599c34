"""Token acquisition flows.

Three-legged OAuth 1.0a::

    session = authorize("consumer key", "consumer secret")
    print("Open", session.authorize_url)
    tokens = get_tokens(session, input("PIN: "))
    client = Client(OAuth1Authenticator(tokens.credentials))

OAuth 2 client credentials (application-only)::

    token = get_bearer_token("consumer key", "consumer secret")
    client = Client.from_bearer(token)

Each flow is split into an exchange builder and a response parser, shared
by the blocking function and its ``async_`` counterpart.
"""
from __future__ import annotations

import logging
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, SecretStr

from tweetwire.auth.bearer import BasicAuthenticator
from tweetwire.auth.oauth1 import OAuth1Authenticator, OAuth1Credentials
from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import ProtocolParseError
from tweetwire.core.types import MethodType, ParameterList
from tweetwire.params.normalizer import normalize
from tweetwire.response.classifier import decode_json, parse_form_response, raise_for_status
from tweetwire.transport.cancellation import CancelToken
from tweetwire.transport.exchange import HttpExchange, build_exchange
from tweetwire.transport.http import AsyncTransport, HttpResult, SyncTransport

logger = logging.getLogger(__name__)

OUT_OF_BAND = "oob"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class OAuthSession(BaseModel):
    """A request token waiting for the user's authorization."""

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: SecretStr
    request_token: str
    request_token_secret: SecretStr
    authorize_url: str


class OAuthTokens(BaseModel):
    """The access token obtained at the end of the three-legged flow."""

    model_config = ConfigDict(frozen=True)

    credentials: OAuth1Credentials
    user_id: int | None = None
    screen_name: str | None = None


def _secret(value: str | SecretStr) -> str:
    return value.get_secret_value() if isinstance(value, SecretStr) else value


def _oauth_url(options: ConnectionOptions, name: str) -> str:
    return options.get_url(options.api_url, name, needs_version=False)


def _require(form: dict[str, str], key: str, body: str) -> str:
    try:
        return form[key]
    except KeyError:
        raise ProtocolParseError(
            f"Token response has no {key!r} field",
            raw=body,
            details={"key": key},
        ) from None


# ---------------------------------------------------------------------------
# Exchange builders and parsers
# ---------------------------------------------------------------------------

def request_token_exchange(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    options: ConnectionOptions,
    *,
    callback: str = OUT_OF_BAND,
) -> HttpExchange:
    """The signed ``oauth/request_token`` request (no access token yet)."""
    authenticator = OAuth1Authenticator(
        OAuth1Credentials(consumer_key=consumer_key, consumer_secret=consumer_secret),
        oauth_extra={"oauth_callback": callback},
    )
    return build_exchange(
        MethodType.GET,
        _oauth_url(options, "oauth/request_token"),
        ParameterList(),
        authenticator,
        options,
    )


def parse_request_token(
    result: HttpResult,
    consumer_key: str,
    consumer_secret: str | SecretStr,
    options: ConnectionOptions,
) -> OAuthSession:
    raise_for_status(result.status_code, result.text, result.headers)
    form = parse_form_response(result.text)
    token = _require(form, "oauth_token", result.text)
    query = urlencode({"oauth_token": token})
    return OAuthSession(
        consumer_key=consumer_key,
        consumer_secret=_secret(consumer_secret),
        request_token=token,
        request_token_secret=_require(form, "oauth_token_secret", result.text),
        authorize_url=f"{_oauth_url(options, 'oauth/authorize')}?{query}",
    )


def access_token_exchange(
    session: OAuthSession,
    verifier: str,
    options: ConnectionOptions,
) -> HttpExchange:
    """The ``oauth/access_token`` request, signed with the request token."""
    authenticator = OAuth1Authenticator(
        OAuth1Credentials(
            consumer_key=session.consumer_key,
            consumer_secret=session.consumer_secret,
            access_token=session.request_token,
            access_token_secret=session.request_token_secret,
        ),
        oauth_extra={"oauth_verifier": verifier},
    )
    return build_exchange(
        MethodType.GET,
        _oauth_url(options, "oauth/access_token"),
        ParameterList(),
        authenticator,
        options,
    )


def parse_access_token(result: HttpResult, session: OAuthSession) -> OAuthTokens:
    raise_for_status(result.status_code, result.text, result.headers)
    form = parse_form_response(result.text)
    user_id = form.get("user_id")
    return OAuthTokens(
        credentials=OAuth1Credentials(
            consumer_key=session.consumer_key,
            consumer_secret=session.consumer_secret,
            access_token=_require(form, "oauth_token", result.text),
            access_token_secret=_require(form, "oauth_token_secret", result.text),
        ),
        user_id=int(user_id) if user_id and user_id.isdigit() else None,
        screen_name=form.get("screen_name"),
    )


def bearer_token_exchange(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    options: ConnectionOptions,
) -> HttpExchange:
    """The ``oauth2/token`` client-credentials request."""
    return build_exchange(
        MethodType.POST,
        _oauth_url(options, "oauth2/token"),
        normalize(grant_type="client_credentials"),
        BasicAuthenticator(consumer_key, consumer_secret),
        options,
    )


def parse_bearer_token(result: HttpResult) -> str:
    raise_for_status(result.status_code, result.text, result.headers)
    document = decode_json(result.text)
    token_type = document.get("token_type") if isinstance(document, dict) else None
    if token_type is not None and str(token_type).lower() != "bearer":
        raise ProtocolParseError(
            f"Unexpected token type {token_type!r}",
            raw=result.text,
            details={"token_type": token_type},
        )
    token = document.get("access_token") if isinstance(document, dict) else None
    if not isinstance(token, str):
        raise ProtocolParseError("Token response has no access_token", raw=result.text)
    return token


def invalidate_token_exchange(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    bearer_token: str,
    options: ConnectionOptions,
) -> HttpExchange:
    """The ``oauth2/invalidate_token`` request."""
    return build_exchange(
        MethodType.POST,
        _oauth_url(options, "oauth2/invalidate_token"),
        normalize(access_token=bearer_token),
        BasicAuthenticator(consumer_key, consumer_secret),
        options,
    )


def parse_invalidated_token(result: HttpResult) -> str:
    raise_for_status(result.status_code, result.text, result.headers)
    document = decode_json(result.text)
    token = document.get("access_token") if isinstance(document, dict) else None
    if not isinstance(token, str):
        raise ProtocolParseError("Invalidation response has no access_token", raw=result.text)
    return token


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

def _send(
    exchange: HttpExchange,
    options: ConnectionOptions,
    transport: SyncTransport | None,
    cancel: CancelToken | None,
) -> HttpResult:
    logger.debug("Token request %s", exchange.base_url)
    if transport is not None:
        return transport.send(exchange, options, cancel=cancel)
    transport = SyncTransport()
    try:
        return transport.send(exchange, options, cancel=cancel)
    finally:
        transport.close()


async def _async_send(
    exchange: HttpExchange,
    options: ConnectionOptions,
    transport: AsyncTransport | None,
    cancel: CancelToken | None,
) -> HttpResult:
    logger.debug("Token request %s", exchange.base_url)
    if transport is not None:
        return await transport.send(exchange, options, cancel=cancel)
    transport = AsyncTransport()
    try:
        return await transport.send(exchange, options, cancel=cancel)
    finally:
        await transport.aclose()


def authorize(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    *,
    callback: str = OUT_OF_BAND,
    options: ConnectionOptions | None = None,
    transport: SyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> OAuthSession:
    """Obtain a request token and the URL where the user authorizes it."""
    options = options or ConnectionOptions()
    exchange = request_token_exchange(consumer_key, consumer_secret, options, callback=callback)
    result = _send(exchange, options, transport, cancel)
    return parse_request_token(result, consumer_key, consumer_secret, options)


async def async_authorize(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    *,
    callback: str = OUT_OF_BAND,
    options: ConnectionOptions | None = None,
    transport: AsyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> OAuthSession:
    options = options or ConnectionOptions()
    exchange = request_token_exchange(consumer_key, consumer_secret, options, callback=callback)
    result = await _async_send(exchange, options, transport, cancel)
    return parse_request_token(result, consumer_key, consumer_secret, options)


def get_tokens(
    session: OAuthSession,
    verifier: str,
    *,
    options: ConnectionOptions | None = None,
    transport: SyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> OAuthTokens:
    """Exchange an authorized request token and its verifier (PIN) for an access token."""
    options = options or ConnectionOptions()
    result = _send(access_token_exchange(session, verifier, options), options, transport, cancel)
    return parse_access_token(result, session)


async def async_get_tokens(
    session: OAuthSession,
    verifier: str,
    *,
    options: ConnectionOptions | None = None,
    transport: AsyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> OAuthTokens:
    options = options or ConnectionOptions()
    result = await _async_send(
        access_token_exchange(session, verifier, options), options, transport, cancel
    )
    return parse_access_token(result, session)


def get_bearer_token(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    *,
    options: ConnectionOptions | None = None,
    transport: SyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> str:
    """Obtain an application-only bearer token."""
    options = options or ConnectionOptions()
    exchange = bearer_token_exchange(consumer_key, consumer_secret, options)
    return parse_bearer_token(_send(exchange, options, transport, cancel))


async def async_get_bearer_token(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    *,
    options: ConnectionOptions | None = None,
    transport: AsyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> str:
    options = options or ConnectionOptions()
    exchange = bearer_token_exchange(consumer_key, consumer_secret, options)
    return parse_bearer_token(await _async_send(exchange, options, transport, cancel))


def invalidate_bearer_token(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    bearer_token: str,
    *,
    options: ConnectionOptions | None = None,
    transport: SyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> str:
    """Revoke *bearer_token*; returns the token the server invalidated."""
    options = options or ConnectionOptions()
    exchange = invalidate_token_exchange(consumer_key, consumer_secret, bearer_token, options)
    return parse_invalidated_token(_send(exchange, options, transport, cancel))


async def async_invalidate_bearer_token(
    consumer_key: str,
    consumer_secret: str | SecretStr,
    bearer_token: str,
    *,
    options: ConnectionOptions | None = None,
    transport: AsyncTransport | None = None,
    cancel: CancelToken | None = None,
) -> str:
    options = options or ConnectionOptions()
    exchange = invalidate_token_exchange(consumer_key, consumer_secret, bearer_token, options)
    return parse_invalidated_token(await _async_send(exchange, options, transport, cancel))
