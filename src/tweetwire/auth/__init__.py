"""tweetwire auth -- authorization-header strategies and token flows.

* :mod:`tweetwire.auth.oauth1` -- OAuth 1.0a HMAC-SHA1 request signing.
* :mod:`tweetwire.auth.bearer` -- ``Bearer`` and ``Basic`` headers.
* :mod:`tweetwire.auth.flows` -- three-legged OAuth 1.0a and OAuth 2
  client-credentials token flows.
"""
from __future__ import annotations

from tweetwire.auth.bearer import BasicAuthenticator, BearerAuthenticator
from tweetwire.auth.flows import (
    OUT_OF_BAND,
    OAuthSession,
    OAuthTokens,
    async_authorize,
    async_get_bearer_token,
    async_get_tokens,
    async_invalidate_bearer_token,
    authorize,
    get_bearer_token,
    get_tokens,
    invalidate_bearer_token,
)
from tweetwire.auth.oauth1 import (
    OAUTH_VERSION,
    SIGNATURE_METHOD,
    OAuth1Authenticator,
    OAuth1Credentials,
    collect_signature_parameters,
    format_authorization_header,
    generate_nonce,
    normalize_base_url,
    sign_hmac_sha1,
    signature_base_string,
    signing_key,
)
from tweetwire.params.encoding import percent_encode

__all__ = [
    # OAuth 1.0a
    "OAUTH_VERSION",
    "SIGNATURE_METHOD",
    "OAuth1Credentials",
    "OAuth1Authenticator",
    "percent_encode",
    "collect_signature_parameters",
    "normalize_base_url",
    "signature_base_string",
    "signing_key",
    "sign_hmac_sha1",
    "format_authorization_header",
    "generate_nonce",
    # Static headers
    "BearerAuthenticator",
    "BasicAuthenticator",
    # Flows
    "OUT_OF_BAND",
    "OAuthSession",
    "OAuthTokens",
    "authorize",
    "async_authorize",
    "get_tokens",
    "async_get_tokens",
    "get_bearer_token",
    "async_get_bearer_token",
    "invalidate_bearer_token",
    "async_invalidate_bearer_token",
]
