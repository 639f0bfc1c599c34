"""OAuth 1.0a request signing (HMAC-SHA1).

Every call made with user or application credentials carries a fresh
signature computed over the request method, the base URL and the sorted,
percent-encoded parameter set:

1. The OAuth baseline parameters are generated: ``oauth_consumer_key``,
   ``oauth_nonce``, ``oauth_signature_method`` (``HMAC-SHA1``),
   ``oauth_timestamp``, ``oauth_version`` (``1.0``) and ``oauth_token``
   when an access token is held.
2. They are merged with the request parameters and the query parameters
   already present in the URL; every key and value is percent-encoded.
3. The pairs are sorted by encoded key, then by encoded value.
4. The base string is ``METHOD&enc(base URL)&enc(k1=v1&k2=v2...)``.
5. The key is ``enc(consumer secret)&enc(token secret)``.
6. The signature is the base64 HMAC-SHA1 digest.
7. The header is ``OAuth`` followed by every ``key="value"`` pair.

The pure helpers below are exposed individually so that each step can be
checked against known vectors.  Signing holds no mutable state, so one
authenticator may sign concurrent requests without locking.
"""
from __future__ import annotations

import base64
import hashlib
import hmac as _hmac
import secrets
import time
from collections.abc import Callable, Iterable, Mapping
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel, ConfigDict, SecretStr

from tweetwire.core.types import MethodType, ParameterList
from tweetwire.params.encoding import percent_encode

OAUTH_VERSION = "1.0"
SIGNATURE_METHOD = "HMAC-SHA1"

_DEFAULT_PORTS = {"http": 80, "https": 443}


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class OAuth1Credentials(BaseModel):
    """Consumer credentials, optionally with a user access token.

    Secrets are held as :class:`~pydantic.SecretStr` so that ``repr()``
    and logging never reveal them.
    """

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: SecretStr
    access_token: str | None = None
    access_token_secret: SecretStr | None = None

    @property
    def token_secret(self) -> str:
        """The access token secret, or ``""`` when no token is held."""
        if self.access_token_secret is None:
            return ""
        return self.access_token_secret.get_secret_value()


def generate_nonce() -> str:
    """Return a fresh 128-bit random nonce as hex text."""
    return secrets.token_hex(16)


# ---------------------------------------------------------------------------
# Pure signing steps
# ---------------------------------------------------------------------------

def normalize_base_url(url: str) -> str:
    """Return the scheme, host, port and path of *url* for the base string.

    Scheme and host are lower-cased, the port is kept only when it is not
    the scheme's default, and the query and fragment are dropped.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    port = parts.port
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"
    return f"{scheme}://{host}{parts.path or '/'}"


def collect_signature_parameters(
    url: str,
    parameters: Iterable[tuple[str, str]],
    oauth_parameters: Mapping[str, str],
) -> list[tuple[str, str]]:
    """Merge, percent-encode and sort every pair that takes part in the signature.

    Parameters
    ----------
    url:
        The request URL; its query pairs are included.
    parameters:
        The request parameters sent in the query string or form body.
    oauth_parameters:
        The ``oauth_*`` parameters (without ``oauth_signature``).

    Returns
    -------
    list[tuple[str, str]]
        Encoded pairs ordered by key, then value.
    """
    query = urlsplit(url).query
    merged = [
        *parse_qsl(query, keep_blank_values=True),
        *parameters,
        *oauth_parameters.items(),
    ]
    return sorted((percent_encode(k), percent_encode(v)) for k, v in merged)


def signature_base_string(
    method: str,
    url: str,
    encoded_pairs: Iterable[tuple[str, str]],
) -> str:
    """Build ``METHOD&enc(base URL)&enc(sorted pairs)``."""
    joined = "&".join(f"{k}={v}" for k, v in encoded_pairs)
    return "&".join(
        [method.upper(), percent_encode(normalize_base_url(url)), percent_encode(joined)]
    )


def signing_key(consumer_secret: str, token_secret: str | None = None) -> str:
    """Build ``enc(consumer secret)&enc(token secret)``."""
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"


def sign_hmac_sha1(base_string: str, key: str) -> str:
    """Return the base64 HMAC-SHA1 digest of *base_string* under *key*."""
    digest = _hmac.new(
        key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def format_authorization_header(oauth_parameters: Mapping[str, str]) -> str:
    """Render ``OAuth k1="v1", k2="v2"`` with keys in sorted order."""
    fields = ", ".join(
        f'{percent_encode(k)}="{percent_encode(v)}"'
        for k, v in sorted(oauth_parameters.items())
    )
    return f"OAuth {fields}"


# ---------------------------------------------------------------------------
# Authenticator
# ---------------------------------------------------------------------------

class OAuth1Authenticator:
    """Signs every request with OAuth 1.0a HMAC-SHA1.

    Parameters
    ----------
    credentials:
        Consumer credentials and the optional access token.
    clock:
        Returns the current time in seconds since the epoch.
    nonce_factory:
        Returns a fresh nonce per request.
    oauth_extra:
        Additional ``oauth_*`` parameters sent in the header and signed,
        e.g. ``oauth_callback`` or ``oauth_verifier`` during the token
        exchange.
    """

    def __init__(
        self,
        credentials: OAuth1Credentials,
        *,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = generate_nonce,
        oauth_extra: Mapping[str, str] | None = None,
    ) -> None:
        self.credentials = credentials
        self._clock = clock
        self._nonce_factory = nonce_factory
        self._oauth_extra = dict(oauth_extra or {})

    def __repr__(self) -> str:
        return f"OAuth1Authenticator(consumer_key={self.credentials.consumer_key!r})"

    def oauth_parameters(self) -> dict[str, str]:
        """Generate the unsigned ``oauth_*`` parameters for one request."""
        params = {
            "oauth_consumer_key": self.credentials.consumer_key,
            "oauth_nonce": self._nonce_factory(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(int(self._clock())),
            "oauth_version": OAUTH_VERSION,
        }
        if self.credentials.access_token:
            params["oauth_token"] = self.credentials.access_token
        params.update(self._oauth_extra)
        return params

    def sign(
        self,
        method: MethodType | str,
        url: str,
        parameters: ParameterList | None,
        oauth_parameters: Mapping[str, str],
    ) -> str:
        """Return the signature of one request given its ``oauth_*`` parameters."""
        pairs = parameters.text_items() if parameters is not None else []
        base = signature_base_string(
            str(method),
            url,
            collect_signature_parameters(url, pairs, oauth_parameters),
        )
        key = signing_key(
            self.credentials.consumer_secret.get_secret_value(),
            self.credentials.token_secret,
        )
        return sign_hmac_sha1(base, key)

    def create_authorization_header(
        self,
        method: MethodType | str,
        url: str,
        parameters: ParameterList | None,
    ) -> str:
        """Return the ``OAuth ...`` header for one request.

        *parameters* is ``None`` for bodies that are not signed (multipart
        and JSON); the URL query pairs are always signed.
        """
        oauth = self.oauth_parameters()
        oauth["oauth_signature"] = self.sign(method, url, parameters, oauth)
        return format_authorization_header(oauth)
