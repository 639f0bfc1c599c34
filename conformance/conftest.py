"""Shared fixtures for tweetwire conformance tests.

Provides fixed credentials, a frozen clock and nonce, the parameters of
the golden request and a recording HTTP transport.
"""
from __future__ import annotations

import httpx
import pytest

from tweetwire.auth.oauth1 import OAuth1Authenticator, OAuth1Credentials
from tweetwire.core.types import ParameterList
from tweetwire.params.normalizer import normalize

# ---------------------------------------------------------------------------
# Fixed credentials
# ---------------------------------------------------------------------------
CONSUMER_KEY = "ck"
CONSUMER_SECRET = "cs"
ACCESS_TOKEN = "at"
ACCESS_TOKEN_SECRET = "ts"
FIXED_NONCE = "nonce"
FIXED_TIMESTAMP = 1700000000


# ---------------------------------------------------------------------------
# Credential fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def credentials() -> OAuth1Credentials:
    return OAuth1Credentials(
        consumer_key=CONSUMER_KEY,
        consumer_secret=CONSUMER_SECRET,
        access_token=ACCESS_TOKEN,
        access_token_secret=ACCESS_TOKEN_SECRET,
    )


@pytest.fixture()
def authenticator(credentials: OAuth1Credentials) -> OAuth1Authenticator:
    """An authenticator whose nonce and timestamp never change."""
    return OAuth1Authenticator(
        credentials,
        clock=lambda: float(FIXED_TIMESTAMP),
        nonce_factory=lambda: FIXED_NONCE,
    )


@pytest.fixture()
def golden_parameters() -> ParameterList:
    return normalize(status="hello world")


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def sent_requests() -> list[httpx.Request]:
    return []


@pytest.fixture()
def ok_transport(sent_requests: list[httpx.Request]) -> httpx.MockTransport:
    """A transport that records every request and answers ``{}``."""

    def handler(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return httpx.Response(200, text="{}")

    return httpx.MockTransport(handler)
