"""Static authorization strategies for OAuth 2 application-only access."""
from __future__ import annotations

import base64

from pydantic import SecretStr

from tweetwire.core.types import MethodType, ParameterList
from tweetwire.params.encoding import percent_encode


class BearerAuthenticator:
    """Sends ``Authorization: Bearer {token}`` on every request.

    The header does not depend on the request, so nothing is signed.
    """

    def __init__(self, token: str | SecretStr) -> None:
        self._token = token if isinstance(token, SecretStr) else SecretStr(token)

    def __repr__(self) -> str:
        return "BearerAuthenticator(token=SecretStr('**********'))"

    @property
    def token(self) -> str:
        return self._token.get_secret_value()

    def create_authorization_header(
        self,
        method: MethodType | str,
        url: str,
        parameters: ParameterList | None,
    ) -> str:
        return f"Bearer {self.token}"


class BasicAuthenticator:
    """Sends ``Authorization: Basic base64(key:secret)``.

    Only the OAuth 2 token endpoints accept this scheme.
    """

    def __init__(self, consumer_key: str, consumer_secret: str | SecretStr) -> None:
        secret = (
            consumer_secret.get_secret_value()
            if isinstance(consumer_secret, SecretStr)
            else consumer_secret
        )
        credentials = f"{percent_encode(consumer_key)}:{percent_encode(secret)}"
        self._header = "Basic " + base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        self.consumer_key = consumer_key

    def __repr__(self) -> str:
        return f"BasicAuthenticator(consumer_key={self.consumer_key!r})"

    def create_authorization_header(
        self,
        method: MethodType | str,
        url: str,
        parameters: ParameterList | None,
    ) -> str:
        return self._header
