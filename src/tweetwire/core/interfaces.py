"""tweetwire structural interfaces.

This module defines the *structural* interfaces (``typing.Protocol``)
through which the pipeline talks to pluggable collaborators: the
authorization-header strategy, caller-defined parameter objects, and
upload progress observers.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from tweetwire.core.types import MethodType, ParameterList


@runtime_checkable
class Authenticator(Protocol):
    """Produces the ``Authorization`` header of a request.

    Implementations: :class:`~tweetwire.auth.oauth1.OAuth1Authenticator`
    (per-request HMAC-SHA1 signature), :class:`~tweetwire.auth.bearer.
    BearerAuthenticator` (static application token) and
    :class:`~tweetwire.auth.bearer.BasicAuthenticator` (token endpoints).
    """

    def create_authorization_header(
        self,
        method: MethodType,
        url: str,
        parameters: ParameterList | None,
    ) -> str:
        """Return the header value for a request to *url*.

        *parameters* are the normalized parameters that take part in the
        signature, or ``None`` when the body is not signed (multipart and
        JSON bodies).  Query parameters already present in *url* are
        always part of the signature.
        """
        ...


@runtime_checkable
class ParameterSource(Protocol):
    """A caller-defined object that knows its own wire parameters."""

    def to_parameters(self) -> ParameterList:
        """Return the normalized parameters in declaration order."""
        ...


@runtime_checkable
class ProgressObserver(Protocol):
    """Receives upload progress for multipart bodies.

    Called from the same loop that produces the body chunks, after each
    chunk has been handed to the transport.
    """

    def __call__(self, sent: int, total: int | None) -> None:
        ...
