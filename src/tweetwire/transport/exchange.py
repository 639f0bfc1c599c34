"""Transport selection and wire-request construction.

:func:`build_exchange` is a pure function: headers, the signature and
the body are all fixed before a single byte is sent, so the signature is
never computed over a partially serialized body.

Encoding rules
--------------
* ``GET`` and ``DELETE`` -- parameters in the query string, no body.
* ``POST`` and ``PUT`` with a binary payload -- ``multipart/form-data``;
  the body parameters are not signed.
* ``POST`` and ``PUT`` with a JSON document -- ``application/json``; the
  parameters go to the query string and only they are signed.
* otherwise -- ``application/x-www-form-urlencoded``, signed.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import InvalidParameterValue
from tweetwire.core.interfaces import Authenticator, ProgressObserver
from tweetwire.core.types import BodyEncoding, MethodType, ParameterList
from tweetwire.params.encoding import create_query_string
from tweetwire.transport.multipart import MultipartBody

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class HttpExchange:
    """A fully prepared request, sent exactly once."""

    method: MethodType
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    encoding: BodyEncoding = BodyEncoding.QUERY
    content: bytes | MultipartBody | None = None

    @property
    def base_url(self) -> str:
        """The URL without its query string."""
        return self.url.split("?", 1)[0]


def append_query(url: str, query: str) -> str:
    """Append *query* to *url*, respecting a query that is already present."""
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def _common_headers(options: ConnectionOptions) -> dict[str, str]:
    headers = {
        "User-Agent": options.user_agent,
        "Accept-Encoding": "gzip, deflate" if options.use_compression else "identity",
    }
    if options.disable_keep_alive:
        headers["Connection"] = "close"
    return headers


def select_encoding(
    method: MethodType,
    parameters: ParameterList,
    json_body: Any = None,
) -> BodyEncoding:
    """Decide how *parameters* travel for *method*.

    Raises
    ------
    InvalidParameterValue
        If binary data or a JSON document is given for a query-string method.
    """
    if method.uses_query:
        if parameters.has_binary:
            raise InvalidParameterValue(
                f"Binary parameters cannot be sent with {method}",
                details={"method": str(method)},
            )
        if json_body is not None:
            raise InvalidParameterValue(
                f"A JSON body cannot be sent with {method}",
                details={"method": str(method)},
            )
        return BodyEncoding.QUERY
    if json_body is not None:
        if parameters.has_binary:
            raise InvalidParameterValue(
                "Binary parameters cannot be combined with a JSON body",
            )
        return BodyEncoding.JSON
    if parameters.has_binary:
        return BodyEncoding.MULTIPART
    return BodyEncoding.FORM


def build_exchange(
    method: MethodType | str,
    url: str,
    parameters: ParameterList,
    authenticator: Authenticator,
    options: ConnectionOptions,
    *,
    json_body: Any = None,
    observer: ProgressObserver | None = None,
) -> HttpExchange:
    """Build the signed wire request for one call.

    Parameters
    ----------
    method:
        The HTTP method.
    url:
        The endpoint URL, possibly with a query string of its own.
    parameters:
        The normalized parameters.
    authenticator:
        Produces the ``Authorization`` header.
    options:
        The connection snapshot of this call (user agent, compression,
        keep-alive).
    json_body:
        A JSON-serializable document to send instead of a form body.
    observer:
        Upload progress observer, used for multipart bodies only.

    Returns
    -------
    HttpExchange
        The request, ready to be sent.
    """
    method = MethodType(str(method).upper())
    encoding = select_encoding(method, parameters, json_body)
    headers = _common_headers(options)
    content: bytes | MultipartBody | None = None

    if encoding is BodyEncoding.QUERY:
        headers["Authorization"] = authenticator.create_authorization_header(
            method, url, parameters
        )
        url = append_query(url, create_query_string(parameters.text_items()))
    elif encoding is BodyEncoding.JSON:
        url = append_query(url, create_query_string(parameters.text_items()))
        headers["Authorization"] = authenticator.create_authorization_header(
            method, url, None
        )
        headers["Content-Type"] = JSON_CONTENT_TYPE
        content = json.dumps(json_body, ensure_ascii=False).encode("utf-8")
    elif encoding is BodyEncoding.MULTIPART:
        headers["Authorization"] = authenticator.create_authorization_header(
            method, url, None
        )
        body = MultipartBody(parameters, observer=observer)
        headers.update(body.headers)
        content = body
    else:
        headers["Authorization"] = authenticator.create_authorization_header(
            method, url, parameters
        )
        headers["Content-Type"] = FORM_CONTENT_TYPE
        content = create_query_string(parameters.text_items()).encode("ascii")

    return HttpExchange(
        method=method,
        url=url,
        headers=headers,
        encoding=encoding,
        content=content,
    )
