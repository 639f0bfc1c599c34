"""RFC 3986 percent-encoding and query-string helpers.

Both the OAuth signature and the wire encoding escape every byte outside
the unreserved set (``A-Z a-z 0-9 - _ . ~``) as ``%XX`` with upper-case
hex digits, UTF-8 first.  ``urllib.parse.quote`` with an empty safe set
produces exactly that.
"""
from __future__ import annotations

from collections.abc import Iterable
from urllib.parse import quote, unquote

UNRESERVED_CHARACTERS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.~"
)


def percent_encode(text: str | None) -> str:
    """Percent-encode *text* over the RFC 3986 unreserved character set.

    ``None`` and the empty string both encode to ``""``.
    """
    if not text:
        return ""
    return quote(text, safe="", encoding="utf-8", errors="strict")


def percent_decode(text: str) -> str:
    """Inverse of :func:`percent_encode` (``+`` is *not* treated as a space)."""
    return unquote(text, encoding="utf-8", errors="strict")


def create_query_string(pairs: Iterable[tuple[str, str]]) -> str:
    """Join *pairs* as ``key=value`` with ``&``, both sides percent-encoded."""
    return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in pairs)


def parse_query_string(query: str) -> list[tuple[str, str]]:
    """Split a query string produced by :func:`create_query_string`.

    Empty segments are ignored; a segment without ``=`` yields an empty
    value.  A leading ``?`` is tolerated.
    """
    if query.startswith("?"):
        query = query[1:]
    pairs: list[tuple[str, str]] = []
    for segment in query.split("&"):
        if not segment:
            continue
        key, _, value = segment.partition("=")
        pairs.append((percent_decode(key), percent_decode(value)))
    return pairs
