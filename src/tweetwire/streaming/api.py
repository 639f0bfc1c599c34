"""Streaming endpoints: URL, method and required predicates per stream kind."""
from __future__ import annotations

import enum
from dataclasses import dataclass

from tweetwire.core.config import ConnectionOptions
from tweetwire.core.errors import MissingRequiredParameter, NullArgument
from tweetwire.core.types import MethodType, ParameterList

FILTER_PREDICATES = ("follow", "track", "locations")


class StreamingType(enum.StrEnum):
    """The kinds of streaming connection."""

    USER = "user"
    SITE = "site"
    FILTER = "filter"
    SAMPLE = "sample"
    FIREHOSE = "firehose"


@dataclass(frozen=True, slots=True)
class StreamEndpoint:
    method: MethodType
    url: str


def resolve_stream_endpoint(kind: StreamingType | str, options: ConnectionOptions) -> StreamEndpoint:
    """Return the method and URL of a stream kind under *options*.

    ``filter`` is the only kind opened with ``POST``.
    """
    kind = StreamingType(kind)
    if kind is StreamingType.USER:
        base, name = options.user_stream_url, "user.json"
    elif kind is StreamingType.SITE:
        base, name = options.site_stream_url, "site.json"
    elif kind is StreamingType.FILTER:
        base, name = options.stream_url, "statuses/filter.json"
    elif kind is StreamingType.SAMPLE:
        base, name = options.stream_url, "statuses/sample.json"
    else:
        base, name = options.stream_url, "statuses/firehose.json"
    method = MethodType.POST if kind is StreamingType.FILTER else MethodType.GET
    return StreamEndpoint(method, options.get_url(base, name))


def validate_stream_parameters(kind: StreamingType | str, parameters: ParameterList) -> None:
    """Check the parameters a stream kind cannot be opened without.

    Raises
    ------
    MissingRequiredParameter
        A ``filter`` stream without ``follow``, ``track`` or ``locations``.
    NullArgument
        A ``site`` stream without ``follow``.
    """
    kind = StreamingType(kind)
    keys = set(parameters.keys())
    if kind is StreamingType.FILTER and not keys.intersection(FILTER_PREDICATES):
        raise MissingRequiredParameter(
            "At least one predicate parameter (follow, locations, or track) "
            "must be specified.",
            details={"kind": str(kind)},
        )
    if kind is StreamingType.SITE and "follow" not in keys:
        raise NullArgument(
            "A site stream requires the follow parameter",
            details={"kind": str(kind)},
        )
