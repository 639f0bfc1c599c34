"""tweetwire params -- the parameter normalizer.

Turns caller parameter shapes (mappings, pairs, keyword arguments,
declarative models, dataclasses) into an ordered
:class:`~tweetwire.core.types.ParameterList` of wire text and binary
payloads.

* :mod:`tweetwire.params.values` -- per-type textual rendering.
* :mod:`tweetwire.params.encoding` -- RFC 3986 percent-encoding.
* :mod:`tweetwire.params.normalizer` -- shape conversion and reserved
  URL-segment extraction.
* :mod:`tweetwire.params.model` -- :class:`ApiParameters`.
"""
from __future__ import annotations

from tweetwire.params.encoding import (
    create_query_string,
    parse_query_string,
    percent_decode,
    percent_encode,
)
from tweetwire.params.model import ApiParameters
from tweetwire.params.normalizer import (
    dataclass_pairs,
    expand_url_template,
    extract_reserved,
    model_pairs,
    normalize,
)
from tweetwire.params.values import (
    Iso8601,
    enum_wire_name,
    format_datetime,
    format_decimal,
    format_flag,
    format_float,
    format_iso8601,
    format_scalar,
    format_sequence,
    format_value,
    to_payload,
)

__all__ = [
    # Encoding
    "percent_encode",
    "percent_decode",
    "create_query_string",
    "parse_query_string",
    # Normalizer
    "normalize",
    "extract_reserved",
    "expand_url_template",
    "model_pairs",
    "dataclass_pairs",
    "ApiParameters",
    # Values
    "Iso8601",
    "format_value",
    "format_scalar",
    "format_sequence",
    "format_float",
    "format_decimal",
    "format_datetime",
    "format_iso8601",
    "format_flag",
    "enum_wire_name",
    "to_payload",
]
