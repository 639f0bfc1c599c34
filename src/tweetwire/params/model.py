"""Declarative parameter objects.

Subclass :class:`ApiParameters` to describe the parameters of an
endpoint once, with types, defaults and wire names::

    class SearchParameters(ApiParameters):
        q: str
        count: int = 15
        until: date | None = None
        include_entities: bool = Field(default=True, alias="include_entities")

    client.get("search/tweets", SearchParameters(q="python", count=100))

Only fields whose value differs from the declared default are sent.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from tweetwire.core.types import ParameterList
from tweetwire.params.normalizer import model_pairs, normalize


class ApiParameters(BaseModel):
    """Base class of caller-defined parameter objects.

    Field aliases are the wire names; instances may also be populated by
    field name.  Instances are immutable and implement
    :class:`~tweetwire.core.interfaces.ParameterSource`.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_parameters(self) -> ParameterList:
        """Return the normalized parameters in field declaration order."""
        return normalize(list(model_pairs(self)))
