"""Conversion of caller parameter shapes into a :class:`ParameterList`.

Accepted shapes
---------------
* ``None`` -- no parameters.
* a :class:`~tweetwire.core.types.ParameterList` -- already normalized.
* any :class:`~tweetwire.core.interfaces.ParameterSource` (for example an
  :class:`~tweetwire.params.model.ApiParameters` model).
* a pydantic model -- declared fields, wire name from the field alias.
* a dataclass instance -- declared fields, wire name from
  ``field(metadata={"name": ...})``.
* a mapping, or an iterable of ``(key, value)`` pairs.

Keyword arguments are appended after the positional shape.  Values are
rendered with :func:`~tweetwire.params.values.format_value`; pairs whose
value renders to ``None`` are dropped.  Declaration order is preserved.
"""
from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import BaseModel

from tweetwire.core.errors import (
    InvalidParameterValue,
    NullArgument,
)
from tweetwire.core.interfaces import ParameterSource
from tweetwire.core.types import ParameterList
from tweetwire.params.encoding import percent_encode
from tweetwire.params.values import format_value

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


# ---------------------------------------------------------------------------
# Field reflection
# ---------------------------------------------------------------------------

def model_pairs(model: BaseModel) -> Iterator[tuple[str, Any]]:
    """Yield ``(wire name, value)`` for the declared fields of *model*.

    A field whose current value equals its declared default is skipped, so
    that only what the caller actually set goes on the wire.
    """
    for name, info in type(model).model_fields.items():
        value = getattr(model, name)
        if value is None:
            continue
        if not info.is_required() and value == info.get_default(call_default_factory=True):
            continue
        yield info.alias or name, value


def dataclass_pairs(instance: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(wire name, value)`` for the declared fields of a dataclass."""
    for field in dataclasses.fields(instance):
        value = getattr(instance, field.name)
        if value is None:
            continue
        if field.default is not dataclasses.MISSING and value == field.default:
            continue
        yield field.metadata.get("name", field.name), value


def _iter_pairs(params: Any) -> Iterable[tuple[Any, Any]]:
    if params is None:
        return ()
    if isinstance(params, ParameterList):
        return params
    if isinstance(params, ParameterSource):
        return params.to_parameters()
    if isinstance(params, BaseModel):
        return model_pairs(params)
    if dataclasses.is_dataclass(params) and not isinstance(params, type):
        return dataclass_pairs(params)
    if isinstance(params, Mapping):
        return params.items()
    if isinstance(params, (str, bytes)) or not isinstance(params, Iterable):
        raise InvalidParameterValue(
            f"Unsupported parameter container: {type(params).__name__}",
            details={"type": type(params).__name__},
        )
    return _checked_pairs(params)


def _checked_pairs(items: Iterable[Any]) -> Iterator[tuple[Any, Any]]:
    for item in items:
        if not isinstance(item, tuple) or len(item) != 2:
            raise InvalidParameterValue(
                "Parameter pairs must be (key, value) tuples",
                details={"item": repr(item)},
            )
        yield item


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize(params: Any = None, /, **kwargs: Any) -> ParameterList:
    """Return the normalized parameter list for *params* and *kwargs*.

    Raises
    ------
    NullArgument
        If a key is ``None``.
    InvalidParameterValue
        If a key is not a string or a value has no wire rendering.
    DuplicateParameter
        If the same key appears twice.
    """
    rendered: list[tuple[str, Any]] = []
    for source in (_iter_pairs(params), kwargs.items()):
        for key, value in source:
            if key is None:
                raise NullArgument("Parameter key is None")
            if not isinstance(key, str):
                raise InvalidParameterValue(
                    f"Parameter key must be a string, got {type(key).__name__}",
                    details={"key": repr(key)},
                )
            text = format_value(value)
            if text is not None:
                rendered.append((key, text))
    return ParameterList(rendered)


def extract_reserved(parameters: ParameterList, name: str) -> tuple[str, ParameterList]:
    """Remove the reserved key *name* and return its text and the remainder.

    Raises
    ------
    MissingReservedParameter
        If *name* is absent.
    InvalidParameterValue
        If its value is binary.
    """
    value, remaining = parameters.pop(name)
    if not isinstance(value, str):
        raise InvalidParameterValue(
            f"Path parameter {name!r} cannot be binary",
            details={"key": name},
        )
    return value, remaining


def expand_url_template(template: str, parameters: ParameterList) -> tuple[str, ParameterList]:
    """Substitute every ``{name}`` in *template* with its parameter value.

    The substituted values are percent-encoded and removed from the list,
    e.g. ``lists/{list_id}/members`` with ``list_id=7``.
    """
    names = _PLACEHOLDER_RE.findall(template)
    if not names:
        return template, parameters
    values: dict[str, str] = {}
    for name in names:
        if name in values:
            continue
        values[name], parameters = extract_reserved(parameters, name)
    url = _PLACEHOLDER_RE.sub(lambda m: percent_encode(values[m.group(1)]), template)
    return url, parameters

