"""
JSON document module.

A document is a tree of JSON values: None, bool, int, float, str, list of documents, or dict
of str keys to documents.
"""

import math

from collections.abc import Mapping
from pathpatch.error import SerializationFailedError
from typing import Any, TypeAlias


DocumentValue: TypeAlias = (
    None | bool | int | float | str | list["DocumentValue"] | dict[str, "DocumentValue"]
)


def _convert(value: Any, path: list[str | int]) -> DocumentValue:
    if value is None or isinstance(value, bool | int | str):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"non-finite number has no JSON representation at {path}")
        return value
    if isinstance(value, Mapping):
        result = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"object key {k!r} is not a string at {path}")
            result[k] = _convert(v, path + [k])
        return result
    if isinstance(value, list | tuple):
        return [_convert(v, path + [n]) for n, v in enumerate(value)]
    raise TypeError(f"{type(value).__name__} has no JSON representation at {path}")


def to_document(value: Any) -> DocumentValue:
    """
    Return a new document tree representing the specified value.

    Mappings with str keys become objects, lists and tuples become arrays; the tree shares
    no containers with the value. Raises SerializationFailedError if the value, or any value
    it contains, has no JSON representation.
    """
    try:
        return _convert(value, [])
    except (TypeError, RecursionError) as e:
        raise SerializationFailedError(e) from e
