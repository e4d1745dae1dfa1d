"""
Patch reconciliation module.

Applies a single edit, addressed by key path components, to a JSON document tree. The tree
is never modified in place: every container on the path to the edit is copied, and the
copies are assembled into a new tree that shares all untouched values with the original.
"""

import json

from collections.abc import Sequence
from pathpatch.document import DocumentValue
from pathpatch.error import IndexOutOfBoundsError, InvalidKeyPathError
from pathpatch.keypath import Component, Index, Key


def sanitize(value: DocumentValue, existing: DocumentValue) -> DocumentValue:
    """
    Return the value to store in place of an existing value.

    When the existing value is a string, a replacement value that is neither a string nor
    None is stored as its JSON text; for example, 35 is stored as "35" and True as "true".
    None replaces any existing value verbatim. Replacements of other existing values are
    stored unchanged.
    """
    if isinstance(existing, str) and value is not None and not isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return value


def _apply(value, current, components, key_path):
    if not components:
        return sanitize(value, current)

    component, rest = components[0], components[1:]

    match component:
        case Key(name=name):
            if current is None:
                current = {}
            elif not isinstance(current, dict):
                raise InvalidKeyPathError(key_path)
            result = dict(current)
            result[name] = _apply(value, current.get(name), rest, key_path)
            return result

        case Index(position=index):
            if index < 0:
                raise InvalidKeyPathError(key_path)
            if current is None:
                current = []
            elif not isinstance(current, list):
                raise InvalidKeyPathError(key_path)
            if index > len(current):
                raise IndexOutOfBoundsError(key_path, index)
            result = list(current)
            if index == len(current):
                result.append(_apply(value, None, rest, key_path))
            else:
                result[index] = _apply(value, current[index], rest, key_path)
            return result

    raise InvalidKeyPathError(key_path)


def apply(
    value: DocumentValue,
    to: DocumentValue,
    components: Sequence[Component],
    key_path: str,
) -> DocumentValue:
    """
    Return a new document with a value stored at the location addressed by key path
    components.

    Parameters:
    • value: value to store
    • to: document to apply the value to
    • components: parsed components of the key path
    • key_path: key path from which components were parsed, to report in errors

    Missing or None containers on the path are created: an object for a Key component, an
    array for an Index component. An Index component may address an existing element, or
    the position one past the end of an array to append an element.

    Raises InvalidKeyPathError if a component addresses a value of the wrong type, and
    IndexOutOfBoundsError if an index is more than one past the end of an array.
    """
    return _apply(value, to, tuple(components), key_path)
