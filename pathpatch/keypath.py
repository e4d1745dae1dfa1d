"""
Key path module.

A key path addresses a value within a JSON document. It is a sequence of keys separated by
".", where a key may be followed by one or more "[n]" array index suffixes. A "." always
terminates a non-empty key, so an index suffix is followed by another suffix, by more key
characters, or by the end of the path.
Examples: "name", "profile.address.city", "tags[1]", "matrix[0][2]", "items[0]name".
"""

from dataclasses import dataclass
from pathpatch.error import InvalidKeyPathError


_DIGITS = frozenset("0123456789")


@dataclass(frozen=True, slots=True)
class Key:
    """Key path component that addresses an object member by name."""

    name: str


@dataclass(frozen=True, slots=True)
class Index:
    """Key path component that addresses an array element by position."""

    position: int


Component = Key | Index


def parse(key_path: str) -> tuple[Component, ...]:
    """
    Parse a key path into its components.

    Parameters:
    • key_path: key path to parse

    The first component of a valid key path is always a Key. Raises InvalidKeyPathError,
    carrying the key path verbatim, if the key path is not valid.
    """

    if not isinstance(key_path, str) or not key_path or key_path.endswith("."):
        raise InvalidKeyPathError(key_path)

    components = []
    key = []
    digits = []
    in_index = False

    for char in key_path:
        if in_index:
            if char == "]":
                if not digits:
                    raise InvalidKeyPathError(key_path)
                components.append(Index(int("".join(digits))))
                digits.clear()
                in_index = False
            elif char in _DIGITS:
                digits.append(char)
            else:
                raise InvalidKeyPathError(key_path)
            continue
        match char:
            case ".":
                if not key:  # empty segment
                    raise InvalidKeyPathError(key_path)
                components.append(Key("".join(key)))
                key.clear()
            case "[":
                if key:
                    components.append(Key("".join(key)))
                    key.clear()
                in_index = True
            case "]":
                raise InvalidKeyPathError(key_path)
            case _:
                key.append(char)

    if in_index:
        raise InvalidKeyPathError(key_path)
    if key:
        components.append(Key("".join(key)))

    if not components or not isinstance(components[0], Key):
        raise InvalidKeyPathError(key_path)

    return tuple(components)
