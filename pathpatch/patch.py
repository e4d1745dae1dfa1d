"""
Document partial modification (patch) module.

A patch is a mapping of key paths to values. Applying a patch to a value encodes the value
to a JSON object, stores each patch value at the location addressed by its key path, then
decodes the resulting object back to the type of the value. For example, the patch
{"profile.address.city": "Paris", "tags[2]": "new"} replaces the city of the profile
address and appends a third tag.

A patch is applied as a unit: if any key path or value cannot be applied, an error is
raised and the value being patched is unaffected.
"""

import dataclasses
import json
import logging

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from pathpatch.codec import DecodeError, Decoder, EncodeError, Encoder
from pathpatch.document import DocumentValue, to_document
from pathpatch.error import (
    DecodingFailedError,
    EncodingFailedError,
    InvalidKeyPathError,
    InvalidRootObjectError,
    PatchError,
    SerializationFailedError,
)
from pathpatch.keypath import parse
from pathpatch.reconcile import apply
from pathpatch.validation import ValidationError
from typing import Any


_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Configuration:
    """
    Configuration that controls how values are encoded to, and decoded from, JSON objects
    while applying a patch.

    Parameters:
    • encoder: object that encodes a value to a JSON object  [Encoder()]
    • decoder: object that decodes a value from a JSON object  [Decoder()]

    An encoder must provide an encode(value, python_type) method that raises EncodeError on
    failure; a decoder must provide a decode(value, python_type) method that raises
    DecodeError or ValidationError on failure.
    """

    encoder: Encoder = field(default_factory=Encoder)
    decoder: Decoder = field(default_factory=Decoder)


DEFAULT = Configuration()


def _encode(value: Any, python_type: Any, encoder: Encoder) -> dict[str, DocumentValue]:
    try:
        document = encoder.encode(value, python_type)
    except EncodeError as ee:
        raise EncodingFailedError(ee) from ee
    if not isinstance(document, dict):
        raise InvalidRootObjectError
    return document


def _decode(document: dict[str, DocumentValue], python_type: Any, decoder: Decoder) -> Any:
    try:
        return decoder.decode(document, python_type)
    except (DecodeError, ValidationError) as e:
        raise DecodingFailedError(e) from e


def _patch(value: Any, patch: Any, type: Any, configuration: Configuration) -> Any:
    if not isinstance(patch, Mapping):
        raise InvalidRootObjectError
    python_type = value.__class__ if type is None else type
    document = _encode(value, python_type, configuration.encoder)
    for key_path, patch_value in patch.items():
        try:
            if not isinstance(key_path, str):
                raise InvalidKeyPathError(key_path)
            components = parse(key_path)
            document = apply(to_document(patch_value), document, components, key_path)
        except PatchError as pe:
            _logger.debug("patch key path %r failed: %s", key_path, pe)
            raise
    if _logger.isEnabledFor(logging.DEBUG):
        _logger.debug("patch: applied %d edit(s) to %s", len(patch), python_type)
    return _decode(document, python_type, configuration.decoder)


def _read_json(data: bytes | bytearray) -> dict[str, Any]:
    try:
        patch = json.loads(data)
    except ValueError as ve:  # includes JSONDecodeError, UnicodeDecodeError
        raise SerializationFailedError(ve) from ve
    if not isinstance(patch, dict):
        raise InvalidRootObjectError
    return patch


def _encode_text(text: str, encoding: str) -> bytes:
    try:
        return text.encode(encoding)
    except (LookupError, ValueError) as e:  # unknown encoding, unencodable character
        raise SerializationFailedError(e) from e


def _assign(target: Any, source: Any) -> None:
    if dataclasses.is_dataclass(target):
        for f in dataclasses.fields(target):
            setattr(target, f.name, getattr(source, f.name))
    else:
        target.clear()
        target.update(source)


def _check_assignable(value: Any) -> None:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if value.__dataclass_params__.frozen:
            raise TypeError(f"cannot patch frozen dataclass in place: {value.__class__}")
    elif not isinstance(value, MutableMapping):
        raise TypeError(f"cannot patch in place: {value.__class__}")


def patch(
    value: Any,
    patch: Mapping[str, Any],
    *,
    type: Any = None,
    configuration: Configuration = DEFAULT,
) -> Any:
    """
    Return a new value, the result of applying a patch to a specified value.

    Parameters:
    • value: value to be patched
    • patch: mapping of key paths to values to store at them
    • type: type of value to be patched  [type of value]
    • configuration: encoder and decoder to use  [DEFAULT]

    Patch values must be JSON values: None, bool, int, float, str, or lists, tuples and
    mappings with str keys of such values. Storing None clears the addressed value.

    Raises a PatchError subclass if the patch cannot be applied.
    """
    return _patch(value, patch, type, configuration)


def patch_json(
    value: Any,
    data: bytes | bytearray,
    *,
    type: Any = None,
    configuration: Configuration = DEFAULT,
) -> Any:
    """
    Return a new value, the result of applying a patch represented as a JSON object in a
    byte sequence. JSON text encoded in UTF-8, UTF-16 or UTF-32 is accepted.

    Parameters:
    • value: value to be patched
    • data: JSON object of key paths to values to store at them
    • type: type of value to be patched  [type of value]
    • configuration: encoder and decoder to use  [DEFAULT]
    """
    return _patch(value, _read_json(data), type, configuration)


def patch_json_string(
    value: Any,
    text: str,
    *,
    encoding: str = "utf-8",
    type: Any = None,
    configuration: Configuration = DEFAULT,
) -> Any:
    """
    Return a new value, the result of applying a patch represented as a JSON object in a
    string.

    Parameters:
    • value: value to be patched
    • text: JSON object of key paths to values to store at them
    • encoding: text encoding used to convert text to bytes before parsing  ["utf-8"]
    • type: type of value to be patched  [type of value]
    • configuration: encoder and decoder to use  [DEFAULT]
    """
    return _patch(value, _read_json(_encode_text(text, encoding)), type, configuration)


def apply_patch(
    value: Any,
    patch: Mapping[str, Any],
    *,
    type: Any = None,
    configuration: Configuration = DEFAULT,
) -> None:
    """
    Apply a patch to a value in place.

    The value must be a mutable dataclass instance or a mutable mapping. It is only modified
    once the whole patch has been applied successfully; if an error is raised, the value is
    unaffected. See the patch function for parameters.
    """
    _check_assignable(value)
    _assign(value, _patch(value, patch, type, configuration))


def apply_patch_json(
    value: Any,
    data: bytes | bytearray,
    *,
    type: Any = None,
    configuration: Configuration = DEFAULT,
) -> None:
    """Apply a patch represented as a JSON object in a byte sequence to a value in place."""
    _check_assignable(value)
    _assign(value, _patch(value, _read_json(data), type, configuration))


def apply_patch_json_string(
    value: Any,
    text: str,
    *,
    encoding: str = "utf-8",
    type: Any = None,
    configuration: Configuration = DEFAULT,
) -> None:
    """Apply a patch represented as a JSON object in a string to a value in place."""
    _check_assignable(value)
    _assign(value, _patch(value, _read_json(_encode_text(text, encoding)), type, configuration))
