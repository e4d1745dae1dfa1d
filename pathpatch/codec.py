"""Module to encode Python values to, and decode them from, their JSON representations."""

import contextvars
import dataclasses
import enum
import inspect
import iso8601
import keyword
import pathpatch.validation
import typing

from collections.abc import Iterable, Mapping, Set
from contextlib import contextmanager, suppress
from datetime import date, datetime, timezone
from pathpatch.types import is_optional, is_subclass, strip_annotations
from pathpatch.validation import validate_arguments
from types import NoneType, UnionType
from typing import Any, Generic, TypeVar, Union, get_args, get_origin


JSONType = Any


# ----- date strategy -----


class DateStrategy(enum.Enum):
    """
    Representation of datetime values in JSON.

    • ISO8601: RFC 3339 formatted string in UTC; example: "2020-04-07T12:34:56.789012Z"
    • SECONDS: number of seconds since the Unix epoch
    • MILLISECONDS: number of milliseconds since the Unix epoch
    """

    ISO8601 = "iso8601"
    SECONDS = "seconds"
    MILLISECONDS = "milliseconds"


_date_strategy = contextvars.ContextVar("_pathpatch_date_strategy", default=DateStrategy.ISO8601)


@contextmanager
def _strategy(date_strategy: DateStrategy):
    token = _date_strategy.set(date_strategy)
    try:
        yield
    finally:
        _date_strategy.reset(token)


# ----- utilities -----


@contextmanager
def _wrap(exception):
    try:
        yield
    except Exception as e:
        if isinstance(e, exception):
            raise
        raise exception from e


# ----- errors -----


class CodecError(ValueError):
    """
    Base class for errors raised in the event that a value cannot be encoded or decoded.
    """

    __slots__ = {"message", "path"}

    def __init__(self, message: str | None = None, path: list[str | int] | None = None):
        self.message = message
        self.path = path

    def __repr__(self):
        return f"{self.__class__.__name__}({self.message!r}, {self.path!r})"

    def __str__(self):
        return " ".join(str(s) for s in (self.message, self.path) if s is not None)

    @staticmethod
    @contextmanager
    def path_on_error(path: list[str | int] | str | int):
        """Context manager to add to error path in the event that a CodecError is raised."""
        try:
            yield
        except CodecError as ce:
            if ce.path is None:
                ce.path = []
            match path:
                case str() | int():
                    ce.path.insert(0, path)
                case list():
                    ce.path = path + ce.path
            raise


class EncodeError(CodecError):
    """Error raised in the event that a value cannot be encoded."""


class DecodeError(CodecError):
    """Error raised in the event that a value cannot be decoded."""


# ----- base -----


PT = TypeVar("PT")  # Python type hint


class JSONCodec(Generic[PT]):
    """
    Base class for codecs that encode Python values to, and decode them from, JSON values.

    A JSON value is one of: None, bool, int, float, str, list of JSON values, or dict of str
    keys to JSON values.
    """

    _cache = {}

    def __init__(self, python_type: Any):
        self.python_type = python_type

    @staticmethod
    def handles(python_type: Any) -> bool:
        """Return True if the codec handles the specified Python type."""
        raise NotImplementedError

    @classmethod
    def get(cls, python_type: Any) -> "JSONCodec[PT]":
        """Return a codec that handles the specified Python type."""
        with suppress(KeyError, TypeError):  # TypeError: unhashable type hint
            return JSONCodec._cache[python_type]
        for codec_class in JSONCodec.__subclasses__():
            if codec_class.handles(python_type):
                codec = codec_class(python_type)
                with suppress(TypeError):
                    JSONCodec._cache[python_type] = codec
                return codec
        raise TypeError(f"no codec for {python_type}")

    def encode(self, value: PT) -> JSONType:
        """Encode value from Python type to JSON value."""
        raise NotImplementedError

    def decode(self, value: JSONType) -> PT:
        """Decode value from JSON value to Python type."""
        raise NotImplementedError


# ----- Enum -----


class EnumJSONCodec(JSONCodec[enum.Enum]):
    """JSON codec for enumerations. A member is represented in JSON by its value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, enum.Enum)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)

    def encode(self, value: enum.Enum) -> JSONType:
        if not isinstance(value, self.raw_type):
            raise EncodeError
        return value.value

    def decode(self, value: JSONType) -> enum.Enum:
        with _wrap(DecodeError):
            return self.raw_type(value)


# ----- str -----


class StrJSONCodec(JSONCodec[str]):
    """JSON codec for Unicode character strings."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, str)

    def encode(self, value: str) -> JSONType:
        if not isinstance(value, str):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> str:
        if not isinstance(value, str):
            raise DecodeError
        return value


# ----- int -----


class IntJSONCodec(JSONCodec[int]):
    """JSON codec for integers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, int) and not is_subclass(python_type, bool)

    def encode(self, value: int) -> JSONType:
        if not isinstance(value, int) or isinstance(value, bool):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> int:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError
        result = value
        if isinstance(result, float):
            with _wrap(DecodeError):
                result = int(result)
            if result != value:  # 1.0 == 1
                raise DecodeError
        return result


# ----- float -----


class FloatJSONCodec(JSONCodec[float]):
    """JSON codec for floating point numbers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, float)

    def encode(self, value: float) -> JSONType:
        if not isinstance(value, float):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> float:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError
        return float(value)


# ----- bool -----


class BoolJSONCodec(JSONCodec[bool]):
    """JSON codec for boolean values."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, bool)

    def encode(self, value: bool) -> JSONType:
        if not isinstance(value, bool):
            raise EncodeError
        return value

    def decode(self, value: JSONType) -> bool:
        if not isinstance(value, bool):
            raise DecodeError
        return value


# ----- NoneType -----


class NoneTypeJSONCodec(JSONCodec[NoneType]):
    """JSON codec for None value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return python_type is NoneType or python_type is None

    def encode(self, value: NoneType) -> JSONType:
        if value is not None:
            raise EncodeError
        return None

    def decode(self, value: JSONType) -> NoneType:
        if value is not None:
            raise DecodeError
        return None


# ----- date -----


class DateJSONCodec(JSONCodec[date]):
    """
    JSON codec for dates. A date is represented in JSON as an RFC 3339 formatted string.
    Example: "2018-06-16".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, date) and not is_subclass(python_type, datetime)

    def encode(self, value: date) -> JSONType:
        if not isinstance(value, date) or isinstance(value, datetime):
            raise EncodeError
        return value.isoformat()

    def decode(self, value: JSONType) -> date:
        if not isinstance(value, str):
            raise DecodeError
        with _wrap(DecodeError):
            return date.fromisoformat(value)


# ----- datetime -----


def _to_utc(value):
    if value.tzinfo is None:  # naive value interpreted as UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DatetimeJSONCodec(JSONCodec[datetime]):
    """
    JSON codec for datetime.

    The representation is selected by the date strategy of the active Encoder or Decoder:
    an RFC 3339 string (ISO8601), or the number of seconds (SECONDS) or milliseconds
    (MILLISECONDS) since the Unix epoch. Datetimes always encode and decode to UTC timezone
    offset.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, datetime)

    def encode(self, value: datetime) -> JSONType:
        if not isinstance(value, datetime):
            raise EncodeError
        value = _to_utc(value)
        match _date_strategy.get():
            case DateStrategy.SECONDS:
                return value.timestamp()
            case DateStrategy.MILLISECONDS:
                return value.timestamp() * 1000
        result = value.isoformat()
        if result.endswith("+00:00"):
            result = result[0:-6]
        return f"{result}Z"

    def decode(self, value: JSONType) -> datetime:
        match _date_strategy.get():
            case DateStrategy.SECONDS | DateStrategy.MILLISECONDS as strategy:
                if not isinstance(value, int | float) or isinstance(value, bool):
                    raise DecodeError
                if strategy is DateStrategy.MILLISECONDS:
                    value = value / 1000
                with _wrap(DecodeError):
                    return datetime.fromtimestamp(value, timezone.utc)
        if not isinstance(value, str):
            raise DecodeError
        with _wrap(DecodeError):
            return _to_utc(iso8601.parse_date(value))


# ----- TypedDict -----


class TypedDictJSONCodec(JSONCodec[PT]):
    """JSON codec for TypedDict. Absent keys are omitted from both representations."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return typing.is_typeddict(python_type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        self.hints = typing.get_type_hints(python_type, include_extras=True)

    def _process(self, value: Mapping[str, Any], method) -> dict[str, Any]:
        result = {}
        for key in self.hints:
            codec = JSONCodec.get(self.hints[key])
            with suppress(KeyError):
                with CodecError.path_on_error(key):
                    result[key] = getattr(codec, method)(value[key])
        return result

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Mapping):
            raise EncodeError
        return self._process(value, "encode")

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, dict):
            raise DecodeError
        return self._process(value, "decode")


# ----- tuple -----


class TupleJSONCodec(JSONCodec[PT]):
    """JSON codec for tuples. A tuple is represented in JSON as an array."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, tuple) or is_subclass(get_origin(python_type), tuple)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        args = get_args(python_type) or (Any, ...)
        if len(args) != 2 and Ellipsis in args or args[0] is Ellipsis:
            raise TypeError(f"unexpected ellipsis in {python_type}")
        self.varg = args[0] if len(args) == 2 and args[1] is Ellipsis else None
        self.args = () if self.varg else args
        self.codecs = [JSONCodec.get(arg) for arg in self.args]
        self.vcodec = JSONCodec.get(self.varg) if self.varg else None

    def _codec(self, n: int) -> JSONCodec:
        return self.vcodec or self.codecs[n]

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, tuple) or (self.args and len(value) != len(self.args)):
            raise EncodeError
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self._codec(n).encode(item))
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, list) or (self.args and len(value) != len(self.args)):
            raise DecodeError
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self._codec(n).decode(item))
        return tuple(result)


# ----- Mapping -----


class MappingJSONCodec(JSONCodec[PT]):
    """JSON codec for mappings with string keys. A mapping is represented as a JSON object."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Mapping) and not getattr(origin, "__annotations__", None)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        args = get_args(python_type) or (str, Any)
        if len(args) != 2:
            raise TypeError("expecting Mapping[KT, VT]")
        if args[0] is not Any and not is_subclass(strip_annotations(args[0]), str):
            raise TypeError("codec only supports Mapping with str keys")
        self.value_codec = JSONCodec.get(args[1])

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Mapping):
            raise EncodeError
        result = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodeError("mapping key must be str", [k])
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.encode(v)
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, dict):
            raise DecodeError
        result = {}
        for k, v in value.items():
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.decode(v)
        return result


# ----- Iterable -----


class IterableJSONCodec(JSONCodec[PT]):
    """
    JSON codec for iterables such as list and set. An iterable is represented as a JSON array;
    sets are encoded in sorted order.
    """

    _AVOID = str | bytes | bytearray | Mapping | tuple

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Iterable) and not is_subclass(
            origin, IterableJSONCodec._AVOID
        )

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        args = get_args(python_type) or (Any,)
        if len(args) != 1:
            raise TypeError("expecting Iterable[T]")
        self.is_set = is_subclass(origin, Set)
        if inspect.isabstract(origin):
            self.decode_type = frozenset if self.is_set else list
        else:
            self.decode_type = origin
        self.codec = JSONCodec.get(args[0])

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, Iterable) or isinstance(value, IterableJSONCodec._AVOID):
            raise EncodeError
        if self.is_set:
            value = sorted(value)
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self.codec.encode(item))
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, list):
            raise DecodeError
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self.codec.decode(item))
        return self.decode_type(result)


# ----- dataclass -----


class DataclassJSONCodec(JSONCodec[PT]):
    """
    JSON codec for dataclasses. A dataclass instance is represented as a JSON object; fields
    with a None value are omitted. When decoding, an absent optional field without a default
    value decodes as None.
    """

    # keywords have _ suffix in dataclass fields (e.g. "in_", "for_", ...)
    _dc_kw = {k + "_": k for k in keyword.kwlist}

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return dataclasses.is_dataclass(python_type) and isinstance(python_type, type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)
        self.hints = typing.get_type_hints(self.raw_type, include_extras=True)

    @property
    def _codecs(self) -> dict[str, JSONCodec[Any]]:
        return {key: JSONCodec.get(hint) for key, hint in self.hints.items()}

    def encode(self, value: PT) -> JSONType:
        if not isinstance(value, self.raw_type):
            raise EncodeError
        codecs = self._codecs
        result = {}
        for field in dataclasses.fields(self.raw_type):
            v = getattr(value, field.name, None)
            if v is not None:
                with CodecError.path_on_error(field.name):
                    result[DataclassJSONCodec._dc_kw.get(field.name, field.name)] = codecs[
                        field.name
                    ].encode(v)
        return result

    def decode(self, value: JSONType) -> PT:
        if not isinstance(value, dict):
            raise DecodeError
        codecs = self._codecs
        kwargs = {}
        for field in dataclasses.fields(self.raw_type):
            if not field.init:
                continue
            try:
                with CodecError.path_on_error(field.name):
                    kwargs[field.name] = codecs[field.name].decode(
                        value[DataclassJSONCodec._dc_kw.get(field.name, field.name)]
                    )
            except KeyError:
                if (
                    is_optional(self.hints[field.name])
                    and field.default is dataclasses.MISSING
                    and field.default_factory is dataclasses.MISSING
                ):
                    kwargs[field.name] = None
        with _wrap(DecodeError):
            return self.raw_type(**kwargs)


# ----- UnionType/Union -----


class UnionJSONCodec(JSONCodec[PT]):
    """JSON codec for unions. Member types are attempted in their declared order."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return get_origin(python_type) in {UnionType, Union}

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        self.codecs = tuple(JSONCodec.get(arg) for arg in get_args(python_type))

    def encode(self, value: PT) -> JSONType:
        for codec in self.codecs:
            with suppress(EncodeError):
                return codec.encode(value)
        raise EncodeError

    def decode(self, value: JSONType) -> PT:
        for codec in self.codecs:
            with suppress(DecodeError):
                return codec.decode(value)
        raise DecodeError


# ----- Any -----


class AnyJSONCodec(JSONCodec[Any]):
    """JSON codec for Any. Values are encoded by their runtime type and decoded unchanged."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return python_type is Any

    def encode(self, value: Any) -> JSONType:
        with _wrap(EncodeError):
            return JSONCodec.get(type(value)).encode(value)

    def decode(self, value: JSONType) -> Any:
        return value


# ----- encoder/decoder -----


class Encoder:
    """
    Encodes Python values to JSON values.

    Parameters:
    • date_strategy: representation of datetime values  [ISO8601]
    """

    __slots__ = {"_date_strategy"}

    @validate_arguments
    def __init__(self, date_strategy: DateStrategy = DateStrategy.ISO8601):
        self._date_strategy = date_strategy

    @property
    def date_strategy(self) -> DateStrategy:
        return self._date_strategy

    def __repr__(self):
        return f"Encoder(date_strategy={self._date_strategy})"

    def __eq__(self, other: Any):
        return type(self) is type(other) and self._date_strategy is other._date_strategy

    def __hash__(self):
        return hash((type(self), self._date_strategy))

    def encode(self, value: Any, python_type: Any = Any) -> JSONType:
        """
        Encode a value to its JSON representation.

        Parameters:
        • value: value to encode
        • python_type: type of the value to encode

        Raises EncodeError if the value cannot be encoded and TypeError if the type is not
        supported.
        """
        codec = JSONCodec.get(python_type)
        with _strategy(self._date_strategy):
            return codec.encode(value)


class Decoder:
    """
    Decodes Python values from JSON values.

    Parameters:
    • date_strategy: representation of datetime values  [ISO8601]
    • validate: validate decoded values against their type hints and annotations  [True]
    """

    __slots__ = {"_date_strategy", "_validate"}

    @validate_arguments
    def __init__(self, date_strategy: DateStrategy = DateStrategy.ISO8601, validate: bool = True):
        self._date_strategy = date_strategy
        self._validate = validate

    @property
    def date_strategy(self) -> DateStrategy:
        return self._date_strategy

    @property
    def validate(self) -> bool:
        return self._validate

    def __repr__(self):
        return f"Decoder(date_strategy={self._date_strategy}, validate={self._validate})"

    def __eq__(self, other: Any):
        return (
            type(self) is type(other)
            and self._date_strategy is other._date_strategy
            and self._validate == other._validate
        )

    def __hash__(self):
        return hash((type(self), self._date_strategy, self._validate))

    def decode(self, value: JSONType, python_type: Any = Any) -> Any:
        """
        Decode a value from its JSON representation.

        Parameters:
        • value: JSON value to decode
        • python_type: type of the value to decode

        Raises DecodeError if the value cannot be decoded, ValidationError if the decoded
        value is not valid, and TypeError if the type is not supported.
        """
        codec = JSONCodec.get(python_type)
        with _strategy(self._date_strategy):
            result = codec.decode(value)
        if self._validate:
            pathpatch.validation.validate(result, python_type)
        return result
