"""Patch error module."""


class PatchError(ValueError):
    """
    Base class for errors raised while applying a patch.

    A patch is applied as a unit: when a PatchError is raised, no part of the patch has been
    applied to the value being patched.
    """

    __slots__ = ()

    def __repr__(self):
        return f"{type(self).__name__}()"

    def __str__(self):
        return self.__doc__.strip()


class InvalidKeyPathError(PatchError):
    """
    Raised when a key path is not valid: it does not conform to the key path grammar, or it
    addresses a value whose type does not match the container its component expects.

    Attributes:
    • path: the key path, as supplied by the caller
    """

    __slots__ = {"path"}

    def __init__(self, path: str):
        super().__init__(path)
        self.path = path

    def __repr__(self):
        return f"{type(self).__name__}({self.path!r})"

    def __str__(self):
        return f"key path {self.path!r} is not valid"


class IndexOutOfBoundsError(PatchError):
    """
    Raised when an index component addresses more than one past the end of an array.

    Attributes:
    • path: the key path, as supplied by the caller
    • index: the offending index
    """

    __slots__ = {"path", "index"}

    def __init__(self, path: str, index: int):
        super().__init__(path, index)
        self.path = path
        self.index = index

    def __repr__(self):
        return f"{type(self).__name__}({self.path!r}, {self.index!r})"

    def __str__(self):
        return f"index {self.index} is out of bounds for key path {self.path!r}"


class InvalidRootObjectError(PatchError):
    """Value could not be represented as a JSON object."""

    __slots__ = ()


class _CauseError(PatchError):
    """
    Base class for errors that wrap an underlying cause.

    Attributes:
    • cause: the exception that caused the error
    """

    __slots__ = {"cause"}

    _action = None

    def __init__(self, cause: BaseException):
        super().__init__(cause)
        self.cause = cause

    def __repr__(self):
        return f"{type(self).__name__}({self.cause!r})"

    def __str__(self):
        return f"{self._action} failed: {self.cause}"


class EncodingFailedError(_CauseError):
    """Raised when the value being patched cannot be encoded to a JSON object."""

    __slots__ = ()

    _action = "encoding"


class DecodingFailedError(_CauseError):
    """Raised when the patched JSON object cannot be decoded to the type being patched."""

    __slots__ = ()

    _action = "decoding"


class SerializationFailedError(_CauseError):
    """
    Raised when a patch cannot be read as JSON: malformed JSON text, a patch value that has no
    JSON representation, or text that cannot be encoded.
    """

    __slots__ = ()

    _action = "JSON serialization"
