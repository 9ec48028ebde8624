"""
Error types raised by the bencode encoder and decoder.

Every codec error carries the path (dictionary keys and list indices) of the
value being processed when it was raised.
"""
from typing import Any, Iterable, Sequence, Tuple, Union

PathStep = Union[str, int]
Path = Tuple[PathStep, ...]


def format_path(path: Sequence[PathStep]) -> str:
    """Renders a path as ``info.files[0].length``."""
    if not path:
        return "<root>"

    parts = []
    for step in path:
        if isinstance(step, int):
            parts.append(f"[{step}]")
        elif parts:
            parts.append(f".{step}")
        else:
            parts.append(step)
    return "".join(parts)


class BencodeError(ValueError):
    """Base class for all recoverable encode/decode failures."""
    def __init__(self, message: str, path: Sequence[PathStep] = ()):
        super().__init__(message)
        self.message = message
        self.path = tuple(path)

    def __str__(self):
        return f"{self.message} (at {format_path(self.path)})"


# --------------------------
# Decoding
# --------------------------

class BencodeDecodeError(BencodeError):
    """Raised when bencoded data cannot be decoded into the requested shape."""


class DataCorruptedError(BencodeDecodeError):
    """Malformed input: bad delimiter, truncated buffer, bad digits or bad UTF-8."""


class TypeMismatchError(BencodeDecodeError):
    """The value on the wire does not fit the requested shape."""
    def __init__(self, expected: Any, message: str, path: Sequence[PathStep] = ()):
        super().__init__(message, path)
        self.expected = expected


class KeyNotFoundError(BencodeDecodeError):
    """A dictionary lookup for a key that is not present."""
    def __init__(self, key: str, known_keys: Iterable[str], path: Sequence[PathStep] = ()):
        self.key = key
        self.known_keys = sorted(known_keys)
        super().__init__(f"Could not find key {key!r} in {self.known_keys}", path)


# --------------------------
# Encoding
# --------------------------

class BencodeEncodeError(BencodeError):
    """Raised when a value cannot be bencoded."""


class InvalidValueError(BencodeEncodeError):
    """Unsupported value kind, out of range integer, or a second scalar write."""
    def __init__(self, value: Any, message: str, path: Sequence[PathStep] = ()):
        super().__init__(message, path)
        self.value = value


class ContainerRequestError(RuntimeError):
    """
    A value asked its encoder or decoder for more than one container.

    Signals a bug in the value's own encode/decode logic; never raised for
    bad input.
    """
