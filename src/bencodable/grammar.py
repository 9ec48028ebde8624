"""
Byte-exact bencode grammar shared by the encoder and the decoder.

    value      = integer / bytestring / list / dict
    integer    = "i" ["-"] 1*DIGIT "e"
    bytestring = 1*DIGIT ":" <N bytes>
    list       = "l" *value "e"
    dict       = "d" *(bytestring value) "e"
"""
from enum import Enum
from typing import Iterable, List, Optional, Union

from .errors import DataCorruptedError, Path, TypeMismatchError
from .shapes import Int64

INT_START = ord("i")
LIST_START = ord("l")
DICT_START = ord("d")
END = ord("e")
COLON = ord(":")
MINUS = ord("-")
ZERO = ord("0")
NINE = ord("9")

# len(str(2 ** 64))
MAX_INT_DIGITS = 20


class ValueKind(Enum):
    """The four wire shapes."""
    INTEGER = "integer"
    BYTES = "byte string"
    LIST = "list"
    DICT = "dictionary"


def describe_byte(byte: Optional[int]) -> str:
    if byte is None:
        return "end of data"
    if 0x20 <= byte <= 0x7e:
        return repr(chr(byte))
    return f"0x{byte:02x}"


def is_digit(byte: int) -> bool:
    return ZERO <= byte <= NINE


def classify(byte: Optional[int], path: Path = ()) -> ValueKind:
    """Maps the first byte of a value to its kind."""
    if byte == LIST_START:
        return ValueKind.LIST
    if byte == DICT_START:
        return ValueKind.DICT
    if byte == INT_START:
        return ValueKind.INTEGER
    if byte is not None and is_digit(byte):
        return ValueKind.BYTES
    raise DataCorruptedError(f"Unknown bencode value start delimiter: {describe_byte(byte)}", path)


# --------------------------
# Canonical key ordering
# --------------------------

def key_bytes(key: Union[str, bytes]) -> bytes:
    """Raw bytes of a dictionary key; text keys are UTF-8 encoded."""
    if isinstance(key, str):
        return key.encode("utf-8")
    return bytes(key)


def sort_keys(keys: Iterable[bytes]) -> List[bytes]:
    """Orders keys by raw byte value, ascending (not locale aware)."""
    return sorted(keys)


# --------------------------
# Emit primitives
# --------------------------

def encode_int(n: int) -> bytes:
    """Encodes an integer (e.g., i123e)."""
    return b"i%de" % n


def encode_bytes(b: bytes) -> bytes:
    """Encodes a byte string (e.g., 4:spam)."""
    return b"%d:" % len(b) + bytes(b)


# --------------------------
# Parse primitives
# --------------------------

class Cursor:
    """
    A read position inside ``data[start:end]``.

    The underlying buffer is shared, never copied; only ``read`` returns a
    fresh bytes object.
    """
    def __init__(self, data: bytes, start: int, end: int, path: Path = (), strict: bool = False):
        self.data = data
        self.start = start
        self.end = end
        self.index = start
        self.path = path
        self.strict = strict

    def corrupted(self, message: str) -> DataCorruptedError:
        return DataCorruptedError(message, self.path)

    def peek_byte(self) -> Optional[int]:
        if self.index >= self.end:
            return None
        return self.data[self.index]

    def read_byte(self) -> int:
        if self.index >= self.end:
            raise self.corrupted("Unexpected end of data")
        byte = self.data[self.index]
        self.index += 1
        return byte

    def skip(self, length: int) -> None:
        next_index = self.index + length
        if next_index > self.end:
            raise self.corrupted("Unexpected end of data")
        self.index = next_index

    def read(self, length: int) -> bytes:
        start = self.index
        self.skip(length)
        return bytes(self.data[start:self.index])

    def expect(self, byte: int, what: str) -> None:
        actual = self.peek_byte()
        if actual != byte:
            raise self.corrupted(f"Expected {chr(byte)!r} {what}. Got: {describe_byte(actual)}")
        self.index += 1

    def read_digits(self) -> bytes:
        """Reads a (possibly empty) run of ASCII digits."""
        start = self.index
        while self.index < self.end and is_digit(self.data[self.index]):
            self.index += 1
        return bytes(self.data[start:self.index])

    def read_length(self) -> int:
        """Reads a byte string length prefix including the ':'."""
        digits = self.read_digits()
        if not digits:
            raise self.corrupted("Empty number for byte string length")
        if self.strict and len(digits) > 1 and digits[0] == ZERO:
            raise self.corrupted(f"Leading zero in byte string length: {digits.decode('ascii')}")
        self.expect(COLON, "after byte string length")
        # A length with more digits than the bytes left can never be satisfied
        if len(digits.lstrip(b"0")) > len(str(self.end - self.index)):
            raise self.corrupted("Unexpected end of data")
        return int(digits.lstrip(b"0") or b"0")

    def _integer_digits(self):
        """Reads ``i[-]digits e`` and returns ``(negative, digits)`` unconverted."""
        self.expect(INT_START, "for starting integer")
        negative = self.peek_byte() == MINUS
        if negative:
            self.index += 1

        digits = self.read_digits()
        if not digits:
            raise self.corrupted("Expected integer to be non-empty")
        if self.strict:
            if len(digits) > 1 and digits[0] == ZERO:
                raise self.corrupted(f"Leading zero in integer: {digits.decode('ascii')}")
            if negative and digits == b"0":
                raise self.corrupted("Negative zero is not a valid integer")

        self.expect(END, "for ending integer")
        return negative, digits

    def skip_integer(self) -> None:
        self._integer_digits()

    def read_integer(self) -> int:
        """Reads ``i[-]digits e``; anything wider than 64 bits is a type mismatch."""
        negative, digits = self._integer_digits()
        significant = len(digits.lstrip(b"0"))
        if significant > MAX_INT_DIGITS:
            raise TypeMismatchError(
                Int64, f"Integer with {significant} digits does not fit in a signed 64-bit value", self.path
            )
        value = int(digits.lstrip(b"0") or b"0")
        return -value if negative else value

    def skip_value(self, max_depth: int) -> ValueKind:
        """
        Moves past exactly one value, checking its structure without building
        anything. Nested containers are walked with an explicit stack so deep
        input cannot exhaust the interpreter stack.

        ``max_depth`` counts container levels from the document root, so the
        levels in ``self.path`` are already spent.
        """
        kind = classify(self.peek_byte(), self.path)
        stack = []
        # Path step of the item currently read in each open container
        steps = []
        while True:
            byte = self.peek_byte()
            if stack:
                if byte is None:
                    raise self.corrupted("Unexpected end of data")
                if byte == END:
                    if stack.pop() is _DICT_VALUE:
                        raise self.corrupted("Missing value for dictionary key")
                    steps.pop()
                    self.index += 1
                    if not stack:
                        return kind
                    _advance(stack, steps)
                    continue
                if stack[-1] is _DICT_KEY and not is_digit(byte):
                    raise self.corrupted(f"Dictionary keys must be byte strings. Got: {describe_byte(byte)}")

            item_kind = classify(byte, self.path)
            if item_kind is ValueKind.INTEGER:
                self.skip_integer()
            elif item_kind is ValueKind.BYTES:
                length = self.read_length()
                if stack and stack[-1] is _DICT_KEY:
                    steps[-1] = self.read(length).decode("utf-8", "replace")
                else:
                    self.skip(length)
            else:
                path = self.path + tuple(steps)
                if len(path) >= max_depth:
                    raise DataCorruptedError(f"Nesting deeper than {max_depth} levels", path)
                self.index += 1
                if item_kind is ValueKind.LIST:
                    stack.append(_LIST)
                    steps.append(0)
                else:
                    stack.append(_DICT_KEY)
                    steps.append(None)
                continue

            if not stack:
                return kind
            _advance(stack, steps)


# Open-container states used by Cursor.skip_value
_LIST = "list"
_DICT_KEY = "key"
_DICT_VALUE = "value"


def _advance(stack: list, steps: list) -> None:
    if stack[-1] is _LIST:
        steps[-1] += 1
    elif stack[-1] is _DICT_KEY:
        stack[-1] = _DICT_VALUE
    else:
        stack[-1] = _DICT_KEY
