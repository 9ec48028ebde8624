"""
Bencode decoder.

Decoding is driven by the target shape. A ``Decoder`` covers the bytes of one
value; the shape asks it for exactly one container and reads from it.
Keyed and ordered containers scan their immediate children the first time
they are asked about them and cache the result: each child is only checked
for structure and recorded as a byte range into the shared input buffer.
A child's own children are not looked at until the caller descends into it.
"""
import logging
import typing
from typing import Any, Dict, List, Optional, Tuple, Union

from . import config
from .errors import (ContainerRequestError, DataCorruptedError, KeyNotFoundError, Path, TypeMismatchError,
                     format_path)
from .grammar import DICT_START, END, LIST_START, Cursor, ValueKind, classify
from .shapes import IntegerShape, integer_shape, shape_name, wire_integer
from .structure import BencodeType

logger = logging.getLogger(__name__)

Buffer = Union[bytes, bytearray, memoryview]


class DecodeOptions:
    """Per-call decoding policy shared by every container of one decode."""
    def __init__(self, strict: bool = config.DEFAULT_STRICT, max_depth: int = config.MAX_NESTING_DEPTH):
        self.strict = strict
        self.max_depth = max_depth


class Decoder:
    """
    Decodes the value found at ``data[start:end]``. Handed to ``decode_from``;
    the shape must request exactly one container from it.
    """
    def __init__(self, data: Buffer, start: int, end: int, path: Path = (),
                 options: Optional[DecodeOptions] = None, candidate=None):
        self.data = data
        self.start = start
        self.end = end
        self.path = path
        self.options = options or DecodeOptions()
        self.container = None
        # Already scanned container for this range, reused so its cache survives
        self._candidate = candidate

    def peek_kind(self) -> ValueKind:
        """Kind of the value, from its first byte."""
        if self.start >= self.end:
            raise DataCorruptedError("Unexpected end of data", self.path)
        return classify(self.data[self.start], self.path)

    def _assert_can_create_container(self):
        if self.container is not None:
            raise ContainerRequestError(
                f"A {type(self.container).__name__} was already requested at {format_path(self.path)}"
            )

    def _require(self, kind: ValueKind, expected: Any, name: str) -> None:
        actual = self.peek_kind()
        if actual is not kind:
            raise TypeMismatchError(expected, f"Cannot decode as {name} container: found {actual.value}", self.path)

    def keyed_container(self) -> "KeyedDecodingContainer":
        self._assert_can_create_container()
        self._require(ValueKind.DICT, dict, "keyed")
        if isinstance(self._candidate, KeyedDecodingContainer):
            self.container = self._candidate
        else:
            self.container = KeyedDecodingContainer(self.data, self.start, self.end, self.path, self.options)
        return self.container

    def ordered_container(self) -> "OrderedDecodingContainer":
        self._assert_can_create_container()
        self._require(ValueKind.LIST, list, "ordered")
        if isinstance(self._candidate, OrderedDecodingContainer):
            self._candidate.current_index = 0
            self.container = self._candidate
        else:
            self.container = OrderedDecodingContainer(self.data, self.start, self.end, self.path, self.options)
        return self.container

    def scalar_container(self) -> "ScalarDecodingContainer":
        self._assert_can_create_container()
        self.container = ScalarDecodingContainer(self.data, self.start, self.end, self.path, self.options)
        return self.container

    def value_end(self) -> int:
        """Offset just past the value; scans it if nothing has yet."""
        if isinstance(self.container, (KeyedDecodingContainer, OrderedDecodingContainer)):
            self.container.nested_containers()
            return self.container.end
        cursor = Cursor(self.data, self.start, self.end, self.path, self.options.strict)
        cursor.skip_value(self.options.max_depth)
        return cursor.index


# --------------------------
# Containers
# --------------------------

class _DecodingContainer(Cursor):
    def __init__(self, data: Buffer, start: int, end: int, path: Path, options: DecodeOptions):
        super().__init__(data, start, end, path, options.strict)
        self.options = options

    def _decode_nested_container(self, path: Path) -> "_DecodingContainer":
        """Records the value at the cursor as a child container and moves past it."""
        start = self.index
        if self.peek_byte() is None:
            raise self.corrupted("Unexpected end of data")

        cursor = Cursor(self.data, start, self.end, path, self.strict)
        kind = cursor.skip_value(self.options.max_depth)
        self.index = cursor.index

        if kind is ValueKind.LIST:
            return OrderedDecodingContainer(self.data, start, self.index, path, self.options)
        if kind is ValueKind.DICT:
            return KeyedDecodingContainer(self.data, start, self.index, path, self.options)
        return ScalarDecodingContainer(self.data, start, self.index, path, self.options)

    def _decoder(self, child: "_DecodingContainer") -> Decoder:
        return Decoder(self.data, child.start, child.end, child.path, self.options, candidate=child)

    def _decode_child(self, shape, child: "_DecodingContainer"):
        return decode_value(shape, self._decoder(child))

    @staticmethod
    def _nested(child, container_type, name: str, location: str):
        if not isinstance(child, container_type):
            kind = classify(child.data[child.start], child.path)
            raise TypeMismatchError(
                container_type, f"Cannot decode as nested {name} container for {location}: found {kind.value}",
                child.path
            )
        if isinstance(child, OrderedDecodingContainer):
            child.current_index = 0
        return child


class KeyedDecodingContainer(_DecodingContainer):
    """
    A bencoded dictionary. Keys must be UTF-8 text. When a key appears more
    than once the last entry wins, unless strict mode rejects it.
    """
    def __init__(self, data: Buffer, start: int, end: int, path: Path, options: DecodeOptions):
        super().__init__(data, start, end, path, options)
        self._cached: Optional[Dict[str, _DecodingContainer]] = None

    def nested_containers(self) -> Dict[str, _DecodingContainer]:
        if self._cached is not None:
            return self._cached

        self.index = self.start
        self.expect(DICT_START, "for starting dictionary")
        nested = {}
        previous = None
        while True:
            byte = self.peek_byte()
            if byte is None:
                raise self.corrupted("Expected dictionary to end with 'e'. Could not read next byte")
            if byte == END:
                self.index += 1
                break

            raw_key = self.read(self.read_length())
            try:
                key = raw_key.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise self.corrupted(f"Couldn't decode dictionary key with UTF-8 encoding: {raw_key.hex()}") from exc

            if previous is not None and raw_key <= previous:
                if self.strict:
                    problem = "Duplicate" if raw_key == previous else "Out of order"
                    raise self.corrupted(f"{problem} dictionary key: {key!r}")
                logger.debug("Unsorted or duplicate key %r at %s", key, format_path(self.path))
            previous = raw_key

            nested[key] = self._decode_nested_container(self.path + (key,))

        self.end = self.index
        self._cached = nested
        logger.debug("Cached %d keys for dictionary at %s", len(nested), format_path(self.path))
        return nested

    @property
    def keys(self) -> List[str]:
        """Keys in the order they appear on the wire."""
        return list(self.nested_containers())

    def __contains__(self, key: str) -> bool:
        return key in self.nested_containers()

    def __len__(self) -> int:
        return len(self.nested_containers())

    def _child(self, key: str) -> _DecodingContainer:
        nested = self.nested_containers()
        if key not in nested:
            raise KeyNotFoundError(key, nested.keys(), self.path)
        return nested[key]

    def decode(self, shape, key: str):
        return self._decode_child(shape, self._child(key))

    def decode_if_present(self, shape, key: str, default=None):
        if key not in self:
            return default
        return self.decode(shape, key)

    def nested_keyed_container(self, key: str) -> "KeyedDecodingContainer":
        return self._nested(self._child(key), KeyedDecodingContainer, "keyed", f"key {key!r}")

    def nested_ordered_container(self, key: str) -> "OrderedDecodingContainer":
        return self._nested(self._child(key), OrderedDecodingContainer, "ordered", f"key {key!r}")

    def decoder_for(self, key: str) -> Decoder:
        return self._decoder(self._child(key))

    def raw_bytes(self, key: str) -> bytes:
        """The exact encoded bytes of the value under ``key``."""
        child = self._child(key)
        return bytes(self.data[child.start:child.end])


class OrderedDecodingContainer(_DecodingContainer):
    """A bencoded list, read front to back through ``current_index``."""
    def __init__(self, data: Buffer, start: int, end: int, path: Path, options: DecodeOptions):
        super().__init__(data, start, end, path, options)
        self._cached: Optional[List[_DecodingContainer]] = None
        self.current_index = 0

    def nested_containers(self) -> List[_DecodingContainer]:
        if self._cached is not None:
            return self._cached

        self.index = self.start
        self.expect(LIST_START, "for starting list")
        nested = []
        while True:
            byte = self.peek_byte()
            if byte is None:
                raise self.corrupted("Expected list to end with 'e'. Could not read next byte")
            if byte == END:
                self.index += 1
                break
            nested.append(self._decode_nested_container(self.path + (len(nested),)))

        self.end = self.index
        self.current_index = 0
        self._cached = nested
        logger.debug("Cached %d elements for list at %s", len(nested), format_path(self.path))
        return nested

    @property
    def count(self) -> int:
        return len(self.nested_containers())

    def __len__(self) -> int:
        return self.count

    @property
    def is_at_end(self) -> bool:
        return self.current_index >= self.count

    def _child_at(self, index: int) -> _DecodingContainer:
        nested = self.nested_containers()
        if not 0 <= index < len(nested):
            raise DataCorruptedError(f"Unexpected end of data at index: {index}", self.path + (index,))
        return nested[index]

    def _next_child(self) -> _DecodingContainer:
        child = self._child_at(self.current_index)
        self.current_index += 1
        return child

    def decode(self, shape):
        return self._decode_child(shape, self._next_child())

    def decode_all(self, shape) -> list:
        """Decodes every remaining element."""
        values = []
        while not self.is_at_end:
            values.append(self.decode(shape))
        return values

    def decode_at(self, shape, index: int):
        """Random access; does not move ``current_index``."""
        return self._decode_child(shape, self._child_at(index))

    def nested_keyed_container(self) -> KeyedDecodingContainer:
        index = self.current_index
        return self._nested(self._next_child(), KeyedDecodingContainer, "keyed", f"index {index}")

    def nested_ordered_container(self) -> "OrderedDecodingContainer":
        index = self.current_index
        return self._nested(self._next_child(), OrderedDecodingContainer, "ordered", f"index {index}")

    def decoder(self) -> Decoder:
        return self._decoder(self._next_child())


class ScalarDecodingContainer(_DecodingContainer):
    """Exactly one value; integers and byte strings are read directly."""

    def _kind(self) -> ValueKind:
        if self.start >= self.end:
            raise self.corrupted("Unexpected end of data")
        return classify(self.data[self.start], self.path)

    def decode_int(self, shape=int) -> int:
        width: IntegerShape = integer_shape(shape)
        kind = self._kind()
        if kind is not ValueKind.INTEGER:
            raise TypeMismatchError(width, f"Expected {width.name}, found {kind.value}", self.path)

        self.index = self.start
        value = wire_integer(self.read_integer(), self.path)
        return width.narrow(value, self.path)

    def decode_bytes(self) -> bytes:
        kind = self._kind()
        if kind is not ValueKind.BYTES:
            raise TypeMismatchError(bytes, f"Expected byte string, found {kind.value}", self.path)

        self.index = self.start
        return self.read(self.read_length())

    def decode_str(self) -> str:
        raw = self.decode_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.corrupted(f"Couldn't decode string with UTF-8 encoding: {raw.hex()}") from exc

    def decode(self, shape):
        """Composite shapes are decoded again over the same bytes."""
        return decode_value(shape, Decoder(self.data, self.start, self.end, self.path, self.options))


# --------------------------
# Shape dispatch
# --------------------------

def _decode_tuple(args: tuple, decoder: Decoder) -> tuple:
    container = decoder.ordered_container()
    if not args:
        return tuple(container.decode_all(Any))
    if len(args) == 2 and args[1] is Ellipsis:
        return tuple(container.decode_all(args[0]))
    if container.count != len(args):
        raise TypeMismatchError(tuple, f"Expected {len(args)} elements, found {container.count}", decoder.path)
    return tuple(container.decode(arg) for arg in args)


def _decode_dict(args: tuple, decoder: Decoder) -> dict:
    if args and args[0] not in (str, Any):
        raise TypeError(f"Dictionary keys decode as str, not {shape_name(args[0])}")
    value_shape = args[1] if args else Any
    container = decoder.keyed_container()
    return {key: container.decode(value_shape, key) for key in container.keys}


def decode_value(shape, decoder: Decoder):
    """Decodes ``shape`` from ``decoder``, handling built-in and typing shapes."""
    if shape is Any or shape is object:
        return BencodeType.decode_from(decoder).to_python()
    if hasattr(shape, "decode_from"):
        return shape.decode_from(decoder)
    if shape is int or isinstance(shape, IntegerShape):
        return decoder.scalar_container().decode_int(shape)
    if shape is str:
        return decoder.scalar_container().decode_str()
    if shape in (bytes, bytearray):
        return shape(decoder.scalar_container().decode_bytes())
    if shape in (bool, float, None, type(None)):
        raise TypeMismatchError(shape, f"Cannot decode {shape_name(shape)}: not representable in bencode",
                                decoder.path)

    origin = typing.get_origin(shape)
    args = typing.get_args(shape)
    if shape is list or origin is list:
        return decoder.ordered_container().decode_all(args[0] if args else Any)
    if shape is tuple or origin is tuple:
        return _decode_tuple(args, decoder)
    if shape is dict or origin is dict:
        return _decode_dict(args, decoder)
    if origin is Union:
        present = [arg for arg in args if arg is not type(None)]
        if len(present) == 1:
            return decode_value(present[0], decoder)

    raise TypeError(f"Unsupported decode shape: {shape!r}")


# --------------------------
# Entry points
# --------------------------

class BencodeDecoder:
    """Decodes bencoded data into a target shape."""
    def __init__(self, strict: bool = None, allow_trailing_data: bool = None, max_depth: int = None):
        self.options = DecodeOptions(
            strict=config.DEFAULT_STRICT if strict is None else strict,
            max_depth=config.MAX_NESTING_DEPTH if max_depth is None else max_depth,
        )
        if allow_trailing_data is None:
            allow_trailing_data = config.DEFAULT_ALLOW_TRAILING_DATA
        self.allow_trailing_data = allow_trailing_data

    def decode_prefix(self, shape, data: Buffer) -> Tuple[Any, int]:
        """Decodes the value at the start of ``data``; returns it with the number of bytes it spans."""
        if isinstance(data, str):
            raise TypeError("Bencoded data must be bytes, not str")

        decoder = Decoder(data, 0, len(data), (), self.options)
        value = decode_value(shape, decoder)
        consumed = decoder.value_end()
        logger.debug("Decoded %s from %d of %d bytes", shape_name(shape), consumed, len(data))
        return value, consumed

    def decode(self, shape, data: Buffer):
        value, consumed = self.decode_prefix(shape, data)
        if consumed != len(data) and not self.allow_trailing_data:
            raise DataCorruptedError(f"Unexpected trailing data: {len(data) - consumed} bytes after value")
        return value


def decode(shape, data: Buffer, strict: bool = None):
    """Convenience function to decode bencoded data into ``shape``."""
    return BencodeDecoder(strict=strict).decode(shape, data)


def decode_prefix(shape, data: Buffer, strict: bool = None) -> Tuple[Any, int]:
    return BencodeDecoder(strict=strict).decode_prefix(shape, data)
