"""
Bencode encoder.

A value is encoded by an ``Encoder``: the value asks it for exactly one
container (keyed, ordered or scalar) and writes into it. Nested values get
their own containers, so the result is an in-memory container graph that is
flattened depth-first once the top-level value is done. Dictionary keys are
sorted when the graph is flattened, never at insertion time.
"""
import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Union

from . import config
from .errors import ContainerRequestError, InvalidValueError, Path, format_path
from .grammar import encode_bytes, encode_int, key_bytes, sort_keys

logger = logging.getLogger(__name__)

Key = Union[str, bytes]


def _check_encodable(value: Any, path: Path) -> None:
    if value is None:
        raise InvalidValueError(value, "Cannot encode None: bencode has no null value", path)
    if isinstance(value, (bool, float)):
        raise InvalidValueError(value, f"Cannot encode {type(value).__name__}", path)


def _key_step(key: bytes) -> str:
    return key.decode("utf-8", errors="backslashreplace")


class Encoder:
    """
    Encodes one value. Handed to ``encode_into``; the value must request
    exactly one container from it.
    """
    def __init__(self, path: Path = ()):
        self.path = path
        self.container = None

    @property
    def data(self) -> bytes:
        if self.container is None:
            raise InvalidValueError(None, "No container was requested, nothing to encode", self.path)
        return self.container.data

    def _assert_can_create_container(self):
        if self.container is not None:
            raise ContainerRequestError(
                f"A {type(self.container).__name__} was already requested at {format_path(self.path)}"
            )

    def keyed_container(self) -> "KeyedEncodingContainer":
        self._assert_can_create_container()
        self.container = KeyedEncodingContainer(self.path)
        return self.container

    def ordered_container(self) -> "OrderedEncodingContainer":
        self._assert_can_create_container()
        self.container = OrderedEncodingContainer(self.path)
        return self.container

    def scalar_container(self) -> "ScalarEncodingContainer":
        self._assert_can_create_container()
        self.container = ScalarEncodingContainer(self.path)
        return self.container

    def encode_value(self, value: Any) -> None:
        """Encodes built-in values directly; anything else encodes itself."""
        _check_encodable(value, self.path)

        if hasattr(value, "encode_into"):
            value.encode_into(self)
        elif isinstance(value, (int, str, bytes, bytearray, memoryview)):
            self.scalar_container().encode(value)
        elif isinstance(value, (list, tuple)):
            self.ordered_container().encode_all(value)
        elif isinstance(value, Mapping):
            container = self.keyed_container()
            for key, item in value.items():
                container.encode(key, item)
        else:
            raise InvalidValueError(value, f"Cannot bencode object of type {type(value).__name__}", self.path)


# --------------------------
# Containers
# --------------------------

class ScalarEncodingContainer:
    """Holds exactly one value: an integer, a byte string or a nested value."""
    def __init__(self, path: Path):
        self.path = path
        self._storage = b""
        self._can_encode_new_value = True

    def _check_can_encode(self, value):
        if not self._can_encode_new_value:
            raise InvalidValueError(value, "Cannot encode multiple values with the same encoder.", self.path)

    def encode(self, value: Any) -> None:
        self._check_can_encode(value)
        _check_encodable(value, self.path)

        if isinstance(value, int):
            if not config.INT64_MIN <= value <= config.UINT64_MAX:
                raise InvalidValueError(value, f"Integer {value} does not fit in 64 bits", self.path)
            self._storage = encode_int(value)
        elif isinstance(value, str):
            self._storage = encode_bytes(value.encode("utf-8"))
        elif isinstance(value, (bytes, bytearray, memoryview)):
            # RawBytes lands here too: emitted as-is, no UTF-8 involved
            self._storage = encode_bytes(bytes(value))
        else:
            encoder = Encoder(self.path)
            encoder.encode_value(value)
            self._storage = encoder.data

        self._can_encode_new_value = False

    @property
    def data(self) -> bytes:
        return self._storage


class OrderedEncodingContainer:
    """Accumulates child containers in call order; emits ``l ... e``."""
    def __init__(self, path: Path):
        self.path = path
        self._storage: List[Any] = []

    @property
    def count(self) -> int:
        return len(self._storage)

    def _nested_path(self) -> Path:
        return self.path + (self.count,)

    def encode(self, value: Any) -> None:
        container = ScalarEncodingContainer(self._nested_path())
        container.encode(value)
        self._storage.append(container)

    def encode_all(self, values: Iterable[Any]) -> None:
        for value in values:
            self.encode(value)

    def nested_keyed_container(self) -> "KeyedEncodingContainer":
        container = KeyedEncodingContainer(self._nested_path())
        self._storage.append(container)
        return container

    def nested_ordered_container(self) -> "OrderedEncodingContainer":
        container = OrderedEncodingContainer(self._nested_path())
        self._storage.append(container)
        return container

    def encoder(self) -> Encoder:
        """An encoder for the next element, for values with their own encode logic."""
        encoder = Encoder(self._nested_path())
        self._storage.append(encoder)
        return encoder

    @property
    def data(self) -> bytes:
        return b"l" + b"".join(container.data for container in self._storage) + b"e"


class KeyedEncodingContainer:
    """
    Accumulates one child container per key; emits ``d ... e`` with keys in
    ascending raw-byte order. Writing the same key twice keeps the last write.
    """
    def __init__(self, path: Path):
        self.path = path
        self._storage: Dict[bytes, Any] = {}

    def _raw_key(self, key: Key) -> bytes:
        if not isinstance(key, (str, bytes)):
            raise InvalidValueError(key, f"Dictionary keys must be str or bytes, not {type(key).__name__}", self.path)
        return key_bytes(key)

    def encode(self, key: Key, value: Any) -> None:
        raw_key = self._raw_key(key)
        container = ScalarEncodingContainer(self.path + (_key_step(raw_key),))
        container.encode(value)
        self._storage[raw_key] = container

    def encode_if_present(self, key: Key, value: Any) -> None:
        if value is not None:
            self.encode(key, value)

    def nested_keyed_container(self, key: Key) -> "KeyedEncodingContainer":
        raw_key = self._raw_key(key)
        container = KeyedEncodingContainer(self.path + (_key_step(raw_key),))
        self._storage[raw_key] = container
        return container

    def nested_ordered_container(self, key: Key) -> OrderedEncodingContainer:
        raw_key = self._raw_key(key)
        container = OrderedEncodingContainer(self.path + (_key_step(raw_key),))
        self._storage[raw_key] = container
        return container

    def encoder_for(self, key: Key) -> Encoder:
        raw_key = self._raw_key(key)
        encoder = Encoder(self.path + (_key_step(raw_key),))
        self._storage[raw_key] = encoder
        return encoder

    @property
    def data(self) -> bytes:
        parts = [b"d"]
        for key in sort_keys(self._storage):
            parts.append(encode_bytes(key))
            parts.append(self._storage[key].data)
        parts.append(b"e")
        return b"".join(parts)


# --------------------------
# Entry points
# --------------------------

class BencodeEncoder:
    """Encodes values using bencode."""
    def encode(self, value: Any) -> bytes:
        encoder = Encoder()
        encoder.encode_value(value)
        data = encoder.data
        logger.debug("Encoded %s into %d bytes", type(value).__name__, len(data))
        return data


def encode(value: Any) -> bytes:
    """Convenience function to bencode a value."""
    return BencodeEncoder().encode(value)
