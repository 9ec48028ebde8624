"""
Data structures for representing Bencoded types.

``RawBytes`` is the passthrough value kind: its bytes are written and read as
a byte string with no UTF-8 involved. The ``Bencode*`` wrappers form an
optional value tree, built through the same container protocol as any other
shape.
"""
from .grammar import ValueKind

__all__ = [
    "RawBytes",
    "BencodeType",
    "BencodeInt",
    "BencodeString",
    "BencodeList",
    "BencodeDict",
    "from_python",
]


class RawBytes(bytes):
    """Undecoded byte string, e.g. a SHA-1 digest."""
    def __repr__(self):
        return f"RawBytes({bytes(self)!r})"

    def encode_into(self, encoder):
        encoder.scalar_container().encode(bytes(self))

    @classmethod
    def decode_from(cls, decoder):
        return cls(decoder.scalar_container().decode_bytes())


class BencodeType:
    """Base class for all Bencode data types."""
    value = None

    def __eq__(self, other):
        return type(self) is type(other) and self.value == other.value

    def __repr__(self):
        return f"{type(self).__name__}({self.value!r})"

    def to_python(self):
        return self.value

    @classmethod
    def decode_from(cls, decoder) -> "BencodeType":
        """Builds whichever wrapper matches the value on the wire."""
        kind = decoder.peek_kind()
        if kind is ValueKind.INTEGER:
            return BencodeInt.decode_from(decoder)
        if kind is ValueKind.BYTES:
            return BencodeString.decode_from(decoder)
        if kind is ValueKind.LIST:
            return BencodeList.decode_from(decoder)
        return BencodeDict.decode_from(decoder)


class BencodeInt(BencodeType):
    """Represents a Bencoded integer."""
    def __init__(self, value: int):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("BencodeInt requires an integer.")
        self.value = value

    def encode_into(self, encoder):
        encoder.scalar_container().encode(self.value)

    @classmethod
    def decode_from(cls, decoder):
        return cls(decoder.scalar_container().decode_int())


class BencodeString(BencodeType):
    """Represents a Bencoded byte string."""
    def __init__(self, value: bytes):
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("BencodeString requires bytes.")
        self.value = bytes(value)

    @property
    def text(self) -> str:
        return self.value.decode("utf-8")

    def encode_into(self, encoder):
        encoder.scalar_container().encode(RawBytes(self.value))

    @classmethod
    def decode_from(cls, decoder):
        return cls(decoder.scalar_container().decode_bytes())


class BencodeList(BencodeType):
    """Represents a Bencoded list."""
    def __init__(self, value: list):
        if not isinstance(value, list):
            raise TypeError("BencodeList requires a list.")
        self.value = value

    def to_python(self):
        return [item.to_python() for item in self.value]

    def encode_into(self, encoder):
        encoder.ordered_container().encode_all(self.value)

    @classmethod
    def decode_from(cls, decoder):
        return cls(decoder.ordered_container().decode_all(BencodeType))


class BencodeDict(BencodeType):
    """Represents a Bencoded dictionary."""
    def __init__(self, value: dict):
        if not isinstance(value, dict):
            raise TypeError("BencodeDict requires a dict.")
        # keys are text: bencode dictionary keys are decoded as UTF-8
        for k in value.keys():
            if not isinstance(k, str):
                raise TypeError("BencodeDict keys must be str.")
        self.value = value

    def to_python(self):
        return {key: item.to_python() for key, item in self.value.items()}

    def encode_into(self, encoder):
        container = encoder.keyed_container()
        for key, item in self.value.items():
            container.encode(key, item)

    @classmethod
    def decode_from(cls, decoder):
        container = decoder.keyed_container()
        return cls({key: container.decode(BencodeType, key) for key in container.keys})


def from_python(obj) -> BencodeType:
    """Wraps plain Python values (int, bytes, str, list, dict) into the tree."""
    if isinstance(obj, BencodeType):
        return obj
    if isinstance(obj, bool):
        raise TypeError(f"Cannot bencode object of type {type(obj)}")
    if isinstance(obj, int):
        return BencodeInt(obj)
    if isinstance(obj, str):
        return BencodeString(obj.encode("utf-8"))
    if isinstance(obj, (bytes, bytearray)):
        return BencodeString(bytes(obj))
    if isinstance(obj, (list, tuple)):
        return BencodeList([from_python(item) for item in obj])
    if isinstance(obj, dict):
        return BencodeDict({
            (key.decode("utf-8") if isinstance(key, bytes) else key): from_python(item)
            for key, item in obj.items()
        })
    raise TypeError(f"Cannot bencode object of type {type(obj)}")
