from collections import OrderedDict

import pytest

from bencodable import BencodeEncoder, ContainerRequestError, InvalidValueError, RawBytes, encode
from bencodable.encoder import Encoder


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y

    def encode_into(self, encoder):
        container = encoder.keyed_container()
        container.encode("y", self.y)
        container.encode("x", self.x)


class Pair:
    def __init__(self, first, second):
        self.first = first
        self.second = second

    def encode_into(self, encoder):
        container = encoder.ordered_container()
        container.encode(self.first)
        container.encode(self.second)


class Doubled:
    def encode_into(self, encoder):
        container = encoder.scalar_container()
        container.encode(1)
        container.encode(2)


class Greedy:
    def encode_into(self, encoder):
        encoder.keyed_container()
        encoder.scalar_container()


class Silent:
    def encode_into(self, encoder):
        pass


def test_custom_keyed_value_sorted_on_output():
    assert encode(Point(1, 2)) == b"d1:xi1e1:yi2ee"


def test_custom_values_nest():
    assert encode(Pair(Point(1, 2), [Pair("a", b"b")])) == b"ld1:xi1e1:yi2eel" b"l1:a1:beee"


def test_insertion_order_does_not_matter():
    forward = OrderedDict([("spam", "egg"), ("foo", "bar")])
    backward = OrderedDict([("foo", "bar"), ("spam", "egg")])
    assert encode(forward) == encode(backward) == b"d3:foo3:bar4:spam3:egge"


def test_nested_containers():
    encoder = Encoder()
    root = encoder.keyed_container()
    root.encode("name", "root")
    children = root.nested_ordered_container("children")
    children.encode(1)
    child = children.nested_keyed_container()
    child.encode("leaf", RawBytes(b"\x00\x01"))
    children.nested_ordered_container().encode_all([2, 3])
    assert children.count == 3
    root.encoder_for("custom").encode_value(Point(0, 0))
    assert encoder.data == (
        b"d8:childrenli1ed4:leaf2:\x00\x01eli2ei3eee"
        b"6:customd1:xi0e1:yi0ee"
        b"4:name4:roote"
    )


def test_same_key_twice_keeps_last_write():
    encoder = Encoder()
    container = encoder.keyed_container()
    container.encode("a", 1)
    container.encode(b"a", 2)
    assert encoder.data == b"d1:ai2ee"


def test_encode_if_present():
    encoder = Encoder()
    container = encoder.keyed_container()
    container.encode_if_present("a", None)
    container.encode_if_present("b", 0)
    assert encoder.data == b"d1:bi0ee"


def test_none_is_not_encodable():
    with pytest.raises(InvalidValueError, match="null"):
        encode(None)
    with pytest.raises(InvalidValueError) as info:
        encode({"a": [1, None]})
    assert info.value.path == ("a", 1)


@pytest.mark.parametrize("value", [True, 1.5, {1, 2}, object()])
def test_unsupported_values(value):
    with pytest.raises(InvalidValueError):
        encode(value)


def test_integer_range():
    assert encode(2 ** 64 - 1) == b"i18446744073709551615e"
    assert encode(-(2 ** 63)) == b"i-9223372036854775808e"
    with pytest.raises(InvalidValueError, match="64 bits"):
        encode(2 ** 64)


def test_bad_key_type():
    with pytest.raises(InvalidValueError, match="keys must be str or bytes"):
        encode({1: "x"})


def test_scalar_accepts_only_one_write():
    with pytest.raises(InvalidValueError, match="multiple values"):
        encode(Doubled())


def test_second_container_request_is_a_contract_violation():
    with pytest.raises(ContainerRequestError):
        encode(Greedy())


def test_value_that_writes_nothing():
    with pytest.raises(InvalidValueError, match="nothing to encode"):
        encode(Silent())


def test_bytes_like_values():
    assert encode(bytearray(b"ab")) == b"2:ab"
    assert encode(memoryview(b"ab")) == b"2:ab"
    assert encode((1, "a")) == b"li1e1:ae"


def test_encoder_class():
    assert BencodeEncoder().encode({"k": [b"v"]}) == b"d1:kl1:veee"
