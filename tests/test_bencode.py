from typing import Dict, List

import pytest

from bencodable import (BencodeDecoder, DataCorruptedError, RawBytes, TypeMismatchError, UInt8, UInt64, decode,
                        encode)


def test_int():
    print("Testing integer encoding...")
    assert encode(14) == b"i14e"
    assert encode(-14) == b"i-14e"
    assert encode(0) == b"i0e"

    print("Testing integer decoding...")
    assert decode(int, b"i14e") == 14
    assert decode(int, b"i-14e") == -14
    assert decode(int, b"i0e") == 0
    assert decode(UInt64, b"i14e") == 14


def test_string():
    print("Testing string encoding...")
    enc = encode("Hello, world!")
    print("Encoded:", enc)
    assert enc == b"13:Hello, world!"
    assert encode("") == b"0:"

    print("Testing string decoding...")
    assert decode(str, b"13:Hello, world!") == "Hello, world!"
    assert decode(str, b"0:") == ""


def test_utf8_string_uses_byte_length():
    enc = encode("héllo")
    assert enc == b"6:h\xc3\xa9llo"
    assert decode(str, enc) == "héllo"


def test_raw_bytes():
    digest = bytes(range(20))
    assert encode(RawBytes(digest)) == b"20:" + digest
    assert encode(b"Hello, world!") == b"13:Hello, world!"

    value = decode(RawBytes, b"20:" + digest)
    assert isinstance(value, RawBytes)
    assert value == digest
    assert decode(bytes, b"2:\xff\xfe") == b"\xff\xfe"


def test_list():
    print("Testing list encoding...")
    assert encode([1, 2]) == b"li1ei2ee"
    assert encode(["spam", "egg"]) == b"l4:spam3:egge"
    assert encode([]) == b"le"

    print("Testing list decoding...")
    assert decode(List[int], b"li1ei2ee") == [1, 2]
    assert decode(List[str], b"l4:spam3:egge") == ["spam", "egg"]
    assert decode(List[int], b"le") == []


def test_dict():
    print("Testing dictionary encoding...")
    enc = encode({"spam": "egg", "foo": "bar"})
    print("Encoded:", enc)
    assert enc == b"d3:foo3:bar4:spam3:egge"
    assert encode({}) == b"de"

    print("Testing dictionary decoding...")
    assert decode(Dict[str, str], b"d3:foo3:bar4:spam3:egge") == {"spam": "egg", "foo": "bar"}
    assert decode(Dict[str, int], b"de") == {}


def test_dict_keys_sorted_by_raw_bytes():
    # 'Z' (0x5a) sorts before 'a' (0x61); no case folding
    assert encode({"a": 1, "Z": 2, "ab": 3}) == b"d1:Zi2e1:ai1e2:abi3ee"
    assert encode({b"\xff": 1, b"\x00": 2}) == b"d1:\x00i2e1:\xffi1ee"


def test_nested_roundtrip():
    original = {
        "dict": {"key": "value", "list": ["a", "b"]},
        "hello": "world",
        "numbers": [[1, -2], [], [3]],
    }
    enc = encode(original)
    assert enc == b"d4:dictd3:key5:value4:listl1:a1:bee5:hello5:world7:numberslli1ei-2eeleli3eeee"
    assert decode(Dict[str, object], enc) == {
        "dict": {"key": b"value", "list": [b"a", b"b"]},
        "hello": b"world",
        "numbers": [[1, -2], [], [3]],
    }


@pytest.mark.parametrize("value", [0, 1, -1, 127, -128, 2 ** 31, -(2 ** 63), 2 ** 63 - 1])
def test_integer_roundtrip(value):
    assert decode(int, encode(value)) == value


def test_integer_width_is_checked():
    assert decode(UInt8, b"i255e") == 255
    with pytest.raises(TypeMismatchError):
        decode(UInt8, b"i256e")
    with pytest.raises(TypeMismatchError):
        decode(UInt8, b"i-1e")
    # wider than the signed 64-bit wire integer
    with pytest.raises(TypeMismatchError):
        decode(UInt64, encode(2 ** 64 - 1))


def test_truncated_string():
    with pytest.raises(DataCorruptedError, match="Unexpected end of data"):
        decode(str, b"4:abc")


def test_bad_length_delimiter():
    with pytest.raises(DataCorruptedError, match="':'"):
        decode(str, b"4-abcd")


def test_decode_prefix_reports_consumed_bytes():
    value, consumed = BencodeDecoder().decode_prefix(List[int], b"li1ei2eetrailing")
    assert value == [1, 2]
    assert consumed == 8
