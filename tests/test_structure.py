from typing import Any

import pytest

from bencodable import BencodeDict, BencodeInt, BencodeList, BencodeString, BencodeType, RawBytes, decode, encode
from bencodable.structure import from_python


def test_int():
    obj = decode(BencodeType, b"i42e")
    print("Decoded:", obj)
    assert isinstance(obj, BencodeInt)
    assert obj.value == 42
    assert encode(obj) == b"i42e"


def test_string():
    obj = decode(BencodeType, b"4:spam")
    assert isinstance(obj, BencodeString)
    assert obj.value == b"spam"
    assert obj.text == "spam"
    assert encode(obj) == b"4:spam"


def test_list():
    obj = decode(BencodeType, b"l4:spami3ee")
    assert isinstance(obj, BencodeList)
    assert obj.value == [BencodeString(b"spam"), BencodeInt(3)]


def test_dict():
    obj = decode(BencodeType, b"d3:cow3:mooe")
    assert isinstance(obj, BencodeDict)
    assert obj.value["cow"].value == b"moo"
    enc = encode(obj)
    print("Re-encoded:", enc)
    assert enc == b"d3:cow3:mooe"


def test_specific_wrapper_requires_matching_kind():
    assert decode(BencodeList, b"le") == BencodeList([])
    with pytest.raises(ValueError):
        decode(BencodeDict, b"le")


def test_to_python_and_back():
    data = b"d4:infod4:name3:fooe4:listli1e1:xee"
    obj = decode(BencodeType, data)
    assert obj.to_python() == {"info": {"name": b"foo"}, "list": [1, b"x"]}
    assert from_python(obj.to_python()) == obj
    assert encode(from_python({"list": [1, "x"], b"info": {"name": "foo"}})) == data
    assert decode(Any, data) == obj.to_python()


def test_wrapper_type_checks():
    with pytest.raises(TypeError):
        BencodeInt(True)
    with pytest.raises(TypeError):
        BencodeString("text")
    with pytest.raises(TypeError):
        BencodeDict({b"key": BencodeInt(1)})
    with pytest.raises(TypeError):
        from_python(None)


def test_raw_bytes_passthrough():
    blob = b"\xff\x00\xfe"
    raw = RawBytes(blob)
    assert repr(raw) == "RawBytes(b'\\xff\\x00\\xfe')"
    assert encode(raw) == b"3:" + blob
    assert encode([raw]) == b"l3:" + blob + b"e"
    assert decode(RawBytes, encode(raw)) == raw
