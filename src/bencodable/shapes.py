"""
Fixed-width integer targets.

Integers are parsed as signed 64-bit values and then narrowed to the width
the caller asked for; a value that does not fit exactly is a type mismatch.
"""
import typing

from . import config
from .errors import Path, TypeMismatchError


class IntegerShape:
    """An integer decode target with an exact range."""
    def __init__(self, name: str, bits: int, signed: bool):
        self.name = name
        self.bits = bits
        self.signed = signed
        if signed:
            self.min = -(2 ** (bits - 1))
            self.max = 2 ** (bits - 1) - 1
        else:
            self.min = 0
            self.max = 2 ** bits - 1

    def narrow(self, value: int, path: Path = ()) -> int:
        if not self.min <= value <= self.max:
            raise TypeMismatchError(self, f"Invalid type: {self.name} for {value}", path)
        return value

    def __repr__(self):
        return self.name


Int8 = IntegerShape("Int8", 8, True)
Int16 = IntegerShape("Int16", 16, True)
Int32 = IntegerShape("Int32", 32, True)
Int64 = IntegerShape("Int64", 64, True)
UInt8 = IntegerShape("UInt8", 8, False)
UInt16 = IntegerShape("UInt16", 16, False)
UInt32 = IntegerShape("UInt32", 32, False)
UInt64 = IntegerShape("UInt64", 64, False)


def integer_shape(shape) -> IntegerShape:
    """Plain ``int`` means the wire width, Int64."""
    if shape is int:
        return Int64
    return shape


def wire_integer(value: int, path: Path = ()) -> int:
    """Applies the signed 64-bit wire limit to a freshly parsed integer."""
    if not config.INT64_MIN <= value <= config.INT64_MAX:
        raise TypeMismatchError(Int64, f"Integer {value} does not fit in a signed 64-bit value", path)
    return value


def shape_name(shape) -> str:
    if isinstance(shape, IntegerShape):
        return shape.name
    if typing.get_origin(shape) is not None:
        return repr(shape).replace("typing.", "")
    return getattr(shape, "__name__", repr(shape))
