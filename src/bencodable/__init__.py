"""
Bencode codec for BitTorrent metainfo and tracker responses.

Values drive their own encoding through ``encode_into(encoder)`` and are built
back with ``decode_from(decoder)``; plain ints, strings, bytes, lists and
dicts work out of the box.
"""
import logging

from .decoder import BencodeDecoder, Decoder, decode, decode_prefix
from .encoder import BencodeEncoder, Encoder, encode
from .errors import (BencodeDecodeError, BencodeEncodeError, BencodeError, ContainerRequestError,
                     DataCorruptedError, InvalidValueError, KeyNotFoundError, TypeMismatchError)
from .shapes import Int8, Int16, Int32, Int64, UInt8, UInt16, UInt32, UInt64
from .structure import BencodeDict, BencodeInt, BencodeList, BencodeString, BencodeType, RawBytes

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'encode', 'decode', 'decode_prefix',
    'BencodeEncoder', 'BencodeDecoder', 'Encoder', 'Decoder',
    'RawBytes', 'BencodeType', 'BencodeInt', 'BencodeString', 'BencodeList', 'BencodeDict',
    'Int8', 'Int16', 'Int32', 'Int64', 'UInt8', 'UInt16', 'UInt32', 'UInt64',
    'BencodeError', 'BencodeDecodeError', 'BencodeEncodeError', 'DataCorruptedError', 'TypeMismatchError',
    'KeyNotFoundError', 'InvalidValueError', 'ContainerRequestError',
]
