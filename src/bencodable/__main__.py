"""
Command-line inspection of bencoded files.

    python -m bencodable dump FILE
    python -m bencodable torrent FILE
"""
import argparse
import logging
import pprint
import sys

from . import config
from .decoder import BencodeDecoder
from .errors import BencodeError
from .grammar import ValueKind, key_bytes
from .torrent import Metainfo

logger = logging.getLogger("bencodable")


class HexPrinter:
    def __init__(self, data: bytes):
        self.data = data

    def __repr__(self):
        return "hex({} bytes):'{}'".format(len(self.data), self.data.hex())


def _printable(data: bytes):
    # If the string is ascii then show it as text, otherwise as hex
    if all(0x20 <= b <= 0x7e for b in data):
        return data.decode("ascii")
    return HexPrinter(data)


class DumpValue:
    """Decode target that turns any value into something pprint can show."""
    @classmethod
    def decode_from(cls, decoder):
        kind = decoder.peek_kind()
        if kind is ValueKind.INTEGER:
            return decoder.scalar_container().decode_int()
        if kind is ValueKind.BYTES:
            return _printable(decoder.scalar_container().decode_bytes())
        if kind is ValueKind.LIST:
            return decoder.ordered_container().decode_all(cls)

        container = decoder.keyed_container()
        keys = container.keys
        for last_key, key in zip(keys, keys[1:]):
            if key_bytes(key) <= key_bytes(last_key):
                logger.warning("Found out-of-order dict keys (%r after %r)", key, last_key)
        return {key: container.decode(cls, key) for key in keys}


def setup_logger(log_level: str = config.LOG_LEVEL) -> None:
    """Configure application logger"""
    level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def dump(args) -> None:
    with open(args.file, "rb") as f:
        data = f.read()
    value = BencodeDecoder(strict=args.strict).decode(DumpValue, data)
    pprint.PrettyPrinter(indent=2).pprint(value)


def torrent(args) -> None:
    meta = Metainfo.from_file(args.file, strict=args.strict)
    info = meta.info
    print("name:", info.name)
    print("announce:", meta.announce)
    if meta.announce_list:
        print("announce_list:", meta.announce_list)
    print("pieces:", len(info.piece_hashes), "x", info.piece_length)
    print("total_length:", info.total_length)
    if info.is_multi:
        for entry in info.files:
            print("  ", "/".join(entry.path), entry.length)
    print("info_hash:", meta.info_hash.hex())


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="bencodable", description="Inspect bencoded files")
    parser.add_argument('--strict', action='store_true', default=config.DEFAULT_STRICT,
                        help='Reject leading zeros, negative zero and unsorted or duplicate keys')
    parser.add_argument('--log-level', default=config.LOG_LEVEL, help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    dump_parser = subparsers.add_parser('dump', help='Pretty-print any bencoded file')
    dump_parser.add_argument('file', help='Path to the bencoded file')
    dump_parser.set_defaults(handler=dump)

    torrent_parser = subparsers.add_parser('torrent', help='Summarise a .torrent file')
    torrent_parser.add_argument('file', help='Path to the .torrent file')
    torrent_parser.set_defaults(handler=torrent)

    args = parser.parse_args(argv)
    setup_logger(args.log_level)

    try:
        args.handler(args)
    except (BencodeError, OSError) as e:
        print(f"{args.file}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
