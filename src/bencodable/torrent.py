"""
BitTorrent metainfo and tracker responses, decoded through the container
protocol instead of a generic tree.
"""
import hashlib
from pathlib import Path
from typing import List, Optional, Tuple

from . import config
from .decoder import decode
from .encoder import encode
from .errors import DataCorruptedError
from .grammar import ValueKind
from .structure import RawBytes


def compact_to_peers(blob: bytes, path=("peers",)) -> List[Tuple[str, int]]:
    """
    Decodes a compact peer list (6 bytes per peer: 4 for IP, 2 for port)
    into a list of (IP, port) tuples.
    """
    if len(blob) % config.COMPACT_PEER_LEN:
        raise DataCorruptedError(f"Compact peer list length {len(blob)} is not a multiple of 6", path)

    peers = []
    for i in range(0, len(blob), config.COMPACT_PEER_LEN):
        ip = ".".join(str(b) for b in blob[i:i+4])
        port = int.from_bytes(blob[i+4:i+6], "big")
        peers.append((ip, port))
    return peers


def peers_to_compact(peers: List[Tuple[str, int]]) -> bytes:
    return b"".join(
        bytes(int(part) for part in ip.split(".")) + port.to_bytes(2, "big")
        for ip, port in peers
    )


class FileEntry:
    """One file of a multi-file torrent."""
    def __init__(self, length: int, path: List[str]):
        self.length = length
        self.path = path

    def __eq__(self, other):
        return isinstance(other, FileEntry) and (self.length, self.path) == (other.length, other.path)

    def __repr__(self):
        return f"FileEntry(length={self.length}, path={'/'.join(self.path)!r})"

    def encode_into(self, encoder):
        container = encoder.keyed_container()
        container.encode("length", self.length)
        container.encode("path", self.path)

    @classmethod
    def decode_from(cls, decoder):
        container = decoder.keyed_container()
        return cls(container.decode(int, "length"), container.decode(List[str], "path"))


class InfoDict:
    """The ``info`` dictionary; its bencoded form is what the info-hash covers."""
    def __init__(self, name: str, piece_length: int, pieces: bytes,
                 length: Optional[int] = None, files: Optional[List[FileEntry]] = None,
                 private: Optional[int] = None):
        self.name = name
        self.piece_length = piece_length
        self.pieces = RawBytes(pieces)
        self.length = length
        self.files = files
        self.private = private

    @property
    def is_multi(self) -> bool:
        return self.files is not None

    @property
    def total_length(self) -> int:
        if self.files is not None:
            return sum(f.length for f in self.files)
        return self.length

    @property
    def piece_hashes(self) -> List[bytes]:
        size = config.PIECE_HASH_LEN
        return [self.pieces[i:i+size] for i in range(0, len(self.pieces), size)]

    def __eq__(self, other):
        return isinstance(other, InfoDict) and vars(self) == vars(other)

    def __repr__(self):
        return (
            f"InfoDict(name={self.name!r}, pieces={len(self.piece_hashes)}, "
            f"multi={self.is_multi}, total_length={self.total_length})"
        )

    def encode_into(self, encoder):
        container = encoder.keyed_container()
        container.encode("name", self.name)
        container.encode("piece length", self.piece_length)
        container.encode("pieces", self.pieces)
        container.encode_if_present("length", self.length)
        container.encode_if_present("files", self.files)
        container.encode_if_present("private", self.private)

    @classmethod
    def decode_from(cls, decoder):
        container = decoder.keyed_container()
        pieces = container.decode(RawBytes, "pieces")
        if len(pieces) % config.PIECE_HASH_LEN:
            raise DataCorruptedError(
                f"'pieces' length {len(pieces)} is not a multiple of {config.PIECE_HASH_LEN}",
                container.path + ("pieces",)
            )
        if "length" not in container and "files" not in container:
            raise DataCorruptedError("Info dictionary needs either 'length' or 'files'", container.path)

        return cls(
            name=container.decode(str, "name"),
            piece_length=container.decode(int, "piece length"),
            pieces=pieces,
            length=container.decode_if_present(int, "length"),
            files=container.decode_if_present(List[FileEntry], "files"),
            private=container.decode_if_present(int, "private"),
        )


class Metainfo:
    """A .torrent file."""
    def __init__(self, announce: str, info: InfoDict, announce_list: Optional[List[List[str]]] = None,
                 comment: Optional[str] = None, created_by: Optional[str] = None,
                 creation_date: Optional[int] = None, info_bytes: Optional[bytes] = None):
        self.announce = announce
        self.info = info
        self.announce_list = announce_list
        self.comment = comment
        self.created_by = created_by
        self.creation_date = creation_date
        # Exact bytes of 'info' as read; the info-hash covers these
        self.info_bytes = info_bytes

    @property
    def info_hash(self) -> bytes:
        info_bytes = self.info_bytes if self.info_bytes is not None else encode(self.info)
        return hashlib.sha1(info_bytes).digest()

    @classmethod
    def from_file(cls, path, strict: bool = None) -> "Metainfo":
        return decode(cls, Path(path).read_bytes(), strict=strict)

    def __repr__(self):
        return f"Metainfo(name={self.info.name!r}, announce={self.announce!r})"

    def encode_into(self, encoder):
        container = encoder.keyed_container()
        container.encode("announce", self.announce)
        container.encode_if_present("announce-list", self.announce_list)
        container.encode_if_present("comment", self.comment)
        container.encode_if_present("created by", self.created_by)
        container.encode_if_present("creation date", self.creation_date)
        container.encode("info", self.info)

    @classmethod
    def decode_from(cls, decoder):
        container = decoder.keyed_container()
        return cls(
            announce=container.decode(str, "announce"),
            info=container.decode(InfoDict, "info"),
            announce_list=container.decode_if_present(List[List[str]], "announce-list"),
            comment=container.decode_if_present(str, "comment"),
            created_by=container.decode_if_present(str, "created by"),
            creation_date=container.decode_if_present(int, "creation date"),
            info_bytes=container.raw_bytes("info"),
        )


class TrackerResponse:
    """An HTTP tracker announce response."""
    def __init__(self, interval: Optional[int] = None, peers: Optional[List[Tuple[str, int]]] = None,
                 failure_reason: Optional[str] = None, complete: Optional[int] = None,
                 incomplete: Optional[int] = None):
        self.interval = interval
        self.peers = peers if peers is not None else []
        self.failure_reason = failure_reason
        self.complete = complete
        self.incomplete = incomplete

    def encode_into(self, encoder):
        container = encoder.keyed_container()
        if self.failure_reason is not None:
            container.encode("failure reason", self.failure_reason)
            return
        container.encode_if_present("interval", self.interval)
        container.encode_if_present("complete", self.complete)
        container.encode_if_present("incomplete", self.incomplete)
        container.encode("peers", RawBytes(peers_to_compact(self.peers)))

    @classmethod
    def decode_from(cls, decoder):
        container = decoder.keyed_container()
        failure = container.decode_if_present(str, "failure reason")
        if failure is not None:
            return cls(failure_reason=failure)

        peers = []
        if "peers" in container:
            peers_decoder = container.decoder_for("peers")
            if peers_decoder.peek_kind() is ValueKind.BYTES:
                # Compact peer list (bytes)
                peers = compact_to_peers(peers_decoder.scalar_container().decode_bytes(), peers_decoder.path)
            else:
                # Non-compact peer list (list of dictionaries)
                peer_list = peers_decoder.ordered_container()
                while not peer_list.is_at_end:
                    peer = peer_list.nested_keyed_container()
                    peers.append((peer.decode(str, "ip"), peer.decode(int, "port")))

        return cls(
            interval=container.decode_if_present(int, "interval"),
            peers=peers,
            complete=container.decode_if_present(int, "complete"),
            incomplete=container.decode_if_present(int, "incomplete"),
        )
