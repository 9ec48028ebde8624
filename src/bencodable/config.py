"""
Codec constants and environment-driven defaults.
"""
import os

# --- General ---
LOG_LEVEL = os.environ.get('BENCODABLE_LOG_LEVEL', 'WARNING')

# --- Integer range ---
# Integers travel as signed 64-bit values; the encoder also accepts the
# unsigned 64-bit range so every fixed-width integer can be written.
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

# --- Decoding ---
DEFAULT_STRICT = os.environ.get('BENCODABLE_STRICT', '0').lower() in ('1', 'true', 'yes')
DEFAULT_ALLOW_TRAILING_DATA = False
MAX_NESTING_DEPTH = 64

# --- Torrent metainfo ---
PIECE_HASH_LEN = 20   # SHA-1 digest size
COMPACT_PEER_LEN = 6  # 4 bytes IPv4 + 2 bytes port
