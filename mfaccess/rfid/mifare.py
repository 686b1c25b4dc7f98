"""
MIFARE Classic 1K geometry and sector trailer layout.

A MIFARE Classic 1K tag has:
- 16 sectors (0-15)
- 4 blocks per sector (64 blocks total, numbered 0-63)
- 16 bytes per block
- Every 4th block (3, 7, 11, ...): sector trailer (Key A + access bits + Key B)

Sector trailer layout:
    bytes 0-5:   Key A (always reads back as zeros)
    bytes 6-8:   access conditions
    byte 9:      general purpose byte ("user data")
    bytes 10-15: Key B (or data, if readable)
"""

import re

from .access_bits import ACCESS_BYTES_LENGTH, RedundancyMismatchError, access_bytes_valid

# Tag geometry
NUM_SECTORS = 16
BLOCKS_PER_SECTOR = 4
BYTES_PER_BLOCK = 16
TOTAL_BLOCKS = NUM_SECTORS * BLOCKS_PER_SECTOR  # 64

# Sector trailer layout within a 16-byte block
KEY_A_OFFSET = 0
KEY_LENGTH = 6
ACCESS_BITS_OFFSET = 6
ACCESS_BITS_LENGTH = 4
KEY_B_OFFSET = 10

# Default general purpose byte written by NXP
DEFAULT_USER_BYTE = 0x69
DEFAULT_KEY = bytes([0xFF] * KEY_LENGTH)

_HEX_BLOCK_RE = re.compile(r"[0-9A-Fa-f]{32}")


def sector_to_block(sector: int) -> int:
    """Return the first block number for a given sector."""
    return sector * BLOCKS_PER_SECTOR


def block_to_sector(block: int) -> int:
    return block // BLOCKS_PER_SECTOR


def is_sector_trailer(block: int) -> bool:
    """Check if a block number is a sector trailer."""
    return (block + 1) % BLOCKS_PER_SECTOR == 0


def sector_trailer_block(sector: int) -> int:
    return sector_to_block(sector) + BLOCKS_PER_SECTOR - 1


def data_blocks_for_sector(sector: int) -> list[int]:
    """Return the data block numbers (non-trailer) for a given sector."""
    first = sector_to_block(sector)
    return [first + i for i in range(BLOCKS_PER_SECTOR - 1)]


def parse_sector_trailer(data: bytes) -> dict:
    """
    Split a 16-byte sector trailer block.

    Returns dict with key_a, access_bits (4 bytes, including the general
    purpose byte) and key_b as bytes.
    """
    if len(data) != BYTES_PER_BLOCK:
        raise ValueError(f"Sector trailer must be {BYTES_PER_BLOCK} bytes, got {len(data)}")
    data = bytes(data)
    return {
        "key_a": data[KEY_A_OFFSET:KEY_A_OFFSET + KEY_LENGTH],
        "access_bits": data[ACCESS_BITS_OFFSET:ACCESS_BITS_OFFSET + ACCESS_BITS_LENGTH],
        "key_b": data[KEY_B_OFFSET:KEY_B_OFFSET + KEY_LENGTH],
    }


def build_sector_trailer(key_a: bytes, access_bytes: bytes, key_b: bytes,
                         user_byte: int = DEFAULT_USER_BYTE) -> bytes:
    """
    Assemble a 16-byte sector trailer.

    Writing a trailer with broken access conditions permanently locks the
    sector, so the access bytes are checked before anything is built.

    Raises:
        ValueError: on wrong key/access byte lengths or user byte range.
        RedundancyMismatchError: if the access bytes are not valid.
    """
    for name, key in (("Key A", key_a), ("Key B", key_b)):
        if len(key) != KEY_LENGTH:
            raise ValueError(f"{name} must be {KEY_LENGTH} bytes, got {len(key)}")
    if len(access_bytes) != ACCESS_BYTES_LENGTH:
        raise ValueError(
            f"Access conditions must be {ACCESS_BYTES_LENGTH} bytes, got {len(access_bytes)}"
        )
    if not 0 <= user_byte <= 0xFF:
        raise ValueError(f"User byte must be 0-255, got {user_byte}")
    if not access_bytes_valid(access_bytes):
        raise RedundancyMismatchError(
            f"Refusing to build a sector trailer with invalid access conditions "
            f"{bytes(access_bytes).hex().upper()}"
        )
    return bytes(key_a) + bytes(access_bytes) + bytes([user_byte]) + bytes(key_b)


def is_hex_block(text: str) -> bool:
    """Check if a string is exactly one block (32 hex chars), ignoring whitespace."""
    return _HEX_BLOCK_RE.fullmatch("".join(text.split())) is not None


def hex_to_block(text: str) -> bytes:
    """Parse a hex-encoded 16-byte block (e.g. "FFFFFFFFFFFFFF078069FFFFFFFFFFFF")."""
    clean = "".join(text.split())
    if not _HEX_BLOCK_RE.fullmatch(clean):
        raise ValueError(
            f"Block must be {BYTES_PER_BLOCK} bytes of hex ({BYTES_PER_BLOCK * 2} chars)"
        )
    return bytes.fromhex(clean)
