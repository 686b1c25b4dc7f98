"""
MIFARE Classic value blocks.

A value block stores a signed 32-bit counter with built-in redundancy:

    bytes 0-3:   value (little endian)
    bytes 4-7:   ~value
    bytes 8-11:  value
    bytes 12-15: addr, ~addr, addr, ~addr

The card only accepts increment/decrement/transfer/restore on blocks that
have this layout.
"""

import struct

from .mifare import BYTES_PER_BLOCK

VALUE_MIN = -(2 ** 31)
VALUE_MAX = 2 ** 31 - 1


def _invert(data: bytes) -> bytes:
    return bytes(b ^ 0xFF for b in data)


def is_value_block(block: bytes) -> bool:
    """Check if a 16-byte block has the value block structure."""
    if len(block) != BYTES_PER_BLOCK:
        return False
    block = bytes(block)
    value = block[0:4]
    return (
        value == block[8:12]
        and _invert(value) == block[4:8]
        and block[12] == block[14]
        and block[13] == block[15]
        and block[12] ^ 0xFF == block[13]
    )


def encode_value_block(value: int, address: int) -> bytes:
    """
    Build a 16-byte value block.

    Args:
        value: Signed 32-bit counter value.
        address: Block address byte (0-255), used by backup management.

    Returns:
        The value block bytes.
    """
    if not VALUE_MIN <= value <= VALUE_MAX:
        raise ValueError(f"Value must fit in a signed 32-bit integer, got {value}")
    if not 0 <= address <= 0xFF:
        raise ValueError(f"Address must be 0-255, got {address}")
    raw = struct.pack("<i", value)
    addr = bytes([address, address ^ 0xFF])
    return raw + _invert(raw) + raw + addr + addr


def decode_value_block(block: bytes) -> tuple[int, int]:
    """Return (value, address) of a value block."""
    if not is_value_block(block):
        raise ValueError("Block is not a valid value block")
    block = bytes(block)
    return struct.unpack_from("<i", block, 0)[0], block[12]
