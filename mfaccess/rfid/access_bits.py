"""
MIFARE Classic access condition bytes — decoding and encoding.

Bytes 6-8 of every sector trailer hold the access conditions for the four
blocks of the sector. Each block has three condition bits (C1, C2, C3) and
every bit is stored twice, once as-is and once inverted:

    byte 6:  ~C2 (bits 7-4)   ~C1 (bits 3-0)
    byte 7:   C1 (bits 7-4)   ~C3 (bits 3-0)
    byte 8:   C3 (bits 7-4)    C2 (bits 3-0)

Within each nibble, bit 0 belongs to block 0 and bit 3 to block 3 (the
sector trailer itself).

The decoded form is a 3×4 matrix: row 0 is C1, row 1 is C2, row 2 is C3;
column N is block N.
"""

import logging

logger = logging.getLogger(__name__)

ACCESS_BYTES_LENGTH = 3
NUM_CONDITION_ROWS = 3
BLOCKS_PER_MATRIX = 4

# Factory default ("transport configuration"): data blocks 000, trailer 001
TRANSPORT_ACCESS_BYTES = bytes([0xFF, 0x07, 0x80])

ConditionMatrix = tuple[tuple[int, int, int, int], ...]


class AccessConditionError(ValueError):
    """Base class for access condition errors."""


class RedundancyMismatchError(AccessConditionError):
    """The inverted copy of the condition bits does not match the plain copy."""


def _low(value: int) -> int:
    return value & 0x0F


def _high(value: int) -> int:
    return (value >> 4) & 0x0F


def _inverted(nibble: int) -> int:
    return ~nibble & 0x0F


def _nibble_to_row(nibble: int) -> tuple[int, int, int, int]:
    """Spread a nibble into 4 condition bits, LSB first (block 0 → block 3)."""
    return tuple((nibble >> block) & 0x01 for block in range(BLOCKS_PER_MATRIX))


def _row_to_nibble(row) -> int:
    nibble = 0
    for block, bit in enumerate(row):
        nibble |= bit << block
    return nibble


def _check_length(data: bytes) -> None:
    if len(data) != ACCESS_BYTES_LENGTH:
        raise ValueError(
            f"Access conditions must be {ACCESS_BYTES_LENGTH} bytes, got {len(data)}"
        )


def access_bytes_valid(data: bytes) -> bool:
    """Check the three complementary nibble pairs without raising."""
    _check_length(data)
    b6, b7, b8 = data
    return (
        _high(b7) == _inverted(_low(b6))      # C1
        and _low(b8) == _inverted(_high(b6))  # C2
        and _high(b8) == _inverted(_low(b7))  # C3
    )


def decode_access_bytes(data: bytes) -> ConditionMatrix:
    """
    Decode 3 access condition bytes into a condition matrix.

    Args:
        data: Bytes 6-8 of a sector trailer.

    Returns:
        A tuple of three rows (C1, C2, C3), each a tuple of four bits
        indexed by block number.

    Raises:
        ValueError: if data is not exactly 3 bytes.
        RedundancyMismatchError: if the inverted bits don't match. The
            bytes are corrupted or not access conditions at all.
    """
    if not access_bytes_valid(data):
        logger.debug(f"Access condition redundancy check failed for {bytes(data).hex().upper()}")
        raise RedundancyMismatchError(
            f"Access condition bytes {bytes(data).hex().upper()} fail the "
            "inverted-bit check"
        )
    _, b7, b8 = data
    return (
        _nibble_to_row(_high(b7)),  # C1
        _nibble_to_row(_low(b8)),   # C2
        _nibble_to_row(_high(b8)),  # C3
    )


def _check_matrix(matrix) -> None:
    if len(matrix) != NUM_CONDITION_ROWS:
        raise ValueError(
            f"Condition matrix must have {NUM_CONDITION_ROWS} rows, got {len(matrix)}"
        )
    for i, row in enumerate(matrix):
        if len(row) != BLOCKS_PER_MATRIX:
            raise ValueError(
                f"Condition row C{i + 1} must have {BLOCKS_PER_MATRIX} columns, got {len(row)}"
            )
        for bit in row:
            if not isinstance(bit, int) or bit not in (0, 1):
                raise ValueError(f"Condition bits must be 0 or 1, got {bit!r} in C{i + 1}")


def encode_access_bytes(matrix) -> bytes:
    """
    Encode a condition matrix into 3 access condition bytes.

    The result always passes the redundancy check, so it can go straight
    into a sector trailer.

    Args:
        matrix: Three rows (C1, C2, C3) of four bits each.

    Returns:
        Bytes 6-8 of a sector trailer.
    """
    _check_matrix(matrix)
    c1 = _row_to_nibble(matrix[0])
    c2 = _row_to_nibble(matrix[1])
    c3 = _row_to_nibble(matrix[2])
    return bytes([
        (_inverted(c2) << 4) | _inverted(c1),
        (c1 << 4) | _inverted(c3),
        (c3 << 4) | c2,
    ])


def block_conditions(matrix: ConditionMatrix, block: int) -> tuple[int, int, int]:
    """Return (C1, C2, C3) for one block of the sector (0-3)."""
    if not 0 <= block < BLOCKS_PER_MATRIX:
        raise ValueError(f"Block index must be 0-{BLOCKS_PER_MATRIX - 1}, got {block}")
    return matrix[0][block], matrix[1][block], matrix[2][block]
