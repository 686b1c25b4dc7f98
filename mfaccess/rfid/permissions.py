"""
Access condition permission tables for MIFARE Classic blocks.

Maps the condition bits (C1, C2, C3) of a block, together with the role of
the block and the requested operation, to the key that is allowed to do it.
Both tables are copied from the NXP MIFARE Classic datasheet ("Access
conditions for the sector trailer" and "Access conditions for data blocks").
"""

import logging
from enum import Enum

from .access_bits import (
    AccessConditionError, ConditionMatrix, block_conditions, BLOCKS_PER_MATRIX,
)
from .mifare import is_sector_trailer

logger = logging.getLogger(__name__)


class OperationRoleMismatchError(AccessConditionError):
    """A data block operation was requested for a sector trailer, or vice versa."""


class BlockRole(str, Enum):
    DATA_BLOCK = "data_block"
    SECTOR_TRAILER = "sector_trailer"


class Operation(str, Enum):
    # Data blocks
    READ = "read"
    WRITE = "write"
    INCREMENT = "increment"
    DECREMENT_TRANSFER_RESTORE = "decrement_transfer_restore"
    # Sector trailer
    READ_KEY_A = "read_key_a"
    READ_KEY_B = "read_key_b"
    READ_ACCESS_BITS = "read_access_bits"
    WRITE_KEY_A = "write_key_a"
    WRITE_KEY_B = "write_key_b"
    WRITE_ACCESS_BITS = "write_access_bits"


class KeyRequirement(str, Enum):
    NEVER = "never"
    KEY_A = "key_a"
    KEY_B = "key_b"
    KEY_A_OR_B = "key_a_or_b"
    INVALID = "invalid"


DATA_BLOCK_OPERATIONS = (
    Operation.READ,
    Operation.WRITE,
    Operation.INCREMENT,
    Operation.DECREMENT_TRANSFER_RESTORE,
)

SECTOR_TRAILER_OPERATIONS = (
    Operation.READ_KEY_A,
    Operation.WRITE_KEY_A,
    Operation.READ_ACCESS_BITS,
    Operation.WRITE_ACCESS_BITS,
    Operation.READ_KEY_B,
    Operation.WRITE_KEY_B,
)


class DataCell(str, Enum):
    """A data block table cell, before Key B readability is applied."""
    NEVER = "never"
    KEY_A = "key_a"
    KEY_B = "key_b"
    DEPENDS_ON_KEY_B_READABILITY = "depends_on_key_b_readability"


# Short aliases so the tables below line up with the datasheet
_N = KeyRequirement.NEVER
_A = KeyRequirement.KEY_A
_B = KeyRequirement.KEY_B
_AB = KeyRequirement.KEY_A_OR_B

# (C1, C2, C3) -> requirement, in SECTOR_TRAILER_OPERATIONS order:
#                  read A  write A  read AC  write AC  read B  write B
_TRAILER_ROWS = {
    (0, 0, 0): (_N, _A, _A, _N, _A, _A),
    (0, 1, 0): (_N, _N, _A, _N, _A, _N),
    (1, 0, 0): (_N, _B, _AB, _N, _N, _B),
    (1, 1, 0): (_N, _N, _AB, _N, _N, _N),
    (0, 0, 1): (_N, _A, _A, _A, _A, _A),   # transport configuration
    (0, 1, 1): (_N, _B, _AB, _B, _N, _B),
    (1, 0, 1): (_N, _N, _AB, _B, _N, _N),
    (1, 1, 1): (_N, _N, _AB, _N, _N, _N),
}

_n = DataCell.NEVER
_a = DataCell.KEY_A
_b = DataCell.KEY_B
# Key A or B while Key B is readable, otherwise Key A only
_dep = DataCell.DEPENDS_ON_KEY_B_READABILITY

# (C1, C2, C3) -> cell, in DATA_BLOCK_OPERATIONS order:
#                  read  write  increment  dec/transfer/restore
_DATA_ROWS = {
    (0, 0, 0): (_dep, _dep, _dep, _dep),   # transport configuration
    (0, 1, 0): (_dep, _n, _n, _n),
    (1, 0, 0): (_dep, _b, _n, _n),
    (1, 1, 0): (_dep, _b, _b, _dep),       # value block
    (0, 0, 1): (_dep, _n, _n, _dep),       # value block
    (0, 1, 1): (_b, _b, _n, _n),
    (1, 0, 1): (_b, _n, _n, _n),
    (1, 1, 1): (_n, _n, _n, _n),
}

_FIXED_CELLS = {
    DataCell.NEVER: KeyRequirement.NEVER,
    DataCell.KEY_A: KeyRequirement.KEY_A,
    DataCell.KEY_B: KeyRequirement.KEY_B,
}

SECTOR_TRAILER_TABLE = {
    bits: dict(zip(SECTOR_TRAILER_OPERATIONS, row)) for bits, row in _TRAILER_ROWS.items()
}
DATA_BLOCK_TABLE = {
    bits: dict(zip(DATA_BLOCK_OPERATIONS, row)) for bits, row in _DATA_ROWS.items()
}

# Key B is stored in the clear (readable with Key A) for these trailer conditions
KEY_B_READABLE_CONDITIONS = frozenset({(0, 0, 0), (0, 1, 0), (0, 0, 1)})


def operations_for(role: BlockRole) -> tuple[Operation, ...]:
    """Return the operations that apply to a block role, in table order."""
    if BlockRole(role) is BlockRole.SECTOR_TRAILER:
        return SECTOR_TRAILER_OPERATIONS
    return DATA_BLOCK_OPERATIONS


def role_for_block(block: int) -> BlockRole:
    """Return the role of a block, by absolute number or index within its sector."""
    if is_sector_trailer(block):
        return BlockRole.SECTOR_TRAILER
    return BlockRole.DATA_BLOCK


def is_key_b_readable(c1: int, c2: int, c3: int) -> bool:
    """Check if Key B can be read from the sector trailer with these conditions."""
    return (c1, c2, c3) in KEY_B_READABLE_CONDITIONS


def resolve(c1: int, c2: int, c3: int, role: BlockRole, op: Operation,
            key_b_readable: bool) -> KeyRequirement:
    """
    Look up which key allows an operation on a block.

    Args:
        c1, c2, c3: Condition bits of the block.
        role: Whether the block is a data block or the sector trailer.
        op: The requested operation. Must belong to the role's family.
        key_b_readable: Whether Key B of the sector is readable, see
            is_key_b_readable(). Only affects data blocks.

    Returns:
        The required key. KeyRequirement.INVALID if a condition bit is
        neither 0 nor 1.

    Raises:
        OperationRoleMismatchError: if op does not apply to role.
    """
    role = BlockRole(role)
    op = Operation(op)
    if op not in operations_for(role):
        raise OperationRoleMismatchError(
            f"Operation '{op.value}' does not apply to a {role.value.replace('_', ' ')}"
        )

    table = SECTOR_TRAILER_TABLE if role is BlockRole.SECTOR_TRAILER else DATA_BLOCK_TABLE
    row = table.get((c1, c2, c3))
    if row is None:
        logger.warning(f"Undefined access conditions C1={c1} C2={c2} C3={c3} for {role.value}")
        return KeyRequirement.INVALID

    cell = row[op]
    if role is BlockRole.SECTOR_TRAILER:
        return cell
    if cell is DataCell.DEPENDS_ON_KEY_B_READABILITY:
        return KeyRequirement.KEY_A_OR_B if key_b_readable else KeyRequirement.KEY_A
    return _FIXED_CELLS[cell]


def resolve_block(matrix: ConditionMatrix, block: int, op: Operation) -> KeyRequirement:
    """
    Resolve an operation for one block of a decoded sector.

    Block 3 is treated as the sector trailer; Key B readability is taken
    from the trailer's own conditions.
    """
    c1, c2, c3 = block_conditions(matrix, block)
    key_b_readable = is_key_b_readable(*block_conditions(matrix, BLOCKS_PER_MATRIX - 1))
    return resolve(c1, c2, c3, role_for_block(block), op, key_b_readable)
