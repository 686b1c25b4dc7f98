"""
Per-sector access summary — decodes the access conditions of a sector
trailer and resolves every operation for each of its four blocks.
"""

from dataclasses import dataclass, field
from typing import Optional

from .access_bits import (
    ACCESS_BYTES_LENGTH, BLOCKS_PER_MATRIX, ConditionMatrix,
    block_conditions, decode_access_bytes,
)
from .mifare import (
    NUM_SECTORS, block_to_sector, data_blocks_for_sector, parse_sector_trailer,
    sector_to_block, sector_trailer_block,
)
from .permissions import (
    BlockRole, KeyRequirement, Operation,
    is_key_b_readable, operations_for, resolve, role_for_block,
)

TRAILER_INDEX = BLOCKS_PER_MATRIX - 1


@dataclass
class BlockAccess:
    """Resolved permissions for one block of a sector."""
    block: int                     # 0-3 within the sector
    role: BlockRole
    conditions: tuple[int, int, int]
    permissions: dict[Operation, KeyRequirement] = field(default_factory=dict)
    block_number: Optional[int] = None  # Absolute block number, if the sector is known

    def to_dict(self) -> dict:
        return {
            "block": self.block,
            "block_number": self.block_number,
            "role": self.role.value,
            "conditions": "".join(str(c) for c in self.conditions),
            "permissions": {op.value: req.value for op, req in self.permissions.items()},
        }


@dataclass
class SectorAccess:
    """Decoded access conditions of a whole sector."""
    access_bytes: bytes
    matrix: ConditionMatrix
    key_b_readable: bool
    blocks: list[BlockAccess] = field(default_factory=list)
    sector: Optional[int] = None

    @property
    def trailer(self) -> BlockAccess:
        return self.blocks[TRAILER_INDEX]

    def for_block(self, block_number: int) -> BlockAccess:
        """Return the permissions of an absolute block number in this sector."""
        if self.sector is None:
            raise ValueError("Sector number unknown, look up blocks by index instead")
        if block_to_sector(block_number) != self.sector:
            raise ValueError(f"Block {block_number} is not in sector {self.sector}")
        return self.blocks[block_number - sector_to_block(self.sector)]

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "sector": self.sector,
            "access_bits": self.access_bytes.hex().upper(),
            "matrix": [list(row) for row in self.matrix],
            "key_b_readable": self.key_b_readable,
            "blocks": [b.to_dict() for b in self.blocks],
        }


def _block_numbers(sector: Optional[int]) -> list:
    if sector is None:
        return [None] * BLOCKS_PER_MATRIX
    if not 0 <= sector < NUM_SECTORS:
        raise ValueError(f"Sector must be 0-{NUM_SECTORS - 1}, got {sector}")
    return data_blocks_for_sector(sector) + [sector_trailer_block(sector)]


def describe_access(access_bytes: bytes, sector: Optional[int] = None) -> SectorAccess:
    """
    Decode access condition bytes and resolve all operations per block.

    Args:
        access_bytes: Bytes 6-8 of the sector trailer.
        sector: Optional sector number (0-15), fills in absolute block numbers.

    Raises:
        RedundancyMismatchError: if the access bytes are corrupted.
    """
    access_bytes = bytes(access_bytes)
    block_numbers = _block_numbers(sector)
    matrix = decode_access_bytes(access_bytes)
    key_b_readable = is_key_b_readable(*block_conditions(matrix, TRAILER_INDEX))

    blocks = []
    for i, block_number in enumerate(block_numbers):
        role = role_for_block(i)
        conditions = block_conditions(matrix, i)
        blocks.append(BlockAccess(
            block=i,
            role=role,
            conditions=conditions,
            permissions={
                op: resolve(*conditions, role, op, key_b_readable)
                for op in operations_for(role)
            },
            block_number=block_number,
        ))
    return SectorAccess(
        access_bytes=access_bytes,
        matrix=matrix,
        key_b_readable=key_b_readable,
        blocks=blocks,
        sector=sector,
    )


def describe_sector_trailer(trailer: bytes, sector: Optional[int] = None) -> SectorAccess:
    """Same as describe_access(), starting from a full 16-byte sector trailer."""
    parsed = parse_sector_trailer(trailer)
    return describe_access(parsed["access_bits"][:ACCESS_BYTES_LENGTH], sector)


def resolve_block_number(trailer: bytes, block_number: int, op: Operation) -> KeyRequirement:
    """
    Resolve an operation for an absolute block number (0-63), given the
    trailer of the sector the block belongs to.
    """
    access = describe_sector_trailer(trailer, block_to_sector(block_number))
    block = access.for_block(block_number)
    op = Operation(op)
    if op not in block.permissions:
        # Let resolve() report the role mismatch
        return resolve(*block.conditions, block.role, op, access.key_b_readable)
    return block.permissions[op]
