"""API routes for access conditions and value blocks — decode, encode, resolve."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from mfaccess.rfid.access_bits import ACCESS_BYTES_LENGTH, encode_access_bytes
from mfaccess.rfid.mifare import ACCESS_BITS_LENGTH, hex_to_block, parse_sector_trailer
from mfaccess.rfid.permissions import BlockRole, Operation, is_key_b_readable, resolve
from mfaccess.rfid.sector import describe_access, describe_sector_trailer, resolve_block_number
from mfaccess.rfid.value_block import decode_value_block, encode_value_block, is_value_block

router = APIRouter(prefix="/api/access", tags=["access"])


# ──────────────────────────────────────────────
# Request/Response models
# ──────────────────────────────────────────────

class DecodeRequest(BaseModel):
    access_bits: str  # Hex, 3 bytes (e.g. "FF0780") or 4 with user byte


class EncodeRequest(BaseModel):
    matrix: list[list[int]]  # 3 rows (C1, C2, C3) × 4 blocks


class ResolveRequest(BaseModel):
    c1: int
    c2: int
    c3: int
    role: BlockRole
    operation: Operation
    key_b_readable: bool = False


class TrailerRequest(BaseModel):
    trailer: str  # Hex, 16 bytes
    sector: Optional[int] = None


class BlockRequest(BaseModel):
    trailer: str  # Hex, 16 bytes; trailer of the sector holding the block
    block_number: int  # Absolute, 0-63
    operation: Operation


class ValueBlockRequest(BaseModel):
    block: str  # Hex, 16 bytes


class BuildValueBlockRequest(BaseModel):
    value: int
    address: int = 0


def _parse_access_bits(text: str) -> bytes:
    data = bytes.fromhex("".join(text.split()))
    if len(data) not in (ACCESS_BYTES_LENGTH, ACCESS_BITS_LENGTH):
        raise ValueError(
            f"Access bits must be {ACCESS_BYTES_LENGTH} or {ACCESS_BITS_LENGTH} bytes, "
            f"got {len(data)}"
        )
    return data[:ACCESS_BYTES_LENGTH]


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@router.post("/decode")
async def decode(req: DecodeRequest):
    """Decode access condition bytes into per-block permissions."""
    try:
        return describe_access(_parse_access_bits(req.access_bits)).to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/encode")
async def encode(req: EncodeRequest):
    """Encode a C1/C2/C3 condition matrix into access condition bytes."""
    try:
        return {"access_bits": encode_access_bytes(req.matrix).hex().upper()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/resolve")
async def resolve_operation(req: ResolveRequest):
    """Look up which key allows an operation."""
    try:
        requirement = resolve(req.c1, req.c2, req.c3, req.role, req.operation,
                              req.key_b_readable)
        return {"requirement": requirement.value}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/key-b-readable")
async def key_b_readable(c1: int = Query(...), c2: int = Query(...), c3: int = Query(...)):
    """Check if Key B is readable under the given sector trailer conditions."""
    return {"key_b_readable": is_key_b_readable(c1, c2, c3)}


@router.post("/trailer")
async def decode_trailer(req: TrailerRequest):
    """Split a sector trailer and decode its access conditions."""
    try:
        trailer = hex_to_block(req.trailer)
        parsed = parse_sector_trailer(trailer)
        access = describe_sector_trailer(trailer, req.sector)
        return {
            "key_a": parsed["key_a"].hex().upper(),
            "key_b": parsed["key_b"].hex().upper(),
            "user_byte": parsed["access_bits"][ACCESS_BYTES_LENGTH],
            "access": access.to_dict(),
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/value-block")
async def check_value_block(req: ValueBlockRequest):
    """Check if a block is a value block and decode it if so."""
    try:
        block = hex_to_block(req.block)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    value: Optional[int] = None
    address: Optional[int] = None
    valid = is_value_block(block)
    if valid:
        value, address = decode_value_block(block)
    return {"is_value_block": valid, "value": value, "address": address}


@router.post("/value-block/build")
async def build_value_block(req: BuildValueBlockRequest):
    """Build a value block from a counter value and address."""
    try:
        return {"block": encode_value_block(req.value, req.address).hex().upper()}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/block")
async def resolve_block(req: BlockRequest):
    """Look up which key allows an operation on an absolute block number."""
    try:
        trailer = hex_to_block(req.trailer)
        requirement = resolve_block_number(trailer, req.block_number, req.operation)
        return {"block_number": req.block_number, "requirement": requirement.value}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
