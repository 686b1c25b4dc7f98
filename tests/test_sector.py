"""Tests for per-sector access summaries."""

import pytest
from mfaccess.rfid.access_bits import RedundancyMismatchError
from mfaccess.rfid.permissions import (
    BlockRole, KeyRequirement, Operation, OperationRoleMismatchError,
)
from mfaccess.rfid.sector import (
    describe_access, describe_sector_trailer, resolve_block_number,
)


class TestDescribeAccess:
    def test_transport_configuration(self):
        access = describe_access(bytes.fromhex("FF0780"))
        assert access.key_b_readable is True
        assert len(access.blocks) == 4
        for block in access.blocks[:3]:
            assert block.role == BlockRole.DATA_BLOCK
            assert block.conditions == (0, 0, 0)
            assert set(block.permissions.values()) == {KeyRequirement.KEY_A_OR_B}
        assert access.trailer.role == BlockRole.SECTOR_TRAILER
        assert access.trailer.conditions == (0, 0, 1)
        assert access.trailer.permissions[Operation.READ_KEY_A] == KeyRequirement.NEVER
        assert access.trailer.permissions[Operation.WRITE_ACCESS_BITS] == KeyRequirement.KEY_A

    def test_key_b_not_readable(self):
        access = describe_access(bytes.fromhex("08778F"))
        assert access.key_b_readable is False
        value = access.blocks[0].permissions
        assert value[Operation.READ] == KeyRequirement.KEY_A
        assert value[Operation.WRITE] == KeyRequirement.KEY_B
        assert value[Operation.INCREMENT] == KeyRequirement.KEY_B
        assert value[Operation.DECREMENT_TRANSFER_RESTORE] == KeyRequirement.KEY_A

    def test_operation_families(self):
        access = describe_access(bytes.fromhex("787788"))
        assert Operation.READ in access.blocks[0].permissions
        assert Operation.READ_KEY_B not in access.blocks[0].permissions
        assert len(access.trailer.permissions) == 6

    def test_corrupted_bytes_raise(self):
        with pytest.raises(RedundancyMismatchError):
            describe_access(bytes.fromhex("FF0781"))

    def test_to_dict(self):
        d = describe_access(bytes.fromhex("FF0780")).to_dict()
        assert d["access_bits"] == "FF0780"
        assert d["matrix"] == [[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 1]]
        assert d["key_b_readable"] is True
        assert d["blocks"][3]["role"] == "sector_trailer"
        assert d["blocks"][3]["conditions"] == "001"
        assert d["blocks"][3]["permissions"]["read_key_a"] == "never"
        assert d["blocks"][0]["permissions"]["read"] == "key_a_or_b"


class TestDescribeSectorTrailer:
    def test_from_trailer(self):
        trailer = bytes.fromhex("A0A1A2A3A4A5" "78778869" "B0B1B2B3B4B5")
        access = describe_sector_trailer(trailer)
        assert access.access_bytes == bytes.fromhex("787788")
        assert access.trailer.conditions == (0, 1, 1)

    def test_wrong_length_raises(self):
        with pytest.raises(ValueError):
            describe_sector_trailer(bytes(8))


TRAILER_787788 = bytes.fromhex("A0A1A2A3A4A5" "78778869" "B0B1B2B3B4B5")


class TestSectorNumbering:
    def test_block_numbers(self):
        access = describe_access(bytes.fromhex("FF0780"), sector=1)
        assert access.sector == 1
        assert [b.block_number for b in access.blocks] == [4, 5, 6, 7]
        assert access.trailer.block_number == 7

    def test_last_sector(self):
        access = describe_access(bytes.fromhex("FF0780"), sector=15)
        assert [b.block_number for b in access.blocks] == [60, 61, 62, 63]

    def test_without_sector(self):
        access = describe_access(bytes.fromhex("FF0780"))
        assert access.sector is None
        assert all(b.block_number is None for b in access.blocks)

    def test_invalid_sector(self):
        with pytest.raises(ValueError):
            describe_access(bytes.fromhex("FF0780"), sector=16)
        with pytest.raises(ValueError):
            describe_access(bytes.fromhex("FF0780"), sector=-1)

    def test_for_block(self):
        access = describe_access(bytes.fromhex("FF0780"), sector=1)
        assert access.for_block(7).role == BlockRole.SECTOR_TRAILER
        assert access.for_block(5).block == 1
        assert access.for_block(4).role == BlockRole.DATA_BLOCK

    def test_for_block_outside_sector(self):
        access = describe_access(bytes.fromhex("FF0780"), sector=1)
        with pytest.raises(ValueError):
            access.for_block(3)
        with pytest.raises(ValueError):
            access.for_block(8)

    def test_for_block_needs_sector(self):
        with pytest.raises(ValueError):
            describe_access(bytes.fromhex("FF0780")).for_block(0)

    def test_to_dict(self):
        d = describe_sector_trailer(TRAILER_787788, sector=2).to_dict()
        assert d["sector"] == 2
        assert [b["block_number"] for b in d["blocks"]] == [8, 9, 10, 11]


class TestResolveBlockNumber:
    def test_data_block(self):
        # Data blocks 100, trailer 011: read A (key B not readable), write B
        assert resolve_block_number(TRAILER_787788, 5, Operation.READ) == KeyRequirement.KEY_A
        assert resolve_block_number(TRAILER_787788, 5, Operation.WRITE) == KeyRequirement.KEY_B

    def test_trailer_block(self):
        assert resolve_block_number(TRAILER_787788, 7, Operation.WRITE_KEY_A) == KeyRequirement.KEY_B
        assert resolve_block_number(TRAILER_787788, 63, "read_access_bits") == \
            KeyRequirement.KEY_A_OR_B

    def test_transport_trailer(self):
        trailer = bytes.fromhex("FFFFFFFFFFFF" "FF078069" "FFFFFFFFFFFF")
        assert resolve_block_number(trailer, 0, Operation.READ) == KeyRequirement.KEY_A_OR_B
        assert resolve_block_number(trailer, 3, Operation.READ_KEY_B) == KeyRequirement.KEY_A

    def test_role_mismatch(self):
        with pytest.raises(OperationRoleMismatchError):
            resolve_block_number(TRAILER_787788, 7, Operation.READ)
        with pytest.raises(OperationRoleMismatchError):
            resolve_block_number(TRAILER_787788, 4, Operation.READ_KEY_B)

    def test_block_out_of_range(self):
        with pytest.raises(ValueError):
            resolve_block_number(TRAILER_787788, 64, Operation.READ)
