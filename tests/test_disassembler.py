"""
SVM Disassembler Tests
======================

Tests for decoding machine code, listing format, handling of bytes that are
not canonical instructions, and source reconstruction.
"""

import pytest

from svm_sdk.assembler import assemble
from svm_sdk.disassembler import Disassembler, DisassembledInstruction


SCENARIO_A = "LOAD R1, 10\nADD R1, 5\nOUTR R1\nHALT\n"

LOOP_PROGRAM = """
        LOAD R1, 3
        LOAD A1, MSG
LOOP    OUTIC A1
        SUB R1, 1
        JMPN DONE
        JMPZ DONE
        JMP LOOP
DONE    LOADI R2, A1
        STOREI R2, A2
        ADDR R2, R1
        SUBR R1, R2
        OUTC 10
        HALT
MSG     DATA 0x4142
"""


@pytest.fixture
def disasm():
    return Disassembler()


# =============================================================================
# Decoding Tests
# =============================================================================

class TestDecoding:
    """Test decoding of valid instructions."""

    def test_scenario_a(self, disasm):
        instructions = disasm.disassemble(assemble(SCENARIO_A))
        assert [i.mnemonic for i in instructions] == ["LOAD", "ADD", "OUTR", "HALT"]
        assert [i.operand_str for i in instructions] == ["R1, 0x000A", "R1, 0x0005", "R1", ""]
        assert [i.address for i in instructions] == [0, 4, 8, 10]
        assert [i.size for i in instructions] == [4, 4, 2, 1]

    def test_register_pairs(self, disasm):
        code = assemble("LOADI R1, A1\nSTOREI R2, A2\nADDR R1, R2\nSUBR R2, R1")
        assert [i.operand_str for i in disasm.disassemble(code)] == [
            "R1, A1", "R2, A2", "R1, R2", "R2, R1",
        ]

    def test_jump_target(self, disasm):
        instr = disasm.disassemble(assemble("L JMPZ L"))[0]
        assert instr.mnemonic == "JMPZ"
        assert instr.operand_str == "0x0000"
        assert instr.target == 0

    def test_comments(self, disasm):
        instructions = disasm.disassemble(assemble("OUTC 65\nOUT -1\nLOAD R2, 5"))
        assert instructions[0].comment == "'A'"
        assert instructions[1].comment == "-1"
        assert instructions[2].comment == ""

    def test_start_address(self, disasm):
        instructions = disasm.disassemble(assemble(SCENARIO_A), start=0x100)
        assert instructions[0].address == 0x100
        assert instructions[-1].address == 0x10A

    def test_count(self, disasm):
        assert len(disasm.disassemble(assemble(SCENARIO_A), count=2)) == 2

    def test_disassemble_one_offset(self, disasm):
        instr = disasm.disassemble_one(assemble(SCENARIO_A), address=8, offset=8)
        assert instr.mnemonic == "OUTR"

    def test_offset_beyond_data(self, disasm):
        with pytest.raises(ValueError):
            disasm.disassemble_one(b"\x31", offset=1)


# =============================================================================
# Non-canonical Byte Tests
# =============================================================================

class TestUndecodable:
    """Bytes that are not a valid instruction become DATA words."""

    def test_unknown_opcode(self, disasm):
        instr = disasm.disassemble(b"\xff\x00\x31")[0]
        assert instr.mnemonic == "DATA"
        assert instr.operand_str == "0xFF00"
        assert instr.size == 2
        assert instr.comment == "unknown opcode"

    def test_trailing_byte(self, disasm):
        instructions = disasm.disassemble(b"\x31\xff")
        assert instructions[1].mnemonic == "??"
        assert instructions[1].size == 1

    def test_incomplete_instruction(self, disasm):
        instr = disasm.disassemble(b"\x60\x01")[0]
        assert instr.mnemonic == "DATA"
        assert instr.comment == "incomplete instruction"

    def test_wrong_register_class(self, disasm):
        """ADD with an address register is not something the assembler emits."""
        instructions = disasm.disassemble(bytes.fromhex("68 03 00 01"))
        assert [i.mnemonic for i in instructions] == ["DATA", "DATA"]
        assert instructions[0].comment == "invalid ADD encoding"

    def test_reserved_register_pair_bits(self, disasm):
        instr = disasm.disassemble(bytes.fromhex("69 05"))[0]
        assert instr.mnemonic == "DATA"

    def test_nonzero_unused_byte(self, disasm):
        instr = disasm.disassemble(bytes.fromhex("6C 01 00 05"))[0]
        assert instr.mnemonic == "DATA"


# =============================================================================
# Formatting Tests
# =============================================================================

class TestFormatting:
    """Test listing output."""

    def test_str(self, disasm):
        instructions = disasm.disassemble(assemble(SCENARIO_A))
        assert str(instructions[0]) == "$0000: 60 01 00 0A  LOAD R1, 0x000A"
        assert str(instructions[3]) == "$000A: 31           HALT"

    def test_str_with_comment(self):
        instr = DisassembledInstruction(0, 0x6D, "OUTC", "0x0041", 4, b"\x6d\x00\x00\x41", "'A'")
        assert str(instr).endswith("# 'A'")

    def test_without_bytes(self, disasm):
        text = disasm.disassemble_to_text(assemble(SCENARIO_A), show_bytes=False)
        assert text.splitlines()[2] == "$0008: OUTR R1"

    def test_to_dict(self, disasm):
        data = disasm.disassemble(assemble("OUTR R2"))[0].to_dict()
        assert data["mnemonic"] == "OUTR"
        assert data["address"] == "$0000"
        assert data["bytes"] == ["$6E", "$00"]


# =============================================================================
# Source Reconstruction Tests
# =============================================================================

class TestToSource:
    """Reconstructed source reassembles to the same bytes."""

    def test_round_trip(self, disasm):
        code = assemble(LOOP_PROGRAM)
        source = disasm.to_source(disasm.disassemble(code))
        assert assemble(source) == code

    def test_invented_labels(self, disasm):
        source = disasm.to_source(disasm.disassemble(assemble(LOOP_PROGRAM)))
        assert "L_0008  OUTIC A1" in source
        assert "JMP L_0008" in source

    def test_jump_into_instruction(self, disasm):
        """A jump target inside another instruction is kept as raw words."""
        code = bytes.fromhex("64 00 00 02 31")
        source = disasm.to_source(disasm.disassemble(code))
        assert "L_" not in source
        assert assemble(source) == code

    def test_undecodable_bytes_round_trip(self, disasm):
        code = bytes.fromhex("FF FF 68 03 00 01 31")
        assert assemble(disasm.to_source(disasm.disassemble(code))) == code

    def test_trailing_byte_rejected(self, disasm):
        with pytest.raises(ValueError):
            disasm.to_source(disasm.disassemble(b"\x31\xff"))
