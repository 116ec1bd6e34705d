"""
Instruction Set Table Tests
===========================

Tests for the shared instruction set table, covering:
- Opcode values and encoded sizes for every mnemonic
- Register codes and register classes
- Register-pair packing
- 16-bit word helpers
"""

import pytest

from svm_sdk.isa import (
    DECODE_TABLE,
    JUMP_INSTRUCTIONS,
    MNEMONICS,
    OPCODE_TABLE,
    OperandKind,
    Register,
    Shape,
    decode_opcode,
    get_instruction_info,
    instruction_size,
    is_address_register,
    is_general_register,
    is_mnemonic,
    pack_register_pair,
    register_code,
    register_name,
    to_signed,
    to_word,
    unpack_register_pair,
    word_bytes,
)


# =============================================================================
# Opcode Table Tests
# =============================================================================

class TestOpcodeTable:
    """Test opcode values and sizes."""

    def test_opcode_values(self):
        """Opcodes match the machine's encoding."""
        expected = {
            "HALT": 0x31, "LOAD": 0x60, "LOADI": 0x61, "STORE": 0x62,
            "STOREI": 0x63, "JMP": 0x64, "JMPZ": 0x65, "JMPN": 0x66,
            "JMPO": 0x67, "ADD": 0x68, "ADDR": 0x69, "SUB": 0x6A,
            "SUBR": 0x6B, "OUT": 0x6C, "OUTC": 0x6D, "OUTR": 0x6E,
            "OUTRC": 0x6F, "OUTI": 0x70, "OUTIC": 0x71,
        }
        for mnemonic, opcode in expected.items():
            assert OPCODE_TABLE[mnemonic].opcode == opcode

    def test_data_has_no_opcode(self):
        assert OPCODE_TABLE["DATA"].opcode is None
        assert OPCODE_TABLE["DATA"].shape is Shape.DATA

    @pytest.mark.parametrize("mnemonic,size", [
        ("HALT", 1),
        ("LOAD", 4), ("STORE", 4), ("ADD", 4), ("SUB", 4),
        ("JMP", 4), ("JMPZ", 4), ("JMPN", 4), ("JMPO", 4),
        ("OUT", 4), ("OUTC", 4),
        ("LOADI", 2), ("STOREI", 2), ("ADDR", 2), ("SUBR", 2),
        ("OUTR", 2), ("OUTRC", 2), ("OUTI", 2), ("OUTIC", 2),
        ("DATA", 2),
    ])
    def test_instruction_sizes(self, mnemonic, size):
        assert instruction_size(mnemonic) == size

    def test_unknown_mnemonic_size_raises(self):
        with pytest.raises(KeyError):
            instruction_size("NOP")

    def test_decode_table_is_inverse(self):
        """Every opcode decodes back to its own entry."""
        for opcode, info in DECODE_TABLE.items():
            assert OPCODE_TABLE[info.mnemonic].opcode == opcode
        assert len(DECODE_TABLE) == len(OPCODE_TABLE) - 1

    def test_decode_unknown_opcode(self):
        assert decode_opcode(0x00) is None
        assert decode_opcode(0xFF) is None
        assert decode_opcode(0x6C).mnemonic == "OUT"

    def test_mnemonics_case_sensitive(self):
        assert is_mnemonic("LOAD")
        assert not is_mnemonic("load")
        assert get_instruction_info("Load") is None
        assert "HALT" in MNEMONICS

    def test_jump_instructions(self):
        assert JUMP_INSTRUCTIONS == {"JMP", "JMPZ", "JMPN", "JMPO"}

    def test_arity(self):
        assert OPCODE_TABLE["HALT"].arity == 0
        assert OPCODE_TABLE["OUTR"].arity == 1
        assert OPCODE_TABLE["LOAD"].arity == 2


# =============================================================================
# Register Tests
# =============================================================================

class TestRegisters:
    """Test register codes and classes."""

    def test_register_codes(self):
        assert register_code("R2") == 0
        assert register_code("R1") == 1
        assert register_code("A2") == 2
        assert register_code("A1") == 3

    def test_register_names_case_sensitive(self):
        assert register_code("r1") is None
        assert register_code("R3") is None

    def test_register_name(self):
        assert register_name(Register.A1) == "A1"
        assert register_name(5) == "?5"

    def test_register_classes(self):
        assert is_general_register(Register.R1)
        assert is_general_register(Register.R2)
        assert not is_general_register(Register.A1)
        assert is_address_register(Register.A2)
        assert not is_address_register(Register.R2)
        assert not is_address_register(7)

    def test_operand_kind_accepts(self):
        assert OperandKind.ANY_REGISTER.accepts(Register.A1)
        assert not OperandKind.ANY_REGISTER.accepts(4)
        assert OperandKind.GENERAL_REGISTER.accepts(Register.R2)
        assert not OperandKind.GENERAL_REGISTER.accepts(Register.A1)
        assert OperandKind.ADDRESS_REGISTER.accepts(Register.A2)
        assert not OperandKind.VALUE.accepts(Register.R1)


# =============================================================================
# Encoding Helper Tests
# =============================================================================

class TestEncodingHelpers:
    """Test register-pair packing and word helpers."""

    def test_pack_register_pair(self):
        """First register in bits 1-0, second in bits 7-6."""
        assert pack_register_pair(Register.R1, Register.A1) == 0xC1
        assert pack_register_pair(Register.R2, Register.R2) == 0x00
        assert pack_register_pair(Register.A2, Register.R1) == 0x42

    def test_unpack_register_pair(self):
        assert unpack_register_pair(0xC1) == (Register.R1, Register.A1)
        assert unpack_register_pair(0x42) == (Register.A2, Register.R1)

    def test_to_word_wraps(self):
        assert to_word(-1) == 0xFFFF
        assert to_word(0x10000) == 0
        assert to_word(-32768) == 0x8000

    def test_to_signed(self):
        assert to_signed(0x7FFF) == 32767
        assert to_signed(0x8000) == -32768
        assert to_signed(0xFFFF) == -1

    def test_word_bytes_big_endian(self):
        assert word_bytes(0x1234) == b"\x12\x34"
        assert word_bytes(-5) == b"\xff\xfb"
