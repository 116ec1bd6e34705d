"""
SVM SDK Instruction Set Package
===============================

This package holds the instruction set contract shared by the assembler,
the virtual machine and the disassembler: opcodes, encoding shapes,
instruction widths, operand kinds and register codes.

Both sides of the toolchain import the same table, so the width the
assembler assumes for an instruction is always the width the machine
decodes.

Usage:
    from svm_sdk.isa import (
        OPCODE_TABLE,
        get_instruction_info,
        decode_opcode,
    )
"""

from svm_sdk.isa.opcodes import (
    # Constants
    MEMORY_SIZE,
    WORD_MASK,
    BYTE_MASK,
    SIGN_BIT,
    MIN_VALUE,
    MAX_VALUE,
    # Core types
    Register,
    Shape,
    OperandKind,
    InstructionInfo,
    # Tables
    SHAPE_SIZES,
    OPCODE_TABLE,
    DECODE_TABLE,
    MNEMONICS,
    JUMP_INSTRUCTIONS,
    REGISTER_CODES,
    GENERAL_REGISTERS,
    ADDRESS_REGISTERS,
    # Lookup functions
    get_instruction_info,
    is_mnemonic,
    instruction_size,
    decode_opcode,
    # Register helpers
    register_code,
    register_name,
    is_general_register,
    is_address_register,
    pack_register_pair,
    unpack_register_pair,
    # Word helpers
    to_word,
    to_signed,
    word_bytes,
)

__all__ = [
    "MEMORY_SIZE",
    "WORD_MASK",
    "BYTE_MASK",
    "SIGN_BIT",
    "MIN_VALUE",
    "MAX_VALUE",
    "Register",
    "Shape",
    "OperandKind",
    "InstructionInfo",
    "SHAPE_SIZES",
    "OPCODE_TABLE",
    "DECODE_TABLE",
    "MNEMONICS",
    "JUMP_INSTRUCTIONS",
    "REGISTER_CODES",
    "GENERAL_REGISTERS",
    "ADDRESS_REGISTERS",
    "get_instruction_info",
    "is_mnemonic",
    "instruction_size",
    "decode_opcode",
    "register_code",
    "register_name",
    "is_general_register",
    "is_address_register",
    "pack_register_pair",
    "unpack_register_pair",
    "to_word",
    "to_signed",
    "word_bytes",
]
