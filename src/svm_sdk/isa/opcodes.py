"""
SVM Instruction Set Definition
==============================

This module is the single definition of the SVM instruction set. The
assembler sizes and encodes instructions from it, the virtual machine decodes
from it, and the disassembler inverts it. No other module knows an opcode
value or an instruction width.

Registers
---------
Four 16-bit registers encode to 2-bit codes:

    R2 = 0, R1 = 1    general registers (arithmetic, flags)
    A2 = 2, A1 = 3    address registers

Instruction Shapes
------------------
1. **INHERENT**: opcode only (HALT) - 1 byte
2. **REGISTER_PAIR**: opcode, packed register byte - 2 bytes
   Bits 7-6 hold the source/address register, bits 1-0 the destination.
3. **REGISTER_IMMEDIATE**: opcode, register, word - 4 bytes
4. **IMMEDIATE**: opcode, unused byte, word - 4 bytes
5. **REGISTER**: opcode, register - 2 bytes
6. **JUMP**: opcode, unused byte, target word - 4 bytes
7. **DATA**: raw word, no opcode - 2 bytes

All words are big-endian (most significant byte first).
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Machine Constants
# =============================================================================

MEMORY_SIZE = 32768
WORD_MASK = 0xFFFF
BYTE_MASK = 0xFF
SIGN_BIT = 0x8000

# Value operands accept signed or unsigned 16-bit literals
MIN_VALUE = -0x8000
MAX_VALUE = 0xFFFF


# =============================================================================
# Registers
# =============================================================================

class Register(IntEnum):
    """2-bit register codes as they appear in encoded instructions."""
    R2 = 0
    R1 = 1
    A2 = 2
    A1 = 3


GENERAL_REGISTERS = frozenset({Register.R1, Register.R2})
ADDRESS_REGISTERS = frozenset({Register.A1, Register.A2})

REGISTER_CODES: dict[str, int] = {reg.name: int(reg) for reg in Register}


# =============================================================================
# Shapes and Operand Kinds
# =============================================================================

class Shape(Enum):
    """Encoding layout of an instruction."""
    INHERENT = auto()
    REGISTER_PAIR = auto()
    REGISTER_IMMEDIATE = auto()
    IMMEDIATE = auto()
    REGISTER = auto()
    JUMP = auto()
    DATA = auto()

    def __str__(self) -> str:
        return self.name.lower().replace("_", "-")


# Byte width of every shape. Both assembler passes and the machine's decoder
# read instruction widths from here and nowhere else.
SHAPE_SIZES: dict[Shape, int] = {
    Shape.INHERENT: 1,
    Shape.REGISTER_PAIR: 2,
    Shape.REGISTER_IMMEDIATE: 4,
    Shape.IMMEDIATE: 4,
    Shape.REGISTER: 2,
    Shape.JUMP: 4,
    Shape.DATA: 2,
}


class OperandKind(Enum):
    """What a source operand must be."""
    ANY_REGISTER = auto()      # R1, R2, A1 or A2
    GENERAL_REGISTER = auto()  # R1 or R2
    ADDRESS_REGISTER = auto()  # A1 or A2
    VALUE = auto()             # label or integer literal
    TARGET = auto()            # label only

    @property
    def is_register(self) -> bool:
        return self in (
            OperandKind.ANY_REGISTER,
            OperandKind.GENERAL_REGISTER,
            OperandKind.ADDRESS_REGISTER,
        )

    def accepts(self, code: int) -> bool:
        """Check whether a register code belongs to this operand's class."""
        if self is OperandKind.ANY_REGISTER:
            return code in REGISTER_CODES.values()
        if self is OperandKind.GENERAL_REGISTER:
            return code in GENERAL_REGISTERS
        if self is OperandKind.ADDRESS_REGISTER:
            return code in ADDRESS_REGISTERS
        return False

    def __str__(self) -> str:
        return {
            OperandKind.ANY_REGISTER: "register",
            OperandKind.GENERAL_REGISTER: "general register (R1, R2)",
            OperandKind.ADDRESS_REGISTER: "address register (A1, A2)",
            OperandKind.VALUE: "value",
            OperandKind.TARGET: "label",
        }[self]


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding of one mnemonic.

    Attributes:
        mnemonic: Instruction name as written in source
        opcode: Opcode byte, or None for DATA which has no opcode
        shape: Encoding layout
        operands: Expected operand kinds, in source order
    """
    mnemonic: str
    opcode: Optional[int]
    shape: Shape
    operands: tuple[OperandKind, ...] = ()

    @property
    def size(self) -> int:
        """Total encoded size in bytes."""
        return SHAPE_SIZES[self.shape]

    @property
    def arity(self) -> int:
        """Number of source operands."""
        return len(self.operands)

    def __repr__(self) -> str:
        opcode = f"${self.opcode:02X}" if self.opcode is not None else "none"
        return f"InstructionInfo({self.mnemonic}, opcode={opcode}, size={self.size})"


_ANY = OperandKind.ANY_REGISTER
_GEN = OperandKind.GENERAL_REGISTER
_ADR = OperandKind.ADDRESS_REGISTER
_VAL = OperandKind.VALUE
_TGT = OperandKind.TARGET


# =============================================================================
# Opcode Table
# =============================================================================
# Master table keyed by mnemonic. Register-pair operands are written
# "first, second": first lands in bits 1-0, second in bits 7-6.
# =============================================================================

OPCODE_TABLE: dict[str, InstructionInfo] = {
    info.mnemonic: info
    for info in (
        InstructionInfo("HALT", 0x31, Shape.INHERENT),
        # Loads and stores
        InstructionInfo("LOAD", 0x60, Shape.REGISTER_IMMEDIATE, (_ANY, _VAL)),
        InstructionInfo("LOADI", 0x61, Shape.REGISTER_PAIR, (_ANY, _ANY)),
        InstructionInfo("STORE", 0x62, Shape.REGISTER_IMMEDIATE, (_GEN, _VAL)),
        InstructionInfo("STOREI", 0x63, Shape.REGISTER_PAIR, (_ANY, _ANY)),
        # Control flow
        InstructionInfo("JMP", 0x64, Shape.JUMP, (_TGT,)),
        InstructionInfo("JMPZ", 0x65, Shape.JUMP, (_TGT,)),
        InstructionInfo("JMPN", 0x66, Shape.JUMP, (_TGT,)),
        InstructionInfo("JMPO", 0x67, Shape.JUMP, (_TGT,)),
        # Arithmetic
        InstructionInfo("ADD", 0x68, Shape.REGISTER_IMMEDIATE, (_GEN, _VAL)),
        InstructionInfo("ADDR", 0x69, Shape.REGISTER_PAIR, (_GEN, _GEN)),
        InstructionInfo("SUB", 0x6A, Shape.REGISTER_IMMEDIATE, (_GEN, _VAL)),
        InstructionInfo("SUBR", 0x6B, Shape.REGISTER_PAIR, (_GEN, _GEN)),
        # Output
        InstructionInfo("OUT", 0x6C, Shape.IMMEDIATE, (_VAL,)),
        InstructionInfo("OUTC", 0x6D, Shape.IMMEDIATE, (_VAL,)),
        InstructionInfo("OUTR", 0x6E, Shape.REGISTER, (_GEN,)),
        InstructionInfo("OUTRC", 0x6F, Shape.REGISTER, (_GEN,)),
        InstructionInfo("OUTI", 0x70, Shape.REGISTER, (_ADR,)),
        InstructionInfo("OUTIC", 0x71, Shape.REGISTER, (_ADR,)),
        # Pseudo-instruction: raw data word
        InstructionInfo("DATA", None, Shape.DATA, (_VAL,)),
    )
}

# Reverse table for the decoder (DATA has no opcode and never decodes)
DECODE_TABLE: dict[int, InstructionInfo] = {
    info.opcode: info for info in OPCODE_TABLE.values() if info.opcode is not None
}

MNEMONICS = frozenset(OPCODE_TABLE)

JUMP_INSTRUCTIONS = frozenset(
    m for m, info in OPCODE_TABLE.items() if info.shape is Shape.JUMP
)


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(mnemonic: str) -> Optional[InstructionInfo]:
    """Return the table entry for a mnemonic, or None if unknown."""
    return OPCODE_TABLE.get(mnemonic)


def is_mnemonic(name: str) -> bool:
    """Check whether a word is a mnemonic (case-sensitive)."""
    return name in OPCODE_TABLE


def instruction_size(mnemonic: str) -> int:
    """
    Return the encoded size of a mnemonic in bytes.

    Raises:
        KeyError: If the mnemonic is unknown
    """
    return OPCODE_TABLE[mnemonic].size


def decode_opcode(opcode: int) -> Optional[InstructionInfo]:
    """Return the table entry for an opcode byte, or None if invalid."""
    return DECODE_TABLE.get(opcode)


# =============================================================================
# Register Helpers
# =============================================================================

def register_code(name: str) -> Optional[int]:
    """Return the 2-bit code for a register name, or None if unknown."""
    return REGISTER_CODES.get(name)


def register_name(code: int) -> str:
    """Return the register name for a code, or '?N' for invalid codes."""
    try:
        return Register(code).name
    except ValueError:
        return f"?{code}"


def is_general_register(code: int) -> bool:
    return code in GENERAL_REGISTERS


def is_address_register(code: int) -> bool:
    return code in ADDRESS_REGISTERS


def pack_register_pair(first: int, second: int) -> int:
    """
    Pack a register-pair operand byte.

    Args:
        first: Destination (or STOREI value source), stored in bits 1-0
        second: Source or address register, stored in bits 7-6
    """
    return ((second & 0x03) << 6) | (first & 0x03)


def unpack_register_pair(value: int) -> tuple[int, int]:
    """Split a register-pair byte into (first, second)."""
    return value & 0x03, (value >> 6) & 0x03


# =============================================================================
# Word Helpers
# =============================================================================

def to_word(value: int) -> int:
    """Wrap an integer to an unsigned 16-bit word."""
    return value & WORD_MASK


def to_signed(word: int) -> int:
    """Interpret a 16-bit word as a two's-complement signed integer."""
    word &= WORD_MASK
    return word - 0x10000 if word & SIGN_BIT else word


def word_bytes(value: int) -> bytes:
    """Encode a value as a big-endian 16-bit word."""
    value = to_word(value)
    return bytes([(value >> 8) & BYTE_MASK, value & BYTE_MASK])
