"""
SVM Disassembler
================

Decodes SVM machine code back into assembly syntax, using the same
instruction set table as the assembler and the CPU.

Anything that is not a canonical encoding (an unknown opcode, a register
byte the instruction cannot accept, a non-zero unused byte) is rendered as a
DATA word, so the output always reassembles to the same bytes.

Example:
    >>> disasm = Disassembler()
    >>> for instr in disasm.disassemble(bytes.fromhex("6001000a31")):
    ...     print(instr)
    $0000: 60 01 00 0A  LOAD R1, 0x000A
    $0004: 31           HALT
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from svm_sdk.isa import (
    InstructionInfo,
    OperandKind,
    Shape,
    decode_opcode,
    pack_register_pair,
    register_name,
    to_signed,
    unpack_register_pair,
)


@dataclass
class DisassembledInstruction:
    """
    Represents a single disassembled SVM instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The first byte of the instruction
        mnemonic: The instruction mnemonic (e.g., "LOAD", "JMPZ", "DATA")
        operand_str: Formatted operand string for display
        size: Total instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (e.g., unknown opcode, character value)
        target: Jump target address for jump instructions
    """
    address: int
    opcode: int
    mnemonic: str
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""
    target: Optional[int] = None

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC OPERAND"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(11)
        asm = f"{self.mnemonic} {self.operand_str}" if self.operand_str else self.mnemonic

        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {asm:<20} # {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {asm}"

    def to_text(self, show_bytes: bool = True) -> str:
        if show_bytes:
            return str(self)
        asm = f"{self.mnemonic} {self.operand_str}" if self.operand_str else self.mnemonic
        if self.comment:
            return f"${self.address:04X}: {asm:<20} # {self.comment}"
        return f"${self.address:04X}: {asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:04X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


def _hex_word(value: int) -> str:
    return f"0x{value:04X}"


# =============================================================================
# SVM Disassembler
# =============================================================================

class Disassembler:
    """
    Disassembler for SVM machine code.

    The output uses the assembler's syntax: register pairs are written
    "first, second", values and jump targets as 0x-prefixed hex words.
    """

    def disassemble_one(self, data: bytes, address: int = 0, offset: int = 0) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction
            offset: Offset into data where the instruction starts

        Raises:
            ValueError: If offset is beyond the data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        info = decode_opcode(opcode)

        if info is None:
            return self._data_word(data, address, offset, "unknown opcode")

        if offset + info.size > len(data):
            return self._data_word(data, address, offset, "incomplete instruction")

        raw = bytes(data[offset:offset + info.size])
        decoded = self._format_operands(info, raw)
        if decoded is None:
            return self._data_word(data, address, offset, f"invalid {info.mnemonic} encoding")

        operand_str, comment, target = decoded
        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=info.mnemonic,
            operand_str=operand_str,
            size=info.size,
            raw_bytes=raw,
            comment=comment,
            target=target,
        )

    def _data_word(self, data: bytes, address: int, offset: int, comment: str) -> DisassembledInstruction:
        """Render undecodable bytes as a DATA word, or '??' for a lone trailing byte."""
        opcode = data[offset]
        if offset + 1 >= len(data):
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic="??",
                operand_str=f"0x{opcode:02X}",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="trailing byte",
            )
        raw = bytes(data[offset:offset + 2])
        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic="DATA",
            operand_str=_hex_word((raw[0] << 8) | raw[1]),
            size=2,
            raw_bytes=raw,
            comment=comment,
        )

    def _format_operands(
        self, info: InstructionInfo, raw: bytes
    ) -> Optional[Tuple[str, str, Optional[int]]]:
        """
        Format the operands of a complete instruction.

        Returns:
            (operand_str, comment, jump_target), or None if the encoding is
            not one the assembler could have produced
        """
        shape = info.shape
        word = (raw[2] << 8) | raw[3] if len(raw) == 4 else 0

        if shape is Shape.INHERENT:
            return "", "", None

        if shape is Shape.REGISTER_PAIR:
            first, second = unpack_register_pair(raw[1])
            if pack_register_pair(first, second) != raw[1]:
                return None
            if not (info.operands[0].accepts(first) and info.operands[1].accepts(second)):
                return None
            return f"{register_name(first)}, {register_name(second)}", "", None

        if shape is Shape.REGISTER:
            if not info.operands[0].accepts(raw[1]):
                return None
            return register_name(raw[1]), "", None

        if shape is Shape.REGISTER_IMMEDIATE:
            if not info.operands[0].accepts(raw[1]):
                return None
            return f"{register_name(raw[1])}, {_hex_word(word)}", self._value_comment(word), None

        if raw[1] != 0:
            return None

        if shape is Shape.JUMP:
            return _hex_word(word), "", word

        # Shape.IMMEDIATE
        if info.mnemonic == "OUTC":
            return _hex_word(word), self._char_comment(word), None
        return _hex_word(word), self._value_comment(word), None

    @staticmethod
    def _value_comment(word: int) -> str:
        signed = to_signed(word)
        return str(signed) if signed < 0 else ""

    @staticmethod
    def _char_comment(word: int) -> str:
        char = word & 0xFF
        if 0x20 <= char < 0x7F:
            return repr(chr(char))
        return ""

    def disassemble(
        self,
        data: bytes,
        start: int = 0,
        count: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble multiple instructions.

        Args:
            data: Byte buffer containing machine code
            start: Memory address of the first byte
            count: Maximum number of instructions to disassemble (None = all)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        offset = 0

        while offset < len(data):
            if count is not None and len(result) >= count:
                break

            instr = self.disassemble_one(data, start + offset, offset)
            result.append(instr)
            offset += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start: int = 0,
        count: Optional[int] = None,
        show_bytes: bool = True,
    ) -> str:
        """Disassemble and return a multi-line listing."""
        instructions = self.disassemble(data, start, count)
        return "\n".join(instr.to_text(show_bytes) for instr in instructions)

    # =========================================================================
    # Source Reconstruction
    # =========================================================================

    def to_source(self, instructions: List[DisassembledInstruction]) -> str:
        """
        Render instructions as assembler source.

        Jump targets that land on an instruction get an invented L_XXXX
        label. A jump whose target is not an instruction boundary cannot be
        written with a label, so it is emitted as two DATA words.
        Assembling the result reproduces the original bytes when the
        instructions start at address 0.

        Raises:
            ValueError: If the instructions end in a lone trailing byte
        """
        starts = {instr.address for instr in instructions}
        labels: Dict[int, str] = {}
        for instr in instructions:
            if instr.target is not None and instr.target in starts:
                labels[instr.target] = f"L_{instr.target:04X}"

        lines = []
        for instr in instructions:
            if instr.size == 1 and instr.mnemonic == "??":
                raise ValueError(
                    f"cannot represent trailing byte at ${instr.address:04X} in source"
                )

            label = labels.get(instr.address, "")

            if instr.target is not None and instr.target not in labels:
                raw = instr.raw_bytes
                lines.append(self._source_line(label, "DATA", _hex_word((raw[0] << 8) | raw[1])))
                lines.append(self._source_line("", "DATA", _hex_word(instr.target)))
                continue

            operands = instr.operand_str
            if instr.target is not None:
                operands = labels[instr.target]
            lines.append(self._source_line(label, instr.mnemonic, operands))

        return "\n".join(lines) + "\n"

    @staticmethod
    def _source_line(label: str, mnemonic: str, operands: str) -> str:
        code = f"{mnemonic} {operands}".rstrip()
        return f"{label:<8}{code}".rstrip() if label else f"        {code}"
