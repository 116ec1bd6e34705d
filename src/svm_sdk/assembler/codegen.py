"""
SVM Code Generator
==================

Two-pass translation of normalized source lines into an Encoded Program.

Pass 1 walks every line with a location counter starting at 0. Each
statement is assigned the current address, its label (if any) is entered in
the symbol table, and the counter advances by the instruction's size from
the instruction set table. The address of every line, blank or not, is
recorded in the instruction address table.

Pass 2 walks the statements produced by pass 1 and emits bytes shape by
shape. It never recomputes addresses: the emitter for a shape writes exactly
the number of bytes the table assigns to that shape.

Operand resolution:
    - Registers map through the register-code table and must belong to the
      class the instruction expects.
    - Values are looked up in the symbol table first, then parsed as an
      integer literal (decimal, or hexadecimal with a 0x prefix). Anything
      else is an undefined symbol.
    - Jump targets must be labels; numeric jump targets are rejected.

Every error is fatal: generation stops at the first one and no code is
returned.
"""

import logging
import re
from pathlib import Path
from typing import Callable, Optional

from svm_sdk.assembler.parser import Statement, parse_line
from svm_sdk.assembler.source import SourceLine
from svm_sdk.assembler.symbols import MAX_SYMBOLS, SymbolTable
from svm_sdk.errors import (
    InvalidRegisterError,
    OperandRangeError,
    UndefinedSymbolError,
)
from svm_sdk.isa import (
    MAX_VALUE,
    MIN_VALUE,
    Shape,
    pack_register_pair,
    register_code,
    to_word,
    word_bytes,
)

logger = logging.getLogger(__name__)


_DECIMAL = re.compile(r"^[+-]?[0-9]+$")
_HEXADECIMAL = re.compile(r"^[+-]?0[xX][0-9a-fA-F]+$")


def parse_literal(text: str) -> Optional[int]:
    """
    Parse an integer literal.

    Accepts decimal with an optional sign and hexadecimal with a 0x prefix.

    Returns:
        The integer value, or None if text is not a literal
    """
    if _DECIMAL.match(text):
        return int(text, 10)
    if _HEXADECIMAL.match(text):
        return int(text, 16)
    return None


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates SVM machine code from source lines.

    The code generator maintains:
    - Symbol table with all labels
    - Instruction address table (one entry per source line)
    - Output code buffer
    - Listing lines for the optional listing report

    A generator may be reused; each call to generate() starts from an empty
    symbol table.

    Example:
        >>> gen = CodeGenerator()
        >>> code = gen.generate(read_source(["LOAD R1, 10", "HALT"]))
        >>> code.hex()
        '6001000a31'
    """

    def __init__(self, max_symbols: int = MAX_SYMBOLS):
        self._max_symbols = max_symbols
        self._symbols = SymbolTable(max_symbols)
        self._lines: list[SourceLine] = []
        self._statements: list[Statement] = []
        self._addresses: list[int] = []
        self._code = bytearray()
        self._listing_lines: list[str] = []
        self._location_counter = 0

        self._emitters: dict[Shape, Callable[[Statement], None]] = {
            Shape.INHERENT: self._emit_inherent,
            Shape.REGISTER_PAIR: self._emit_register_pair,
            Shape.REGISTER_IMMEDIATE: self._emit_register_immediate,
            Shape.IMMEDIATE: self._emit_immediate,
            Shape.REGISTER: self._emit_register,
            Shape.JUMP: self._emit_jump,
            Shape.DATA: self._emit_data,
        }

    # =========================================================================
    # Main Entry Point
    # =========================================================================

    def generate(self, lines: list[SourceLine]) -> bytes:
        """
        Assemble normalized source lines.

        Args:
            lines: Source lines as produced by read_source()

        Returns:
            The Encoded Program

        Raises:
            AssemblerError: On the first error in either pass
        """
        self._reset()
        self._lines = list(lines)

        self._pass1()
        logger.debug(
            "Pass 1: %d statements, %d labels, %d bytes",
            len(self._statements), len(self._symbols), self._location_counter,
        )

        self._pass2()
        logger.debug("Pass 2: emitted %d bytes", len(self._code))

        return bytes(self._code)

    def _reset(self) -> None:
        self._symbols = SymbolTable(self._max_symbols)
        self._lines = []
        self._statements = []
        self._addresses = []
        self._code = bytearray()
        self._listing_lines = []
        self._location_counter = 0

    # =========================================================================
    # Pass 1 - Symbol Collection
    # =========================================================================

    def _pass1(self) -> None:
        """
        First pass: assign addresses and collect labels.

        Blank lines are given the address they would have occupied so the
        address table stays aligned with the source.
        """
        self._location_counter = 0

        for line in self._lines:
            self._addresses.append(self._location_counter)

            stmt = parse_line(line)
            if stmt is None:
                continue

            stmt.address = self._location_counter

            if stmt.label is not None:
                self._symbols.define(
                    stmt.label,
                    stmt.address,
                    location=line.location(line.column_of(stmt.label)),
                    source_line=line.text,
                )

            self._statements.append(stmt)
            self._location_counter += stmt.size

    # =========================================================================
    # Pass 2 - Code Generation
    # =========================================================================

    def _pass2(self) -> None:
        """Second pass: emit bytes for every statement."""
        by_line = {stmt.line.number: stmt for stmt in self._statements}

        for line in self._lines:
            stmt = by_line.get(line.number)
            if stmt is None:
                self._listing_lines.append(
                    f"{'':4}  {'':12}  {line.number:4d}  {line.text}"
                )
                continue

            start = len(self._code)
            self._emitters[stmt.info.shape](stmt)

            emitted = self._code[start:]
            hex_bytes = " ".join(f"{b:02X}" for b in emitted)
            self._listing_lines.append(
                f"{stmt.address:04X}  {hex_bytes:<12}  {line.number:4d}  {line.text}"
            )

    # =========================================================================
    # Operand Resolution
    # =========================================================================

    def _resolve_register(self, stmt: Statement, index: int) -> int:
        """Resolve a register operand and check its class."""
        name = stmt.operands[index]
        kind = stmt.info.operands[index]
        code = register_code(name)

        if code is None:
            raise InvalidRegisterError(
                name,
                location=stmt.operand_location(index),
                hint="registers are R1, R2, A1 and A2",
                source_line=stmt.line.text,
            )

        if not kind.accepts(code):
            raise InvalidRegisterError(
                name,
                location=stmt.operand_location(index),
                reason=f"{stmt.mnemonic} expects a {kind}",
                source_line=stmt.line.text,
            )

        return code

    def _resolve_value(self, stmt: Statement, index: int) -> int:
        """Resolve a value operand: label first, then integer literal."""
        text = stmt.operands[index]

        address = self._symbols.lookup(text)
        if address is not None:
            return address

        value = parse_literal(text)
        if value is None:
            raise UndefinedSymbolError(
                text,
                location=stmt.operand_location(index),
                source_line=stmt.line.text,
                similar_symbols=self._symbols.similar(text),
            )

        if not MIN_VALUE <= value <= MAX_VALUE:
            raise OperandRangeError(
                value,
                location=stmt.operand_location(index),
                source_line=stmt.line.text,
            )

        return to_word(value)

    def _resolve_target(self, stmt: Statement, index: int) -> int:
        """Resolve a jump target. Only labels are accepted."""
        text = stmt.operands[index]

        address = self._symbols.lookup(text)
        if address is None:
            hint = None
            if parse_literal(text) is not None:
                hint = "jump targets must be labels"
            raise UndefinedSymbolError(
                text,
                location=stmt.operand_location(index),
                hint=hint,
                source_line=stmt.line.text,
                similar_symbols=self._symbols.similar(text),
            )

        return address

    # =========================================================================
    # Emitters (one per shape)
    # =========================================================================

    def _emit_inherent(self, stmt: Statement) -> None:
        self._emit_byte(stmt.info.opcode)

    def _emit_register_pair(self, stmt: Statement) -> None:
        first = self._resolve_register(stmt, 0)
        second = self._resolve_register(stmt, 1)
        self._emit_byte(stmt.info.opcode)
        self._emit_byte(pack_register_pair(first, second))

    def _emit_register_immediate(self, stmt: Statement) -> None:
        register = self._resolve_register(stmt, 0)
        value = self._resolve_value(stmt, 1)
        self._emit_byte(stmt.info.opcode)
        self._emit_byte(register)
        self._emit_word(value)

    def _emit_immediate(self, stmt: Statement) -> None:
        value = self._resolve_value(stmt, 0)
        self._emit_byte(stmt.info.opcode)
        self._emit_byte(0)  # Unused
        self._emit_word(value)

    def _emit_register(self, stmt: Statement) -> None:
        register = self._resolve_register(stmt, 0)
        self._emit_byte(stmt.info.opcode)
        self._emit_byte(register)

    def _emit_jump(self, stmt: Statement) -> None:
        target = self._resolve_target(stmt, 0)
        self._emit_byte(stmt.info.opcode)
        self._emit_byte(0)  # Unused
        self._emit_word(target)

    def _emit_data(self, stmt: Statement) -> None:
        self._emit_word(self._resolve_value(stmt, 0))

    def _emit_byte(self, value: int) -> None:
        self._code.append(value & 0xFF)

    def _emit_word(self, value: int) -> None:
        self._code.extend(word_bytes(value))

    # =========================================================================
    # Results
    # =========================================================================

    def get_code(self) -> bytes:
        return bytes(self._code)

    def get_symbols(self) -> dict[str, int]:
        return self._symbols.as_dict()

    def get_symbol_table(self) -> SymbolTable:
        return self._symbols

    def get_addresses(self) -> list[int]:
        """Return the instruction address table, one entry per source line."""
        return list(self._addresses)

    def get_statements(self) -> list[Statement]:
        return list(self._statements)

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, generated bytes, and source lines.
        """
        lines = []
        lines.append("SVM Assembler Listing")
        lines.append("=" * 60)
        lines.append("")
        lines.append("Addr  Code          Line  Source")
        lines.append("-" * 60)
        lines.extend(self._listing_lines)
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 30)
        for sym in sorted(self._symbols, key=lambda s: s.name):
            lines.append(f"{sym.name:20s} = ${sym.address:04X}")
        return "\n".join(lines)

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing to a file."""
        with open(filepath, "w") as f:
            f.write(self.get_listing())
            f.write("\n")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: name address (one per line)
        """
        with open(filepath, "w") as f:
            f.write("# Symbol table\n")
            f.write("# Generated by sasm\n")
            for sym in sorted(self._symbols, key=lambda s: s.name):
                f.write(f"{sym.name} ${sym.address:04X}\n")
