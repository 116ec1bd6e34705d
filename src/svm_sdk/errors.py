"""
SVM SDK Error Hierarchy
=======================

This module defines the exception hierarchy for the entire SVM SDK.
All exceptions inherit from SVMError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
SVMError (base)
├── AssemblerError (assembler-related)
│   ├── AssemblySyntaxError - malformed line or operand list
│   ├── UnknownInstructionError - mnemonic not in the instruction set
│   ├── InvalidRegisterError - unknown register, or wrong register class
│   ├── SymbolTableOverflowError - too many labels
│   ├── UndefinedSymbolError - reference to an undefined label
│   ├── DuplicateSymbolError - label defined more than once
│   ├── OperandRangeError - literal does not fit in 16 bits
│   └── SourceLimitError - line too long or too many lines
└── MachineError (virtual machine faults)
    ├── InvalidOpcodeError - byte at PC is not an opcode
    ├── MachineRegisterError - register code invalid for the instruction
    ├── MemoryOutOfBoundsError - access outside the memory region
    ├── InvalidJumpTargetError - jump target outside the memory region
    └── ProgramSizeError - program does not fit in memory

Every error is fatal. Components raise at the point of detection and the
command-line layer turns the exception into a diagnostic and exit code.

Assembler error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class SVMError(Exception):
    """
    Base exception for all SVM SDK errors.

        try:
            assemble_file("program.svm")
        except SVMError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int = 1

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(SVMError):
    """
    Base exception for all assembler-related errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            loop.svm:4:6: error: undefined symbol 'LOPP'
                JMPZ LOPP
                     ^
            hint: did you mean 'LOOP'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Raised when a line cannot be split into label, mnemonic and operands,
    for example a missing comma, an empty operand or the wrong number of
    operands for the mnemonic.
    """
    pass


class UnknownInstructionError(AssemblerError):
    """Mnemonic is not part of the instruction set."""

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        super().__init__(
            f"unknown instruction '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class InvalidRegisterError(AssemblerError):
    """
    Invalid register operand.

    Raised for names outside the register table (R1, R2, A1, A2) and for
    registers of the wrong class, e.g. an address register given to ADD.
    """

    def __init__(
        self,
        register: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        self.register = register
        message = f"invalid register '{register}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class SymbolTableOverflowError(AssemblerError):
    """The symbol table is full."""

    def __init__(
        self,
        capacity: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.capacity = capacity
        super().__init__(
            f"symbol table overflow (limit is {capacity} labels)",
            location=location,
            source_line=source_line,
        )


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined label.

    Raised during the second pass when a jump target (or a value operand
    that is not a valid integer literal) names no defined label.

    Similarly-named labels are suggested to help catch typos.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undefined symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label defined multiple times.

    Includes the location of the original definition in the hint.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate symbol '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class OperandRangeError(AssemblerError):
    """Literal operand does not fit in a 16-bit word."""

    def __init__(
        self,
        value: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.value = value
        super().__init__(
            f"value {value} does not fit in 16 bits",
            location=location,
            hint="values must be between -32768 and 65535",
            source_line=source_line,
        )


class SourceLimitError(AssemblerError):
    """
    Source exceeds the assembler's fixed limits.

    Raised when a line is longer than MAX_LINE_LENGTH characters or the
    program has more than MAX_LINES lines.
    """
    pass


# =============================================================================
# Virtual Machine Exceptions
# =============================================================================

class MachineError(SVMError):
    """
    Base exception for virtual machine faults.

    Attributes:
        message: The fault description
        pc: Address of the instruction that faulted (optional)
    """

    def __init__(self, message: str, pc: Optional[int] = None):
        self.message = message
        self.pc = pc
        if pc is not None:
            super().__init__(f"{message} (PC=${pc:04X})")
        else:
            super().__init__(message)


class InvalidOpcodeError(MachineError):
    """The byte at the program counter is not a valid opcode."""

    def __init__(self, opcode: int, pc: Optional[int] = None):
        self.opcode = opcode
        super().__init__(f"unknown opcode ${opcode:02X}", pc=pc)


class MachineRegisterError(MachineError):
    """Register code is not valid for the executing instruction."""

    def __init__(self, mnemonic: str, code: int, pc: Optional[int] = None):
        self.mnemonic = mnemonic
        self.code = code
        super().__init__(f"invalid register code {code} for {mnemonic}", pc=pc)


class MemoryOutOfBoundsError(MachineError):
    """A memory access touched a byte outside the memory region."""

    def __init__(self, address: int, size: int, pc: Optional[int] = None):
        self.address = address
        self.size = size
        super().__init__(
            f"memory access out of bounds at ${address:04X} "
            f"(memory is {size} bytes)",
            pc=pc,
        )


class InvalidJumpTargetError(MachineError):
    """A taken jump points outside the memory region."""

    def __init__(self, target: int, pc: Optional[int] = None):
        self.target = target
        super().__init__(f"jump to invalid address ${target:04X}", pc=pc)


class ProgramSizeError(MachineError):
    """The program image does not fit in memory."""

    def __init__(self, length: int, size: int):
        self.length = length
        self.size = size
        super().__init__(
            f"program is {length} bytes but memory holds only {size} bytes"
        )
