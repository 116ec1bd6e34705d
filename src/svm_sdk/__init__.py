"""
SVM SDK - Toolchain for the SVM 16-bit Register Machine
=======================================================

This package provides an assembler, a virtual machine and a disassembler for
SVM, a small 16-bit register machine with two general registers (R1, R2),
two address registers (A1, A2), Z/N/O flags and 32 KB of memory.

Main Components
---------------
- **isa**: Instruction set table shared by every component
- **assembler**: Two-pass assembler (sasm)
    Converts assembly source into an Encoded Program (raw bytes, entry at 0)
- **emulator**: Virtual machine (svm)
    Loads an Encoded Program at address 0 and executes it until HALT
- **disassembler**: Disassembler (sdisasm)
    Decodes machine code back into assembly syntax

Quick Start
-----------
Assemble and run a program:
    >>> from svm_sdk import assemble, Machine
    >>> machine = Machine()
    >>> machine.load_program(assemble('''
    ... START LOAD R1, 10
    ...       ADD R1, 5
    ...       OUTR R1
    ...       HALT
    ... '''))
    >>> event = machine.run()
    >>> machine.output_text
    '15'

Or use the command-line tools:
    $ sasm program.svm -o program.bin
    $ svm program.bin
    $ sdisasm program.bin --source
"""

__version__ = "1.0.0"

from svm_sdk.assembler import Assembler, assemble, assemble_file
from svm_sdk.disassembler import Disassembler, DisassembledInstruction
from svm_sdk.emulator import (
    CPU,
    CPUState,
    Machine,
    MachineConfig,
    MachineStatus,
    Memory,
    RunEvent,
    StopReason,
    run_program,
)
from svm_sdk.errors import (
    SVMError,
    SourceLocation,
    AssemblerError,
    AssemblySyntaxError,
    UnknownInstructionError,
    InvalidRegisterError,
    SymbolTableOverflowError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    OperandRangeError,
    SourceLimitError,
    MachineError,
    InvalidOpcodeError,
    MachineRegisterError,
    MemoryOutOfBoundsError,
    InvalidJumpTargetError,
    ProgramSizeError,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    # Virtual machine
    "Machine",
    "MachineConfig",
    "MachineStatus",
    "RunEvent",
    "StopReason",
    "run_program",
    "CPU",
    "CPUState",
    "Memory",
    # Disassembler
    "Disassembler",
    "DisassembledInstruction",
    # Errors
    "SVMError",
    "SourceLocation",
    "AssemblerError",
    "AssemblySyntaxError",
    "UnknownInstructionError",
    "InvalidRegisterError",
    "SymbolTableOverflowError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "OperandRangeError",
    "SourceLimitError",
    "MachineError",
    "InvalidOpcodeError",
    "MachineRegisterError",
    "MemoryOutOfBoundsError",
    "InvalidJumpTargetError",
    "ProgramSizeError",
]
