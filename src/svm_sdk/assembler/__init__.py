"""
SVM Assembler
=============

Translates SVM assembly source into an Encoded Program: a raw byte stream
with no header, whose first byte is the entry point.

Main Components
---------------
- **Assembler**: Main assembler class that orchestrates the assembly process
- **read_source**: Normalizes lines (comments, whitespace, limits)
- **parse_line**: Splits a line into label, mnemonic and operands
- **SymbolTable**: Label to address mapping built by the first pass
- **CodeGenerator**: Two-pass address assignment and code emission

Assembly Process
----------------
1. **Normalization**: strip '#' comments and surrounding whitespace
2. **Pass 1**: assign addresses with a location counter, record labels
3. **Pass 2**: resolve operands and emit bytes per instruction shape

Instruction widths come from the shared table in `svm_sdk.isa`, so the
address pass 1 gives a label is always where pass 2 puts the instruction.
"""

from svm_sdk.assembler.assembler import Assembler, assemble, assemble_file
from svm_sdk.assembler.codegen import CodeGenerator, parse_literal
from svm_sdk.assembler.parser import Statement, format_usage, parse_line, parse_lines
from svm_sdk.assembler.source import (
    COMMENT_CHAR,
    MAX_LINE_LENGTH,
    MAX_LINES,
    SourceLine,
    normalize_line,
    read_source,
)
from svm_sdk.assembler.symbols import MAX_SYMBOLS, Symbol, SymbolTable

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    # Source handling
    "SourceLine",
    "normalize_line",
    "read_source",
    "COMMENT_CHAR",
    "MAX_LINE_LENGTH",
    "MAX_LINES",
    # Parser
    "Statement",
    "parse_line",
    "parse_lines",
    "format_usage",
    # Symbols
    "Symbol",
    "SymbolTable",
    "MAX_SYMBOLS",
    # Code generator
    "CodeGenerator",
    "parse_literal",
]
