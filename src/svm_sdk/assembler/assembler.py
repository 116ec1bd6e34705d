"""
SVM Assembler - Main Interface
==============================

This module provides the main Assembler class, the primary interface for
assembling SVM source code. It normalizes the source lines and hands them to
the two-pass code generator.

Example Usage
-------------
>>> from svm_sdk.assembler import Assembler
>>>
>>> asm = Assembler()
>>> code = asm.assemble_string('''
... START LOAD R1, 10
...       ADD R1, 5
...       OUTR R1     # prints 15
...       HALT
... ''')
>>> code.hex(" ")
'60 01 00 0a 68 01 00 05 6e 01 31'
>>> asm.get_symbols()
{'START': 0}

Command-Line Usage
------------------
    $ sasm program.svm -o program.bin -l program.lst -s program.sym

Options:
    -o, --output FILE      Output binary file
    -l, --listing FILE     Generate listing file
    -s, --symbols FILE     Generate symbol file
    -v, --verbose          Verbose output
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from svm_sdk.assembler.codegen import CodeGenerator
from svm_sdk.assembler.source import read_source, split_source
from svm_sdk.assembler.symbols import MAX_SYMBOLS

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main SVM assembler class.

    Each instance owns its own code generator and symbol table; separate
    instances never share state.

    Attributes:
        verbose: If True, log progress at INFO level
    """

    def __init__(self, verbose: bool = False, max_symbols: int = MAX_SYMBOLS):
        """
        Initialize the assembler.

        Args:
            verbose: Enable progress messages
            max_symbols: Symbol table capacity
        """
        self._verbose = verbose
        self._codegen = CodeGenerator(max_symbols=max_symbols)
        self._source_file: Optional[Path] = None

    def _log(self, message: str, *args) -> None:
        if self._verbose:
            logger.info(message, *args)
        else:
            logger.debug(message, *args)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_lines(self, lines: Iterable[str], filename: str = "<input>") -> bytes:
        """
        Assemble a sequence of source lines.

        Args:
            lines: Program lines (trailing newlines are ignored)
            filename: Name used in error messages

        Returns:
            The Encoded Program

        Raises:
            AssemblerError: If assembly fails
        """
        source = read_source(lines, filename)
        self._log("Read %d lines from %s", len(source), filename)

        code = self._codegen.generate(source)

        self._log(
            "Generated %d bytes, %d symbols",
            len(code), len(self._codegen.get_symbols()),
        )
        return code

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """Assemble source code held in a string."""
        return self.assemble_lines(split_source(source), filename)

    def assemble(self, source: str | Iterable[str], filename: str = "<input>") -> bytes:
        """Assemble either a string or an iterable of lines."""
        if isinstance(source, str):
            return self.assemble_string(source, filename)
        return self.assemble_lines(source, filename)

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        self._source_file = filepath
        self._log("Assembling %s...", filepath)
        return self.assemble_string(filepath.read_text(), str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_code(self) -> bytes:
        return self._codegen.get_code()

    def get_symbols(self) -> dict[str, int]:
        """Return the symbol table as a {label: address} dictionary."""
        return self._codegen.get_symbols()

    def get_addresses(self) -> list[int]:
        """Return the address assigned to each source line."""
        return self._codegen.get_addresses()

    def get_statements(self):
        return self._codegen.get_statements()

    def get_listing(self) -> str:
        return self._codegen.get_listing()

    def write_binary(self, filepath: str | Path) -> None:
        """Write the Encoded Program with no header or terminator."""
        code = self.get_code()
        Path(filepath).write_bytes(code)
        self._log("Wrote %d bytes to %s", len(code), filepath)

    def write_listing(self, filepath: str | Path) -> None:
        self._codegen.write_listing(filepath)
        self._log("Wrote listing to %s", filepath)

    def write_symbols(self, filepath: str | Path) -> None:
        self._codegen.write_symbols(filepath)
        self._log("Wrote symbols to %s", filepath)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str | Iterable[str], filename: str = "<input>") -> bytes:
    """
    Convenience function to assemble source code.

    Args:
        source: Program text, or an iterable of lines
        filename: Virtual filename for errors

    Returns:
        The Encoded Program

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler().assemble(source, filename)


def assemble_file(filepath: str | Path) -> bytes:
    """Convenience function to assemble a file."""
    return Assembler().assemble_file(filepath)
