"""
sasm - SVM Assembler Command-Line Interface
===========================================

This module implements the command-line interface for the SVM assembler.

Usage Examples
--------------
Basic assembly:
    $ sasm hello.svm

With output file:
    $ sasm hello.svm -o hello.bin

Generate all output files:
    $ sasm hello.svm -o hello.bin -l hello.lst -s hello.sym

Assemble from a pipe:
    $ cat hello.svm | sasm - > hello.bin
"""

import logging
from pathlib import Path
from typing import Optional

import click

from svm_sdk import __version__
from svm_sdk.assembler import Assembler
from svm_sdk.cli.errors import handle_cli_exception, is_stdio, setup_logging

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, allow_dash=True, path_type=Path),
    help="Output binary file (default: input.bin, or stdout when reading stdin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="sasm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble SVM source code into an Encoded Program.

    INPUT_FILE is the assembly source file, or '-' to read from stdin.

    The output is the raw program image: no header, entry point at
    address 0.

    \b
    Examples:
        sasm hello.svm              # Outputs hello.bin
        sasm hello.svm -o out.bin   # Specify output file
        sasm - < hello.svm > out.bin
    """
    setup_logging(verbose)
    asm = Assembler(verbose=verbose)

    try:
        if is_stdio(input_file):
            asm.assemble_string(click.get_text_stream("stdin").read(), "<stdin>")
            output_file = output if output is not None else Path("-")
        else:
            asm.assemble_file(input_file)
            output_file = output if output is not None else input_file.with_suffix(".bin")

        code = asm.get_code()
        if is_stdio(output_file):
            stdout = click.get_binary_stream("stdout")
            stdout.write(code)
            stdout.flush()
        else:
            asm.write_binary(output_file)

        # Write optional auxiliary files
        if listing:
            asm.write_listing(listing)

        if symbols:
            asm.write_symbols(symbols)

        if verbose:
            logger.info(
                "Assembly complete: %d bytes, %d symbols",
                len(code), len(asm.get_symbols()),
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
