"""
sdisasm - SVM Disassembler Command-Line Interface
=================================================

This module implements the command-line interface for the SVM disassembler.

Usage Examples
--------------
Disassemble a program:
    $ sdisasm hello.bin

With base address:
    $ sdisasm code.bin --address 0x0100

Limit number of instructions:
    $ sdisasm code.bin --count 20

Reconstruct assembler source:
    $ sdisasm hello.bin --source -o hello.svm
"""

import sys
from pathlib import Path
from typing import Optional

import click

from svm_sdk import __version__
from svm_sdk.cli.errors import ExitCode, handle_cli_exception, is_stdio, parse_address, setup_logging
from svm_sdk.disassembler import Disassembler


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
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    help="Base address for disassembly (hex with 0x prefix or decimal). Default: 0",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "--source",
    is_flag=True,
    help="Emit assembler source with invented labels instead of a listing",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="sdisasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    no_bytes: bool,
    source: bool,
    verbose: bool,
) -> None:
    """
    Disassemble SVM machine code.

    INPUT_FILE is the binary file to disassemble, or '-' for stdin.

    \b
    Examples:
        sdisasm code.bin
        sdisasm code.bin --count 20 -o listing.txt
        sdisasm code.bin --source > code.svm
    """
    setup_logging(verbose)

    try:
        base_address = parse_address(address)

        if is_stdio(input_file):
            data = click.get_binary_stream("stdin").read()
            name = "<stdin>"
        else:
            data = input_file.read_bytes()
            name = input_file.name
    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    if len(data) == 0:
        click.echo(f"Error: {name} is empty", err=True)
        sys.exit(ExitCode.PROGRAM_ERROR)

    if verbose:
        click.echo(f"Input file: {name} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${base_address:04X}", err=True)

    disasm = Disassembler()
    instructions = disasm.disassemble(data, start=base_address, count=count)

    if source:
        try:
            result = disasm.to_source(instructions)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(ExitCode.PROGRAM_ERROR)
    else:
        output_lines = [
            f"# Disassembly of {name}",
            f"# Size: {len(data)} bytes",
            f"# Base address: ${base_address:04X}",
            "",
        ]
        output_lines.extend(instr.to_text(show_bytes=not no_bytes) for instr in instructions)
        result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding="utf-8")
        except OSError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(ExitCode.INVALID_ARGS)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
