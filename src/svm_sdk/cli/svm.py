"""
svm - SVM Virtual Machine Command-Line Interface
================================================

Loads an Encoded Program at address 0 and runs it until HALT.

Program output (the OUT family) is written to stdout as raw bytes with no
separators; diagnostics and the execution trace go to stderr.

Usage Examples
--------------
Run a program:
    $ svm hello.bin

Assemble and run in one pipeline:
    $ sasm - < hello.svm | svm -

Trace every instruction:
    $ svm hello.bin --trace

Guard against runaway loops:
    $ svm loop.bin --max-steps 100000
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from svm_sdk import __version__
from svm_sdk.cli.errors import ExitCode, handle_cli_exception, is_stdio, parse_address, setup_logging
from svm_sdk.emulator import Machine, MachineConfig, StopReason

logger = logging.getLogger(__name__)


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path),
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=None,
    help="Stop with an error after N instructions (default: no limit)",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Print each instruction to stderr before it executes",
)
@click.option(
    "-b", "--break", "breakpoints",
    multiple=True,
    help="Stop before the instruction at ADDRESS (can be repeated)",
)
@click.option(
    "-r", "--registers",
    is_flag=True,
    help="Print the final registers and flags to stderr",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="svm")
def main(
    input_file: Path,
    max_steps: Optional[int],
    trace: bool,
    breakpoints: tuple[str, ...],
    registers: bool,
    verbose: bool,
) -> None:
    """
    Run an SVM program.

    INPUT_FILE is the program image produced by sasm, or '-' to read it
    from stdin.

    \b
    Exit status:
        0  the program halted (or stopped at a breakpoint)
        1  machine fault, or the step limit was reached
        2  invalid arguments
    """
    setup_logging(verbose)

    try:
        addresses = [parse_address(text) for text in breakpoints]
    except click.BadParameter as e:
        handle_cli_exception(e, verbose=verbose)

    stdout = click.get_binary_stream("stdout")
    machine = Machine(MachineConfig(max_steps=max_steps), output=stdout)
    for address in addresses:
        machine.add_breakpoint(address)

    if trace:
        machine.on_trace = lambda pc, text: click.echo(text, err=True)

    try:
        if is_stdio(input_file):
            machine.load_program(click.get_binary_stream("stdin").read())
        else:
            machine.load_file(input_file)

        event = machine.run()

    except Exception as e:
        if registers:
            _print_registers(machine)
        handle_cli_exception(e, verbose=verbose, error_type="Runtime")

    if registers:
        _print_registers(machine)

    logger.debug("%s after %d steps", event, machine.steps)

    if event.reason is StopReason.MAX_STEPS:
        click.echo(f"Error: program did not halt: {event}", err=True)
        sys.exit(ExitCode.PROGRAM_ERROR)

    if event.reason is StopReason.BREAKPOINT:
        click.echo(str(event), err=True)


def _print_registers(machine: Machine) -> None:
    regs = machine.registers
    flags = "".join(name if regs[name] else "-" for name in ("Z", "N", "O"))
    click.echo(
        f"R1=${regs['R1']:04X} R2=${regs['R2']:04X} "
        f"A1=${regs['A1']:04X} A2=${regs['A2']:04X} "
        f"PC=${regs['PC']:04X} flags={flags} status={machine.status}",
        err=True,
    )


if __name__ == "__main__":
    main()
