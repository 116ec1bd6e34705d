"""
SVM Machine - Main Interface
============================

This module provides the main `Machine` class that ties the CPU and memory
together and adds program loading, run control, breakpoints and output
capture.

Basic Usage:
    >>> from svm_sdk.emulator import Machine
    >>> machine = Machine()
    >>> machine.load_program(code)
    >>> event = machine.run()
    >>> event.reason
    <StopReason.HALT: 1>
    >>> machine.output_text
    '15'

Execution Model:
    The program image is copied to address 0 and execution starts there
    with all registers and flags cleared. run() executes instructions until
    HALT, a breakpoint, or the step limit. A fault raises the corresponding
    MachineError; the machine is then FAULTED and the event is kept in
    `last_event`.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Set, Union

from svm_sdk.disassembler import Disassembler
from svm_sdk.emulator.cpu import CPU, MachineStatus
from svm_sdk.emulator.memory import Memory
from svm_sdk.errors import MachineError
from svm_sdk.isa import MEMORY_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MachineConfig:
    """
    Configuration for machine initialization.

    Attributes:
        memory_size: Size of the memory region in bytes. Default 32768.
        max_steps: Default instruction limit for run(). None means no limit.

    Example:
        >>> config = MachineConfig(max_steps=100_000)
    """
    memory_size: int = MEMORY_SIZE
    max_steps: Optional[int] = None


class StopReason(Enum):
    """Why execution stopped."""
    HALT = auto()         # HALT instruction executed
    BREAKPOINT = auto()   # PC reached a breakpoint address
    MAX_STEPS = auto()    # Step limit reached
    FAULT = auto()        # Machine fault (error raised)
    STEP = auto()         # Single-step completed


@dataclass
class RunEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC at the time of the stop
        message: Human-readable description
    """
    reason: StopReason
    address: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return self.message
        match self.reason:
            case StopReason.HALT:
                return f"Halted at ${self.address:04X}"
            case StopReason.BREAKPOINT:
                return f"Breakpoint at ${self.address:04X}"
            case StopReason.MAX_STEPS:
                return "Step limit reached"
            case StopReason.STEP:
                return f"Step at ${self.address:04X}"
            case _:
                return self.reason.name


TraceCallback = Callable[[int, str], None]


class Machine:
    """
    SVM virtual machine with instrumentation support.

    Attributes:
        config: The MachineConfig used to initialize this instance
        cpu: The CPU instance (accessible for low-level control)
        memory: The machine memory
        on_trace: Optional callback(pc, disassembly) invoked before every
            instruction executed by run()

    Example:
        >>> machine = Machine(output=sys.stdout.buffer)
        >>> machine.load_file("hello.bin")
        >>> machine.add_breakpoint(0x000C)
        >>> event = machine.run()
    """

    def __init__(
        self,
        config: Optional[MachineConfig] = None,
        output: Optional[BinaryIO] = None,
    ):
        """
        Initialize the machine.

        Args:
            config: MachineConfig; defaults to a 32768-byte machine
            output: Binary stream that receives program output as it is
                produced, in addition to the in-memory capture
        """
        self.config = config or MachineConfig()
        self.memory = Memory(self.config.memory_size)
        self.cpu = CPU(self.memory, on_output=self._output_hook)
        self.cpu.on_instruction = self._instruction_hook

        self.on_trace: Optional[TraceCallback] = None
        self.last_event: Optional[RunEvent] = None

        self._stream = output
        self._output = bytearray()
        self._breakpoints: Set[int] = set()
        self._breakpoint_hit: Optional[int] = None
        self._resume_pc: Optional[int] = None
        self._program_size = 0
        self._disassembler = Disassembler()

    # =========================================================================
    # Hooks
    # =========================================================================

    def _output_hook(self, data: bytes) -> None:
        self._output.extend(data)
        if self._stream is not None:
            self._stream.write(data)
            self._stream.flush()

    def _instruction_hook(self, pc: int, opcode: int) -> bool:
        """
        Called by the CPU before each instruction during run().

        Returns:
            True to continue execution, False to stop (breakpoint hit)
        """
        resuming = pc == self._resume_pc
        self._resume_pc = None

        if pc in self._breakpoints and not resuming:
            self._breakpoint_hit = pc
            return False

        if self.on_trace is not None and self.memory.contains(pc):
            self.on_trace(pc, self.disassemble_at(pc, 1)[0])
        return True

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_program(self, code: bytes) -> None:
        """
        Reset the machine and load a program image at address 0.

        Raises:
            ProgramSizeError: If the program does not fit in memory
        """
        self.reset()
        self.memory.load(code)
        self._program_size = len(code)
        logger.debug("Loaded %d bytes", len(code))

    def load_file(self, path: Union[str, Path]) -> None:
        """Load a binary program file."""
        path = Path(path)
        self.load_program(path.read_bytes())
        logger.debug("Loaded %s", path)

    def reset(self) -> None:
        """
        Reset the machine to its initial state.

        Memory is cleared, registers and flags are zeroed, captured output
        and the step counter are discarded. Breakpoints are kept.
        """
        self.memory.reset()
        self.cpu.reset()
        self._output = bytearray()
        self._program_size = 0
        self._breakpoint_hit = None
        self._resume_pc = None
        self.last_event = None

    # =========================================================================
    # Execution Control
    # =========================================================================

    def step(self) -> RunEvent:
        """
        Execute a single instruction, ignoring breakpoints.

        Returns:
            RunEvent with reason HALT if the instruction halted the machine,
            STEP otherwise

        Raises:
            MachineError: If the instruction faults
        """
        try:
            self.cpu.step()
        except MachineError as e:
            self._record_fault(e)
            raise

        if self.cpu.halted:
            self.last_event = RunEvent(StopReason.HALT, address=self.cpu.pc)
        else:
            self.last_event = RunEvent(StopReason.STEP, address=self.cpu.pc)
        return self.last_event

    def run(self, max_steps: Optional[int] = None) -> RunEvent:
        """
        Run until HALT, a breakpoint, or the step limit.

        Args:
            max_steps: Maximum instructions to execute; defaults to
                config.max_steps (None for no limit)

        Returns:
            RunEvent describing why execution stopped

        Raises:
            MachineError: If the program faults
        """
        if self.cpu.faulted:
            raise MachineError("cannot run: machine is faulted", pc=self.cpu.pc)
        if max_steps is None:
            max_steps = self.config.max_steps

        # Resuming from a breakpoint executes the instruction it stopped at
        self._resume_pc = None
        if self.last_event is not None and self.last_event.reason is StopReason.BREAKPOINT:
            self._resume_pc = self.last_event.address
        self._breakpoint_hit = None

        try:
            executed = self.cpu.run(max_steps)
        except MachineError as e:
            self._record_fault(e)
            raise

        if self.cpu.halted:
            event = RunEvent(StopReason.HALT, address=self.cpu.pc)
        elif self._breakpoint_hit is not None:
            event = RunEvent(StopReason.BREAKPOINT, address=self._breakpoint_hit)
        else:
            event = RunEvent(
                StopReason.MAX_STEPS,
                address=self.cpu.pc,
                message=f"Reached max steps ({max_steps})",
            )

        logger.debug("Stopped after %d steps: %s", executed, event)
        self.last_event = event
        return event

    def _record_fault(self, error: MachineError) -> None:
        address = error.pc if error.pc is not None else self.cpu.pc
        self.last_event = RunEvent(StopReason.FAULT, address=address, message=str(error))
        logger.debug("Fault: %s", error)

    # =========================================================================
    # Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """Stop run() before executing the instruction at address."""
        self._breakpoints.add(address)

    def remove_breakpoint(self, address: int) -> None:
        self._breakpoints.discard(address)

    def clear_breakpoints(self) -> None:
        self._breakpoints.clear()

    @property
    def breakpoints(self) -> Set[int]:
        return set(self._breakpoints)

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def output(self) -> bytes:
        """All bytes written by the OUT family since the last reset."""
        return bytes(self._output)

    @property
    def output_text(self) -> str:
        return self._output.decode("latin-1")

    @property
    def registers(self) -> dict:
        """
        Get current register values as a dictionary.

        Returns:
            Dictionary with keys: R1, R2, A1, A2, PC, Z, N, O
        """
        return self.cpu.registers()

    @property
    def status(self) -> MachineStatus:
        return self.cpu.status

    @property
    def steps(self) -> int:
        """Instructions executed since the last reset."""
        return self.cpu.steps

    @property
    def program_size(self) -> int:
        return self._program_size

    def disassemble_at(self, address: int, count: int = 10) -> List[str]:
        """
        Disassemble instructions in memory starting at address.

        Returns:
            List of disassembly strings
        """
        end = min(address + count * 4, self.memory.size)
        if address >= end:
            return []
        data = self.memory.read_bytes(address, end - address)
        return [
            str(instr)
            for instr in self._disassembler.disassemble(data, start=address, count=count)
        ]

    def __repr__(self) -> str:
        return (
            f"Machine(status={self.status}, "
            f"pc=${self.cpu.pc:04X}, "
            f"steps={self.cpu.steps})"
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def run_program(
    code: bytes,
    max_steps: Optional[int] = None,
    output: Optional[BinaryIO] = None,
) -> Machine:
    """
    Load and run a program on a fresh machine.

    Returns:
        The machine after execution stopped

    Raises:
        MachineError: If the program faults
    """
    machine = Machine(MachineConfig(max_steps=max_steps), output=output)
    machine.load_program(code)
    machine.run()
    return machine
