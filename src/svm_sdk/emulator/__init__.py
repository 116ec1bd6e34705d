"""
SVM Virtual Machine
===================

Executes Encoded Programs produced by the assembler.

Components
----------
- **Memory**: 32768 bytes, big-endian words, bounds-checked
- **CPU**: registers R1, R2, A1, A2, PC and flags Z, N, O; one instruction
  per step()
- **Machine**: program loading, run control, breakpoints, output capture

Quick Start
-----------
    >>> from svm_sdk.assembler import assemble
    >>> from svm_sdk.emulator import Machine
    >>> machine = Machine()
    >>> machine.load_program(assemble("OUT 42\\nHALT"))
    >>> machine.run().reason
    <StopReason.HALT: 1>
    >>> machine.output
    b'42'
"""

from svm_sdk.emulator.cpu import CPU, CPUState, Flags, MachineStatus, step
from svm_sdk.emulator.machine import (
    Machine,
    MachineConfig,
    RunEvent,
    StopReason,
    run_program,
)
from svm_sdk.emulator.memory import Memory

__all__ = [
    # Main interface
    "Machine",
    "MachineConfig",
    "RunEvent",
    "StopReason",
    "run_program",
    # CPU
    "CPU",
    "CPUState",
    "Flags",
    "MachineStatus",
    "step",
    # Memory
    "Memory",
]
