"""
SVM Machine Integration Tests
=============================

End-to-end tests that assemble programs and run them on a Machine:
- Program loading and reset
- Run control (HALT, step limit, breakpoints)
- Output capture and streaming
- Fault reporting
- Determinism
"""

import io

import pytest

from svm_sdk.assembler import Assembler, assemble
from svm_sdk.emulator import Machine, MachineConfig, MachineStatus, RunEvent, StopReason, run_program
from svm_sdk.errors import InvalidJumpTargetError, InvalidOpcodeError, MachineError, ProgramSizeError


SCENARIO_A = "LOAD R1, 10\nADD R1, 5\nOUTR R1\nHALT\n"
SCENARIO_B = "START LOAD R1, 0\nJMPZ SKIP\nOUT 99\nSKIP HALT\n"

COUNTDOWN = """
# Print 5 4 3 2 1 separated by spaces
        LOAD R1, 5
LOOP    OUTR R1
        OUTC 32
        SUB R1, 1
        JMPZ DONE
        JMP LOOP
DONE    OUTC 10
        HALT
"""


@pytest.fixture
def machine():
    """Create a fresh machine."""
    return Machine()


def run_source(source, **config):
    machine = Machine(MachineConfig(**config))
    machine.load_program(assemble(source))
    event = machine.run()
    return machine, event


# =============================================================================
# End-to-End Tests
# =============================================================================

class TestEndToEnd:
    """Assemble and execute complete programs."""

    def test_scenario_a(self):
        machine, event = run_source(SCENARIO_A)
        assert event.reason is StopReason.HALT
        assert machine.output == b"15"
        assert machine.output_text == "15"
        assert machine.status is MachineStatus.HALTED

    def test_scenario_b(self):
        asm = Assembler()
        code = asm.assemble(SCENARIO_B)
        assert asm.get_symbols() == {"START": 0, "SKIP": 12}

        machine = Machine()
        machine.load_program(code)
        machine.step()
        assert machine.registers["Z"] is True

        event = machine.run()
        assert event.reason is StopReason.HALT
        assert machine.output == b""
        assert machine.steps == 3

    def test_countdown_loop(self):
        machine, event = run_source(COUNTDOWN)
        assert event.reason is StopReason.HALT
        assert machine.output_text == "5 4 3 2 1 \n"

    def test_determinism(self):
        """Same program, same output and final registers."""
        first, _ = run_source(COUNTDOWN)
        second, _ = run_source(COUNTDOWN)
        assert first.output == second.output
        assert first.registers == second.registers
        assert first.steps == second.steps

    def test_run_program(self):
        machine = run_program(assemble(SCENARIO_A))
        assert machine.output == b"15"

    def test_load_file(self, machine, tmp_path):
        path = tmp_path / "prog.bin"
        path.write_bytes(assemble(SCENARIO_A))
        machine.load_file(path)
        assert machine.program_size == 11
        machine.run()
        assert machine.output == b"15"


# =============================================================================
# Loading and Reset Tests
# =============================================================================

class TestLoading:
    """Test program loading and reset."""

    def test_load_resets_state(self, machine):
        machine.load_program(assemble(SCENARIO_A))
        machine.run()
        machine.load_program(assemble("OUT 1\nHALT"))
        assert machine.status is MachineStatus.RUNNING
        assert machine.output == b""
        assert machine.steps == 0
        assert machine.registers["R1"] == 0
        machine.run()
        assert machine.output == b"1"

    def test_load_clears_previous_program(self, machine):
        machine.load_program(assemble("OUT 1\nOUT 2\nHALT"))
        machine.load_program(assemble("HALT"))
        assert machine.memory.read_byte(4) == 0

    def test_program_too_large(self, machine):
        with pytest.raises(ProgramSizeError):
            machine.load_program(bytes(32769))

    def test_small_memory_config(self):
        machine = Machine(MachineConfig(memory_size=16))
        with pytest.raises(ProgramSizeError):
            machine.load_program(bytes(17))


# =============================================================================
# Run Control Tests
# =============================================================================

class TestRunControl:
    """Test step limits, single-stepping and breakpoints."""

    def test_max_steps(self, machine):
        machine.load_program(assemble("LOOP JMP LOOP"))
        event = machine.run(max_steps=100)
        assert event.reason is StopReason.MAX_STEPS
        assert machine.steps == 100
        assert machine.status is MachineStatus.RUNNING

    def test_config_max_steps(self):
        machine, event = run_source("LOOP JMP LOOP", max_steps=10)
        assert event.reason is StopReason.MAX_STEPS
        assert machine.steps == 10

    def test_run_continues_after_max_steps(self, machine):
        machine.load_program(assemble(COUNTDOWN))
        machine.run(max_steps=3)
        event = machine.run()
        assert event.reason is StopReason.HALT
        assert machine.output_text == "5 4 3 2 1 \n"

    def test_step(self, machine):
        machine.load_program(assemble(SCENARIO_A))
        event = machine.step()
        assert event.reason is StopReason.STEP
        assert event.address == 4
        assert machine.registers["R1"] == 10

    def test_step_to_halt(self, machine):
        machine.load_program(assemble("HALT"))
        assert machine.step().reason is StopReason.HALT

    def test_breakpoint(self, machine):
        machine.load_program(assemble(SCENARIO_A))
        machine.add_breakpoint(8)
        event = machine.run()
        assert event.reason is StopReason.BREAKPOINT
        assert event.address == 8
        assert machine.cpu.pc == 8
        assert machine.output == b""

        event = machine.run()
        assert event.reason is StopReason.HALT
        assert machine.output == b"15"

    def test_breakpoint_at_entry(self, machine):
        machine.add_breakpoint(0)
        machine.load_program(assemble(SCENARIO_A))
        assert machine.run().reason is StopReason.BREAKPOINT
        assert machine.steps == 0

    def test_breakpoint_in_loop(self, machine):
        machine.load_program(assemble(COUNTDOWN))
        machine.add_breakpoint(4)  # LOOP
        hits = 0
        while machine.run().reason is StopReason.BREAKPOINT:
            hits += 1
        assert hits == 5

    def test_remove_and_clear_breakpoints(self, machine):
        machine.add_breakpoint(4)
        machine.add_breakpoint(8)
        machine.remove_breakpoint(4)
        assert machine.breakpoints == {8}
        machine.clear_breakpoints()
        machine.load_program(assemble(SCENARIO_A))
        assert machine.run().reason is StopReason.HALT

    def test_run_after_halt(self, machine):
        machine.load_program(assemble("HALT"))
        machine.run()
        assert machine.run().reason is StopReason.HALT
        assert machine.steps == 1


# =============================================================================
# Output Tests
# =============================================================================

class TestOutput:
    """Test output capture and streaming."""

    def test_stream_receives_output(self):
        stream = io.BytesIO()
        machine = Machine(output=stream)
        machine.load_program(assemble(COUNTDOWN))
        machine.run()
        assert stream.getvalue() == b"5 4 3 2 1 \n"
        assert machine.output == stream.getvalue()

    def test_high_bytes_in_output_text(self, machine):
        machine.load_program(assemble("OUTC 0xE9\nHALT"))
        machine.run()
        assert machine.output == b"\xe9"
        assert machine.output_text == "é"

    def test_output_before_fault_is_kept(self, machine):
        machine.load_program(assemble("OUT 1") + b"\xff")
        with pytest.raises(InvalidOpcodeError):
            machine.run()
        assert machine.output == b"1"


# =============================================================================
# Fault Tests
# =============================================================================

class TestFaults:
    """Faults raise, leave the machine FAULTED and record the event."""

    def test_fault_event(self, machine):
        machine.load_program(assemble("OUT 1") + bytes.fromhex("64 00 80 00"))
        with pytest.raises(InvalidJumpTargetError):
            machine.run()
        assert machine.status is MachineStatus.FAULTED
        assert machine.last_event.reason is StopReason.FAULT
        assert machine.last_event.address == 4
        assert "$8000" in machine.last_event.message
        assert machine.steps == 1

    def test_no_execution_after_fault(self, machine):
        machine.load_program(b"\x00")
        with pytest.raises(InvalidOpcodeError):
            machine.run()
        with pytest.raises(MachineError):
            machine.run()
        with pytest.raises(MachineError):
            machine.step()
        assert machine.steps == 0

    def test_running_off_the_end(self, machine):
        """An unterminated program runs into zeroed memory and faults."""
        machine.load_program(assemble("OUT 1"))
        with pytest.raises(InvalidOpcodeError) as exc_info:
            machine.run()
        assert exc_info.value.pc == 4


# =============================================================================
# Tracing Tests
# =============================================================================

class TestTrace:
    """Test the trace callback and disassembly helper."""

    def test_trace_callback(self, machine):
        lines = []
        machine.on_trace = lambda pc, text: lines.append((pc, text))
        machine.load_program(assemble(SCENARIO_A))
        machine.run()
        assert [pc for pc, _ in lines] == [0, 4, 8, 10]
        assert "LOAD R1, 0x000A" in lines[0][1]
        assert "HALT" in lines[-1][1]

    def test_disassemble_at(self, machine):
        machine.load_program(assemble(SCENARIO_A))
        text = machine.disassemble_at(0, 4)
        assert len(text) == 4
        assert text[2].startswith("$0008: 6E 01")

    def test_disassemble_at_end_of_memory(self, machine):
        assert len(machine.disassemble_at(32766, 4)) == 1

    def test_run_event_str(self):
        assert str(RunEvent(StopReason.HALT, address=0x0C)) == "Halted at $000C"
        assert str(RunEvent(StopReason.BREAKPOINT, address=4)) == "Breakpoint at $0004"
        assert str(RunEvent(StopReason.FAULT, message="boom")) == "boom"

    def test_repr(self, machine):
        assert "pc=$0000" in repr(machine)
