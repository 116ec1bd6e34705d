"""
SVM CPU Emulator
================

Fetch-decode-execute core of the SVM 16-bit register machine.

Registers:
- REG1, REG2: 16-bit general registers (arithmetic, update flags)
- ADDR1, ADDR2: 16-bit address registers
- PC: program counter
- Flags: Z (zero), N (negative), O (overflow)

Each step fetches the opcode byte at PC, looks it up in the shared
instruction set table, fetches the operand bytes the table says the
instruction has, and executes it. HALT moves the CPU to HALTED; any invalid
opcode, register code or memory access moves it to FAULTED and raises the
corresponding MachineError.

Two ways to drive the core:

    >>> cpu = CPU(memory)            # instance owning its state
    >>> cpu.step()

    >>> new_state = step(state, memory)   # functional form, state untouched
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum, IntFlag, auto
from typing import Callable, Optional

from svm_sdk.emulator.memory import Memory
from svm_sdk.errors import (
    InvalidJumpTargetError,
    InvalidOpcodeError,
    MachineError,
    MachineRegisterError,
    MemoryOutOfBoundsError,
)
from svm_sdk.isa import (
    DECODE_TABLE,
    SIGN_BIT,
    WORD_MASK,
    InstructionInfo,
    Register,
    Shape,
    decode_opcode,
    is_address_register,
    is_general_register,
    to_signed,
    unpack_register_pair,
)


class Flags(IntFlag):
    """CPU status flags."""
    Z = 0x01  # Zero
    N = 0x02  # Negative
    O = 0x04  # Overflow


class MachineStatus(Enum):
    """Execution state of the CPU."""
    RUNNING = auto()
    HALTED = auto()
    FAULTED = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass
class CPUState:
    """
    Complete CPU state.

    All register values are unsigned 16-bit integers.
    """
    reg1: int = 0
    reg2: int = 0
    addr1: int = 0
    addr2: int = 0
    pc: int = 0
    flags: int = 0
    status: MachineStatus = MachineStatus.RUNNING


OutputCallback = Callable[[bytes], None]


class CPU:
    """
    SVM CPU with instrumentation support.

    The CPU owns its state exclusively; memory is owned by whoever created
    it (normally a Machine) and is only mutated by STORE and STOREI.

    Instrumentation hooks:
        on_instruction(pc, opcode) -> bool: called by run() before each
            instruction; return False to stop execution
        on_output(data): receives bytes produced by the OUT family

    Example:
        >>> cpu = CPU(memory, on_output=sys.stdout.buffer.write)
        >>> cpu.run()
        >>> cpu.status
        <MachineStatus.HALTED: 2>
    """

    def __init__(
        self,
        memory: Memory,
        state: Optional[CPUState] = None,
        on_output: Optional[OutputCallback] = None,
    ):
        self.memory = memory
        self.state = state if state is not None else CPUState()
        self.on_output = on_output
        self.on_instruction: Optional[Callable[[int, int], bool]] = None

        # Dispatch table built from the shared opcode table
        self._handlers: dict[int, Callable[[int, int], None]] = {
            opcode: getattr(self, f"_op_{info.mnemonic.lower()}")
            for opcode, info in DECODE_TABLE.items()
        }

        # Context of the instruction being executed, for diagnostics
        self._current: Optional[InstructionInfo] = None
        self._current_pc = 0

        # Instructions completed since the last reset
        self.steps = 0

    # ========================================
    # Register Properties
    # ========================================

    @property
    def reg1(self) -> int:
        return self.state.reg1

    @reg1.setter
    def reg1(self, value: int) -> None:
        self.state.reg1 = value & WORD_MASK

    @property
    def reg2(self) -> int:
        return self.state.reg2

    @reg2.setter
    def reg2(self, value: int) -> None:
        self.state.reg2 = value & WORD_MASK

    @property
    def addr1(self) -> int:
        return self.state.addr1

    @addr1.setter
    def addr1(self, value: int) -> None:
        self.state.addr1 = value & WORD_MASK

    @property
    def addr2(self) -> int:
        return self.state.addr2

    @addr2.setter
    def addr2(self, value: int) -> None:
        self.state.addr2 = value & WORD_MASK

    @property
    def pc(self) -> int:
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & WORD_MASK

    @property
    def status(self) -> MachineStatus:
        return self.state.status

    @property
    def halted(self) -> bool:
        return self.state.status is MachineStatus.HALTED

    @property
    def faulted(self) -> bool:
        return self.state.status is MachineStatus.FAULTED

    # ========================================
    # Flag Properties
    # ========================================

    def _get_flag(self, flag: Flags) -> bool:
        return bool(self.state.flags & flag)

    def _set_flag(self, flag: Flags, value: bool) -> None:
        if value:
            self.state.flags |= flag
        else:
            self.state.flags &= ~flag

    @property
    def flag_z(self) -> bool:
        """Zero flag."""
        return self._get_flag(Flags.Z)

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        self._set_flag(Flags.Z, value)

    @property
    def flag_n(self) -> bool:
        """Negative flag."""
        return self._get_flag(Flags.N)

    @flag_n.setter
    def flag_n(self, value: bool) -> None:
        self._set_flag(Flags.N, value)

    @property
    def flag_o(self) -> bool:
        """Overflow flag."""
        return self._get_flag(Flags.O)

    @flag_o.setter
    def flag_o(self, value: bool) -> None:
        self._set_flag(Flags.O, value)

    # ========================================
    # Register File Access by Code
    # ========================================

    def _invalid_register(self, code: int) -> MachineRegisterError:
        mnemonic = self._current.mnemonic if self._current else "?"
        return MachineRegisterError(mnemonic, code, pc=self._current_pc)

    def get_register(self, code: int) -> int:
        """Read a register by its 2-bit code."""
        if code == Register.R1:
            return self.reg1
        if code == Register.R2:
            return self.reg2
        if code == Register.A1:
            return self.addr1
        if code == Register.A2:
            return self.addr2
        raise self._invalid_register(code)

    def set_register(self, code: int, value: int) -> None:
        """Write a register by its 2-bit code."""
        if code == Register.R1:
            self.reg1 = value
        elif code == Register.R2:
            self.reg2 = value
        elif code == Register.A1:
            self.addr1 = value
        elif code == Register.A2:
            self.addr2 = value
        else:
            raise self._invalid_register(code)

    def _require_general(self, code: int) -> None:
        if not is_general_register(code):
            raise self._invalid_register(code)

    def _require_address(self, code: int) -> None:
        if not is_address_register(code):
            raise self._invalid_register(code)

    # ========================================
    # Reset and Execution
    # ========================================

    def reset(self) -> None:
        """Clear all registers and flags and resume RUNNING at PC 0."""
        self.state = CPUState()
        self.steps = 0

    def step(self) -> None:
        """
        Execute exactly one instruction.

        Raises:
            MachineError: If the instruction faults (the CPU is left FAULTED)
                or the CPU is not RUNNING
        """
        if self.state.status is not MachineStatus.RUNNING:
            raise MachineError(f"cannot step: machine is {self.state.status}", pc=self.pc)

        start_pc = self.pc
        self._current_pc = start_pc
        self._current = None

        try:
            opcode = self.memory.read_byte(start_pc)
            info = decode_opcode(opcode)
            if info is None:
                raise InvalidOpcodeError(opcode, pc=start_pc)
            self._current = info

            register, word = self._fetch_operands(info)
            self._handlers[opcode](register, word)
            self.steps += 1

        except MemoryOutOfBoundsError as e:
            self.state.status = MachineStatus.FAULTED
            if e.pc is None:
                raise MemoryOutOfBoundsError(e.address, e.size, pc=start_pc) from None
            raise
        except MachineError:
            self.state.status = MachineStatus.FAULTED
            raise

    def run(self, max_steps: Optional[int] = None) -> int:
        """
        Execute instructions until HALT, a hook stop, or max_steps.

        Args:
            max_steps: Maximum number of instructions (None for no limit)

        Returns:
            Number of instructions executed
        """
        executed = 0

        while self.state.status is MachineStatus.RUNNING:
            if max_steps is not None and executed >= max_steps:
                break

            if self.on_instruction:
                pc = self.pc
                opcode = self.memory.read_byte(pc) if self.memory.contains(pc) else 0
                if not self.on_instruction(pc, opcode):
                    break

            self.step()
            executed += 1

        return executed

    def _fetch_operands(self, info: InstructionInfo) -> tuple[int, int]:
        """
        Fetch the operand bytes of an instruction and advance PC past it.

        Returns:
            (register_byte, word); fields the shape lacks are 0
        """
        base = self.pc + 1
        register = 0
        word = 0

        if info.shape is not Shape.INHERENT:
            register = self.memory.read_byte(base)
        if info.size == 4:
            word = self.memory.read_word(base + 1)

        self.pc = self.pc + info.size
        return register, word

    # ========================================
    # Flag Helpers
    # ========================================

    def _set_load_flags(self, value: int) -> None:
        """Set Z and N from a loaded value (O is left unchanged)."""
        self.flag_z = value == 0
        self.flag_n = (value & SIGN_BIT) != 0

    def _add16(self, a: int, b: int) -> int:
        """Add 16-bit values, set Z,N,O flags."""
        result = (a + b) & WORD_MASK
        self.flag_z = result == 0
        self.flag_n = (result & SIGN_BIT) != 0
        # Overflow: same sign inputs, different sign result
        self.flag_o = ((a ^ ~b) & (a ^ result) & SIGN_BIT) != 0
        return result

    def _sub16(self, a: int, b: int) -> int:
        """Subtract 16-bit values, set Z,N,O flags."""
        result = (a - b) & WORD_MASK
        self.flag_z = result == 0
        self.flag_n = (result & SIGN_BIT) != 0
        # Overflow: different sign inputs, result sign differs from a
        self.flag_o = ((a ^ b) & (a ^ result) & SIGN_BIT) != 0
        return result

    def _emit(self, data: bytes) -> None:
        if self.on_output is not None:
            self.on_output(data)

    def _emit_number(self, word: int) -> None:
        self._emit(str(to_signed(word)).encode("ascii"))

    def _emit_char(self, value: int) -> None:
        self._emit(bytes([value & 0xFF]))

    # ========================================
    # Instruction Handlers
    # ========================================
    # Handlers receive the decoded register byte and word; the dispatch
    # table maps each opcode to _op_<mnemonic>.

    def _op_halt(self, register: int, word: int) -> None:
        self.state.status = MachineStatus.HALTED

    def _op_load(self, register: int, word: int) -> None:
        self.set_register(register, word)
        if is_general_register(register):
            self._set_load_flags(word)

    def _op_loadi(self, register: int, word: int) -> None:
        dest, source = unpack_register_pair(register)
        value = self.memory.read_word(self.get_register(source))
        self.set_register(dest, value)
        if is_general_register(dest):
            self._set_load_flags(value)

    def _op_store(self, register: int, word: int) -> None:
        self._require_general(register)
        self.memory.write_word(word, self.get_register(register))

    def _op_storei(self, register: int, word: int) -> None:
        source, address = unpack_register_pair(register)
        self.memory.write_word(self.get_register(address), self.get_register(source))

    def _jump(self, target: int, taken: bool) -> None:
        if not taken:
            return
        if not self.memory.contains(target):
            raise InvalidJumpTargetError(target, pc=self._current_pc)
        self.pc = target

    def _op_jmp(self, register: int, word: int) -> None:
        self._jump(word, True)

    def _op_jmpz(self, register: int, word: int) -> None:
        self._jump(word, self.flag_z)

    def _op_jmpn(self, register: int, word: int) -> None:
        self._jump(word, self.flag_n)

    def _op_jmpo(self, register: int, word: int) -> None:
        self._jump(word, self.flag_o)

    def _op_add(self, register: int, word: int) -> None:
        self._require_general(register)
        self.set_register(register, self._add16(self.get_register(register), word))

    def _op_addr(self, register: int, word: int) -> None:
        dest, source = unpack_register_pair(register)
        self._require_general(dest)
        self._require_general(source)
        result = self._add16(self.get_register(dest), self.get_register(source))
        self.set_register(dest, result)

    def _op_sub(self, register: int, word: int) -> None:
        self._require_general(register)
        self.set_register(register, self._sub16(self.get_register(register), word))

    def _op_subr(self, register: int, word: int) -> None:
        dest, source = unpack_register_pair(register)
        self._require_general(dest)
        self._require_general(source)
        result = self._sub16(self.get_register(dest), self.get_register(source))
        self.set_register(dest, result)

    def _op_out(self, register: int, word: int) -> None:
        self._emit_number(word)

    def _op_outc(self, register: int, word: int) -> None:
        self._emit_char(word)

    def _op_outr(self, register: int, word: int) -> None:
        self._require_general(register)
        self._emit_number(self.get_register(register))

    def _op_outrc(self, register: int, word: int) -> None:
        self._require_general(register)
        self._emit_char(self.get_register(register))

    def _op_outi(self, register: int, word: int) -> None:
        self._require_address(register)
        self._emit_number(self.memory.read_word(self.get_register(register)))

    def _op_outic(self, register: int, word: int) -> None:
        self._require_address(register)
        self._emit_char(self.memory.read_byte(self.get_register(register)))

    def registers(self) -> dict:
        """Snapshot of registers and flags."""
        return {
            "R1": self.reg1,
            "R2": self.reg2,
            "A1": self.addr1,
            "A2": self.addr2,
            "PC": self.pc,
            "Z": self.flag_z,
            "N": self.flag_n,
            "O": self.flag_o,
        }


# =============================================================================
# Functional Interface
# =============================================================================

def step(
    state: CPUState,
    memory: Memory,
    on_output: Optional[OutputCallback] = None,
) -> CPUState:
    """
    Execute one instruction and return the resulting state.

    The given state is never modified; memory is modified in place by
    STORE and STOREI.

    Raises:
        MachineError: If the instruction faults
    """
    new_state = dataclasses.replace(state)
    CPU(memory, new_state, on_output).step()
    return new_state
