"""
Memory Subsystem for the SVM Emulator
=====================================

A flat, byte-addressable memory region of MEMORY_SIZE (32768) bytes.

Memory Map:
    $0000           Entry point (first byte of the loaded program)
    $0000-$7FFF     Program, data and scratch space

Words are stored big-endian (high byte at the lower address). Every access
is bounds-checked: touching any byte outside the region raises
MemoryOutOfBoundsError instead of wrapping or reading adjacent memory.
"""

from svm_sdk.errors import MemoryOutOfBoundsError, ProgramSizeError
from svm_sdk.isa import BYTE_MASK, MEMORY_SIZE, WORD_MASK


class Memory:
    """
    Bounds-checked SVM memory.

    Attributes:
        size: Memory size in bytes
    """

    def __init__(self, size: int = MEMORY_SIZE):
        """
        Initialize memory to zeros.

        Args:
            size: Memory size in bytes (default 32768)
        """
        self.size = size
        self._data = bytearray(size)

    def _check(self, address: int, count: int = 1) -> None:
        if address < 0 or address + count > self.size:
            raise MemoryOutOfBoundsError(address, self.size)

    def contains(self, address: int, count: int = 1) -> bool:
        """Check whether count bytes starting at address are all in range."""
        return 0 <= address and address + count <= self.size

    def read_byte(self, address: int) -> int:
        self._check(address)
        return self._data[address]

    def write_byte(self, address: int, value: int) -> None:
        self._check(address)
        self._data[address] = value & BYTE_MASK

    def read_word(self, address: int) -> int:
        """Read 16-bit word (big-endian)."""
        self._check(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def write_word(self, address: int, value: int) -> None:
        """Write 16-bit word (big-endian)."""
        self._check(address, 2)
        value &= WORD_MASK
        self._data[address] = (value >> 8) & BYTE_MASK
        self._data[address + 1] = value & BYTE_MASK

    def read_bytes(self, address: int, count: int) -> bytes:
        self._check(address, count)
        return bytes(self._data[address:address + count])

    def load(self, data: bytes, address: int = 0) -> None:
        """
        Copy a program image into memory.

        Raises:
            ProgramSizeError: If the image does not fit
        """
        if address < 0 or address + len(data) > self.size:
            raise ProgramSizeError(address + len(data), self.size)
        self._data[address:address + len(data)] = data

    def reset(self) -> None:
        """Clear all memory to zeros."""
        self._data = bytearray(self.size)

    def __len__(self) -> int:
        return self.size
