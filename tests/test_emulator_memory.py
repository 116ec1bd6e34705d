"""
Memory Subsystem Unit Tests
===========================

Tests for the bounds-checked, big-endian SVM memory.
"""

import pytest

from svm_sdk.emulator import Memory
from svm_sdk.errors import MemoryOutOfBoundsError, ProgramSizeError
from svm_sdk.isa import MEMORY_SIZE


@pytest.fixture
def memory():
    """Create a full-size memory."""
    return Memory()


# =============================================================================
# Memory Tests
# =============================================================================

class TestMemory:
    """Test byte and word access."""

    def test_default_size(self, memory):
        assert len(memory) == MEMORY_SIZE == 32768

    def test_initialized_to_zero(self, memory):
        assert memory.read_byte(0) == 0
        assert memory.read_word(MEMORY_SIZE - 2) == 0

    def test_byte_read_write(self, memory):
        memory.write_byte(0x100, 0x42)
        assert memory.read_byte(0x100) == 0x42

        memory.write_byte(0x100, 0x1FF)
        assert memory.read_byte(0x100) == 0xFF  # Masked to 8 bits

    def test_word_big_endian(self, memory):
        """High byte is stored at the lower address."""
        memory.write_word(0x200, 0x1234)
        assert memory.read_byte(0x200) == 0x12
        assert memory.read_byte(0x201) == 0x34
        assert memory.read_word(0x200) == 0x1234

    def test_word_masked(self, memory):
        memory.write_word(0x10, -1)
        assert memory.read_word(0x10) == 0xFFFF

    def test_last_word(self, memory):
        memory.write_word(MEMORY_SIZE - 2, 0xBEEF)
        assert memory.read_word(MEMORY_SIZE - 2) == 0xBEEF

    def test_read_bytes(self, memory):
        memory.load(b"\x01\x02\x03", 0x40)
        assert memory.read_bytes(0x40, 3) == b"\x01\x02\x03"

    def test_reset(self, memory):
        memory.write_byte(5, 9)
        memory.reset()
        assert memory.read_byte(5) == 0

    def test_contains(self, memory):
        assert memory.contains(0)
        assert memory.contains(MEMORY_SIZE - 1)
        assert not memory.contains(MEMORY_SIZE)
        assert not memory.contains(MEMORY_SIZE - 1, 2)
        assert not memory.contains(-1)


# =============================================================================
# Bounds Checking Tests
# =============================================================================

class TestBounds:
    """Every access outside the region faults."""

    def test_byte_past_end(self, memory):
        with pytest.raises(MemoryOutOfBoundsError) as exc_info:
            memory.read_byte(MEMORY_SIZE)
        assert exc_info.value.address == MEMORY_SIZE

    def test_word_straddling_end(self, memory):
        """A word whose second byte is outside memory faults."""
        with pytest.raises(MemoryOutOfBoundsError):
            memory.read_word(MEMORY_SIZE - 1)
        with pytest.raises(MemoryOutOfBoundsError):
            memory.write_word(MEMORY_SIZE - 1, 0)

    def test_negative_address(self, memory):
        with pytest.raises(MemoryOutOfBoundsError):
            memory.write_byte(-1, 0)

    def test_high_addresses_fault(self, memory):
        """Addresses 0x8000-0xFFFF are valid words but not valid memory."""
        with pytest.raises(MemoryOutOfBoundsError):
            memory.read_byte(0xFFFF)

    def test_small_memory(self):
        memory = Memory(16)
        memory.write_word(14, 1)
        with pytest.raises(MemoryOutOfBoundsError):
            memory.write_word(15, 1)


# =============================================================================
# Program Loading Tests
# =============================================================================

class TestLoad:
    """Test loading program images."""

    def test_load_at_zero(self, memory):
        memory.load(b"\x60\x01\x00\x0a\x31")
        assert memory.read_bytes(0, 5) == b"\x60\x01\x00\x0a\x31"

    def test_load_full_memory(self, memory):
        memory.load(bytes(MEMORY_SIZE))

    def test_load_too_large(self, memory):
        with pytest.raises(ProgramSizeError):
            memory.load(bytes(MEMORY_SIZE + 1))
