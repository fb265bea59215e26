"""Memory model for the LC-3 virtual machine."""

from typing import Optional, Protocol, Sequence

from .cpu import WORD_MASK

MEMORY_SIZE = 1 << 16

# Memory-mapped keyboard registers
KBSR = 0xFE00  # keyboard status
KBDR = 0xFE02  # keyboard data

KEY_READY = 1 << 15


class Keyboard(Protocol):
    """Input source polled through KBSR."""

    def key_available(self) -> bool: ...

    def read_char(self) -> int: ...


class Memory:
    """Flat 65536-word address space."""

    def __init__(self, initial_values: Optional[dict[int, int]] = None):
        self.size = MEMORY_SIZE
        self._data: list[int] = [0] * MEMORY_SIZE

        if initial_values:
            for addr, val in initial_values.items():
                self.write(addr, val)

    def read(self, addr: int) -> int:
        """Read word at address."""
        return self._data[addr & WORD_MASK]

    def write(self, addr: int, value: int) -> None:
        """Write word at address, wrapping to 16 bits."""
        self._data[addr & WORD_MASK] = value & WORD_MASK

    def load(self, origin: int, words: Sequence[int]) -> int:
        """Copy words starting at origin, stopping at the end of memory.

        Returns:
            Number of words actually written
        """
        origin &= WORD_MASK
        count = min(len(words), self.size - origin)
        for offset in range(count):
            self._data[origin + offset] = words[offset] & WORD_MASK
        return count

    def get_watched(self, addresses: list[int]) -> dict[str, int]:
        """Get values at watched addresses as hex-keyed dict."""
        result = {}
        for addr in addresses:
            if 0 <= addr < self.size:
                result[f"x{addr:04X}"] = self._data[addr]
        return result


class MappedMemory(Memory):
    """Memory with the keyboard status/data registers mapped to a device."""

    def __init__(
        self,
        keyboard: Keyboard,
        initial_values: Optional[dict[int, int]] = None,
    ):
        super().__init__(initial_values)
        self.keyboard = keyboard

    def read(self, addr: int) -> int:
        """Read word; reading KBSR polls the keyboard first."""
        addr &= WORD_MASK
        if addr == KBSR:
            if self.keyboard.key_available():
                self._data[KBSR] = KEY_READY
                self._data[KBDR] = self.keyboard.read_char() & WORD_MASK
            else:
                self._data[KBSR] = 0
        return self._data[addr]
