"""CPU state model for the LC-3 virtual machine."""

from enum import IntFlag

WORD_BITS = 16
WORD_MASK = (1 << WORD_BITS) - 1
SIGN_BIT = 1 << (WORD_BITS - 1)

REGISTER_COUNT = 8
R7 = 7


class Flag(IntFlag):
    """Condition flags held in COND."""
    POS = 1 << 0
    ZRO = 1 << 1
    NEG = 1 << 2


def sign_extend(value: int, bit_count: int) -> int:
    """Sign-extend a bit_count-bit field to a 16-bit word."""
    value &= (1 << bit_count) - 1
    if (value >> (bit_count - 1)) & 1:
        value |= WORD_MASK << bit_count
    return value & WORD_MASK


def to_signed(value: int) -> int:
    """Interpret a word as a two's-complement integer."""
    value &= WORD_MASK
    if value & SIGN_BIT:
        value -= 1 << WORD_BITS
    return value


class CPU:
    """Register file: R0-R7, PC and COND."""

    def __init__(self, start_address: int = 0x3000):
        self.reg: list[int] = [0] * REGISTER_COUNT
        self.pc: int = start_address & WORD_MASK
        self.cond: Flag = Flag.ZRO
        self.halted: bool = False

    def set_reg(self, index: int, value: int) -> None:
        """Set general-purpose register, wrapping to 16 bits."""
        self.reg[index] = value & WORD_MASK

    def set_pc(self, value: int) -> None:
        self.pc = value & WORD_MASK

    def update_flags(self, index: int) -> None:
        """Set COND from the sign of register `index`."""
        value = self.reg[index]
        if value == 0:
            self.cond = Flag.ZRO
        elif value & SIGN_BIT:
            self.cond = Flag.NEG
        else:
            self.cond = Flag.POS

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        state = {f"r{i}": value for i, value in enumerate(self.reg)}
        state["pc"] = self.pc
        state["cond"] = self.cond.name
        state["halted"] = self.halted
        return state

    def reset(self, start_address: int = 0x3000) -> None:
        """Reset CPU to initial state."""
        self.reg = [0] * REGISTER_COUNT
        self.pc = start_address & WORD_MASK
        self.cond = Flag.ZRO
        self.halted = False
