"""TRAP service routines: character I/O and halt."""

import logging
from enum import IntEnum
from typing import Callable

from .console import Console
from .cpu import CPU
from .errors import UnknownTrapError
from .memory import Memory

logger = logging.getLogger(__name__)

IN_PROMPT = "Enter a character: "
HALT_NOTICE = "HALT\n"


class TrapVector(IntEnum):
    GETC = 0x20
    OUT = 0x21
    PUTS = 0x22
    IN = 0x23
    PUTSP = 0x24
    HALT = 0x25


TrapRoutine = Callable[[CPU, Memory, Console], None]


def trap_getc(cpu: CPU, mem: Memory, io: Console) -> None:
    """R0 := next input character, not echoed."""
    cpu.set_reg(0, io.read_char())
    cpu.update_flags(0)


def trap_out(cpu: CPU, mem: Memory, io: Console) -> None:
    """Write the low byte of R0."""
    io.write_char(cpu.reg[0])
    io.flush()


def trap_puts(cpu: CPU, mem: Memory, io: Console) -> None:
    """Write the zero-terminated string at R0, one character per word."""
    addr = cpu.reg[0]
    word = mem.read(addr)
    while word:
        io.write_char(word)
        addr += 1
        word = mem.read(addr)
    io.flush()


def trap_in(cpu: CPU, mem: Memory, io: Console) -> None:
    """Prompt, read one character and echo it."""
    io.write(IN_PROMPT)
    io.flush()
    code = io.read_char()
    io.write_char(code)
    io.flush()
    cpu.set_reg(0, code)
    cpu.update_flags(0)


def trap_putsp(cpu: CPU, mem: Memory, io: Console) -> None:
    """Write the zero-terminated string at R0, two characters per word."""
    addr = cpu.reg[0]
    word = mem.read(addr)
    while word:
        io.write_char(word & 0xFF)
        high = word >> 8
        if high:
            io.write_char(high)
        addr += 1
        word = mem.read(addr)
    io.flush()


def trap_halt(cpu: CPU, mem: Memory, io: Console) -> None:
    io.write(HALT_NOTICE)
    io.flush()
    cpu.halted = True
    logger.debug("HALT at x%04X", (cpu.pc - 1) & 0xFFFF)


# Trap dispatch table
TRAP_ROUTINES: dict[TrapVector, TrapRoutine] = {
    TrapVector.GETC: trap_getc,
    TrapVector.OUT: trap_out,
    TrapVector.PUTS: trap_puts,
    TrapVector.IN: trap_in,
    TrapVector.PUTSP: trap_putsp,
    TrapVector.HALT: trap_halt,
}


def execute_trap(vector: int, cpu: CPU, mem: Memory, io: Console) -> None:
    """Run the system routine selected by an 8-bit trap vector.

    Raises:
        UnknownTrapError: vector is not in TRAP_ROUTINES
    """
    try:
        routine = TRAP_ROUTINES[TrapVector(vector)]
    except (ValueError, KeyError):
        raise UnknownTrapError(f"Unknown trap vector: x{vector:02X}") from None
    routine(cpu, mem, io)
