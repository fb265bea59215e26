"""Render instruction words as LC-3 assembly text for traces."""

from .cpu import to_signed
from .instructions import Instruction, Opcode, RESERVED_OPCODES, decode
from .traps import TrapVector


def _reg(index: int) -> str:
    return f"R{index}"


def _imm(value: int) -> str:
    return f"#{to_signed(value)}"


def _target(instr: Instruction, offset: int) -> str:
    """Absolute address of a PC-relative operand."""
    return f"x{(instr.addr + 1 + offset) & 0xFFFF:04X}"


def format_instruction(instr: Instruction) -> str:
    """Format a decoded instruction."""
    op = instr.opcode

    if op in (Opcode.ADD, Opcode.AND):
        if instr.imm_mode:
            operand = _imm(instr.imm5)
        else:
            operand = _reg(instr.sr2)
        return f"{op.name} {_reg(instr.dr)}, {_reg(instr.sr1)}, {operand}"

    if op == Opcode.NOT:
        return f"NOT {_reg(instr.dr)}, {_reg(instr.sr1)}"

    if op == Opcode.BR:
        flags = "".join(
            name for bit, name in ((4, "n"), (2, "z"), (1, "p")) if instr.dr & bit
        )
        if not flags:
            return "NOP"
        return f"BR{flags} {_target(instr, instr.pcoffset9)}"

    if op == Opcode.JMP:
        if instr.sr1 == 7:
            return "RET"
        return f"JMP {_reg(instr.sr1)}"

    if op == Opcode.JSR:
        if instr.long_flag:
            return f"JSR {_target(instr, instr.pcoffset11)}"
        return f"JSRR {_reg(instr.sr1)}"

    if op in (Opcode.LD, Opcode.LDI, Opcode.LEA, Opcode.ST, Opcode.STI):
        return f"{op.name} {_reg(instr.dr)}, {_target(instr, instr.pcoffset9)}"

    if op in (Opcode.LDR, Opcode.STR):
        return f"{op.name} {_reg(instr.dr)}, {_reg(instr.sr1)}, {_imm(instr.offset6)}"

    if op == Opcode.TRAP:
        try:
            return TrapVector(instr.trapvect8).name
        except ValueError:
            return f"TRAP x{instr.trapvect8:02X}"

    raise ValueError(f"Cannot format opcode {op.name}")


def disassemble(word: int, addr: int = 0) -> str:
    """Disassemble one word; reserved opcodes render as .FILL data."""
    if Opcode((word >> 12) & 0xF) in RESERVED_OPCODES:
        return f".FILL x{word:04X}"
    return format_instruction(decode(word, addr))
