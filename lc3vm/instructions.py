"""Instruction decoding and execution for the LC-3 virtual machine."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional

from .console import Console
from .cpu import CPU, R7, sign_extend
from .errors import ReservedOpcodeError
from .memory import Memory
from .traps import execute_trap


class Opcode(IntEnum):
    """Bits 15-12 of an instruction word."""
    BR = 0
    ADD = 1
    LD = 2
    ST = 3
    JSR = 4
    AND = 5
    LDR = 6
    STR = 7
    RTI = 8
    NOT = 9
    LDI = 10
    STI = 11
    JMP = 12
    RES = 13
    LEA = 14
    TRAP = 15


RESERVED_OPCODES = frozenset({Opcode.RTI, Opcode.RES})


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction word. Offsets are already sign-extended."""
    addr: int
    word: int
    opcode: Opcode
    dr: int  # bits 9-11: destination, source for stores, or BR condition mask
    sr1: int  # bits 6-8: first source or base register
    sr2: int  # bits 0-2
    imm_mode: bool  # bit 5
    imm5: int
    offset6: int
    pcoffset9: int
    pcoffset11: int
    long_flag: bool  # bit 11, JSR vs JSRR
    trapvect8: int


def decode(word: int, addr: int = 0) -> Instruction:
    """Split an instruction word into its fields.

    Raises:
        ReservedOpcodeError: for RTI and RES
    """
    opcode = Opcode((word >> 12) & 0xF)
    if opcode in RESERVED_OPCODES:
        raise ReservedOpcodeError(
            f"Reserved opcode {opcode.name} (x{word:04X})",
            addr=addr,
        )
    return Instruction(
        addr=addr,
        word=word,
        opcode=opcode,
        dr=(word >> 9) & 0x7,
        sr1=(word >> 6) & 0x7,
        sr2=word & 0x7,
        imm_mode=bool((word >> 5) & 1),
        imm5=sign_extend(word, 5),
        offset6=sign_extend(word, 6),
        pcoffset9=sign_extend(word, 9),
        pcoffset11=sign_extend(word, 11),
        long_flag=bool((word >> 11) & 1),
        trapvect8=word & 0xFF,
    )


def _second_operand(instr: Instruction, cpu: CPU) -> int:
    """imm5 in immediate mode, otherwise the value of SR2."""
    if instr.imm_mode:
        return instr.imm5
    return cpu.reg[instr.sr2]


# Instruction executor type
InstructionExecutor = Callable[[Instruction, CPU, Memory, Console], Optional[int]]


def execute_add(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """ADD DR, SR1, SR2|imm5"""
    cpu.set_reg(instr.dr, cpu.reg[instr.sr1] + _second_operand(instr, cpu))
    cpu.update_flags(instr.dr)
    return None


def execute_and(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """AND DR, SR1, SR2|imm5"""
    cpu.set_reg(instr.dr, cpu.reg[instr.sr1] & _second_operand(instr, cpu))
    cpu.update_flags(instr.dr)
    return None


def execute_not(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """NOT DR, SR"""
    cpu.set_reg(instr.dr, ~cpu.reg[instr.sr1])
    cpu.update_flags(instr.dr)
    return None


def execute_br(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """BRnzp PCoffset9: branch if any selected flag is set"""
    if instr.dr & cpu.cond:
        return cpu.pc + instr.pcoffset9
    return None


def execute_jmp(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """JMP BaseR (RET when BaseR is R7)"""
    return cpu.reg[instr.sr1]


def execute_jsr(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """JSR PCoffset11 / JSRR BaseR: R7 := return address"""
    if instr.long_flag:
        target = cpu.pc + instr.pcoffset11
    else:
        # read before R7 is overwritten so JSRR R7 uses the old value
        target = cpu.reg[instr.sr1]
    cpu.set_reg(R7, cpu.pc)
    return target


def execute_ld(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LD DR, PCoffset9"""
    cpu.set_reg(instr.dr, mem.read(cpu.pc + instr.pcoffset9))
    cpu.update_flags(instr.dr)
    return None


def execute_ldi(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LDI DR, PCoffset9: DR := MEM[MEM[PC + offset]]"""
    indirect_addr = mem.read(cpu.pc + instr.pcoffset9)
    cpu.set_reg(instr.dr, mem.read(indirect_addr))
    cpu.update_flags(instr.dr)
    return None


def execute_ldr(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LDR DR, BaseR, offset6"""
    cpu.set_reg(instr.dr, mem.read(cpu.reg[instr.sr1] + instr.offset6))
    cpu.update_flags(instr.dr)
    return None


def execute_lea(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """LEA DR, PCoffset9"""
    cpu.set_reg(instr.dr, cpu.pc + instr.pcoffset9)
    cpu.update_flags(instr.dr)
    return None


def execute_st(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """ST SR, PCoffset9"""
    mem.write(cpu.pc + instr.pcoffset9, cpu.reg[instr.dr])
    return None


def execute_sti(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """STI SR, PCoffset9: MEM[MEM[PC + offset]] := SR"""
    indirect_addr = mem.read(cpu.pc + instr.pcoffset9)
    mem.write(indirect_addr, cpu.reg[instr.dr])
    return None


def execute_str(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """STR SR, BaseR, offset6"""
    mem.write(cpu.reg[instr.sr1] + instr.offset6, cpu.reg[instr.dr])
    return None


def execute_trap_instruction(instr: Instruction, cpu: CPU, mem: Memory, io: Console) -> Optional[int]:
    """TRAP trapvect8: R7 := PC, then run the system routine"""
    cpu.set_reg(R7, cpu.pc)
    execute_trap(instr.trapvect8, cpu, mem, io)
    return None


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[Opcode, InstructionExecutor] = {
    Opcode.BR: execute_br,
    Opcode.ADD: execute_add,
    Opcode.LD: execute_ld,
    Opcode.ST: execute_st,
    Opcode.JSR: execute_jsr,
    Opcode.AND: execute_and,
    Opcode.LDR: execute_ldr,
    Opcode.STR: execute_str,
    Opcode.NOT: execute_not,
    Opcode.LDI: execute_ldi,
    Opcode.STI: execute_sti,
    Opcode.JMP: execute_jmp,
    Opcode.LEA: execute_lea,
    Opcode.TRAP: execute_trap_instruction,
}


def execute_instruction(
    instr: Instruction,
    cpu: CPU,
    mem: Memory,
    io: Console,
) -> Optional[int]:
    """Execute a single decoded instruction.

    PC must already point past the instruction.

    Returns:
        New PC value if the instruction transfers control, None otherwise
    """
    executor = INSTRUCTION_EXECUTORS.get(instr.opcode)
    if executor is None:
        raise ReservedOpcodeError(
            f"No executor for opcode: {instr.opcode.name}",
            addr=instr.addr,
        )
    return executor(instr, cpu, mem, io)
