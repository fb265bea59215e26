"""Ensure every opcode has a dedicated behavioral test."""

from __future__ import annotations

from dataclasses import dataclass, field
import copy
from typing import Callable

import pytest

from lc3vm import run_program, RunOptions, Image
from lc3vm.instructions import Opcode, RESERVED_OPCODES, INSTRUCTION_EXECUTORS


def expect_reg(index: int, value: int) -> Callable:
    def _check(result):
        assert result.final_state[f"r{index}"] == value

    return _check


def expect_cond(name: str) -> Callable:
    def _check(result):
        assert result.final_state["cond"] == name

    return _check


def expect_output(text: str) -> Callable:
    def _check(result):
        assert result.output_text == text

    return _check


def expect_trace_mem(addr: int, value: int) -> Callable:
    def _check(result):
        assert result.trace[-1]["mem"][f"x{addr:04X}"] == value

    return _check


def expect_steps(count: int) -> Callable:
    def _check(result):
        assert result.steps_executed == count

    return _check


def expect_all(*checkers: Callable) -> Callable:
    def _check(result):
        for checker in checkers:
            checker(result)

    return _check


@dataclass
class InstructionCase:
    opcode: Opcode
    words: list[int]
    checker: Callable
    input_text: str = ""
    options_kwargs: dict = field(default_factory=dict)


INSTRUCTION_CASES = [
    InstructionCase(
        Opcode.ADD,
        [0x1021, 0x1021, 0xF025],  # ADD R0, R0, #1 (x2); HALT
        expect_all(expect_reg(0, 2), expect_cond("POS")),
    ),
    InstructionCase(
        Opcode.AND,
        [0x1027, 0x5023, 0xF025],  # ADD R0, R0, #7; AND R0, R0, #3; HALT
        expect_reg(0, 3),
    ),
    InstructionCase(
        Opcode.NOT,
        [0x903F, 0xF025],  # NOT R0, R0; HALT
        expect_all(expect_reg(0, 0xFFFF), expect_cond("NEG")),
    ),
    InstructionCase(
        Opcode.BR,
        [0x0401, 0x1021, 0xF025],  # BRz x3002; ADD R0, R0, #1; HALT
        expect_all(expect_reg(0, 0), expect_steps(2)),
    ),
    InstructionCase(
        Opcode.JMP,
        [0xE402, 0xC080, 0x1021, 0xF025],  # LEA R2, x3003; JMP R2; ...; HALT
        expect_all(expect_reg(0, 0), expect_steps(3)),
    ),
    InstructionCase(
        Opcode.JSR,
        [0x4801, 0xF025, 0x1021, 0xC1C0],  # JSR x3002; HALT; ADD; RET
        expect_all(expect_reg(0, 1), expect_steps(4)),
    ),
    InstructionCase(
        Opcode.LD,
        [0x2001, 0xF025, 0x0042],  # LD R0, x3002; HALT; .FILL x42
        expect_reg(0, 0x42),
    ),
    InstructionCase(
        Opcode.LDI,
        [0xA001, 0xF025, 0x3003, 0x1234],  # LDI R0, x3002; HALT; pointer; data
        expect_reg(0, 0x1234),
    ),
    InstructionCase(
        Opcode.LDR,
        [0xE202, 0x6040, 0xF025, 0x0099],  # LEA R1, x3003; LDR R0, R1, #0; HALT
        expect_reg(0, 0x99),
    ),
    InstructionCase(
        Opcode.LEA,
        [0xE002, 0xF025],  # LEA R0, x3003; HALT
        expect_all(expect_reg(0, 0x3003), expect_cond("POS")),
    ),
    InstructionCase(
        Opcode.ST,
        [0x1025, 0x3001, 0xF025, 0x0000],  # ADD R0, R0, #5; ST R0, x3003; HALT
        expect_trace_mem(0x3003, 5),
        options_kwargs={"trace_watch": [0x3003]},
    ),
    InstructionCase(
        Opcode.STI,
        [0x1025, 0xB001, 0xF025, 0x4000],  # ADD R0, R0, #5; STI R0, x3003; HALT
        expect_trace_mem(0x4000, 5),
        options_kwargs={"trace_watch": [0x4000]},
    ),
    InstructionCase(
        Opcode.STR,
        [0x1025, 0xE202, 0x7040, 0xF025, 0x0000],  # ...; STR R0, R1, #0; HALT
        expect_trace_mem(0x3004, 5),
        options_kwargs={"trace_watch": [0x3004]},
    ),
    InstructionCase(
        Opcode.TRAP,
        [0xF025],  # HALT
        expect_all(expect_output("HALT\n"), expect_steps(1), expect_reg(7, 0x3001)),
    ),
]


@pytest.mark.parametrize("case", INSTRUCTION_CASES, ids=lambda case: case.opcode.name)
def test_all_instructions_have_behavioral_tests(case: InstructionCase):
    kwargs = copy.deepcopy(case.options_kwargs)
    options = RunOptions(**kwargs) if kwargs else RunOptions()
    image = Image(origin=0x3000, words=case.words)
    result = run_program([image], input_text=case.input_text, options=options)
    assert result.status == "ok"
    case.checker(result)


def test_instruction_case_coverage_matches_opcodes():
    covered = {case.opcode for case in INSTRUCTION_CASES}
    assert covered == set(Opcode) - RESERVED_OPCODES


def test_every_implemented_opcode_has_executor():
    assert set(INSTRUCTION_EXECUTORS) == set(Opcode) - RESERVED_OPCODES
