"""Program runner with tracing for the LC-3 virtual machine."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .console import Console, IOBuffer
from .cpu import CPU
from .disasm import disassemble
from .errors import (
    ErrorInfo,
    ImageLoadError,
    LC3Error,
    StepLimitExceeded,
)
from .instructions import decode, execute_instruction
from .loader import Image, load_image
from .memory import MappedMemory

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Options for program execution."""
    start_address: Optional[int] = None  # defaults to the first image's origin
    max_steps: Optional[int] = 10000  # None runs until HALT
    trace: bool = True
    trace_watch: list[int] = field(default_factory=list)
    trace_include_io: bool = True
    initial_memory: dict[int, int] = field(default_factory=dict)


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    pc: int
    regs: list[int]
    cond: str
    mem: dict[str, int]
    in_code: Optional[int] = None
    out_code: Optional[int] = None
    instr_text: str = ""

    def to_dict(self, include_io: bool) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "pc": self.pc,
            "regs": self.regs,
            "cond": self.cond,
            "mem": self.mem,
        }
        if include_io:
            result["in_code"] = self.in_code
            result["out_code"] = self.out_code
        result["instr_text"] = self.instr_text
        return result


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    output_text: str
    steps_executed: int
    final_state: dict
    trace_watch: list[int]
    trace: list[dict]
    error: Optional[ErrorInfo] = None

    @property
    def halted(self) -> bool:
        return bool(self.final_state.get("halted"))

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "output_text": self.output_text,
            "steps_executed": self.steps_executed,
            "final_state": self.final_state,
            "trace_watch": self.trace_watch,
            "trace": self.trace,
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def run_program(
    images: Sequence[Image],
    input_text: str = "",
    options: Optional[RunOptions] = None,
    console: Optional[Console] = None,
) -> RunResult:
    """Load program images and run until HALT.

    Args:
        images: Images loaded in order; later images overwrite earlier ones
        input_text: Input buffer for GETC/IN and KBSR polling
        options: Execution options
        console: Device to use instead of an IOBuffer over input_text

    Returns:
        RunResult with execution status, output, and trace
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None
    steps_executed = 0

    io = console if console is not None else IOBuffer(input_text)
    cpu = CPU()
    memory = MappedMemory(io)

    trace_watch = sorted(set(options.trace_watch) | set(options.initial_memory))

    if not images:
        error = ImageLoadError("No program images given")
        return RunResult(
            status="error",
            output_text="",
            steps_executed=0,
            final_state=cpu.get_state(),
            trace_watch=trace_watch,
            trace=[],
            error=error.to_error_info(),
        )

    for image in images:
        load_image(image, memory)

    for addr, val in options.initial_memory.items():
        memory.write(addr, val)

    # Set starting PC
    if options.start_address is None:
        cpu.reset(images[0].origin)
    else:
        cpu.reset(options.start_address)

    instr_addr = cpu.pc
    word: Optional[int] = None

    try:
        while not cpu.halted:
            if options.max_steps is not None and steps_executed >= options.max_steps:
                raise StepLimitExceeded(
                    f"Step limit exceeded: {options.max_steps}",
                    step=steps_executed,
                    addr=cpu.pc,
                )

            io.reset_io_codes()

            # Fetch and decode; reserved opcodes abort before PC moves
            instr_addr = cpu.pc
            word = memory.read(instr_addr)
            instr = decode(word, instr_addr)
            cpu.set_pc(instr_addr + 1)

            # Execute
            new_pc = execute_instruction(instr, cpu, memory, io)
            if new_pc is not None:
                cpu.set_pc(new_pc)

            steps_executed += 1

            # Record trace
            if options.trace:
                row = TraceRow(
                    step=steps_executed,
                    addr=instr_addr,
                    pc=cpu.pc,
                    regs=list(cpu.reg),
                    cond=cpu.cond.name,
                    mem=memory.get_watched(trace_watch),
                    in_code=io.last_in_code if options.trace_include_io else None,
                    out_code=io.last_out_code if options.trace_include_io else None,
                    instr_text=disassemble(word, instr_addr),
                )
                trace_rows.append(row.to_dict(include_io=options.trace_include_io))

    except LC3Error as e:
        # Attach context to error
        e.step = steps_executed
        if not isinstance(e, StepLimitExceeded):
            e.addr = instr_addr
            if word is not None:
                e.instr_text = disassemble(word, instr_addr)
        error_info = e.to_error_info()
        logger.debug("Run aborted: %s", e.message)

    logger.debug("Executed %d instructions", steps_executed)

    return RunResult(
        status="ok" if error_info is None else "error",
        output_text=io.get_output(),
        steps_executed=steps_executed,
        final_state=cpu.get_state(),
        trace_watch=trace_watch,
        trace=trace_rows,
        error=error_info,
    )
