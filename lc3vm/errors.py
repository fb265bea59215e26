"""Custom exceptions for the LC-3 virtual machine."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for API responses."""
    type: str
    message: str
    step: int
    addr: int
    instr_text: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "instr_text": self.instr_text,
        }


class LC3Error(Exception):
    """Base exception for all VM errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        instr_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.instr_text = instr_text

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            instr_text=self.instr_text,
        )


class ImageLoadError(LC3Error):
    """Program image could not be opened or parsed."""
    pass


class LC3RuntimeError(LC3Error):
    """Error during program execution."""
    pass


class ReservedOpcodeError(LC3RuntimeError):
    """RTI or RES opcode fetched."""
    pass


class UnknownTrapError(LC3RuntimeError):
    """TRAP with a vector outside the system routine table."""
    pass


class InputUnderflow(LC3RuntimeError):
    """GETC/IN with empty input buffer."""
    pass


class StepLimitExceeded(LC3RuntimeError):
    """Maximum step count exceeded."""
    pass
