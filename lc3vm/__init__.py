"""LC-3 Virtual Machine Core Package."""

from .runner import run_program, RunOptions, RunResult
from .loader import Image, parse_image, read_image_file
from .errors import (
    LC3Error,
    ImageLoadError,
    LC3RuntimeError,
    ReservedOpcodeError,
    UnknownTrapError,
    InputUnderflow,
    StepLimitExceeded,
)

__all__ = [
    "run_program",
    "RunOptions",
    "RunResult",
    "Image",
    "parse_image",
    "read_image_file",
    "LC3Error",
    "ImageLoadError",
    "LC3RuntimeError",
    "ReservedOpcodeError",
    "UnknownTrapError",
    "InputUnderflow",
    "StepLimitExceeded",
]
