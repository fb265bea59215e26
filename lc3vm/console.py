"""Character I/O devices for the GETC/OUT/PUTS/IN/PUTSP traps."""

import os
import select
import sys
import termios
import tty
from typing import Optional, Protocol

from .errors import InputUnderflow


class Console(Protocol):
    """Character source and sink used by the trap routines and KBSR."""

    last_in_code: Optional[int]
    last_out_code: Optional[int]

    def key_available(self) -> bool: ...

    def read_char(self) -> int: ...

    def write_char(self, code: int) -> None: ...

    def write(self, text: str) -> None: ...

    def flush(self) -> None: ...

    def get_output(self) -> str: ...

    def reset_io_codes(self) -> None: ...


class IOBuffer:
    """Input/Output buffer for deterministic runs."""

    def __init__(self, input_text: str = ""):
        self._input = list(input_text)
        self._input_pos = 0
        self._output: list[str] = []
        self.last_in_code: Optional[int] = None
        self.last_out_code: Optional[int] = None

    def key_available(self) -> bool:
        return self._input_pos < len(self._input)

    def read_char(self) -> int:
        """Read next character from input buffer as character code."""
        if not self.key_available():
            raise InputUnderflow("Input buffer is empty")
        char = self._input[self._input_pos]
        self._input_pos += 1
        self.last_in_code = ord(char)
        return self.last_in_code

    def write_char(self, code: int) -> None:
        """Write character to output buffer."""
        self.last_out_code = code & 0xFF
        self._output.append(chr(self.last_out_code))

    def write(self, text: str) -> None:
        self._output.append(text)

    def flush(self) -> None:
        pass

    def get_output(self) -> str:
        """Get accumulated output as string."""
        return "".join(self._output)

    def reset_io_codes(self) -> None:
        """Reset last I/O codes for new instruction."""
        self.last_in_code = None
        self.last_out_code = None


class TerminalConsole:
    """Console bound to the process stdin/stdout.

    Input is read a byte at a time straight from the file descriptor;
    `key_available` polls it with a zero-timeout select so KBSR reads
    never block. A byte read by the poll is held until `read_char`, and a
    poll that hits end of input reports no key.

    Output codes are written as raw bytes to the binary layer of stdout.
    """

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._fd = self.stdin.fileno()
        self._out = getattr(self.stdout, "buffer", self.stdout)
        self._saved_attrs = None
        self._pending: Optional[int] = None
        self._eof = False
        self.last_in_code: Optional[int] = None
        self.last_out_code: Optional[int] = None

    def enable_cbreak(self) -> None:
        """Disable line buffering and echo on a tty stdin."""
        if not os.isatty(self._fd):
            return
        self._saved_attrs = termios.tcgetattr(self._fd)
        tty.setcbreak(self._fd)

    def restore(self) -> None:
        """Restore terminal attributes saved by enable_cbreak."""
        if self._saved_attrs is None:
            return
        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        self._saved_attrs = None

    def _read_byte(self) -> Optional[int]:
        if self._eof:
            return None
        data = os.read(self._fd, 1)
        if not data:
            self._eof = True
            return None
        return data[0]

    def key_available(self) -> bool:
        if self._pending is not None:
            return True
        if self._eof:
            return False
        ready, _, _ = select.select([self._fd], [], [], 0)
        if not ready:
            return False
        # select reports EOF as readable
        self._pending = self._read_byte()
        return self._pending is not None

    def read_char(self) -> int:
        """Block until one byte is available on stdin."""
        if self._pending is not None:
            code, self._pending = self._pending, None
        else:
            code = self._read_byte()
            if code is None:
                raise InputUnderflow("End of input")
        self.last_in_code = code
        return code

    def write_char(self, code: int) -> None:
        self.last_out_code = code & 0xFF
        self._out.write(bytes([self.last_out_code]))

    def write(self, text: str) -> None:
        self._out.write(text.encode("latin-1", "replace"))

    def flush(self) -> None:
        self._out.flush()

    def get_output(self) -> str:
        """Output goes straight to the terminal; nothing is captured."""
        return ""

    def reset_io_codes(self) -> None:
        self.last_in_code = None
        self.last_out_code = None
