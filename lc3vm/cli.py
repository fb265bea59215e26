"""Command-line front end: run image files on the terminal."""

import argparse
import logging
import signal
import sys
from typing import Optional, Sequence

from .console import TerminalConsole
from .errors import ImageLoadError
from .loader import read_image_file
from .runner import RunOptions, run_program

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = -2


def _address(text: str) -> int:
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {text!r}") from None
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"address out of range: {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lc3vm",
        description="Run LC-3 program images",
    )
    parser.add_argument("images", nargs="*", metavar="IMAGE",
                        help="Image file(s) to load, in order")
    parser.add_argument("-s", "--start", type=_address, metavar="ADDR",
                        help="Start address (default: origin of the first image)")
    parser.add_argument("-n", "--max-steps", type=int, metavar="N",
                        help="Abort after N instructions (default: unlimited)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Verbose logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if not args.images:
        parser.print_usage(sys.stderr)
        print("lc3vm: error: at least one image file is required", file=sys.stderr)
        return EXIT_ERROR

    try:
        images = [read_image_file(path) for path in args.images]
    except ImageLoadError as e:
        print(e.message, file=sys.stderr)
        return EXIT_ERROR

    options = RunOptions(
        start_address=args.start,
        max_steps=args.max_steps,
        trace=False,
    )

    console = TerminalConsole()

    def handle_interrupt(signum, frame):
        console.restore()
        print()
        sys.exit(EXIT_INTERRUPTED)

    previous_handler = signal.signal(signal.SIGINT, handle_interrupt)
    console.enable_cbreak()
    try:
        result = run_program(images, options=options, console=console)
    finally:
        console.restore()
        signal.signal(signal.SIGINT, previous_handler)

    if result.error:
        logger.error(
            "%s at x%04X: %s", result.error.type, result.error.addr, result.error.message
        )
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
