"""Entry point for ``python -m lc3vm``."""

import sys

from .cli import main

sys.exit(main())
