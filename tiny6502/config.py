"""
tiny6502 - Address map and run configuration
=============================================

The boot contract is fixed: the image loads at $0000 and the reset vector
is written to point there before the first fetch.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


# =============================================================================
#  ADDRESS MAP
# =============================================================================
MEMORY_SIZE = 0x10000     # flat 64K, byte addressable
ADDR_MASK = 0xFFFF

LOAD_ADDR = 0x0000        # object code is loaded verbatim from here
RESET_VECTOR = 0xFFFC     # $FFFC low byte, $FFFD high byte
CONSOLE_ADDR = 0xC000     # write-only character output


# =============================================================================
#  DEFAULTS
# =============================================================================
DEFAULT_IMAGE = "o6502.bin"
TRACE_LOGGER = "tiny6502.trace"

# Process exit codes
EXIT_BRK = 0
EXIT_FAILURE = 1
EXIT_LIMIT = 2


@dataclass
class RunConfig:
    """Options for one emulation run, filled in by the CLI."""
    image: str = DEFAULT_IMAGE
    trace: bool = False
    max_steps: Optional[int] = None
    dump: Optional[Tuple[int, int]] = None   # (start, length) hexdump after halt
