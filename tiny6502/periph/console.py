"""
tiny6502 - Console Output Device

A single write-only register at $C000. Every byte stored there is printed
as one raw byte on the host's standard output, flushed immediately, in
the order the program issued the writes. Memory at $C000 is never
modified.

Text streams that expose a binary buffer (sys.stdout, TextIOWrapper)
receive the byte unencoded on that buffer, so the host locale never
changes or rejects it. Plain text streams such as io.StringIO get
chr(byte).

Every transmitted byte is also kept in tx_buffer for inspection.
"""

import io
import sys
from typing import Optional, IO

from ..config import CONSOLE_ADDR


class ConsoleDevice:
    """Memory-mapped character output."""

    def __init__(self, stream: Optional[IO] = None, addr: int = CONSOLE_ADDR):
        self.addr = addr
        self._stream = stream
        self.tx_buffer: bytearray = bytearray()

    @property
    def stream(self) -> IO:
        # Resolved per write so a replaced sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def register(self, memory):
        memory.register_io_handler(self.addr, self.write)

    def write(self, addr: int, value: int):
        self.tx_buffer.append(value)
        stream = self.stream
        if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
            stream.write(bytes([value]))
            stream.flush()
            return

        raw = getattr(stream, 'buffer', None)
        if raw is not None:
            # Pending text must reach the buffer before the raw byte
            stream.flush()
            raw.write(bytes([value]))
            raw.flush()
        else:
            stream.write(chr(value))
            stream.flush()

    @property
    def output(self) -> str:
        """Everything written so far, one character per byte."""
        return self.tx_buffer.decode('latin-1')

    def reset(self):
        self.tx_buffer.clear()
