"""
tiny6502 - 64K Memory with Write Interception

Memory map:
  $0000-...    Object code, loaded verbatim from the image file
  $C000        Console output device (write-only, never stored)
  $FFFC-$FFFD  Reset vector (little-endian start address)

Everything else is plain RAM. Addresses wrap modulo 65536, including the
high byte of a 16-bit access at $FFFF.
"""

from typing import Callable, Dict

from ..config import MEMORY_SIZE, ADDR_MASK


class ImageLoadError(Exception):
    """The object-code image could not be read or placed in memory."""


class ImageTooLarge(ImageLoadError):
    """The image does not fit between its load address and $FFFF."""

    def __init__(self, size: int, base_addr: int):
        self.size = size
        self.base_addr = base_addr
        super().__init__(
            f"Image of {size} bytes at ${base_addr:04X} exceeds the "
            f"{MEMORY_SIZE}-byte address space"
        )


class Memory:
    """64K byte-addressable memory.

    Writes to an address with a registered handler go to the handler and
    leave the backing store untouched. Reads are never intercepted.
    """

    def __init__(self):
        self._mem = bytearray(MEMORY_SIZE)

        # addr -> write_fn(addr, value)
        self._io_write_handlers: Dict[int, Callable] = {}

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        return self._mem[addr & ADDR_MASK]

    def read16(self, addr: int) -> int:
        """Read 16-bit value (little-endian, 6502 native byte order)."""
        lo = self.read8(addr)
        hi = self.read8(addr + 1)
        return lo | (hi << 8)

    def write8(self, addr: int, value: int):
        """Write 8-bit value, or hand it to the device mapped at addr."""
        addr &= ADDR_MASK
        value &= 0xFF

        handler = self._io_write_handlers.get(addr)
        if handler is not None:
            handler(addr, value)
            return

        self._mem[addr] = value

    def write16(self, addr: int, value: int):
        """Write 16-bit value (little-endian). Each byte is intercepted separately."""
        self.write8(addr, value & 0xFF)
        self.write8(addr + 1, (value >> 8) & 0xFF)

    # --- Bulk load ---

    def load_binary(self, data: bytes, base_addr: int = 0):
        """Copy raw bytes into memory at base_addr, bypassing I/O handlers.

        Raises ImageTooLarge instead of truncating or wrapping.
        """
        base_addr &= ADDR_MASK
        if base_addr + len(data) > MEMORY_SIZE:
            raise ImageTooLarge(len(data), base_addr)
        self._mem[base_addr:base_addr + len(data)] = data

    # --- I/O handler registration ---

    def register_io_handler(self, addr: int, write_fn: Callable):
        """Route writes at addr to write_fn(addr, value)."""
        self._io_write_handlers[addr & ADDR_MASK] = write_fn

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 256) -> str:
        """Produce a hex dump of exactly length bytes, 16 per row."""
        lines = []
        for offset in range(0, length, 16):
            addr = (start + offset) & ADDR_MASK
            count = min(16, length - offset)
            row = [self._mem[(addr + i) & ADDR_MASK] for i in range(count)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row).ljust(47)
            ascii_bytes = ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in row)
            lines.append(f'{addr:04X}  {hex_bytes}  {ascii_bytes}')
        return '\n'.join(lines)
