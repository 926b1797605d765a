"""
tiny6502 - CPU Register Set + Status Flag Management

Register model for the 6502 subset:
  PC  - 16-bit program counter (next opcode to fetch)
  A   - 8-bit accumulator
  X   - 8-bit index register (carried, not used by the subset)
  Y   - 8-bit index register (carried, not used by the subset)
  S   - 8-bit stack pointer (page $01, carried, not used by the subset)
  P   - 8-bit processor status: N V - B D I Z C
        bit 7: N (Negative - bit 7 of result)
        bit 6: V (Overflow - never computed here)
        bit 5: unused
        bit 4: B (Break)
        bit 3: D (Decimal - never computed here)
        bit 2: I (IRQ disable)
        bit 1: Z (Zero - result is zero)
        bit 0: C (Carry)

Only C, Z and N are read or written by the supported opcodes.
"""

# Status flag bit positions
BIT_C = 0
BIT_Z = 1
BIT_I = 2
BIT_D = 3
BIT_B = 4
BIT_UNUSED = 5
BIT_V = 6
BIT_N = 7

# Status flag masks
FLAG_C = 1 << BIT_C
FLAG_Z = 1 << BIT_Z
FLAG_I = 1 << BIT_I
FLAG_D = 1 << BIT_D
FLAG_B = 1 << BIT_B
FLAG_UNUSED = 1 << BIT_UNUSED
FLAG_V = 1 << BIT_V
FLAG_N = 1 << BIT_N


class Registers:
    """6502 register set, zeroed at power-on."""

    __slots__ = ('PC', 'A', 'X', 'Y', 'S', 'P')

    def __init__(self):
        self.PC: int = 0
        self.A: int = 0
        self.X: int = 0
        self.Y: int = 0
        self.S: int = 0
        self.P: int = 0

    # --- Flag groups ---

    def set_flags(self, mask: int, flags: int):
        """Replace the flag bits selected by mask, preserve the rest."""
        self.P = (self.P & ~mask & 0xFF) | (flags & mask)

    def set_zero_from(self, value: int):
        """Z = 1 iff the 8-bit value is zero."""
        self.set_flags(FLAG_Z, FLAG_Z if (value & 0xFF) == 0 else 0)

    def set_negative_from(self, value: int):
        """N = bit 7 of value."""
        self.set_flags(FLAG_N, FLAG_N if value & 0x80 else 0)

    def set_carry(self):
        self.P |= FLAG_C

    def clear_carry(self):
        self.P &= ~FLAG_C & 0xFF

    @property
    def carry(self) -> bool:
        return bool(self.P & FLAG_C)

    @property
    def zero(self) -> bool:
        return bool(self.P & FLAG_Z)

    @property
    def negative(self) -> bool:
        return bool(self.P & FLAG_N)

    @property
    def overflow(self) -> bool:
        return bool(self.P & FLAG_V)

    # --- Display ---

    def display(self) -> str:
        """Format register state the way the trace stream prints it."""
        return (f"a: {self.A:02x} x: {self.X:02x} y: {self.Y:02x} "
                f"s: 01{self.S:02x} p: {self.P:02x}")

    def reset(self):
        """Zero every register. PC is loaded from the reset vector afterwards."""
        self.PC = 0
        self.A = 0
        self.X = 0
        self.Y = 0
        self.S = 0
        self.P = 0
