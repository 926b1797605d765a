"""
tiny6502 - ALU helpers

Pure functions over 8-bit values. Each returns flag bits (and a result
where there is one); the caller decides which flag group to apply with
Registers.set_flags().

Known incompleteness, kept on purpose:
  ADC - carry-out and overflow (C, V) are not computed
  CMP - negative and overflow (N, V) are not computed
"""

from .regs import FLAG_C, FLAG_Z, FLAG_N


def test_nz8(value: int) -> int:
    """N and Z bits for an 8-bit value."""
    flags = 0
    if value & 0x80:
        flags |= FLAG_N
    if not (value & 0xFF):
        flags |= FLAG_Z
    return flags


def adc8(a: int, b: int, carry: int) -> tuple:
    """Add with carry, 8-bit wraparound. Returns (result, NZ flags).

    The carry out of bit 7 is dropped: $FF + $01 gives $00 with C untouched.
    """
    result = (a + b + carry) & 0xFF
    return (result, test_nz8(result))


def compare8(a: int, b: int) -> int:
    """Compare A against an operand. Returns Z and C bits.

    a == b  ->  Z=1 C=1
    a <  b  ->  Z=0 C=0
    a >  b  ->  Z=0 C=1
    """
    if a == b:
        return FLAG_Z | FLAG_C
    if a < b:
        return 0
    return FLAG_C


def twos_complement_8(value: int) -> int:
    """Reinterpret an unsigned byte as a signed offset (-128..127)."""
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value
