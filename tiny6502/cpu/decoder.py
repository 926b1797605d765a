"""
tiny6502 - Opcode Decoder / Dispatch Table

Maps opcode bytes to (mnemonic, addressing_mode, length). The table is
closed: any byte not listed here is an illegal opcode and halts the CPU.

Addressing modes:
  IMP  Implied (no operand)                   length 1
  IMM  Immediate 8-bit literal                length 2
  ABS  Absolute 16-bit address, little-endian length 3
  REL  Relative signed 8-bit branch offset    length 2
"""

from collections import namedtuple

from .alu import twos_complement_8


# ──────────────────────────────────────────────
# Addressing mode constants
# ──────────────────────────────────────────────

IMP = 'IMP'
IMM = 'IMM'
ABS = 'ABS'
REL = 'REL'

# Operand bytes following the opcode, per mode
OPERAND_SIZE = {
    IMP: 0,
    IMM: 1,
    ABS: 2,
    REL: 1,
}


OpcodeInfo = namedtuple('OpcodeInfo', ['mnemonic', 'mode', 'length'])


def _op(mnemonic: str, mode: str) -> OpcodeInfo:
    return OpcodeInfo(mnemonic, mode, 1 + OPERAND_SIZE[mode])


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────

OPCODES = {
    0x00: _op('BRK', IMP),
    0xEA: _op('NOP', IMP),
    0x18: _op('CLC', IMP),
    0xA9: _op('LDA', IMM),
    0x8D: _op('STA', ABS),
    0x69: _op('ADC', IMM),
    0xC9: _op('CMP', IMM),
    0x90: _op('BCC', REL),
}

# Reverse lookup for the assembler: (mnemonic, mode) -> opcode
ENCODINGS = {(info.mnemonic, info.mode): opcode
             for opcode, info in OPCODES.items()}

MNEMONICS = frozenset(info.mnemonic for info in OPCODES.values())


class IllegalOpcode(Exception):
    """Raised when the byte at PC has no handler."""

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unknown opcode {opcode:02x} at address {address:04x}")


def decode_opcode(memory, pc: int) -> tuple:
    """Fetch and decode the opcode at pc.

    Returns (OpcodeInfo, opcode). Raises IllegalOpcode for unsupported bytes.
    """
    opcode = memory.read8(pc)
    info = OPCODES.get(opcode)
    if info is None:
        raise IllegalOpcode(opcode, pc & 0xFFFF)
    return info, opcode


def disassemble(memory, pc: int) -> tuple:
    """Render one instruction at pc as text.

    Returns (text, length). Unknown bytes render as a '.byte' line of length 1.
    """
    opcode = memory.read8(pc)
    info = OPCODES.get(opcode)
    if info is None:
        return (f".byte ${opcode:02X}", 1)

    if info.mode == IMP:
        text = info.mnemonic
    elif info.mode == IMM:
        text = f"{info.mnemonic} #${memory.read8(pc + 1):02X}"
    elif info.mode == ABS:
        text = f"{info.mnemonic} ${memory.read16(pc + 1):04X}"
    else:
        offset = twos_complement_8(memory.read8(pc + 1))
        target = (pc + info.length + offset) & 0xFFFF
        text = f"{info.mnemonic} ${target:04X}"
    return (text, info.length)
