"""
tiny6502 - Interpreter for an eight-opcode subset of the MOS 6502
==================================================================
Executes raw machine code loaded at $0000 of a flat 64K address space.
Writing a byte to $C000 prints it as one character on stdout.

Supported instructions:
    BRK  NOP  CLC         (implied)
    LDA# ADC# CMP#        (immediate)
    STA  addr             (absolute)
    BCC  rel              (relative)

Layout:
    ┌──────────┐    ┌──────────┐    ┌────────────┐    ┌───────────────┐
    │  Image   │───>│  Memory  │───>│  Decoder   │───>│ Emulator6502  │──> regs / mem / $C000
    │ (.bin)   │    │ (64K)    │    │ (OPCODES)  │    │ (step / run)  │
    └──────────┘    └──────────┘    └────────────┘    └───────────────┘

    assembler.py turns source such as programs/alphabet.asm into an image.
"""

__version__ = "0.1.0"

from .cpu.regs import Registers
from .cpu.decoder import IllegalOpcode, OPCODES
from .mem.memory import Memory, ImageLoadError, ImageTooLarge
from .emu import Emulator6502, StopReason
from .assembler import Assembler, AssemblerError, assemble


def run_image(path_or_data, *, max_steps=None, stream=None):
    """Boot an image at $0000 and run it to completion.

    Returns (StopReason, Emulator6502) so callers can inspect the final
    registers, memory, and console output.
    """
    emu = Emulator6502(stream=stream)
    emu.boot(path_or_data)
    reason = emu.run(max_steps=max_steps)
    return reason, emu
