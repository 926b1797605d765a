"""
tiny6502 - Main Emulator Class

Integrates:
  - CPU registers (cpu/regs.py)
  - Memory (mem/memory.py)
  - Opcode decoder (cpu/decoder.py)
  - Flag helpers (cpu/alu.py)
  - Console output device at $C000 (periph/console.py)

Execution model:
  1. Fetch opcode at PC (trace: "PC: xxxx opcode = xx")
  2. Decode to a handler, or halt on an illegal opcode
  3. Advance PC past the instruction, resolve the operand
  4. Execute the handler: registers, memory, flags, or a new PC
  5. Trace the resulting register state

Termination reasons:
  - BRK:      BRK executed (exit code 0)
  - ILLEGAL:  opcode outside the supported set (exit code 1)
  - LIMIT:    optional max_steps reached
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .config import (
    ADDR_MASK, LOAD_ADDR, RESET_VECTOR, TRACE_LOGGER,
    EXIT_BRK, EXIT_FAILURE, EXIT_LIMIT,
)
from .cpu.regs import Registers, FLAG_N, FLAG_Z, FLAG_C
from .cpu.decoder import decode_opcode, IllegalOpcode, IMP, IMM, ABS, REL
from .cpu import alu
from .mem.memory import Memory, ImageLoadError
from .periph.console import ConsoleDevice


log = logging.getLogger(__name__)
trace_log = logging.getLogger(TRACE_LOGGER)


class StopReason(Enum):
    BRK = 'BRK'
    ILLEGAL = 'ILLEGAL'
    LIMIT = 'LIMIT'

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {
    StopReason.BRK: EXIT_BRK,
    StopReason.ILLEGAL: EXIT_FAILURE,
    StopReason.LIMIT: EXIT_LIMIT,
}


class _HaltException(Exception):
    pass


class Emulator6502:
    """6502 subset emulator: one session owns its registers and memory.

    Usage:
        emu = Emulator6502()
        emu.boot('o6502.bin')
        reason = emu.run()
        print(emu.console.output)
    """

    def __init__(self, stream=None):
        self.regs = Registers()
        self.mem = Memory()

        self.console = ConsoleDevice(stream)
        self.console.register(self.mem)

        self.halted: Optional[StopReason] = None
        self.steps: int = 0

        # Set when an illegal opcode stops the CPU
        self.illegal_opcode: Optional[int] = None
        self.fault_address: Optional[int] = None

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading / boot
    # ══════════════════════════════════════════════

    def load_image(self, path_or_data, base_addr: int = LOAD_ADDR):
        """Load a raw binary file or bytes into memory at base_addr.

        Raises ImageLoadError if the file cannot be read or does not fit.
        """
        if isinstance(path_or_data, (str, Path)):
            try:
                data = Path(path_or_data).read_bytes()
            except OSError as e:
                raise ImageLoadError(f"Cannot read image {path_or_data}: {e}") from e
        else:
            data = bytes(path_or_data)
        self.mem.load_binary(data, base_addr)
        log.debug("Loaded %d bytes at $%04X", len(data), base_addr)

    def reset(self, start: int = LOAD_ADDR):
        """Write the reset vector, zero the registers, load PC from the vector."""
        self.mem.write16(RESET_VECTOR, start)
        self.regs.reset()
        self.regs.PC = self.mem.read16(RESET_VECTOR)
        self.console.reset()
        self.halted = None
        self.steps = 0
        self.illegal_opcode = None
        self.fault_address = None
        log.debug("Reset: PC=$%04X", self.regs.PC)

    def boot(self, path_or_data):
        """Load the image at $0000 and reset into it."""
        self.load_image(path_or_data)
        self.reset()

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None."""
        if self.halted is not None:
            return self.halted

        pc = self.regs.PC
        trace = trace_log.isEnabledFor(logging.DEBUG)

        if trace:
            trace_log.debug("PC: %04x opcode = %02x", pc, self.mem.read8(pc))

        try:
            info, _ = decode_opcode(self.mem, pc)
        except IllegalOpcode as e:
            self.illegal_opcode = e.opcode
            self.fault_address = e.address
            log.error("%s", e)
            self.halted = StopReason.ILLEGAL
            return self.halted

        self.regs.PC = (pc + info.length) & ADDR_MASK
        operands = self._decode_operands(info.mode, pc)

        try:
            self._dispatch[info.mnemonic](operands)
        except _HaltException:
            self.regs.PC = pc
            self.halted = StopReason.BRK
            return self.halted

        self.steps += 1
        if trace:
            trace_log.debug("%s", self.regs.display())
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until BRK, an illegal opcode, or max_steps instructions."""
        while max_steps is None or self.steps < max_steps:
            reason = self.step()
            if reason is not None:
                log.info("Stopped: %s after %d instructions", reason.value, self.steps)
                return reason
        log.info("Stopped: step limit of %d reached", max_steps)
        return StopReason.LIMIT

    # ══════════════════════════════════════════════
    # Operand decoding
    # ══════════════════════════════════════════════

    def _decode_operands(self, mode: str, pc: int) -> tuple:
        """Resolve operand bytes following the opcode at pc.

        IMP:  ()
        IMM:  (None, value)
        ABS:  (addr, None)
        REL:  (target,)   - next PC plus the signed offset, mod 65536
        """
        if mode == IMP:
            return ()

        elif mode == IMM:
            return (None, self.mem.read8(pc + 1))

        elif mode == ABS:
            return (self.mem.read16(pc + 1), None)

        elif mode == REL:
            offset = alu.twos_complement_8(self.mem.read8(pc + 1))
            return ((self.regs.PC + offset) & ADDR_MASK,)

        raise ValueError(f"Unknown addressing mode: {mode}")

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> dict:
        """Mnemonic -> handler(operands)."""
        return {
            'BRK': self._op_brk,
            'NOP': self._op_nop,
            'CLC': self._op_clc,
            'LDA': self._op_lda,
            'STA': self._op_sta,
            'ADC': self._op_adc,
            'CMP': self._op_cmp,
            'BCC': self._op_bcc,
        }

    def _op_brk(self, ops):
        raise _HaltException("BRK")

    def _op_nop(self, ops):
        pass

    def _op_clc(self, ops):
        self.regs.clear_carry()

    def _op_lda(self, ops):
        val = ops[1]
        self.regs.A = val
        self.regs.set_zero_from(val)
        self.regs.set_negative_from(val)

    def _op_sta(self, ops):
        self.mem.write8(ops[0], self.regs.A)

    def _op_adc(self, ops):
        result, flags = alu.adc8(self.regs.A, ops[1], int(self.regs.carry))
        self.regs.A = result
        self.regs.set_flags(FLAG_N | FLAG_Z, flags)

    def _op_cmp(self, ops):
        self.regs.set_flags(FLAG_Z | FLAG_C, alu.compare8(self.regs.A, ops[1]))

    def _op_bcc(self, ops):
        if not self.regs.carry:
            self.regs.PC = ops[0]
