"""
Two-Pass Assembler for the tiny6502 instruction subset.

Assembles 6502 assembly text into a raw binary image that the emulator
loads at $0000.

Addressing modes (picked from the operand syntax, never from its value):
  IMP  - Implied (no operand)          e.g. CLC, NOP, BRK
  IMM  - Immediate (#value)            e.g. LDA #$41
  ABS  - Absolute (16-bit address)     e.g. STA $C000
  REL  - Relative (branch target)      e.g. BCC loop

Source syntax:
  label:                  label on its own line or before an instruction
  CLC  // comment         '//' and ';' both start a comment
  LDA #0x41               numbers: 0x41, $41, %01000001, 65, 'A', or a label
  ORG $0200               set the location counter
  .byte 1, 2, $FF         raw bytes (FCB is an alias)
  END                     stop assembling

Pass 1 assigns every label an address. Every instruction size is known
from its mode alone, so pass 1 never has to guess.
Pass 2 emits the bytes with all symbols resolved.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass

from .cpu.decoder import ENCODINGS, MNEMONICS, OPERAND_SIZE, IMP, IMM, ABS, REL
from .config import MEMORY_SIZE

__all__ = ['Assembler', 'AssemblerError', 'assemble']


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


BRANCH_MNEMONICS = {mnem for (mnem, mode) in ENCODINGS if mode == REL}

DIRECTIVES = {'ORG', '.ORG', 'FCB', '.BYTE', 'DB', 'END'}
BYTE_DIRECTIVES = {'FCB', '.BYTE', 'DB'}


# ──────────────────────────────────────────────
# Line Parser
# ──────────────────────────────────────────────

@dataclass
class AsmLine:
    """Parsed assembly source line."""
    label: Optional[str] = None
    mnemonic: Optional[str] = None
    operand: Optional[str] = None
    comment: Optional[str] = None
    line_num: int = 0
    raw: str = ""


def _strip_comment(text: str) -> Tuple[str, Optional[str]]:
    in_quote = False
    for i, ch in enumerate(text):
        if ch == "'":
            in_quote = not in_quote
        elif not in_quote and (ch == ';' or text.startswith('//', i)):
            marker = 1 if ch == ';' else 2
            return text[:i], text[i + marker:].strip()
    return text, None


def _split_operands(text: str) -> List[str]:
    """Split a .byte operand list on commas outside character literals."""
    parts = []
    in_quote = False
    start = 0
    for i, ch in enumerate(text):
        if ch == "'":
            in_quote = not in_quote
        elif ch == ',' and not in_quote:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def _parse_line(line: str, line_num: int) -> AsmLine:
    """Parse one line of assembly into label, mnemonic, operand, comment."""
    result = AsmLine(line_num=line_num, raw=line)

    text, result.comment = _strip_comment(line)
    text = text.rstrip()
    if not text.strip():
        return result

    parts = text.split(None, 1)
    first = parts[0]

    # Label: "name:" anywhere at line start, or a bare column-0 word that
    # is not an instruction or directive
    if first.endswith(':'):
        result.label = first[:-1]
        text = parts[1] if len(parts) > 1 else ""
    elif not text[0].isspace() and first.upper() not in MNEMONICS \
            and first.upper() not in DIRECTIVES:
        result.label = first
        text = parts[1] if len(parts) > 1 else ""

    text = text.strip()
    if not text:
        return result

    parts = text.split(None, 1)
    result.mnemonic = parts[0].upper()
    if len(parts) > 1:
        result.operand = parts[1].strip()

    return result


# ──────────────────────────────────────────────
# Operand Analysis
# ──────────────────────────────────────────────

def _parse_value(text: str, symbols: Dict[str, int], line_num: int) -> int:
    """Parse a numeric value or symbol reference.
    Supports: $FF, 0xFF, %10101010, 123, 'A', SYMBOL
    """
    text = text.strip()
    if text.startswith('#'):
        text = text[1:].strip()

    try:
        if text.startswith('$'):
            return int(text[1:], 16)
        if text.lower().startswith('0x'):
            return int(text, 16)
        if text.startswith('%'):
            return int(text[1:], 2)
    except ValueError:
        raise AssemblerError(f"Bad number: '{text}'", line_num)

    if len(text) == 3 and text[0] == text[2] == "'":
        return ord(text[1])

    if text.isdigit() or (text.startswith('-') and text[1:].isdigit()):
        return int(text)

    if text in symbols:
        return symbols[text]

    raise AssemblerError(f"Undefined symbol: '{text}'", line_num)


def _classify_mode(mnemonic: str, operand: Optional[str], line_num: int) -> str:
    """Pick the addressing mode from operand syntax and check it is encodable."""
    if operand is None or operand == '':
        mode = IMP
    elif mnemonic in BRANCH_MNEMONICS:
        mode = REL
    elif operand.startswith('#'):
        mode = IMM
    else:
        mode = ABS

    if (mnemonic, mode) not in ENCODINGS:
        raise AssemblerError(f"{mnemonic} does not support {mode} addressing", line_num)
    return mode


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass 6502 subset assembler.

    Usage:
        asm = Assembler()
        binary = asm.assemble(source_text)
        image = asm.image()          # zero-padded from $0000
    """

    def __init__(self):
        self.symbols: Dict[str, int] = {}
        self.pc: int = 0
        self.binary: bytearray = bytearray()
        self.base_addr: int = 0
        self.errors: List[str] = []
        self._lines: List[AsmLine] = []
        self._segments: List[Tuple[int, bytearray]] = []
        self._listing: List[Tuple[Optional[int], bytes, str]] = []

    def assemble(self, source: str) -> bytearray:
        """Assemble source text into binary.

        Returns the assembled bytes; self.base_addr holds the lowest address.
        """
        self.symbols = {}
        self.errors = []
        self._lines = [_parse_line(line, i)
                       for i, line in enumerate(source.split('\n'), 1)]
        self._segments = []
        self._listing = []

        self._pass1()
        if self.errors:
            raise AssemblerError("Pass 1 errors:\n" + "\n".join(self.errors))

        self._pass2()
        if self.errors:
            raise AssemblerError("Pass 2 errors:\n" + "\n".join(self.errors))

        return self.binary

    def _pass1(self):
        """Pass 1: compute label addresses by tracking PC through all instructions."""
        self.pc = 0
        for line in self._lines:
            try:
                if self._pass1_line(line):
                    break
            except AssemblerError as e:
                self.errors.append(str(e))

    def _pass1_line(self, line: AsmLine) -> bool:
        """Returns True at END."""
        if line.label:
            if line.label in self.symbols:
                raise AssemblerError(f"Duplicate label: '{line.label}'", line.line_num)
            self.symbols[line.label] = self.pc

        mnem = line.mnemonic
        if mnem is None:
            return False

        if mnem in ('ORG', '.ORG'):
            self.pc = _parse_value(line.operand or '', self.symbols, line.line_num)
            return False

        if mnem in BYTE_DIRECTIVES:
            self.pc += len(_split_operands(line.operand)) if line.operand else 0
            return False

        if mnem == 'END':
            return True

        if mnem not in MNEMONICS:
            raise AssemblerError(f"Unknown mnemonic: {mnem}", line.line_num)

        mode = _classify_mode(mnem, line.operand, line.line_num)
        self.pc += 1 + OPERAND_SIZE[mode]
        return False

    def _pass2(self):
        """Pass 2: emit bytes and build a contiguous binary from the lowest address."""
        self.pc = 0
        for line in self._lines:
            try:
                if self._pass2_line(line):
                    break
            except AssemblerError as e:
                self.errors.append(str(e))

        if not self._segments:
            self.binary = bytearray()
            self.base_addr = 0
            return

        min_addr = min(addr for addr, _ in self._segments)
        max_addr = max(addr + len(data) for addr, data in self._segments)
        if max_addr > MEMORY_SIZE:
            self.errors.append(f"Code runs past ${MEMORY_SIZE - 1:04X}")
            return
        self.base_addr = min_addr
        self.binary = bytearray(max_addr - min_addr)
        for addr, data in self._segments:
            offset = addr - min_addr
            self.binary[offset:offset + len(data)] = data

    def _pass2_line(self, line: AsmLine) -> bool:
        mnem = line.mnemonic
        if mnem is None:
            if line.raw.strip():
                self._listing.append((None, b'', line.raw.strip()))
            return False

        if mnem in ('ORG', '.ORG'):
            self.pc = _parse_value(line.operand or '', self.symbols, line.line_num)
            self._listing.append((None, b'', line.raw.strip()))
            return False

        if mnem in BYTE_DIRECTIVES:
            parts = _split_operands(line.operand) if line.operand else []
            data = bytearray(_parse_value(p, self.symbols, line.line_num) & 0xFF
                             for p in parts)
            self._emit(data, line)
            return False

        if mnem == 'END':
            return True

        mode = _classify_mode(mnem, line.operand, line.line_num)
        data = bytearray([ENCODINGS[(mnem, mode)]])

        if mode == IMM:
            value = _parse_value(line.operand, self.symbols, line.line_num)
            if not -128 <= value <= 0xFF:
                raise AssemblerError(f"Immediate value out of range: {value}", line.line_num)
            data.append(value & 0xFF)

        elif mode == ABS:
            addr = _parse_value(line.operand, self.symbols, line.line_num)
            if not 0 <= addr <= 0xFFFF:
                raise AssemblerError(f"Address out of range: {addr}", line.line_num)
            data += bytes([addr & 0xFF, (addr >> 8) & 0xFF])

        elif mode == REL:
            target = _parse_value(line.operand, self.symbols, line.line_num)
            offset = target - (self.pc + 2)
            if not -128 <= offset <= 127:
                raise AssemblerError(
                    f"Branch target ${target:04X} out of range (offset {offset})",
                    line.line_num)
            data.append(offset & 0xFF)

        self._emit(data, line)
        return False

    def _emit(self, data: bytearray, line: AsmLine):
        self._segments.append((self.pc, data))
        self._listing.append((self.pc, bytes(data), line.raw.strip()))
        self.pc += len(data)

    def image(self) -> bytes:
        """The assembled code placed at its addresses, zero-filled from $0000."""
        return bytes(self.base_addr) + bytes(self.binary)

    def get_listing(self) -> str:
        """Return a human-readable listing showing address, bytes, and source."""
        lines = [f"{'ADDR':>5}  {'BYTES':<9}  SOURCE", "-" * 50]
        for addr, data, raw in self._listing:
            if addr is None:
                lines.append(f"{'':5}  {'':9}  {raw}")
            else:
                hex_str = ' '.join(f'{b:02X}' for b in data)
                lines.append(f"${addr:04X}  {hex_str:<9}  {raw}")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> Tuple[bytearray, int]:
    """Assemble source text, return (binary, base_address)."""
    asm = Assembler()
    binary = asm.assemble(source)
    return binary, asm.base_addr
