"""
t6502kit command-line tests: exit codes and stream separation.
"""
import logging
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

import t6502kit
from tiny6502.config import TRACE_LOGGER
from tiny6502.log_setup import LOGGER_NAME

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ALPHABET_ASM = os.path.join(ROOT, "programs", "alphabet.asm")


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    for name in (LOGGER_NAME, TRACE_LOGGER):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


@pytest.fixture
def alphabet_bin(tmp_path, capsys):
    out = tmp_path / "o6502.bin"
    assert t6502kit.main(["asm", ALPHABET_ASM, "-o", str(out)]) == 0
    capsys.readouterr()
    return out


class TestRun:

    def test_alphabet(self, alphabet_bin, capsys):
        assert t6502kit.main(["run", str(alphabet_bin)]) == 0
        captured = capsys.readouterr()
        assert captured.out == "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

    def test_trace_goes_to_stderr(self, alphabet_bin, capsys):
        assert t6502kit.main(["run", str(alphabet_bin), "--trace"]) == 0
        captured = capsys.readouterr()
        assert captured.out == "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
        assert "PC: 0000 opcode = 18" in captured.err
        assert "a: 41 x: 00 y: 00 s: 0100 p: 00" in captured.err

    def test_illegal_opcode_exit_code(self, tmp_path, capsys):
        image = tmp_path / "bad.bin"
        image.write_bytes(b'\xFF')
        assert t6502kit.main(["run", str(image)]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_image(self, tmp_path):
        assert t6502kit.main(["run", str(tmp_path / "missing.bin")]) == 1

    def test_oversize_image(self, tmp_path):
        image = tmp_path / "big.bin"
        image.write_bytes(bytes(0x10001))
        assert t6502kit.main(["run", str(image)]) == 1

    def test_max_steps(self, tmp_path):
        image = tmp_path / "spin.bin"
        image.write_bytes(b'\x90\xFE')
        assert t6502kit.main(["run", str(image), "--max-steps", "50"]) == 2

    def test_dump(self, alphabet_bin, capsys):
        assert t6502kit.main(["run", str(alphabet_bin), "--dump", "0x0000:16"]) == 0
        captured = capsys.readouterr()
        assert captured.out == "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
        assert "0000  18 A9 41 8D 00 C0" in captured.err

    def test_dump_exact_length(self, alphabet_bin, capsys):
        assert t6502kit.main(["run", str(alphabet_bin), "--dump", "0:4"]) == 0
        err = capsys.readouterr().err
        assert "0000  18 A9 41 8D  " in err
        assert "18 A9 41 8D 00" not in err

    def test_high_byte_written_raw(self, tmp_path, capfdbinary):
        image = tmp_path / "e9.bin"
        # LDA #$E9 / STA $C000 / BRK
        image.write_bytes(b'\xA9\xE9\x8D\x00\xC0\x00')
        assert t6502kit.main(["run", str(image)]) == 0
        assert capfdbinary.readouterr().out == b'\xe9'


class TestAsm:

    def test_listing(self, tmp_path, capsys):
        out = tmp_path / "a.bin"
        assert t6502kit.main(["asm", ALPHABET_ASM, "-o", str(out), "--listing"]) == 0
        assert "$000A  90 F7" in capsys.readouterr().out
        assert out.read_bytes()[:3] == b'\x18\xA9\x41'

    def test_assembler_error(self, tmp_path):
        src = tmp_path / "bad.asm"
        src.write_text("  JMP $1000\n", encoding="utf-8")
        assert t6502kit.main(["asm", str(src), "-o", str(tmp_path / "x.bin")]) == 1
        assert not (tmp_path / "x.bin").exists()


class TestDisasm:

    def test_disasm(self, alphabet_bin, capsys):
        assert t6502kit.main(["disasm", str(alphabet_bin)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "$0000  18         CLC"
        assert out[1] == "$0001  A9 41      LDA #$41"
        assert out[2] == "$0003  8D 00 C0   STA $C000"
        assert out[5] == "$000A  90 F7      BCC $0003"
        assert out[6] == "$000C  00         BRK"

    def test_parse_int_arg(self):
        assert t6502kit.parse_int_arg("$C000") == 0xC000
        assert t6502kit.parse_int_arg("0x10") == 16
        assert t6502kit.parse_int_arg("42") == 42
