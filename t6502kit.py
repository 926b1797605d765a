#!/usr/bin/env python3
"""
t6502kit - tiny6502 command-line toolkit
=========================================

    t6502kit run     - Boot an object-code image at $0000 and execute it
    t6502kit asm     - Assemble subset source into a loadable image
    t6502kit disasm  - List the instructions in an image

Usage:
    python t6502kit.py <command> [options]
    python t6502kit.py <command> --help

Examples:
    python t6502kit.py asm programs/alphabet.asm -o o6502.bin --listing
    python t6502kit.py run o6502.bin
    python t6502kit.py run o6502.bin --trace 2> trace.txt
    python t6502kit.py run o6502.bin --max-steps 1000 --dump 0xC000:16
    python t6502kit.py disasm o6502.bin --range 0x0000-0x0010

Exit codes for 'run': 0 on BRK, 1 on illegal opcode or unreadable image,
2 when --max-steps stops the program.
"""

import argparse
import logging
import sys

from tiny6502 import __version__
from tiny6502.assembler import Assembler, AssemblerError
from tiny6502.config import RunConfig, DEFAULT_IMAGE, EXIT_FAILURE
from tiny6502.cpu.decoder import disassemble
from tiny6502.emu import Emulator6502
from tiny6502.log_setup import setup_logging
from tiny6502.mem.memory import Memory, ImageLoadError

log = logging.getLogger("tiny6502.cli")


def parse_int_arg(value: str) -> int:
    """Parse an integer argument that may be hex (0x...), $ prefix, or decimal."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def _parse_pair(value: str, sep: str) -> tuple:
    try:
        first, second = value.split(sep, 1)
        return parse_int_arg(first), parse_int_arg(second)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected A{sep}B, got '{value}'")


def _dump_arg(value: str) -> tuple:
    return _parse_pair(value, ":")


def _range_arg(value: str) -> tuple:
    return _parse_pair(value, "-")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="t6502kit",
        description="tiny6502 - run, assemble and list 6502 subset programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  run      Execute an image (stdout = program output, stderr = diagnostics)
  asm      Assemble source to a raw image loaded at $0000
  disasm   Disassemble an image
""",
    )
    parser.add_argument("--version", action="version",
                        version=f"t6502kit {__version__}")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only report errors")
    parser.add_argument("--log-file", help="Also write a DEBUG log to this file")

    sub = parser.add_subparsers(dest="command", metavar="command")

    p_run = sub.add_parser("run", help="Execute an object-code image")
    p_run.add_argument("image", nargs="?", default=DEFAULT_IMAGE,
                       help=f"Raw binary image (default: {DEFAULT_IMAGE})")
    p_run.add_argument("--trace", action="store_true",
                       help="Print PC/opcode and registers for every instruction to stderr")
    p_run.add_argument("--max-steps", type=int, default=None,
                       help="Stop after this many instructions")
    p_run.add_argument("--dump", type=_dump_arg, default=None, metavar="START:LEN",
                       help="Hex dump memory to stderr after the run")

    p_asm = sub.add_parser("asm", help="Assemble subset source to a raw image")
    p_asm.add_argument("source", help="Assembly source file")
    p_asm.add_argument("-o", "--output", default=DEFAULT_IMAGE,
                       help=f"Output image (default: {DEFAULT_IMAGE})")
    p_asm.add_argument("--listing", action="store_true",
                       help="Print an address/bytes/source listing")

    p_dis = sub.add_parser("disasm", help="Disassemble an image")
    p_dis.add_argument("image", help="Raw binary image")
    p_dis.add_argument("--range", type=_range_arg, default=None, metavar="START-END",
                       help="Address range, end exclusive (default: whole image)")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file,
                  trace=getattr(args, "trace", False))

    commands = {
        "run": cmd_run,
        "asm": cmd_asm,
        "disasm": cmd_disasm,
    }
    return commands[args.command](args)


def cmd_run(args) -> int:
    cfg = RunConfig(image=args.image, trace=args.trace,
                    max_steps=args.max_steps, dump=args.dump)

    emu = Emulator6502()
    try:
        emu.boot(cfg.image)
    except ImageLoadError as e:
        log.error("%s", e)
        return EXIT_FAILURE

    reason = emu.run(max_steps=cfg.max_steps)

    if cfg.dump:
        start, length = cfg.dump
        print(emu.mem.hexdump(start, length), file=sys.stderr)

    return reason.exit_code


def cmd_asm(args) -> int:
    try:
        with open(args.source, "r", encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        log.error("Cannot read %s: %s", args.source, e)
        return EXIT_FAILURE

    asm = Assembler()
    try:
        asm.assemble(source)
    except AssemblerError as e:
        log.error("Assembler error: %s", e)
        return EXIT_FAILURE

    image = asm.image()
    try:
        with open(args.output, "wb") as f:
            f.write(image)
    except OSError as e:
        log.error("Cannot write %s: %s", args.output, e)
        return EXIT_FAILURE

    if args.listing:
        print(asm.get_listing())
    log.info("Wrote %s (%d bytes)", args.output, len(image))
    return 0


def cmd_disasm(args) -> int:
    mem = Memory()
    try:
        with open(args.image, "rb") as f:
            data = f.read()
        mem.load_binary(data)
    except (OSError, ImageLoadError) as e:
        log.error("%s", e)
        return EXIT_FAILURE

    start, end = args.range if args.range else (0, len(data))
    addr = start
    while addr < end:
        text, length = disassemble(mem, addr)
        raw = ' '.join(f'{mem.read8(addr + i):02X}' for i in range(length))
        print(f"${addr:04X}  {raw:<9}  {text}")
        addr += length
    return 0


if __name__ == "__main__":
    sys.exit(main())
