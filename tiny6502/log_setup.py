"""
tiny6502 - Logging setup

Two streams, both on stderr so they never mix with program output on
stdout:
  tiny6502        - diagnostics through a rich console handler
  tiny6502.trace  - per-instruction trace, plain "%(message)s" lines

An optional log file receives everything at DEBUG.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import TRACE_LOGGER

LOGGER_NAME = "tiny6502"


def _reset_handlers(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    verbose: int = 0,
    quiet: bool = False,
    log_file: Optional[str] = None,
    trace: bool = False,
) -> logging.Logger:
    """Configure and return the package logger.

    Console level: ERROR with quiet, WARNING by default, INFO with -v,
    DEBUG with -vv. Safe to call again; previous handlers are replaced.
    """
    if quiet:
        console_level = logging.ERROR
    elif verbose == 0:
        console_level = logging.WARNING
    elif verbose == 1:
        console_level = logging.INFO
    else:
        console_level = logging.DEBUG

    logger = logging.getLogger(LOGGER_NAME)
    _reset_handlers(logger)
    logger.setLevel(logging.DEBUG if log_file else console_level)

    # ── Console handler ──
    ch = RichHandler(
        console=Console(stderr=True),
        level=console_level,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)

    # ── Trace: exact text lines, never through the rich formatter ──
    tracer = logging.getLogger(TRACE_LOGGER)
    _reset_handlers(tracer)
    tracer.propagate = False
    if trace:
        tracer.setLevel(logging.DEBUG)
        th = logging.StreamHandler(sys.stderr)
        th.setFormatter(logging.Formatter("%(message)s"))
        tracer.addHandler(th)
    else:
        tracer.setLevel(logging.WARNING)

    logger.debug("Logging configured: console=%s file=%s trace=%s",
                 logging.getLevelName(console_level), log_file, trace)
    return logger
