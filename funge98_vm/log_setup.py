"""
Funge VM - Logging setup

Library modules only call logging.getLogger(__name__); handlers are
attached here, by the CLI or by an embedding application.

  console   rich.logging.RichHandler on stderr (WARNING+ by default)
  file      optional, DEBUG+, pipe-separated format
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console as RichConsole
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "funge98_vm",
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> logging.Logger:
    """Configure and return the package logger.

    Calling it again replaces the handlers it installed earlier, so the
    CLI can be invoked repeatedly in one process (tests do).
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        if getattr(handler, '_funge_handler', False):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(logging.DEBUG if log_file else console_level)
    logger.propagate = False

    # ── Console handler: stderr, so program output on stdout stays clean ──
    ch = RichHandler(
        console=RichConsole(stderr=True),
        level=console_level,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=rich_tracebacks,
    )
    ch._funge_handler = True
    logger.addHandler(ch)

    # ── File handler: captures everything (DEBUG+) ──
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        fh._funge_handler = True
        logger.addHandler(fh)
        logger.info("Logger initialized: %s", name)
        logger.info("Log file: %s", log_file)
        logger.info("Console level: %s", logging.getLevelName(console_level))

    return logger
