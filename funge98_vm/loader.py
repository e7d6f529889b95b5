"""
Funge VM - Source loader

Lays program text out in Funge-space, one cell per character:

  - lines split on LF, CRLF or CR; line n goes to row origin.y + n
  - form feeds are dropped (Befunge has no third dimension to page into)
  - every other character is written, spaces included, so the length
    of the longest line sets the width the IPs wrap around

Only FungeSpace.write() is used, so any object with the same method can
receive a program.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from .mem.space import FungeSpace
from .vector import ORIGIN

log = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


class LoaderError(Exception):
    """Source file could not be read or decoded."""


def load_source(text: str, space: Optional[FungeSpace] = None,
                origin=ORIGIN) -> FungeSpace:
    """Write program text into space (a new FungeSpace by default)."""
    if space is None:
        space = FungeSpace()
    ox, oy = origin
    lines = _LINE_BREAK.split(text)
    # A trailing newline does not add an empty row
    if len(lines) > 1 and lines[-1] == '':
        lines.pop()
    for y, line in enumerate(lines):
        line = line.replace('\f', '')
        for x, ch in enumerate(line):
            space.write((ox + x, oy + y), ord(ch))
    log.debug("Loaded %d lines, %d cells, bounds %s",
              len(lines), len(space), space.bounds)
    return space


def load_file(path, space: Optional[FungeSpace] = None,
              origin=ORIGIN, encoding: str = 'utf-8') -> FungeSpace:
    """Read a program file and load it."""
    path = Path(path)
    try:
        text = path.read_text(encoding=encoding)
    except FileNotFoundError:
        raise LoaderError(f"File not found: {path}") from None
    except UnicodeDecodeError as e:
        raise LoaderError(f"Cannot decode {path} as {encoding}: {e}") from e
    except OSError as e:
        raise LoaderError(f"Error reading {path}: {e}") from e
    log.info("Loading %s", path)
    return load_source(text, space, origin)
