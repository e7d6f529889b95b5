"""
Funge VM - Sparse toroidal program space

Funge-space is conceptually unbounded. Only written cells are stored
(dict keyed by (x, y)); everything else reads as a space (32).

Bounding rectangle:
  The least/greatest points enclose every coordinate that has ever been
  written. It grows on write and never shrinks, even when a cell is
  overwritten with a space. Reads and IP movement wrap onto it:

      x' = min_x + (x - min_x) % width       width  = max_x - min_x + 1
      y' = min_y + (y - min_y) % height      height = max_y - min_y + 1

  Once any cell exists both extents are >= 1. A space with nothing
  written has no extent, and wrap() leaves coordinates untouched.

Growing the rectangle changes the wrap result seen by every IP. That is
part of the machine, not a side channel: a `p` far outside the program
makes all IPs travel further before wrapping.
"""

from typing import Dict, Optional, Tuple

from ..vector import Vector

SPACE = 0x20


class FungeSpace:
    """2-D cell grid with per-axis modulo wrap onto the bounding rectangle."""

    def __init__(self):
        self._cells: Dict[Tuple[int, int], int] = {}
        self._min_x: Optional[int] = None
        self._min_y: Optional[int] = None
        self._max_x: Optional[int] = None
        self._max_y: Optional[int] = None

    # --- Core read/write ---

    def read(self, coord) -> int:
        """Read the cell at coord after wrapping. Unwritten cells are 32."""
        return self._cells.get(self.wrap(coord), SPACE)

    def write(self, coord, value: int):
        """Store value at coord, growing the bounding rectangle to fit it."""
        x, y = coord
        self._cells[(x, y)] = value
        if self._min_x is None:
            self._min_x = self._max_x = x
            self._min_y = self._max_y = y
            return
        if x < self._min_x:
            self._min_x = x
        elif x > self._max_x:
            self._max_x = x
        if y < self._min_y:
            self._min_y = y
        elif y > self._max_y:
            self._max_y = y

    def wrap(self, coord) -> Vector:
        """Reduce an arbitrary coordinate onto the bounding rectangle."""
        x, y = coord
        if self._min_x is None:
            return Vector(x, y)
        if not (self._min_x <= x <= self._max_x):
            x = self._min_x + (x - self._min_x) % self.width
        if not (self._min_y <= y <= self._max_y):
            y = self._min_y + (y - self._min_y) % self.height
        return Vector(x, y)

    # --- Geometry ---

    @property
    def width(self) -> int:
        if self._min_x is None:
            return 0
        return self._max_x - self._min_x + 1

    @property
    def height(self) -> int:
        if self._min_y is None:
            return 0
        return self._max_y - self._min_y + 1

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def bounds(self) -> Tuple[Vector, Vector]:
        """(least point, greatest point). Both are the origin when empty."""
        if self._min_x is None:
            return Vector(0, 0), Vector(0, 0)
        return (Vector(self._min_x, self._min_y),
                Vector(self._max_x, self._max_y))

    def in_bounds(self, coord) -> bool:
        if self._min_x is None:
            return False
        x, y = coord
        return (self._min_x <= x <= self._max_x
                and self._min_y <= y <= self._max_y)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coord) -> bool:
        return tuple(coord) in self._cells

    # --- Snapshots (for debugging self-modifying programs) ---

    def snapshot(self) -> Dict[Tuple[int, int], int]:
        """Copy of the stored cells, for later diffing."""
        return dict(self._cells)

    @staticmethod
    def diff_snapshots(snap_a: Dict[Tuple[int, int], int],
                       snap_b: Dict[Tuple[int, int], int]) -> Dict[Tuple[int, int], tuple]:
        """Compare two snapshots, return {coord: (old, new)} for changes.

        Missing cells count as spaces, so writing a space onto an
        unwritten coordinate is not reported.
        """
        changes = {}
        for coord in snap_a.keys() | snap_b.keys():
            old = snap_a.get(coord, SPACE)
            new = snap_b.get(coord, SPACE)
            if old != new:
                changes[coord] = (old, new)
        return changes

    # --- Text dump ---

    def render(self) -> str:
        """Render the bounding rectangle as text, one row per line.

        Non-printable cells are shown as '.', trailing spaces are kept
        off each row.
        """
        if self._min_x is None:
            return ''
        lines = []
        for y in range(self._min_y, self._max_y + 1):
            row = []
            for x in range(self._min_x, self._max_x + 1):
                value = self._cells.get((x, y), SPACE)
                row.append(chr(value) if 0x20 <= value < 0x7F else '.')
            lines.append(''.join(row).rstrip())
        return '\n'.join(lines)
