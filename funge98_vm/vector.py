"""
Funge VM - 2-D integer vectors

Coordinates and deltas share one type. Funge-space uses screen
orientation: x grows to the right, y grows downward, so "up" is (0, -1).
"""

from typing import NamedTuple


class Vector(NamedTuple):
    x: int
    y: int

    def __add__(self, other) -> 'Vector':
        return Vector(self.x + other[0], self.y + other[1])

    def __sub__(self, other) -> 'Vector':
        return Vector(self.x - other[0], self.y - other[1])

    def __neg__(self) -> 'Vector':
        return Vector(-self.x, -self.y)

    def scale(self, n: int) -> 'Vector':
        return Vector(self.x * n, self.y * n)

    def turn_left(self) -> 'Vector':
        """Rotate 90° counter-clockwise as seen on screen (y down)."""
        return Vector(self.y, -self.x)

    def turn_right(self) -> 'Vector':
        """Rotate 90° clockwise as seen on screen (y down)."""
        return Vector(-self.y, self.x)


ORIGIN = Vector(0, 0)

# Cardinal deltas
EAST  = Vector(1, 0)
WEST  = Vector(-1, 0)
NORTH = Vector(0, -1)
SOUTH = Vector(0, 1)

CARDINALS = (EAST, SOUTH, WEST, NORTH)
