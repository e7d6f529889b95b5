"""
Funge VM - Instruction Pointer state

An IP is the Funge equivalent of a CPU register file: where it is, which
way it is going, its private stack-stack, and its mode flags.

  location        cell about to be executed
  delta           direction vector added on every move (any integer
                  vector is legal; `x` can set diagonals or long jumps)
  stack_stack     owned exclusively by this IP
  string_mode     when set, cells are pushed instead of executed
  storage_offset  origin for `g`/`p`, moved by `{` and `}`
  id              stable identity; the scheduler visits IPs by ascending id
  parent_id       id of the IP this one was split from (None for the first)
"""

from typing import Optional

from ..vector import Vector, EAST, ORIGIN
from .stack import Stack, StackStack


class InstructionPointer:
    """One Funge-98 instruction pointer."""

    __slots__ = ('id', 'location', 'delta', 'stack_stack', 'string_mode',
                 'storage_offset', 'parent_id')

    def __init__(self, ip_id: int = 0, location=ORIGIN, delta=EAST,
                 stack_stack: Optional[StackStack] = None):
        self.id: int = ip_id
        self.location: Vector = Vector(*location)
        self.delta: Vector = Vector(*delta)
        self.stack_stack: StackStack = stack_stack or StackStack()
        self.string_mode: bool = False
        self.storage_offset: Vector = ORIGIN
        self.parent_id: Optional[int] = None

    @property
    def stack(self) -> Stack:
        """Shortcut for the active stack (TOSS)."""
        return self.stack_stack.active()

    # --- Movement ---

    def advance(self, space):
        """Move one delta, wrapping onto the space's bounding rectangle."""
        self.location = space.wrap(self.location + self.delta)

    def reflect(self):
        """`r` - negate both delta components."""
        self.delta = -self.delta

    def turn_left(self):
        self.delta = self.delta.turn_left()

    def turn_right(self):
        self.delta = self.delta.turn_right()

    # --- Forking ---

    def split(self, new_id: int) -> 'InstructionPointer':
        """Deep copy for `t`. The child gets its own id and a reversed delta."""
        child = InstructionPointer(new_id, self.location, -self.delta,
                                   self.stack_stack.copy())
        child.string_mode = self.string_mode
        child.storage_offset = self.storage_offset
        child.parent_id = self.id
        return child

    # --- Display ---

    def display(self) -> str:
        """One-line state summary for traces."""
        mode = ' STR' if self.string_mode else ''
        return (f"IP{self.id} @({self.location.x},{self.location.y}) "
                f"d=({self.delta.x},{self.delta.y}) "
                f"toss={list(self.stack)}{mode}")

    def __repr__(self) -> str:
        return f"<InstructionPointer {self.display()}>"
