"""
Funge VM - Stack and Stack-Stack

Every IP owns one stack-stack: a non-empty list of stacks. The last
stack in the list is the TOSS (top of stack-stack) and is what ordinary
instructions push to and pop from. The stack below it is the SOSS.

Underflow is never an error. Popping or peeking an empty stack yields 0,
which Funge-98 relies on (e.g. `.` on a fresh IP prints "0 ").

Block semantics follow Funge-98 `{`, `}` and `u`:

  begin_block(n, offset):
      n > 0   move the top n SOSS cells onto the new TOSS, order kept
      n < 0   push |n| zeros onto the SOSS
      then push the old storage offset onto the SOSS as a vector

  end_block(n):
      pop the storage offset vector from the SOSS
      n > 0   move the top n TOSS cells onto the SOSS, order kept
      n < 0   pop |n| cells off the SOSS
      then drop the TOSS

  transfer(count):      (`u`)
      count > 0   pop from SOSS, push onto TOSS, count times
      count < 0   pop from TOSS, push onto SOSS, |count| times
"""

from typing import Iterator, List, Optional

from ..vector import Vector


class Stack:
    """LIFO of signed integers where underflow yields 0."""

    __slots__ = ('_items',)

    def __init__(self, items=None):
        self._items: List[int] = list(items) if items else []

    def push(self, value: int):
        self._items.append(value)

    def pop(self) -> int:
        if self._items:
            return self._items.pop()
        return 0

    def peek(self) -> int:
        if self._items:
            return self._items[-1]
        return 0

    def duplicate_top(self):
        """`:` - an empty stack becomes two zeros."""
        value = self.pop()
        self._items.append(value)
        self._items.append(value)

    def swap_top_two(self):
        """`\\` - missing cells are treated as zeros."""
        a = self.pop()
        b = self.pop()
        self._items.append(a)
        self._items.append(b)

    def clear(self):
        self._items.clear()

    # --- Multi-cell helpers ---

    def push_vector(self, vec):
        """Push x then y, so y is on top."""
        self._items.append(vec[0])
        self._items.append(vec[1])

    def pop_vector(self) -> Vector:
        y = self.pop()
        x = self.pop()
        return Vector(x, y)

    def push_string(self, text: str):
        """Push a 0gnirts: the terminating 0, then the text reversed."""
        self._items.append(0)
        for ch in reversed(text):
            self._items.append(ord(ch))

    def pop_string(self) -> str:
        chars = []
        while True:
            value = self.pop()
            if value == 0:
                break
            chars.append(chr(value) if 0 <= value <= 0x10FFFF else '�')
        return ''.join(chars)

    def pop_many(self, n: int) -> List[int]:
        """Pop n cells, returned bottom-first (original stack order).

        Cells beyond what the stack holds come back as leading zeros.
        """
        if n <= 0:
            return []
        have = min(n, len(self._items))
        taken = self._items[len(self._items) - have:]
        del self._items[len(self._items) - have:]
        return [0] * (n - have) + taken

    def extend(self, values):
        self._items.extend(values)

    # --- Inspection ---

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        """Bottom to top."""
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __eq__(self, other) -> bool:
        if isinstance(other, Stack):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"Stack({self._items!r})"

    def copy(self) -> 'Stack':
        return Stack(self._items)


class StackStack:
    """Non-empty ordered collection of stacks owned by a single IP."""

    __slots__ = ('_stacks',)

    def __init__(self, stacks=None):
        self._stacks: List[Stack] = list(stacks) if stacks else [Stack()]

    def active(self) -> Stack:
        """The TOSS."""
        return self._stacks[-1]

    def second(self) -> Optional[Stack]:
        """The SOSS, or None when there is only one stack."""
        if len(self._stacks) > 1:
            return self._stacks[-2]
        return None

    @property
    def depth(self) -> int:
        return len(self._stacks)

    def sizes(self) -> List[int]:
        """Stack sizes, TOSS first."""
        return [len(s) for s in reversed(self._stacks)]

    # --- Blocks ---

    def begin_block(self, n: int, storage_offset) -> None:
        soss = self.active()
        toss = Stack()
        if n > 0:
            toss.extend(soss.pop_many(n))
        elif n < 0:
            soss.extend([0] * -n)
        soss.push_vector(storage_offset)
        self._stacks.append(toss)

    def end_block(self, n: int) -> Optional[Vector]:
        """Pop the TOSS. Returns the restored storage offset.

        Returns None (and changes nothing) when there is no SOSS; the
        caller reflects the IP in that case.
        """
        if len(self._stacks) < 2:
            return None
        toss = self._stacks[-1]
        soss = self._stacks[-2]
        offset = soss.pop_vector()
        if n > 0:
            soss.extend(toss.pop_many(n))
        elif n < 0:
            soss.pop_many(-n)
        self._stacks.pop()
        return offset

    def transfer(self, count: int) -> bool:
        """`u` - move cells between SOSS and TOSS one at a time."""
        if len(self._stacks) < 2:
            return False
        toss = self._stacks[-1]
        soss = self._stacks[-2]
        if count > 0:
            for _ in range(count):
                toss.push(soss.pop())
        elif count < 0:
            for _ in range(-count):
                soss.push(toss.pop())
        return True

    # --- Copying / display ---

    def copy(self) -> 'StackStack':
        """Deep copy; used when an IP forks."""
        return StackStack([s.copy() for s in self._stacks])

    def __iter__(self) -> Iterator[Stack]:
        """Bottom stack first, TOSS last."""
        return iter(self._stacks)

    def __repr__(self) -> str:
        return f"StackStack({self._stacks!r})"
