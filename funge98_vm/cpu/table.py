"""
Funge VM - Instruction table

Maps a cell value (code point) to an Instruction. The table is an
ordinary object handed to the emulator at construction; there is no
module-level registry, so a test or an alternate dialect can build its
own table without touching anyone else's.

Handler contract:

    handler(ip, space, vm, *args) -> Optional[InstructionPointer]

  ip      the executing InstructionPointer
  space   the shared FungeSpace (mutable)
  vm      the running emulator: emit/read_char/read_int/spawn/quit,
          the random generator, the config and this table
  args    per-entry data stored in the table (e.g. the literal a digit
          pushes)

Return the successor IP (normally `ip` itself) or None to kill it. The
scheduler moves the successor one delta afterwards; a handler only moves
the IP for extra motion (`#`, `'`, `j`, ...).

Literal entries carry their value in Instruction.args instead of a
closure, so building "0"-"9" in a loop cannot make them share one value.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Tuple


class TableFrozenError(Exception):
    """Raised when registering into a table after freeze()."""


@dataclass(frozen=True)
class Instruction:
    char: str
    name: str
    handler: Callable
    args: Tuple = ()

    @property
    def code(self) -> int:
        return ord(self.char)

    def execute(self, ip, space, vm):
        return self.handler(ip, space, vm, *self.args)


def _as_code(char) -> int:
    if isinstance(char, int):
        return char
    if len(char) != 1:
        raise ValueError(f"Instruction key must be a single character, got {char!r}")
    return ord(char)


def instruction(char: str, *args, name: Optional[str] = None):
    """Decorator marking a handler for one instruction character.

    May be stacked to bind the same handler to several characters, each
    with its own args. Marked functions are collected by
    InstructionTable.register_module().
    """
    def decorator(fn):
        marks = getattr(fn, '_funge_instructions', ())
        fn._funge_instructions = marks + ((char, args, name),)
        return fn
    return decorator


class InstructionTable:
    """Character -> Instruction registry, read-only once frozen."""

    def __init__(self, name: str = 'custom'):
        self.name = name
        self._entries: Dict[int, Instruction] = {}
        self._frozen = False

    # --- Registration ---

    def register(self, char, handler: Callable, *args, name: Optional[str] = None):
        """Bind char to handler. Replaces any existing entry."""
        if self._frozen:
            raise TableFrozenError(f"Instruction table '{self.name}' is frozen")
        code = _as_code(char)
        entry = Instruction(chr(code), name or handler.__name__, handler, tuple(args))
        self._entries[code] = entry
        return entry

    def register_module(self, module):
        """Register every @instruction-marked function found in module."""
        for obj in list(vars(module).values()):
            for char, args, name in getattr(obj, '_funge_instructions', ()):
                self.register(char, obj, *args, name=name)
        return self

    def unregister(self, char):
        if self._frozen:
            raise TableFrozenError(f"Instruction table '{self.name}' is frozen")
        self._entries.pop(_as_code(char), None)

    def freeze(self) -> 'InstructionTable':
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def extend(self, name: Optional[str] = None) -> 'InstructionTable':
        """Mutable copy of this table, for adding or overriding entries."""
        table = InstructionTable(name or f"{self.name}+")
        table._entries = dict(self._entries)
        return table

    # --- Lookup ---

    def lookup(self, code: int) -> Optional[Instruction]:
        return self._entries.get(code)

    def __getitem__(self, char) -> Instruction:
        return self._entries[_as_code(char)]

    def __contains__(self, char) -> bool:
        return _as_code(char) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Instruction]:
        for code in sorted(self._entries):
            yield self._entries[code]

    def __repr__(self) -> str:
        state = 'frozen' if self._frozen else 'open'
        return f"<InstructionTable {self.name!r} {len(self)} entries, {state}>"
