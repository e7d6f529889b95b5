"""
Funge VM - Emulator / IP scheduler

Ties together:
  - Funge-space (mem/space.py)
  - Instruction pointers and their stack-stacks (ip/)
  - The instruction table (cpu/table.py, cpu/standard.py)
  - Console I/O (periph/console.py)

Execution model (one tick):
  1. Visit every live IP in ascending id order
  2. Read the cell under the IP
  3. String mode: push the code (or close the mode on '"')
     Otherwise: look the code up and run the handler
  4. Replace the IP with the handler's result; None removes it
  5. Advance the surviving IP one delta (with wrap)
  6. After the whole tick, append IPs spawned during it; they first run
     next tick

Because IP ids only grow and spawned IPs are appended, the live list is
always sorted by id. Cell writes are visible immediately, so an IP sees
what lower-numbered IPs wrote earlier in the same tick.

Termination reasons:
  - DONE:     no IPs left
  - QUIT:     `q` executed; exit_code holds its value
  - TIMEOUT:  tick limit reached
  - BREAK:    an IP started a tick on a breakpoint cell
"""

import logging
import random
from enum import Enum
from typing import List, Optional, Set

from .config import VMConfig
from .cpu.standard import build_standard_table
from .cpu.table import InstructionTable
from .ip.pointer import InstructionPointer
from .loader import load_file, load_source
from .mem.space import FungeSpace, SPACE
from .periph.console import Console, code_to_char
from .vector import Vector, ORIGIN

log = logging.getLogger(__name__)

QUOTE = ord('"')
SEMICOLON = ord(';')


class StopReason(Enum):
    DONE = 'DONE'
    QUIT = 'QUIT'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


class FungeEmulator:
    """Funge-98 virtual machine.

    Usage:
        vm = FungeEmulator()
        vm.load_source('"!olleH",,,,,,@')
        reason = vm.run()
        print(vm.output)        # "Hello!"
    """

    def __init__(self, space: Optional[FungeSpace] = None,
                 table: Optional[InstructionTable] = None,
                 config: Optional[VMConfig] = None,
                 console: Optional[Console] = None):
        self.config = config or VMConfig()
        self.space = space if space is not None else FungeSpace()
        self.table = table if table is not None else build_standard_table()
        self.console = console or Console()
        self.random = random.Random(self.config.seed)

        self.ips: List[InstructionPointer] = []
        self._spawned: List[InstructionPointer] = []
        self._next_id = 0
        self.tick_count = 0
        self.exit_code: Optional[int] = None
        self.stop_reason: Optional[StopReason] = None

        # Breakpoints: cells that stop run() with BREAK
        self._breakpoints: Set[Vector] = set()
        self._resuming = False

        # Trace output
        self._trace = self.config.trace
        self._trace_output: List[str] = []

        # Unknown codes already reported
        self._warned: Set[int] = set()

        self.ips.append(InstructionPointer(self.next_ip_id()))

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_source(self, text: str, origin=ORIGIN):
        load_source(text, self.space, origin)

    def load_file(self, path, origin=ORIGIN):
        load_file(path, self.space, origin)

    # ══════════════════════════════════════════════
    # IP population
    # ══════════════════════════════════════════════

    def next_ip_id(self) -> int:
        ip_id = self._next_id
        self._next_id += 1
        return ip_id

    def spawn(self, ip: InstructionPointer):
        """Queue a new IP; it joins the live set after the current tick."""
        log.debug("IP%d spawned by IP%s at (%d,%d)",
                  ip.id, ip.parent_id, ip.location.x, ip.location.y)
        self._spawned.append(ip)

    def quit(self, code: int):
        """End the whole program at once (the `q` instruction)."""
        raise _QuitException(code)

    @property
    def alive(self) -> bool:
        return bool(self.ips)

    # ══════════════════════════════════════════════
    # Console proxies (used by instruction handlers)
    # ══════════════════════════════════════════════

    def emit(self, code: int):
        self.console.emit(code)

    def emit_text(self, text: str):
        self.console.emit_text(text)

    def read_char(self) -> Optional[int]:
        return self.console.read_char()

    def read_int(self) -> Optional[int]:
        return self.console.read_int()

    @property
    def output(self) -> str:
        return self.console.output

    # ══════════════════════════════════════════════
    # Dispatch
    # ══════════════════════════════════════════════

    def dispatch(self, ip: InstructionPointer, code: int) -> Optional[InstructionPointer]:
        """Run the instruction for code on ip without moving it afterwards."""
        entry = self.table.lookup(code)
        if entry is None:
            return self._unknown(ip, code)
        return entry.execute(ip, self.space, self)

    def _unknown(self, ip: InstructionPointer, code: int) -> Optional[InstructionPointer]:
        policy = self.config.unknown_instruction
        if code not in self._warned:
            self._warned.add(code)
            log.warning("Unknown instruction %r (%d) at (%d,%d), policy=%s",
                        code_to_char(code), code,
                        ip.location.x, ip.location.y, policy)
        if policy == 'reflect':
            ip.reflect()
        elif policy == 'kill':
            return None
        return ip

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step_ip(self, ip: InstructionPointer) -> Optional[InstructionPointer]:
        """Execute one instruction for one IP and move it on."""
        space = self.space
        if self.config.free_markers and not ip.string_mode:
            self._skip_markers(ip)

        code = space.read(ip.location)

        if self._trace:
            self._trace_output.append(
                f"t{self.tick_count:<6d} {ip.display()} "
                f"exec {chr(code) if 0x20 <= code < 0x7F else code!r}")

        if ip.string_mode:
            if code == QUOTE:
                ip.string_mode = False
            else:
                ip.stack.push(code)
                if code == SPACE and self.config.sgml_spaces:
                    self._skip_space_run(ip)
            ip.advance(space)
            return ip

        successor = self.dispatch(ip, code)
        if successor is None:
            log.debug("IP%d terminated at (%d,%d)", ip.id, ip.location.x, ip.location.y)
            return None
        successor.advance(space)
        return successor

    def _skip_space_run(self, ip: InstructionPointer):
        """Leave ip on the last space of a run of spaces."""
        space = self.space
        for _ in range(space.area):
            nxt = space.wrap(ip.location + ip.delta)
            if space.read(nxt) != SPACE:
                return
            ip.location = nxt

    def _skip_markers(self, ip: InstructionPointer):
        """Move ip over spaces and ;...; runs without spending a tick."""
        space = self.space
        in_jump = False
        for _ in range(space.area + 1):
            code = space.read(ip.location)
            if code == SEMICOLON:
                in_jump = not in_jump
            elif not in_jump and code != SPACE:
                return
            ip.advance(space)

    def tick(self) -> Optional[StopReason]:
        """Advance every live IP by one instruction.

        Returns a StopReason if the run ended (or hit a breakpoint),
        else None.
        """
        if not self.ips:
            return StopReason.DONE

        if self._breakpoints and not self._resuming:
            for ip in self.ips:
                if ip.location in self._breakpoints:
                    self._resuming = True
                    log.info("Breakpoint hit by IP%d at (%d,%d)",
                             ip.id, ip.location.x, ip.location.y)
                    return StopReason.BREAK
        self._resuming = False

        survivors: List[InstructionPointer] = []
        try:
            for ip in self.ips:
                successor = self.step_ip(ip)
                if successor is not None:
                    survivors.append(successor)
        except _QuitException as q:
            self.exit_code = q.code
            self.ips = []
            self._spawned.clear()
            self.tick_count += 1
            log.info("Program quit with code %d after %d ticks", q.code, self.tick_count)
            return StopReason.QUIT

        survivors.extend(self._spawned)
        self._spawned.clear()
        self.ips = survivors
        self.tick_count += 1

        if not self.ips:
            return StopReason.DONE
        return None

    def run(self, max_ticks: Optional[int] = None) -> StopReason:
        """Run until termination condition.

        Args:
            max_ticks: tick budget for this call; defaults to
                config.max_ticks (None = unlimited)

        Returns:
            StopReason indicating why execution stopped
        """
        if max_ticks is None:
            max_ticks = self.config.max_ticks
        start = self.tick_count

        while max_ticks is None or self.tick_count - start < max_ticks:
            reason = self.tick()
            if reason is not None:
                self.stop_reason = reason
                log.info("Run stopped: %s at tick %d", reason.value, self.tick_count)
                return reason

        log.warning("Tick limit %d reached with %d live IPs", max_ticks, len(self.ips))
        self.stop_reason = StopReason.TIMEOUT
        return StopReason.TIMEOUT

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, coord):
        """Stop run() when any IP is about to execute this cell."""
        self._breakpoints.add(Vector(*coord))

    def remove_breakpoint(self, coord):
        self._breakpoints.discard(Vector(*coord))

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one line per executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Back to a single fresh IP at the origin. Funge-space is kept."""
        self.ips = []
        self._spawned.clear()
        self._next_id = 0
        self.tick_count = 0
        self.exit_code = None
        self.stop_reason = None
        self._resuming = False
        self.random = random.Random(self.config.seed)
        self.console.reset()
        self._trace_output.clear()
        self._warned.clear()
        self.ips.append(InstructionPointer(self.next_ip_id()))


# Internal exception for `q`
class _QuitException(Exception):
    def __init__(self, code: int):
        super().__init__(code)
        self.code = code
