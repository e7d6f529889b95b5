"""
Funge VM - Befunge-98 standard instruction set

Every handler follows the table contract (see table.py):

    handler(ip, space, vm, *args) -> ip or None

The scheduler advances the returned IP by one delta after the handler
runs, so a handler only moves the IP for *extra* movement.

Groups:
  literals      0-9 a-f  '  "
  arithmetic    + - * / % ` !
  stack         $ : \\ n
  stack-stack   { } u
  direction     > < ^ v ? r [ ] w x _ |
  flow          # ; j k z @ q t
  space         g p s
  I/O           , . ~ &
  system        y
  unavailable   ( ) i o = h l m A-Z   (reflect)
"""

import logging
import os
import sys
from datetime import datetime

from .._version import __version__
from ..ip.stack import Stack
from ..mem.space import SPACE
from ..vector import EAST, WEST, NORTH, SOUTH, CARDINALS
from . import alu
from .table import InstructionTable, instruction

log = logging.getLogger(__name__)

# `y` constants
HANDPRINT = int.from_bytes(b'PYFV', 'big')
VERSION_NUMBER = int(''.join(part.zfill(2) for part in __version__.split('.')))
CELL_BYTES = 8
DIMENSIONS = 2
FLAG_CONCURRENT = 0x01      # `t` is implemented; i, o, = are not

SEMICOLON = ord(';')


# ══════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════

def _skip_markers(space, location, delta):
    """Find the next real instruction along delta, skipping spaces and ;...;.

    Returns (location, code), or None when only markers lie on the path.
    The walk is bounded by the space area, which covers any orbit on the
    torus.
    """
    limit = space.area + 1
    in_jump = False
    pos = location
    for _ in range(limit):
        pos = space.wrap(pos + delta)
        code = space.read(pos)
        if code == SEMICOLON:
            in_jump = not in_jump
        elif not in_jump and code != SPACE:
            return pos, code
    return None


# ══════════════════════════════════════════════
# Literals
# ══════════════════════════════════════════════

def push_literal(ip, space, vm, value):
    ip.stack.push(value)
    return ip


@instruction("'")
def fetch_char(ip, space, vm):
    ip.advance(space)
    ip.stack.push(space.read(ip.location))
    return ip


@instruction('"')
def string_mode(ip, space, vm):
    # Only the opening quote is dispatched here; the scheduler sees the
    # closing one while string_mode is set.
    ip.string_mode = True
    return ip


# ══════════════════════════════════════════════
# Arithmetic
# ══════════════════════════════════════════════

def binary_op(ip, space, vm, fn):
    a = ip.stack.pop()
    b = ip.stack.pop()
    ip.stack.push(fn(b, a))
    return ip


@instruction('!')
def logical_not(ip, space, vm):
    ip.stack.push(alu.logical_not(ip.stack.pop()))
    return ip


# ══════════════════════════════════════════════
# Stack manipulation
# ══════════════════════════════════════════════

@instruction('$')
def discard(ip, space, vm):
    ip.stack.pop()
    return ip


@instruction(':')
def duplicate(ip, space, vm):
    ip.stack.duplicate_top()
    return ip


@instruction('\\')
def swap(ip, space, vm):
    ip.stack.swap_top_two()
    return ip


@instruction('n')
def clear_stack(ip, space, vm):
    ip.stack.clear()
    return ip


# ── Stack-stack ──

@instruction('{')
def begin_block(ip, space, vm):
    n = ip.stack.pop()
    ip.stack_stack.begin_block(n, ip.storage_offset)
    ip.storage_offset = ip.location + ip.delta
    return ip


@instruction('}')
def end_block(ip, space, vm):
    n = ip.stack.pop()
    offset = ip.stack_stack.end_block(n)
    if offset is None:
        ip.reflect()
    else:
        ip.storage_offset = offset
    return ip


@instruction('u')
def stack_under_stack(ip, space, vm):
    count = ip.stack.pop()
    if not ip.stack_stack.transfer(count):
        ip.reflect()
    return ip


# ══════════════════════════════════════════════
# Direction
# ══════════════════════════════════════════════

@instruction('>', EAST, name='go_east')
@instruction('<', WEST, name='go_west')
@instruction('^', NORTH, name='go_north')
@instruction('v', SOUTH, name='go_south')
def go(ip, space, vm, delta):
    ip.delta = delta
    return ip


@instruction('?')
def go_away(ip, space, vm):
    ip.delta = vm.random.choice(CARDINALS)
    return ip


@instruction('r')
def reflect(ip, space, vm):
    ip.reflect()
    return ip


@instruction('[')
def turn_left(ip, space, vm):
    ip.turn_left()
    return ip


@instruction(']')
def turn_right(ip, space, vm):
    ip.turn_right()
    return ip


@instruction('w')
def compare(ip, space, vm):
    b = ip.stack.pop()
    a = ip.stack.pop()
    if a < b:
        ip.turn_left()
    elif a > b:
        ip.turn_right()
    return ip


@instruction('x')
def absolute_delta(ip, space, vm):
    ip.delta = ip.stack.pop_vector()
    return ip


@instruction('_', EAST, WEST, name='east_west_if')
@instruction('|', SOUTH, NORTH, name='north_south_if')
def branch(ip, space, vm, if_zero, if_nonzero):
    ip.delta = if_zero if ip.stack.pop() == 0 else if_nonzero
    return ip


# ══════════════════════════════════════════════
# Flow control
# ══════════════════════════════════════════════

@instruction('#')
def trampoline(ip, space, vm):
    ip.advance(space)
    return ip


@instruction(';')
def jump_over(ip, space, vm):
    start = ip.location
    for _ in range(space.area + 1):
        ip.advance(space)
        if space.read(ip.location) == SEMICOLON:
            return ip
    # No closing ';' anywhere on the path
    ip.location = start
    return ip


@instruction('j')
def jump_forward(ip, space, vm):
    n = ip.stack.pop()
    ip.location = space.wrap(ip.location + ip.delta.scale(n))
    return ip


@instruction('k')
def iterate(ip, space, vm):
    n = ip.stack.pop()
    found = _skip_markers(space, ip.location, ip.delta)
    if found is None:
        return ip
    target, code = found
    if n < 0:
        ip.reflect()
        return ip
    if n == 0:
        ip.location = target
        return ip
    start = ip.location
    for _ in range(n):
        ip = vm.dispatch(ip, code)
        if ip is None:
            return None
    if ip.location == start:
        ip.location = target
    return ip


@instruction(' ', name='space')
@instruction('z')
def no_op(ip, space, vm):
    return ip


@instruction('@')
def stop(ip, space, vm):
    return None


@instruction('q')
def quit_program(ip, space, vm):
    vm.quit(ip.stack.pop())


@instruction('t')
def split(ip, space, vm):
    child = ip.split(vm.next_ip_id())
    child.advance(space)
    vm.spawn(child)
    return ip


# ══════════════════════════════════════════════
# Funge-space access
# ══════════════════════════════════════════════

@instruction('g')
def get(ip, space, vm):
    coord = ip.stack.pop_vector() + ip.storage_offset
    ip.stack.push(space.read(coord))
    return ip


@instruction('p')
def put(ip, space, vm):
    coord = ip.stack.pop_vector() + ip.storage_offset
    value = ip.stack.pop()
    space.write(coord, value)
    return ip


@instruction('s')
def store_char(ip, space, vm):
    ip.advance(space)
    space.write(ip.location, ip.stack.pop())
    return ip


# ══════════════════════════════════════════════
# Input / output
# ══════════════════════════════════════════════

@instruction(',')
def output_char(ip, space, vm):
    vm.emit(ip.stack.pop())
    return ip


@instruction('.')
def output_int(ip, space, vm):
    vm.emit_text(f"{ip.stack.pop()} ")
    return ip


@instruction('~')
def input_char(ip, space, vm):
    value = vm.read_char()
    if value is None:
        ip.reflect()
    else:
        ip.stack.push(value)
    return ip


@instruction('&')
def input_int(ip, space, vm):
    value = vm.read_int()
    if value is None:
        ip.reflect()
    else:
        ip.stack.push(value)
    return ip


# ══════════════════════════════════════════════
# System information
# ══════════════════════════════════════════════

def _sysinfo_block(ip, space, vm) -> Stack:
    """Build the `y` block on a scratch stack; item 1 ends up on top."""
    config = vm.config
    now = datetime.now()
    least, greatest = space.bounds
    info = Stack()

    # 20: environment, "key=value" 0gnirts, extra null terminator
    info.push(0)
    for key, value in reversed(sorted((config.env or {}).items())):
        info.push_string(f"{key}={value}")
    # 19: command line arguments, double-null terminated
    info.push(0)
    if not config.argv:
        info.push(0)
    for arg in reversed(config.argv or []):
        info.push_string(arg)
    # 18: size of each stack, TOSS first
    for size in reversed(ip.stack_stack.sizes()):
        info.push(size)
    # 17: number of stacks
    info.push(ip.stack_stack.depth)
    # 16, 15: time and date
    info.push(now.hour * 256 * 256 + now.minute * 256 + now.second)
    info.push((now.year - 1900) * 256 * 256 + now.month * 256 + now.day)
    # 14, 13: greatest point (relative to least), least point
    info.push_vector(greatest - least)
    info.push_vector(least)
    # 12 - 10: storage offset, delta, position
    info.push_vector(ip.storage_offset)
    info.push_vector(ip.delta)
    info.push_vector(ip.location)
    # 9 - 1
    info.push(0)                      # team number
    info.push(ip.id)
    info.push(DIMENSIONS)
    info.push(ord(os.sep))
    info.push(0)                      # operating paradigm: unavailable
    info.push(VERSION_NUMBER)
    info.push(HANDPRINT)
    info.push(CELL_BYTES)
    info.push(FLAG_CONCURRENT)
    return info


@instruction('y')
def system_info(ip, space, vm):
    n = ip.stack.pop()
    block = list(_sysinfo_block(ip, space, vm))
    if n <= 0:
        ip.stack.extend(block)
        return ip
    if n <= len(block):
        value = block[-n]
    else:
        # Past the block: pick from the stack underneath it
        depth = n - len(block)
        value = ip.stack[-depth] if depth <= len(ip.stack) else 0
    ip.stack.push(value)
    return ip


# ══════════════════════════════════════════════
# Unavailable instructions
# ══════════════════════════════════════════════

@instruction('(', name='load_fingerprint')
@instruction(')', name='unload_fingerprint')
def fingerprint(ip, space, vm):
    count = ip.stack.pop()
    ip.stack.pop_many(min(count, len(ip.stack)))
    ip.reflect()
    return ip


@instruction('i', name='input_file')
@instruction('o', name='output_file')
@instruction('=', name='execute')
@instruction('h', name='go_high')
@instruction('l', name='go_low')
@instruction('m', name='high_low_if')
def unavailable(ip, space, vm):
    ip.reflect()
    return ip


# ══════════════════════════════════════════════
# Table construction
# ══════════════════════════════════════════════

HEX_DIGITS = '0123456789abcdef'


def build_standard_table(name: str = 'befunge98') -> InstructionTable:
    """Build a fresh, frozen Befunge-98 table.

    Each call returns a new table; extend() it to add or override
    instructions for a single run.
    """
    table = InstructionTable(name)
    table.register_module(sys.modules[__name__])
    for value, char in enumerate(HEX_DIGITS):
        table.register(char, push_literal, value, name=f'push_{value}')
    for char, fn in alu.BINARY_OPS.items():
        table.register(char, binary_op, fn, name=fn.__name__)
    for code in range(ord('A'), ord('Z') + 1):
        table.register(chr(code), unavailable, name=f'semantic_{chr(code)}')
    log.debug("Built instruction table %r with %d entries", name, len(table))
    return table.freeze()
