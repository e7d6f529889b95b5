"""
funge98_vm - Funge-98 (Befunge-98) virtual machine
===================================================
Execution core for two-dimensional Funge programs: a sparse toroidal
program space, concurrently scheduled instruction pointers with private
stack-stacks, and an injectable character -> behaviour instruction table.

Architecture:
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌───────────┐
    │  Source  │───>│   Loader    │───>│ FungeSpace   │<──>│ Scheduler │
    │  (.b98)  │    │ (loader.py) │    │ (mem/)       │    │ (emu.py)  │
    └──────────┘    └─────────────┘    └──────────────┘    └─────┬─────┘
                                                                 │ per IP, per tick
                                           ┌─────────────────────┴──┐
                                           │ InstructionTable (cpu/)│──> Console (periph/)
                                           └────────────────────────┘

    - vector.py:        2-D integer vectors, cardinal deltas
    - mem/space.py:     dict-backed cells + bounding rectangle + wrap
    - ip/stack.py:      Stack / StackStack with zero-on-underflow
    - ip/pointer.py:    InstructionPointer state
    - cpu/table.py:     Instruction registry (frozen after build)
    - cpu/standard.py:  Befunge-98 standard instruction handlers
    - emu.py:           round-robin scheduler, stop reasons, trace
"""

from ._version import __version__
from .config import VMConfig, ConfigError, PROFILES, from_profile, load_config
from .cpu.standard import build_standard_table
from .cpu.table import Instruction, InstructionTable, TableFrozenError, instruction
from .emu import FungeEmulator, StopReason
from .ip import InstructionPointer, Stack, StackStack
from .loader import LoaderError, load_file, load_source
from .mem import FungeSpace
from .periph import Console
from .vector import Vector


def run_source(source: str, *, input_text: str = '',
               config: VMConfig = None, max_ticks: int = None) -> FungeEmulator:
    """Load and run a program, returning the finished emulator.

    Inspect .output, .exit_code and .space on the result. The stop
    reason is in .stop_reason.
    """
    vm = FungeEmulator(config=config)
    vm.load_source(source)
    if input_text:
        vm.console.inject_input(input_text)
    vm.run(max_ticks=max_ticks)
    return vm
