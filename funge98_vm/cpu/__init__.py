from .table import Instruction, InstructionTable, TableFrozenError, instruction
from .standard import build_standard_table

__all__ = ['Instruction', 'InstructionTable', 'TableFrozenError',
           'instruction', 'build_standard_table']
