from .stack import Stack, StackStack
from .pointer import InstructionPointer

__all__ = ['Stack', 'StackStack', 'InstructionPointer']
