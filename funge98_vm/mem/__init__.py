from .space import FungeSpace, SPACE

__all__ = ['FungeSpace', 'SPACE']
