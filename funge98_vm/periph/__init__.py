from .console import Console

__all__ = ['Console']
