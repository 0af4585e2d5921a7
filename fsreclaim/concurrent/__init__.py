"""Concurrency primitives"""

from .atomic import AtomicFlag

__all__ = ['AtomicFlag']
