"""Pipeline execution modules for Campus Match."""

from .batch import BatchMatcher, BatchResult

__all__ = ['BatchMatcher', 'BatchResult']
