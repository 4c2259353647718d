"""
Memoized denormalization.

This package keeps denormalized results between calls and only rebuilds the
objects whose raw entity, or a relation of it, changed by reference.
"""
from .cache import CacheCell, MemoCache, VisitationSet
from .engine import MemoizedWalk, denormalize_memoized, denormalize_memoized_value, is_same

__all__ = [
    "CacheCell",
    "MemoCache",
    "VisitationSet",
    "MemoizedWalk",
    "denormalize_memoized",
    "denormalize_memoized_value",
    "is_same",
]
