"""Utility functions and helpers."""

from .ordered_set import OrderedSet

__all__ = [
    "OrderedSet",
]
