"""
Utility helpers for paramvis.
"""

from .value_tree import MISSING, DotPath, ValueTree

__all__ = [
    "MISSING",
    "DotPath",
    "ValueTree",
]
