"""
Value-dependent resolution: union variant selection and field visibility.
"""

from .unions import UnionSelection, resolve_union, resolve_unions, select_variant
from .visibility import VisibilityMap, own_visibility, resolve_visibility

__all__ = [
    "UnionSelection",
    "VisibilityMap",
    "own_visibility",
    "resolve_union",
    "resolve_unions",
    "resolve_visibility",
    "select_variant",
]
