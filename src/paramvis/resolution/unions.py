"""Active-variant selection for discriminated unions.

A union's discriminator value is read at ``<union value path>.<discriminator>``.
The variant whose pinned constant equals that value exactly (same type, no
coercion) is selected; otherwise the union has no selection.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from ..query.evaluator import values_equal
from ..schema.model import DiscriminatedUnionParameter, ParameterNode, walk
from ..utils.value_tree import MISSING, DotPath, ValueTree


@dataclass(frozen=True)
class UnionSelection(Mapping[str, Optional[int]]):
    """Union schema path -> selected variant index, or None when nothing matches."""

    entries: Mapping[str, Optional[int]] = field(default_factory=dict)

    def selected(self, path: str) -> Optional[int]:
        return self.entries.get(path)

    def is_selected(self, path: str, index: int) -> bool:
        return self.entries.get(path) == index

    def unselected(self) -> list[str]:
        return [path for path, index in self.entries.items() if index is None]

    def __getitem__(self, path: str) -> Optional[int]:
        return self.entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Optional[int]]:
        return dict(self.entries)


def _is_exact_match(pinned: Any, value: Any) -> bool:
    return pinned is not MISSING and type(pinned) is type(value) and values_equal(pinned, value)


def select_variant(
    node: DiscriminatedUnionParameter, values: ValueTree, value_path: str = ""
) -> Optional[int]:
    """Index of the variant selected by the current discriminator value."""
    current = values.resolve(DotPath.join(value_path, node.discriminator))
    if current is MISSING:
        return None
    for index, pinned in enumerate(node.pinned_constants()):
        if _is_exact_match(pinned, current):
            return index
    return None


def resolve_union(
    node: DiscriminatedUnionParameter,
    values: ValueTree | Mapping[str, Any] | None,
    path: str = "",
) -> UnionSelection:
    """Resolve one union located at ``path`` (its value path, which is also
    its schema path unless the union sits inside another union's variant)."""
    tree = ValueTree.coerce(values)
    return UnionSelection({path: select_variant(node, tree, path)})


def resolve_unions(root: ParameterNode, values: ValueTree | Mapping[str, Any] | None) -> UnionSelection:
    """Resolve every union of the tree, including unions nested in inactive variants.

    Unions inside an array item template have no single value path and are
    left out of the selection. Resolve each array element separately with the
    item template as ``root`` and the element as ``values``.
    """
    tree = ValueTree.coerce(values)
    entries: dict[str, Optional[int]] = {}
    for ref in walk(root):
        if isinstance(ref.node, DiscriminatedUnionParameter) and not ref.in_array_item:
            entries[ref.schema_path] = select_variant(ref.node, tree, ref.value_path)
    return UnionSelection(entries)
