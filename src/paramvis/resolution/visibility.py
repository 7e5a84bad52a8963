"""Field visibility from ``show``/``hide`` conditions.

Rules, applied depth-first in document order:

1. a node is visible by default;
2. ``show`` (when present) sets visibility to its result;
3. ``hide`` (when present) is evaluated after ``show`` and can only turn
   visibility off;
4. a node under a hidden ancestor is hidden, and its own conditions are not
   evaluated;
5. of a union's variants only the selected one inherits the union's
   visibility; the others, and everything below them, are hidden without
   evaluating their conditions.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from ..query.evaluator import evaluate
from ..schema.model import (
    DiscriminatedUnionParameter,
    Display,
    NodeRef,
    ParameterNode,
    child_refs,
    root_ref,
    variant_child_refs,
    variant_path,
)
from ..utils.value_tree import ValueTree
from .unions import UnionSelection, resolve_unions


@dataclass(frozen=True)
class VisibilityMap(Mapping[str, bool]):
    """Schema path -> visible, for every node and every union variant.

    ``incomplete_unions`` lists visible unions whose discriminator matches no
    variant. ``value_paths`` maps node schema paths to value paths so hosts
    can tell which values belong to visible fields.
    """

    entries: Mapping[str, bool] = field(default_factory=dict)
    incomplete_unions: frozenset[str] = frozenset()
    value_paths: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)

    def is_visible(self, path: str) -> bool:
        return self.entries.get(path, False)

    def visible_paths(self) -> list[str]:
        return [path for path, visible in self.entries.items() if visible]

    def hidden_paths(self) -> list[str]:
        return [path for path, visible in self.entries.items() if not visible]

    def visible_value_paths(self) -> frozenset[str]:
        return frozenset(
            value_path for path, value_path in self.value_paths.items() if self.entries.get(path, False)
        )

    def __getitem__(self, path: str) -> bool:
        return self.entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, bool]:
        return dict(self.entries)


def own_visibility(display: Optional[Display], values: ValueTree) -> bool:
    """Visibility of a node from its own conditions, ignoring ancestors."""
    if display is None:
        return True
    visible = True
    if display.show is not None:
        visible = evaluate(display.show, values)
    if display.hide is not None and visible and evaluate(display.hide, values):
        visible = False
    return visible


class _VisibilityWalker:
    def __init__(self, values: ValueTree, selection: UnionSelection) -> None:
        self.values = values
        self.selection = selection
        self.entries: dict[str, bool] = {}
        self.value_paths: dict[str, str] = {}
        self.incomplete: set[str] = set()

    def visit(self, ref: NodeRef, parent_visible: bool) -> None:
        visible = parent_visible and own_visibility(ref.node.display, self.values)
        self.entries[ref.schema_path] = visible
        self.value_paths[ref.schema_path] = ref.value_path

        node = ref.node
        if isinstance(node, DiscriminatedUnionParameter):
            selected = self.selection.selected(ref.schema_path)
            if visible and selected is None:
                self.incomplete.add(ref.schema_path)
            for index in range(len(node.variants)):
                variant_visible = visible and index == selected
                self.entries[variant_path(ref.schema_path, index)] = variant_visible
                for child in variant_child_refs(ref, index):
                    self.visit(child, variant_visible)
            return

        for child in child_refs(ref):
            self.visit(child, visible)


def resolve_visibility(
    root: ParameterNode,
    values: ValueTree | Mapping[str, Any] | None,
    selection: UnionSelection | None = None,
) -> VisibilityMap:
    """Compute the visibility of every node of ``root`` for ``values``.

    Args:
        root: Validated schema tree.
        values: Current parameter values.
        selection: Union selection for the same values; computed when omitted.

    Returns:
        VisibilityMap keyed by schema path.

    """
    tree = ValueTree.coerce(values)
    if selection is None:
        selection = resolve_unions(root, tree)
    walker = _VisibilityWalker(tree, selection)
    walker.visit(root_ref(root), True)
    return VisibilityMap(
        entries=walker.entries,
        incomplete_unions=frozenset(walker.incomplete),
        value_paths=walker.value_paths,
    )
