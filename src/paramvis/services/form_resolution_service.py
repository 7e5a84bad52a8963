"""Host-facing facade over the union and visibility resolvers.

A host compiles a schema once, wraps it in ``FormResolutionService`` and calls
``resolve`` on every value change (to decide what to draw) and
``effective_values`` on submission (so values of hidden fields and inactive
union variants never reach execution).
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from ..core.exceptions import SchemaNotUsableError
from ..resolution.unions import UnionSelection, resolve_unions
from ..resolution.visibility import VisibilityMap, resolve_visibility
from ..schema.compiler import CompiledSchema, compile_schema
from ..schema.model import (
    DiscriminatedUnionParameter,
    EncryptedStringParameter,
    NodeRef,
    ObjectParameter,
    ParameterNode,
    child_refs,
    root_ref,
    variant_child_refs,
    walk,
)
from ..schema.validator import validate
from ..utils.value_tree import MISSING, DotPath, ValueTree

logger = structlog.get_logger(__name__)

REDACTED = "********"


@dataclass(frozen=True)
class FormResolution:
    """Everything a host needs for one value tree."""

    visibility: VisibilityMap
    selection: UnionSelection
    values: dict[str, Any]

    @property
    def incomplete_unions(self) -> frozenset[str]:
        return self.visibility.incomplete_unions


class FormResolutionService:
    """Resolves visibility, union selection and effective values for one schema.

    The service holds only the immutable schema tree, so one instance can be
    shared by concurrent requests.
    """

    def __init__(self, schema: CompiledSchema | ParameterNode) -> None:
        if isinstance(schema, CompiledSchema):
            if schema.root is None or not schema.result.ok:
                raise SchemaNotUsableError(len(schema.result.errors), details=schema.result.to_dict())
            root = schema.root
        else:
            result = validate(schema)
            if not result.ok:
                raise SchemaNotUsableError(len(result.errors), details=result.to_dict())
            root = schema
        self.root: ParameterNode = root
        self._refs: tuple[NodeRef, ...] = tuple(walk(root))

    @classmethod
    def from_raw(cls, raw: Any) -> "FormResolutionService":
        """Compile ``raw`` and build a service, raising if the schema is invalid."""
        return cls(compile_schema(raw))

    # -- resolution ---------------------------------------------------------

    def select_variants(self, values: ValueTree | Mapping[str, Any] | None) -> UnionSelection:
        return resolve_unions(self.root, values)

    def visibility(self, values: ValueTree | Mapping[str, Any] | None) -> VisibilityMap:
        return resolve_visibility(self.root, values)

    def resolve(self, values: ValueTree | Mapping[str, Any] | None) -> FormResolution:
        tree = ValueTree.coerce(values)
        selection = resolve_unions(self.root, tree)
        visibility = resolve_visibility(self.root, tree, selection)
        effective = self._prune_root(tree, visibility, selection)
        logger.debug(
            "form_resolved",
            root=self.root.name,
            visible=len(visibility.visible_paths()),
            hidden=len(visibility.hidden_paths()),
            incomplete_unions=sorted(visibility.incomplete_unions),
        )
        return FormResolution(visibility=visibility, selection=selection, values=effective)

    def effective_values(self, values: ValueTree | Mapping[str, Any] | None) -> dict[str, Any]:
        """Values of visible fields only, shaped like the input.

        Dropped: values of hidden fields, of non-selected union variants, and
        keys the schema does not declare. Objects without declared children
        and arrays are kept whole.
        """
        return self.resolve(values).values

    def visible_fields(self, values: ValueTree | Mapping[str, Any] | None) -> list[NodeRef]:
        """Visible nodes (root excluded) in document order."""
        visibility = self.visibility(values)
        return [ref for ref in self._refs if ref.parent is not None and visibility.is_visible(ref.schema_path)]

    def redact(self, values: ValueTree | Mapping[str, Any] | None) -> dict[str, Any]:
        """Copy of ``values`` with every encrypted_string value masked."""
        data = ValueTree.coerce(values).as_dict()
        for ref in self._refs:
            if isinstance(ref.node, EncryptedStringParameter) and not ref.in_array_item:
                _mask(data, ref.value_path)
        return data

    # -- pruning ------------------------------------------------------------

    def _prune_root(self, tree: ValueTree, visibility: VisibilityMap, selection: UnionSelection) -> dict[str, Any]:
        pruned = _prune(root_ref(self.root), tree.as_dict(), visibility, selection)
        return pruned if isinstance(pruned, dict) else {}


def _prune(ref: NodeRef, source: Any, visibility: VisibilityMap, selection: UnionSelection) -> Any:
    node = ref.node
    if isinstance(node, DiscriminatedUnionParameter):
        if not isinstance(source, Mapping):
            return MISSING
        index = selection.selected(ref.schema_path)
        if index is None:
            return {}
        return _prune_children(variant_child_refs(ref, index), source, visibility, selection)
    if isinstance(node, ObjectParameter) and node.children:
        if not isinstance(source, Mapping):
            return MISSING
        return _prune_children(child_refs(ref), source, visibility, selection)
    return copy.deepcopy(source)


def _prune_children(
    refs: Iterable[NodeRef], source: Mapping[str, Any], visibility: VisibilityMap, selection: UnionSelection
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for child in refs:
        name = child.node.name
        if name not in source or not visibility.is_visible(child.schema_path):
            continue
        value = _prune(child, source[name], visibility, selection)
        if value is not MISSING:
            out[name] = value
    return out


def _mask(data: dict[str, Any], path: str) -> None:
    tokens = DotPath.tokenize(path)
    if not tokens:
        return
    cur: Any = data
    for token in tokens[:-1]:
        if not isinstance(cur, dict) or token not in cur:
            return
        cur = cur[token]
    if isinstance(cur, dict) and tokens[-1] in cur and cur[tokens[-1]] is not None:
        cur[tokens[-1]] = REDACTED
