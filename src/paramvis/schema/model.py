"""Typed parameter definitions (frozen dataclasses, one class per kind).

A schema is a tree of ``ParameterNode`` subclasses. Nodes are immutable once
built; paths are not stored on nodes but computed by ``walk``, which yields
``NodeRef`` records carrying the node, its two paths and a back reference to
the parent record.

Paths:
- value path: where the node's value lives in the value tree. The root has
  "", children of the root use their name, nested names are joined with ".".
  Union variants share the value path of their union; array item templates
  get "<array>[]" and are never resolvable.
- schema path: unique address inside the schema. Same as the value path
  except that a union variant adds a "#<index>" segment.

Serialization back to the wire form is handled via to_dict().
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple

from ..query.ast import QueryDocument
from ..query.parser import parse_query
from ..utils.value_tree import MISSING, DotPath


class ParameterKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    DISCRIMINATED_UNION = "discriminated_union"
    CREDENTIAL_REFERENCE = "credential_reference"
    ENCRYPTED_STRING = "encrypted_string"


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class Constraints:
    enum: Optional[Tuple[Any, ...]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def __post_init__(self) -> None:
        if self.enum is not None and not isinstance(self.enum, tuple):
            object.__setattr__(self, "enum", tuple(self.enum))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.enum is not None:
            data["enum"] = list(self.enum)
        for key in ("minimum", "maximum", "min_length", "max_length"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class Display:
    """``show``/``hide`` conditions of a node; ``hide`` is applied after ``show``."""

    show: Optional[QueryDocument] = None
    hide: Optional[QueryDocument] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], *, max_depth: Optional[int] = None) -> "Display":
        """Parse wire-form conditions. Raises QuerySyntaxError."""
        kwargs = {} if max_depth is None else {"max_depth": max_depth}
        show = raw.get("show")
        hide = raw.get("hide")
        return cls(
            show=parse_query(show, **kwargs) if show is not None else None,
            hide=parse_query(hide, **kwargs) if hide is not None else None,
        )

    def clauses(self) -> Iterator[Tuple[str, Any]]:
        if self.show is not None:
            yield "show", self.show
        if self.hide is not None:
            yield "hide", self.hide

    def to_dict(self) -> Dict[str, Any]:
        return {name: expr.to_raw() for name, expr in self.clauses()}


@dataclass(frozen=True)
class ParameterNode:
    """Base of every parameter definition; instantiate a kind subclass instead."""

    name: str
    required: bool = False
    default: Any = MISSING
    constraints: Constraints = field(default_factory=Constraints)
    display: Optional[Display] = None
    label: Optional[str] = None
    description: Optional[str] = None
    placeholder: Optional[str] = None

    kind: ClassVar[ParameterKind]

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "type": self.kind.value}
        for key in ("label", "description", "placeholder"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.required:
            data["required"] = True
        if self.has_default:
            data["default"] = _serialize(self.default)
        data.update(self.constraints.to_dict())
        if self.display is not None and (self.display.show is not None or self.display.hide is not None):
            data["display"] = self.display.to_dict()
        return data


@dataclass(frozen=True)
class StringParameter(ParameterNode):
    const: Any = MISSING
    kind: ClassVar[ParameterKind] = ParameterKind.STRING

    def pinned_value(self) -> Any:
        """Single constant this field is pinned to, or MISSING."""
        if self.const is not MISSING:
            return self.const
        enum = self.constraints.enum
        if enum is not None and len(enum) == 1:
            return enum[0]
        return MISSING

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.const is not MISSING:
            data["const"] = self.const
        return data


@dataclass(frozen=True)
class NumberParameter(ParameterNode):
    kind: ClassVar[ParameterKind] = ParameterKind.NUMBER


@dataclass(frozen=True)
class IntegerParameter(NumberParameter):
    kind: ClassVar[ParameterKind] = ParameterKind.INTEGER


@dataclass(frozen=True)
class BooleanParameter(ParameterNode):
    kind: ClassVar[ParameterKind] = ParameterKind.BOOLEAN


@dataclass(frozen=True)
class EncryptedStringParameter(ParameterNode):
    """Secret text; the host stores it encrypted and never echoes it back."""

    kind: ClassVar[ParameterKind] = ParameterKind.ENCRYPTED_STRING


@dataclass(frozen=True)
class CredentialReferenceParameter(ParameterNode):
    """Reference to a stored credential; the value is the credential id."""

    credential_type: Optional[str] = None
    kind: ClassVar[ParameterKind] = ParameterKind.CREDENTIAL_REFERENCE

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.credential_type is not None:
            data["credential_type"] = self.credential_type
        return data


@dataclass(frozen=True)
class ObjectParameter(ParameterNode):
    children: Tuple[ParameterNode, ...] = ()
    kind: ClassVar[ParameterKind] = ParameterKind.OBJECT

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.children:
            data["children"] = [_serialize(c) for c in self.children]
        return data


@dataclass(frozen=True)
class ArrayParameter(ParameterNode):
    items: Optional[ParameterNode] = None
    kind: ClassVar[ParameterKind] = ParameterKind.ARRAY

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.items is not None:
            data["items"] = _serialize(self.items)
        return data


@dataclass(frozen=True)
class UnionVariant:
    children: Tuple[ParameterNode, ...] = ()
    label: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))

    def child(self, name: str) -> Optional[ParameterNode]:
        for node in self.children:
            if node.name == name:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"children": [_serialize(c) for c in self.children]}
        if self.label is not None:
            data["label"] = self.label
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class DiscriminatedUnionParameter(ParameterNode):
    discriminator: str = ""
    variants: Tuple[UnionVariant, ...] = ()
    kind: ClassVar[ParameterKind] = ParameterKind.DISCRIMINATED_UNION

    def __post_init__(self) -> None:
        object.__setattr__(self, "variants", tuple(self.variants))

    def pinned_constants(self) -> Tuple[Any, ...]:
        """Pinned discriminator constant per variant (MISSING where absent)."""
        constants = []
        for variant in self.variants:
            field_node = variant.child(self.discriminator)
            if isinstance(field_node, StringParameter):
                constants.append(field_node.pinned_value())
            else:
                constants.append(MISSING)
        return tuple(constants)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["discriminator"] = self.discriminator
        data["variants"] = [_serialize(v) for v in self.variants]
        return data


KIND_CLASSES: Dict[ParameterKind, type] = {
    ParameterKind.STRING: StringParameter,
    ParameterKind.NUMBER: NumberParameter,
    ParameterKind.INTEGER: IntegerParameter,
    ParameterKind.BOOLEAN: BooleanParameter,
    ParameterKind.OBJECT: ObjectParameter,
    ParameterKind.ARRAY: ArrayParameter,
    ParameterKind.DISCRIMINATED_UNION: DiscriminatedUnionParameter,
    ParameterKind.CREDENTIAL_REFERENCE: CredentialReferenceParameter,
    ParameterKind.ENCRYPTED_STRING: EncryptedStringParameter,
}


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def variant_path(union_schema_path: str, index: int) -> str:
    return f"{union_schema_path}#{index}"


def item_path(array_path: str) -> str:
    return f"{array_path}[]"


@dataclass(frozen=True)
class NodeRef:
    """A node together with its position in one schema tree."""

    node: ParameterNode
    schema_path: str
    value_path: str
    parent: Optional["NodeRef"] = field(default=None, repr=False, compare=False)
    variant_index: Optional[int] = None
    depth: int = 0
    in_array_item: bool = False

    @property
    def kind(self) -> ParameterKind:
        return self.node.kind


def root_ref(root: ParameterNode) -> NodeRef:
    return NodeRef(node=root, schema_path="", value_path="")


def variant_child_refs(ref: NodeRef, index: int) -> Iterator[NodeRef]:
    """Children of one variant of the union at ``ref``."""
    union = ref.node
    if not isinstance(union, DiscriminatedUnionParameter):
        raise TypeError(f"node at {ref.schema_path!r} is not a discriminated union")
    base = variant_path(ref.schema_path, index)
    for child in union.variants[index].children:
        yield NodeRef(
            node=child,
            schema_path=DotPath.join(base, child.name),
            value_path=DotPath.join(ref.value_path, child.name),
            parent=ref,
            variant_index=index,
            depth=ref.depth + 1,
            in_array_item=ref.in_array_item,
        )


def child_refs(ref: NodeRef) -> Iterator[NodeRef]:
    """Direct children of ``ref`` in document order (all union variants included)."""
    node = ref.node
    if isinstance(node, ObjectParameter):
        for child in node.children:
            yield NodeRef(
                node=child,
                schema_path=DotPath.join(ref.schema_path, child.name),
                value_path=DotPath.join(ref.value_path, child.name),
                parent=ref,
                depth=ref.depth + 1,
                in_array_item=ref.in_array_item,
            )
    elif isinstance(node, ArrayParameter):
        if node.items is not None:
            yield NodeRef(
                node=node.items,
                schema_path=item_path(ref.schema_path),
                value_path=item_path(ref.value_path),
                parent=ref,
                depth=ref.depth + 1,
                in_array_item=True,
            )
    elif isinstance(node, DiscriminatedUnionParameter):
        for index in range(len(node.variants)):
            yield from variant_child_refs(ref, index)


def walk(root: ParameterNode) -> Iterator[NodeRef]:
    """Depth-first pre-order enumeration of the tree in document order."""
    stack = [root_ref(root)]
    while stack:
        ref = stack.pop()
        yield ref
        stack.extend(reversed(list(child_refs(ref))))
