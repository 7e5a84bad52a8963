"""Static validation of a parameter schema tree.

Runs once at schema-load time and never looks at parameter values. Every
defect is collected; nothing short-circuits, so an author sees the complete
list in one pass.

Condition paths are absolute value paths from the schema root. A path is
valid when it is the value path of some node, in any union variant. Array
item templates (and anything below them) cannot be referenced because array
values are opaque to path resolution.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from ..core.config import get_settings_instance
from ..query.ast import QueryDocument
from ..query.evaluator import values_equal
from ..utils.value_tree import MISSING
from .issues import SchemaErrorKind, SchemaIssue, ValidationResult
from .model import (
    ArrayParameter,
    BooleanParameter,
    CredentialReferenceParameter,
    DiscriminatedUnionParameter,
    EncryptedStringParameter,
    IntegerParameter,
    NodeRef,
    NumberParameter,
    ObjectParameter,
    ParameterNode,
    StringParameter,
    variant_path,
    walk,
)

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

_RANGE_KINDS = (NumberParameter,)  # IntegerParameter subclasses NumberParameter
_LENGTH_KINDS = (StringParameter, EncryptedStringParameter, ArrayParameter)
_ENUM_KINDS = (StringParameter, NumberParameter)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _matches_kind(node: ParameterNode, value: Any) -> bool:
    """Whether ``value`` has the JSON type the node's kind expects."""
    if isinstance(node, IntegerParameter):
        return _is_integer(value)
    if isinstance(node, NumberParameter):
        return _is_number(value)
    if isinstance(node, BooleanParameter):
        return isinstance(value, bool)
    if isinstance(node, (StringParameter, EncryptedStringParameter, CredentialReferenceParameter)):
        return isinstance(value, str)
    if isinstance(node, ArrayParameter):
        return isinstance(value, (list, tuple))
    if isinstance(node, (ObjectParameter, DiscriminatedUnionParameter)):
        return isinstance(value, dict)
    return False


class _SchemaValidator:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.errors: list[SchemaIssue] = []

    def add(self, kind: SchemaErrorKind, path: str, message: str, **details: Any) -> None:
        self.errors.append(SchemaIssue(kind=kind, path=path, message=message, details=details))

    def run(self, root: ParameterNode) -> ValidationResult:
        refs = list(walk(root))
        referenceable = {
            ref.value_path for ref in refs if ref.value_path and not ref.in_array_item
        }
        for ref in refs:
            if ref.depth == self.max_depth + 1:
                self.add(
                    SchemaErrorKind.DEPTH_EXCEEDED,
                    ref.schema_path,
                    f"parameter nests deeper than {self.max_depth} levels",
                    depth=ref.depth,
                )
            self.check_identifier(ref)
            self.check_constraints(ref)
            self.check_default(ref)
            self.check_display(ref, referenceable)
            self.check_container(ref)
        return ValidationResult(tuple(self.errors))

    # -- names -------------------------------------------------------------

    def check_identifier(self, ref: NodeRef) -> None:
        name = ref.node.name
        if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
            self.add(
                SchemaErrorKind.INVALID_IDENTIFIER,
                ref.schema_path,
                f"name {name!r} must match [A-Za-z0-9_]+",
                name=name,
            )

    def check_unique_names(self, children: Iterable[ParameterNode], container_path: str) -> None:
        seen: set[str] = set()
        reported: set[str] = set()
        for child in children:
            if child.name in seen and child.name not in reported:
                reported.add(child.name)
                self.add(
                    SchemaErrorKind.DUPLICATE_NAME,
                    container_path,
                    f"name '{child.name}' is used by more than one sibling",
                    name=child.name,
                )
            seen.add(child.name)

    # -- constraints -------------------------------------------------------

    def check_constraints(self, ref: NodeRef) -> None:
        node, path = ref.node, ref.schema_path
        c = node.constraints

        if c.minimum is not None or c.maximum is not None:
            if not isinstance(node, _RANGE_KINDS):
                self.add(
                    SchemaErrorKind.INVALID_CONSTRAINT,
                    path,
                    f"minimum/maximum do not apply to kind '{node.kind.value}'",
                )
            elif c.minimum is not None and c.maximum is not None and c.minimum > c.maximum:
                self.add(
                    SchemaErrorKind.RANGE_INVERSION,
                    path,
                    f"minimum {c.minimum} is greater than maximum {c.maximum}",
                    minimum=c.minimum,
                    maximum=c.maximum,
                )

        if c.min_length is not None or c.max_length is not None:
            if not isinstance(node, _LENGTH_KINDS):
                self.add(
                    SchemaErrorKind.INVALID_CONSTRAINT,
                    path,
                    f"min_length/max_length do not apply to kind '{node.kind.value}'",
                )
            else:
                for key in ("min_length", "max_length"):
                    value = getattr(c, key)
                    if value is not None and (not _is_integer(value) or value < 0):
                        self.add(
                            SchemaErrorKind.INVALID_CONSTRAINT,
                            path,
                            f"{key} must be a non-negative integer",
                            **{key: value},
                        )
                if (
                    _is_integer(c.min_length)
                    and _is_integer(c.max_length)
                    and c.min_length > c.max_length
                ):
                    self.add(
                        SchemaErrorKind.RANGE_INVERSION,
                        path,
                        f"min_length {c.min_length} is greater than max_length {c.max_length}",
                        min_length=c.min_length,
                        max_length=c.max_length,
                    )

        if c.enum is not None:
            if not isinstance(node, _ENUM_KINDS):
                self.add(
                    SchemaErrorKind.INVALID_CONSTRAINT,
                    path,
                    f"enum does not apply to kind '{node.kind.value}'",
                )
            elif not c.enum:
                self.add(SchemaErrorKind.INVALID_CONSTRAINT, path, "enum must list at least one value")
            else:
                bad = [v for v in c.enum if not _matches_kind(node, v)]
                if bad:
                    self.add(
                        SchemaErrorKind.INVALID_CONSTRAINT,
                        path,
                        f"enum values {bad!r} do not match kind '{node.kind.value}'",
                        invalid=bad,
                    )

        if isinstance(node, StringParameter) and node.const is not MISSING:
            if not isinstance(node.const, str):
                self.add(SchemaErrorKind.INVALID_CONSTRAINT, path, "const must be a string")
            elif c.enum and not any(values_equal(node.const, v) for v in c.enum):
                self.add(SchemaErrorKind.INVALID_CONSTRAINT, path, "const is not one of the enum values")

    def check_default(self, ref: NodeRef) -> None:
        node, path = ref.node, ref.schema_path
        if not node.has_default:
            return
        default = node.default
        if not _matches_kind(node, default):
            self.add(
                SchemaErrorKind.INVALID_DEFAULT,
                path,
                f"default {default!r} does not match kind '{node.kind.value}'",
            )
            return

        c = node.constraints
        problems = []
        if c.enum and not any(values_equal(default, v) for v in c.enum):
            problems.append("is not one of the enum values")
        if _is_number(default):
            if _is_number(c.minimum) and default < c.minimum:
                problems.append(f"is below minimum {c.minimum}")
            if _is_number(c.maximum) and default > c.maximum:
                problems.append(f"is above maximum {c.maximum}")
        if isinstance(default, (str, list, tuple)) and isinstance(node, _LENGTH_KINDS):
            if _is_integer(c.min_length) and len(default) < c.min_length:
                problems.append(f"is shorter than min_length {c.min_length}")
            if _is_integer(c.max_length) and len(default) > c.max_length:
                problems.append(f"is longer than max_length {c.max_length}")
        if isinstance(node, StringParameter) and node.const is not MISSING and default != node.const:
            problems.append("differs from const")
        for problem in problems:
            self.add(SchemaErrorKind.INVALID_DEFAULT, path, f"default {default!r} {problem}")

    # -- conditions --------------------------------------------------------

    def check_display(self, ref: NodeRef, referenceable: set[str]) -> None:
        display = ref.node.display
        if display is None:
            return
        for clause, expr in (("show", display.show), ("hide", display.hide)):
            if expr is None:
                continue
            if not isinstance(expr, QueryDocument):
                self.add(
                    SchemaErrorKind.MALFORMED_CONDITION,
                    ref.schema_path,
                    f"{clause} is not a parsed query expression",
                    clause=clause,
                )
                continue
            dangling: list[str] = []
            for field_path in expr.field_paths():
                if field_path not in referenceable and field_path not in dangling:
                    dangling.append(field_path)
            for field_path in dangling:
                self.add(
                    SchemaErrorKind.DANGLING_CONDITION_PATH,
                    ref.schema_path,
                    f"{clause} references '{field_path}', which is not a parameter of this schema",
                    clause=clause,
                    reference=field_path,
                )

    # -- containers --------------------------------------------------------

    def check_container(self, ref: NodeRef) -> None:
        node = ref.node
        if isinstance(node, ObjectParameter):
            self.check_unique_names(node.children, ref.schema_path)
        elif isinstance(node, DiscriminatedUnionParameter):
            self.check_union(ref, node)

    def check_union(self, ref: NodeRef, union: DiscriminatedUnionParameter) -> None:
        path = ref.schema_path
        if not isinstance(union.discriminator, str) or not IDENTIFIER_PATTERN.match(union.discriminator):
            self.add(
                SchemaErrorKind.INVALID_IDENTIFIER,
                path,
                f"discriminator {union.discriminator!r} must match [A-Za-z0-9_]+",
                discriminator=union.discriminator,
            )
        if not union.variants:
            self.add(SchemaErrorKind.EMPTY_UNION, path, "discriminated union declares no variants")
            return

        owners: list[tuple[Any, int]] = []
        for index, variant in enumerate(union.variants):
            vpath = variant_path(path, index)
            self.check_unique_names(variant.children, vpath)

            field_node = variant.child(union.discriminator)
            pinned = field_node.pinned_value() if isinstance(field_node, StringParameter) else MISSING
            if field_node is None:
                self.add(
                    SchemaErrorKind.MISSING_DISCRIMINATOR_CONSTANT,
                    vpath,
                    f"variant has no '{union.discriminator}' field",
                    variant=index,
                )
                continue
            if pinned is MISSING or not isinstance(pinned, str):
                self.add(
                    SchemaErrorKind.MISSING_DISCRIMINATOR_CONSTANT,
                    vpath,
                    f"'{union.discriminator}' must be a string field pinned to a single constant",
                    variant=index,
                )
                continue

            duplicate_of = next((i for value, i in owners if values_equal(value, pinned)), None)
            if duplicate_of is not None:
                self.add(
                    SchemaErrorKind.DUPLICATE_DISCRIMINATOR_CONSTANT,
                    vpath,
                    f"constant {pinned!r} is already used by variant {duplicate_of}",
                    variant=index,
                    constant=pinned,
                    other_variant=duplicate_of,
                )
            else:
                owners.append((pinned, index))


def validate(root: ParameterNode, *, max_depth: int | None = None) -> ValidationResult:
    """Statically check a schema tree and collect every defect.

    Args:
        root: Root of the schema tree.
        max_depth: Nesting limit; defaults to ``PARAMVIS_MAX_SCHEMA_DEPTH``.

    Returns:
        ValidationResult with all defects in document order.

    """
    if max_depth is None:
        max_depth = get_settings_instance().max_schema_depth
    result = _SchemaValidator(max_depth).run(root)
    logger.debug(
        "Schema validation finished",
        extra={"error_count": len(result.errors), "root": root.name},
    )
    return result
