"""Load the wire form of a parameter tree into the schema model.

Three passes, each collecting every problem:

1. The raw tree is walked iteratively and every node nested deeper than
   the configured limit is reported as a ``DepthExceeded`` issue.
2. The raw tree is checked against ``PARAMETER_META_SCHEMA`` with
   ``jsonschema``. Shape errors are reported as ``MalformedNode`` issues
   located by JSON pointer, and nothing is built.
3. Nodes are built and every ``display`` condition is parsed into the query
   AST. Unparseable conditions are reported as ``MalformedCondition`` issues
   located by schema path and the offending clause is dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import jsonschema

from ..core.config import get_settings_instance
from ..core.exceptions import QuerySyntaxError, SchemaLoadError
from ..query.ast import QueryDocument
from ..query.parser import parse_query
from ..utils.value_tree import MISSING, DotPath
from .issues import SchemaErrorKind, SchemaIssue
from .meta_schema import PARAMETER_META_SCHEMA
from .model import (
    KIND_CLASSES,
    ArrayParameter,
    Constraints,
    CredentialReferenceParameter,
    DiscriminatedUnionParameter,
    Display,
    ObjectParameter,
    ParameterKind,
    ParameterNode,
    StringParameter,
    UnionVariant,
    item_path,
    variant_path,
)

logger = logging.getLogger(__name__)

DEFAULT_ITEM_NAME = "item"

_meta_validator = jsonschema.Draft7Validator(PARAMETER_META_SCHEMA)


def _pointer(parts: Any) -> str:
    return "/" + "/".join(str(p) for p in parts)


def check_shape(raw: Any) -> list[SchemaIssue]:
    """Return one ``MalformedNode`` issue per meta-schema violation."""
    errors = sorted(_meta_validator.iter_errors(raw), key=lambda e: (_pointer(e.absolute_path), e.message))
    return [
        SchemaIssue(
            kind=SchemaErrorKind.MALFORMED_NODE,
            path=_pointer(error.absolute_path),
            message=error.message,
            details={"validator": error.validator},
        )
        for error in errors
    ]


def _raw_children(raw: Mapping[str, Any]) -> list[tuple[tuple[Any, ...], Any]]:
    """Child nodes of an unchecked raw node, keyed by their JSON pointer parts."""
    found: list[tuple[tuple[Any, ...], Any]] = []
    children = raw.get("children")
    if isinstance(children, list):
        found.extend((("children", i), child) for i, child in enumerate(children))
    items = raw.get("items")
    if isinstance(items, Mapping):
        found.append((("items",), items))
    variants = raw.get("variants")
    if isinstance(variants, list):
        for v, variant in enumerate(variants):
            if isinstance(variant, Mapping) and isinstance(variant.get("children"), list):
                found.extend((("variants", v, "children", i), child) for i, child in enumerate(variant["children"]))
    return found


def check_depth(raw: Any, max_depth: int) -> list[SchemaIssue]:
    """Return one ``DepthExceeded`` issue per node nested ``max_depth + 1`` levels deep.

    Walks the unchecked wire form iteratively and runs before the shape check.
    """
    issues: list[SchemaIssue] = []
    stack: list[tuple[tuple[Any, ...], Any, int]] = [((), raw, 0)]
    while stack:
        parts, node, depth = stack.pop()
        if not isinstance(node, Mapping):
            continue
        if depth > max_depth:
            issues.append(
                SchemaIssue(
                    kind=SchemaErrorKind.DEPTH_EXCEEDED,
                    path=_pointer(parts),
                    message=f"parameter nests deeper than {max_depth} levels",
                    details={"depth": depth},
                )
            )
            continue
        for child_parts, child in reversed(_raw_children(node)):
            stack.append((parts + child_parts, child, depth + 1))
    return issues


class _SchemaBuilder:
    def __init__(self, max_query_depth: int) -> None:
        self.max_query_depth = max_query_depth
        self.issues: list[SchemaIssue] = []

    def build(self, raw: Mapping[str, Any], schema_path: str, name: str | None = None) -> ParameterNode:
        kind = ParameterKind(raw["type"])
        node_name = raw.get("name", name)
        kwargs: dict[str, Any] = {
            "name": node_name,
            "required": raw.get("required", False),
            # null defaults are treated as absent
            "default": raw["default"] if raw.get("default") is not None else MISSING,
            "constraints": Constraints(
                enum=raw.get("enum"),
                minimum=raw.get("minimum"),
                maximum=raw.get("maximum"),
                min_length=raw.get("min_length"),
                max_length=raw.get("max_length"),
            ),
            "display": self.build_display(raw.get("display"), schema_path),
            "label": raw.get("label"),
            "description": raw.get("description"),
            "placeholder": raw.get("placeholder"),
        }

        cls = KIND_CLASSES[kind]
        if cls is StringParameter and "const" in raw:
            kwargs["const"] = raw["const"]
        elif cls is CredentialReferenceParameter:
            kwargs["credential_type"] = raw.get("credential_type")
        elif cls is ObjectParameter:
            kwargs["children"] = self.build_children(raw.get("children", []), schema_path)
        elif cls is ArrayParameter:
            items = raw.get("items")
            if items is not None:
                kwargs["items"] = self.build(items, item_path(schema_path), name=DEFAULT_ITEM_NAME)
        elif cls is DiscriminatedUnionParameter:
            kwargs["discriminator"] = raw["discriminator"]
            kwargs["variants"] = tuple(
                UnionVariant(
                    children=self.build_children(variant.get("children", []), variant_path(schema_path, index)),
                    label=variant.get("label"),
                    description=variant.get("description"),
                )
                for index, variant in enumerate(raw["variants"])
            )
        return cls(**kwargs)

    def build_children(self, raw_children: list, parent_path: str) -> tuple[ParameterNode, ...]:
        return tuple(self.build(child, DotPath.join(parent_path, child["name"])) for child in raw_children)

    def build_display(self, raw: Mapping[str, Any] | None, schema_path: str) -> Display | None:
        if not raw:
            return None
        parsed: dict[str, QueryDocument] = {}
        for clause in ("show", "hide"):
            if raw.get(clause) is None:
                continue
            try:
                parsed[clause] = parse_query(raw[clause], max_depth=self.max_query_depth)
            except QuerySyntaxError as exc:
                for location, message in exc.problems:
                    self.issues.append(
                        SchemaIssue(
                            kind=SchemaErrorKind.MALFORMED_CONDITION,
                            path=schema_path,
                            message=f"{clause}: {location + ': ' if location else ''}{message}",
                            details={"clause": clause, "location": location},
                        )
                    )
        if not parsed:
            return None
        return Display(**parsed)


def load_schema(
    raw: Any,
    *,
    max_depth: int | None = None,
    max_query_depth: int | None = None,
) -> tuple[ParameterNode, list[SchemaIssue]]:
    """Build the schema model, returning condition problems alongside it.

    A clause that fails to parse is left off its node and reported as a
    ``MalformedCondition`` issue, so the rest of the tree can still be
    validated.

    Args:
        raw: Parameter tree as authored (root node mapping).
        max_depth: Nesting limit for parameters; defaults to
            ``PARAMVIS_MAX_SCHEMA_DEPTH``.
        max_query_depth: Nesting limit for display conditions; defaults to
            ``PARAMVIS_MAX_QUERY_DEPTH``.

    Raises:
        SchemaLoadError: when the tree nests too deep or fails the shape check.

    """
    settings = get_settings_instance()
    if max_depth is None:
        max_depth = settings.max_schema_depth
    if max_query_depth is None:
        max_query_depth = settings.max_query_depth

    issues = check_depth(raw, max_depth)
    if issues:
        logger.debug("Parameter schema nests too deep", extra={"issue_count": len(issues)})
        raise SchemaLoadError(issues)

    issues = check_shape(raw)
    if issues:
        logger.debug("Parameter schema failed shape check", extra={"issue_count": len(issues)})
        raise SchemaLoadError(issues)

    builder = _SchemaBuilder(max_query_depth)
    root = builder.build(raw, "")
    if builder.issues:
        logger.debug("Parameter schema has malformed conditions", extra={"issue_count": len(builder.issues)})
    return root, builder.issues


def parse_schema(
    raw: Any,
    *,
    max_depth: int | None = None,
    max_query_depth: int | None = None,
) -> ParameterNode:
    """Build the schema model from its wire form.

    Raises:
        SchemaLoadError: carrying every depth, shape or condition problem found.

    """
    root, issues = load_schema(raw, max_depth=max_depth, max_query_depth=max_query_depth)
    if issues:
        raise SchemaLoadError(issues)
    return root
