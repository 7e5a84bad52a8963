"""Parser from the wire form of a display condition to the query AST.

Parsing happens once, when a schema is loaded. Every problem in an expression
is collected before ``QuerySyntaxError`` is raised, so an author sees all of
them at once. Nothing outside the closed operator set is accepted.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from ..core.exceptions import QuerySyntaxError
from .ast import (
    OPTIONS_KEY,
    Comparison,
    ComparisonOperator,
    FieldCondition,
    LogicalCondition,
    LogicalOperator,
    ModOperand,
    QueryDocument,
    RegexOperand,
)

DEFAULT_MAX_DEPTH = 16

_COMPARISON_OPERATORS = {op.value: op for op in ComparisonOperator}
_LOGICAL_OPERATORS = {op.value: op for op in LogicalOperator}
_ORDERING_OPERATORS = {
    ComparisonOperator.GT,
    ComparisonOperator.GTE,
    ComparisonOperator.LT,
    ComparisonOperator.LTE,
}
_SUPPORTED_REGEX_OPTIONS = frozenset("i")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _join(location: str, part: str) -> str:
    if not location:
        return part
    if part.startswith("["):
        return f"{location}{part}"
    return f"{location}.{part}"


class _QueryParser:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.problems: list[tuple[str, str]] = []

    def problem(self, location: str, message: str) -> None:
        self.problems.append((location, message))

    def parse_document(self, raw: Any, location: str, depth: int) -> QueryDocument:
        if not isinstance(raw, Mapping):
            self.problem(location, f"expected an object, got {type(raw).__name__}")
            return QueryDocument()
        if depth > self.max_depth:
            self.problem(location, f"expression nests deeper than {self.max_depth} levels")
            return QueryDocument()

        clauses = []
        for key, value in raw.items():
            if not isinstance(key, str):
                self.problem(location, f"keys must be strings, got {key!r}")
                continue
            if key.startswith("$"):
                clause = self.parse_logical(key, value, _join(location, key), depth)
            else:
                clause = self.parse_field(key, value, _join(location, key))
            if clause is not None:
                clauses.append(clause)
        return QueryDocument(tuple(clauses))

    def parse_logical(self, key: str, value: Any, location: str, depth: int) -> LogicalCondition | None:
        operator = _LOGICAL_OPERATORS.get(key)
        if operator is None:
            self.problem(location, f"unknown operator '{key}' at document level")
            return None
        if not _is_array(value):
            self.problem(location, f"'{key}' expects an array of expressions")
            return None
        children = tuple(
            self.parse_document(child, _join(location, f"[{i}]"), depth + 1) for i, child in enumerate(value)
        )
        return LogicalCondition(operator, children)

    def parse_field(self, path: str, value: Any, location: str) -> FieldCondition | None:
        if any(segment == "" for segment in path.split(".")):
            self.problem(location, f"invalid field path '{path}'")
            return None

        if isinstance(value, Mapping) and any(isinstance(k, str) and k.startswith("$") for k in value):
            literal_keys = [k for k in value if not (isinstance(k, str) and k.startswith("$"))]
            if literal_keys:
                self.problem(
                    location,
                    f"operator object mixes operators with literal keys {sorted(map(str, literal_keys))}",
                )
                return None
            comparisons = self.parse_operators(value, location)
            if comparisons is None:
                return None
            return FieldCondition(path, comparisons)

        return FieldCondition(path, (Comparison(ComparisonOperator.EQ, value),), implicit=True)

    def parse_operators(self, ops: Mapping[str, Any], location: str) -> tuple[Comparison, ...] | None:
        before = len(self.problems)
        comparisons: list[Comparison] = []

        if OPTIONS_KEY in ops and "$regex" not in ops:
            self.problem(_join(location, OPTIONS_KEY), "'$options' is only allowed together with '$regex'")

        for key, operand in ops.items():
            if key == OPTIONS_KEY:
                continue
            op_location = _join(location, key)
            operator = _COMPARISON_OPERATORS.get(key)
            if operator is None:
                self.problem(op_location, f"unknown operator '{key}'")
                continue
            parsed = self.parse_operand(operator, operand, ops.get(OPTIONS_KEY), op_location)
            if parsed is not None:
                comparisons.append(parsed)

        if len(self.problems) != before:
            return None
        return tuple(comparisons)

    def parse_operand(
        self, operator: ComparisonOperator, operand: Any, options: Any, location: str
    ) -> Comparison | None:
        if operator in (ComparisonOperator.EQ, ComparisonOperator.NE):
            return Comparison(operator, operand)

        if operator in _ORDERING_OPERATORS:
            if not (_is_number(operand) or isinstance(operand, str)):
                self.problem(location, f"'{operator.value}' expects a number or a string")
                return None
            return Comparison(operator, operand)

        if operator in (ComparisonOperator.IN, ComparisonOperator.NIN):
            if not _is_array(operand):
                self.problem(location, f"'{operator.value}' expects an array")
                return None
            return Comparison(operator, list(operand))

        if operator is ComparisonOperator.EXISTS:
            if not isinstance(operand, bool):
                self.problem(location, "'$exists' expects true or false")
                return None
            return Comparison(operator, operand)

        if operator is ComparisonOperator.REGEX:
            return self.parse_regex(operand, options, location)

        if operator is ComparisonOperator.MOD:
            if not (_is_array(operand) and len(operand) == 2 and all(_is_number(v) for v in operand)):
                self.problem(location, "'$mod' expects [divisor, remainder] numbers")
                return None
            divisor, remainder = operand
            if divisor == 0:
                self.problem(location, "'$mod' divisor must not be zero")
                return None
            return Comparison(operator, ModOperand(divisor, remainder))

        if operator is ComparisonOperator.SIZE:
            if not (isinstance(operand, int) and not isinstance(operand, bool) and operand >= 0):
                self.problem(location, "'$size' expects a non-negative integer")
                return None
            return Comparison(operator, operand)

        self.problem(location, f"unsupported operator '{operator.value}'")
        return None

    def parse_regex(self, pattern: Any, options: Any, location: str) -> Comparison | None:
        if not isinstance(pattern, str):
            self.problem(location, "'$regex' expects a string pattern")
            return None
        if options is None:
            options = ""
        if not isinstance(options, str):
            self.problem(_join(location, OPTIONS_KEY), "'$options' expects a string")
            return None
        unsupported = set(options) - _SUPPORTED_REGEX_OPTIONS
        if unsupported:
            self.problem(
                _join(location, OPTIONS_KEY),
                f"unsupported regex option(s) {sorted(unsupported)}; only 'i' is recognized",
            )
            return None
        try:
            operand = RegexOperand(pattern, options)
        except re.error as exc:
            self.problem(location, f"invalid regular expression: {exc}")
            return None
        return Comparison(ComparisonOperator.REGEX, operand)


def parse_query(raw: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> QueryDocument:
    """Parse a wire-format query expression into a ``QueryDocument``.

    Args:
        raw: The expression as authored (a mapping).
        max_depth: Maximum nesting of logical combinators.

    Raises:
        QuerySyntaxError: listing every problem found.

    """
    parser = _QueryParser(max_depth)
    document = parser.parse_document(raw, "", 0)
    if parser.problems:
        raise QuerySyntaxError(parser.problems)
    return document
