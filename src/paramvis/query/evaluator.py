"""Condition evaluator for parsed display queries.

``evaluate`` is total over parsed expressions: whatever the host puts in the
value tree, a leaf whose operand does not fit (missing value, wrong type)
evaluates to ``False`` instead of raising. Values are user input that may be
incomplete while a form is being edited.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Any

from ..utils.value_tree import MISSING, ValueTree
from .ast import (
    Clause,
    Comparison,
    ComparisonOperator,
    FieldCondition,
    LogicalCondition,
    LogicalOperator,
    ModOperand,
    QueryDocument,
    RegexOperand,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality without bool/number conflation.

    MISSING equals nothing, not even another MISSING.
    """
    if left is MISSING or right is MISSING:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) or _is_number(right):
        return _is_number(left) and _is_number(right) and left == right
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[k], right[k]) for k in left)
    if _is_array(left) or _is_array(right):
        if not (_is_array(left) and _is_array(right)) or len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _comparable(value: Any, operand: Any) -> bool:
    if _is_number(value) and _is_number(operand):
        return not (_is_nan(value) or _is_nan(operand))
    return isinstance(value, str) and isinstance(operand, str)


def _eq(value: Any, operand: Any) -> bool:
    return values_equal(value, operand)


def _ne(value: Any, operand: Any) -> bool:
    return not values_equal(value, operand)


def _gt(value: Any, operand: Any) -> bool:
    return _comparable(value, operand) and value > operand


def _gte(value: Any, operand: Any) -> bool:
    return _comparable(value, operand) and value >= operand


def _lt(value: Any, operand: Any) -> bool:
    return _comparable(value, operand) and value < operand


def _lte(value: Any, operand: Any) -> bool:
    return _comparable(value, operand) and value <= operand


def _in(value: Any, operand: list) -> bool:
    return any(values_equal(value, candidate) for candidate in operand)


def _nin(value: Any, operand: list) -> bool:
    return not _in(value, operand)


def _exists(value: Any, operand: bool) -> bool:
    return (value is not MISSING) is operand


def _regex(value: Any, operand: RegexOperand) -> bool:
    return isinstance(value, str) and operand.matches(value)


def _mod(value: Any, operand: ModOperand) -> bool:
    if not _is_number(value):
        return False
    divisor, remainder = operand.divisor, operand.remainder
    if isinstance(value, int) and isinstance(divisor, int):
        # Truncated remainder: the sign follows the dividend
        result: int | float = abs(value) % abs(divisor)
        if value < 0:
            result = -result
    else:
        if any(isinstance(v, float) and not math.isfinite(v) for v in (value, divisor)):
            return False
        try:
            result = math.fmod(value, divisor)
        except OverflowError:
            return False
    return result == remainder


def _size(value: Any, operand: int) -> bool:
    return _is_array(value) and len(value) == operand


_HANDLERS: dict[ComparisonOperator, Callable[[Any, Any], bool]] = {
    ComparisonOperator.EQ: _eq,
    ComparisonOperator.NE: _ne,
    ComparisonOperator.GT: _gt,
    ComparisonOperator.GTE: _gte,
    ComparisonOperator.LT: _lt,
    ComparisonOperator.LTE: _lte,
    ComparisonOperator.IN: _in,
    ComparisonOperator.NIN: _nin,
    ComparisonOperator.EXISTS: _exists,
    ComparisonOperator.REGEX: _regex,
    ComparisonOperator.MOD: _mod,
    ComparisonOperator.SIZE: _size,
}


def _evaluate_comparison(comparison: Comparison, value: Any) -> bool:
    return _HANDLERS[comparison.operator](value, comparison.operand)


def _evaluate_field(condition: FieldCondition, values: ValueTree) -> bool:
    value = values.resolve(condition.path)
    return all(_evaluate_comparison(c, value) for c in condition.comparisons)


def _evaluate_logical(condition: LogicalCondition, values: ValueTree) -> bool:
    results = (_evaluate_document(child, values) for child in condition.children)
    if condition.operator is LogicalOperator.AND:
        return all(results)
    if condition.operator is LogicalOperator.OR:
        return any(results)
    return not any(results)


def _evaluate_clause(clause: Clause, values: ValueTree) -> bool:
    if isinstance(clause, FieldCondition):
        return _evaluate_field(clause, values)
    return _evaluate_logical(clause, values)


def _evaluate_document(document: QueryDocument, values: ValueTree) -> bool:
    return all(_evaluate_clause(clause, values) for clause in document.clauses)


def evaluate(expr: QueryDocument, values: ValueTree | Mapping[str, Any] | None) -> bool:
    """Evaluate a parsed query expression against a value tree.

    Args:
        expr: Expression produced by ``parse_query``.
        values: Current parameter values (nested mapping or ``ValueTree``).

    Returns:
        True when the expression holds for ``values``.

    """
    return _evaluate_document(expr, ValueTree.coerce(values))
