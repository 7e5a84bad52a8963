"""
Condition language for field visibility: AST, parser and evaluator.
"""

from .ast import (
    Comparison,
    ComparisonOperator,
    FieldCondition,
    LogicalCondition,
    LogicalOperator,
    QueryDocument,
    QueryExpression,
)
from .evaluator import evaluate, values_equal
from .parser import parse_query

__all__ = [
    "Comparison",
    "ComparisonOperator",
    "FieldCondition",
    "LogicalCondition",
    "LogicalOperator",
    "QueryDocument",
    "QueryExpression",
    "evaluate",
    "parse_query",
    "values_equal",
]
