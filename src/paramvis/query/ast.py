"""Typed AST for display-condition query expressions.

The wire format is a MongoDB-style document::

    {"format": "json", "age": {"$gte": 18}, "$or": [{...}, {...}]}

A ``QueryDocument`` is the conjunction of its clauses. A clause is either a
``FieldCondition`` (one path, one or more comparisons) or a
``LogicalCondition`` (``$and``/``$or``/``$nor`` over child documents).
Nodes are immutable and serialize back to the wire format with ``to_raw()``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Union


class ComparisonOperator(str, Enum):
    """Operators allowed inside a field's operator object."""

    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    EXISTS = "$exists"
    REGEX = "$regex"
    MOD = "$mod"
    SIZE = "$size"


class LogicalOperator(str, Enum):
    """Combinators allowed at document level."""

    AND = "$and"
    OR = "$or"
    NOR = "$nor"


# Modifier accepted next to $regex only
OPTIONS_KEY = "$options"


@dataclass(frozen=True)
class RegexOperand:
    """Compiled ``$regex`` operand together with its ``$options`` flags."""

    pattern: str
    options: str = ""
    compiled: re.Pattern = field(compare=False, repr=False, default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.compiled is None:
            flags = re.IGNORECASE if "i" in self.options else 0
            object.__setattr__(self, "compiled", re.compile(self.pattern, flags))

    def matches(self, value: str) -> bool:
        return self.compiled.search(value) is not None


@dataclass(frozen=True)
class ModOperand:
    divisor: int | float
    remainder: int | float


@dataclass(frozen=True)
class Comparison:
    operator: ComparisonOperator
    operand: Any

    def to_raw(self) -> dict[str, Any]:
        if self.operator is ComparisonOperator.REGEX:
            raw: dict[str, Any] = {"$regex": self.operand.pattern}
            if self.operand.options:
                raw[OPTIONS_KEY] = self.operand.options
            return raw
        if self.operator is ComparisonOperator.MOD:
            return {"$mod": [self.operand.divisor, self.operand.remainder]}
        return {self.operator.value: self.operand}


@dataclass(frozen=True)
class FieldCondition:
    """Comparisons applied to the value at one dotted path.

    ``implicit`` marks the ``{path: literal}`` shorthand so serialization
    round-trips to the form the author wrote.
    """

    path: str
    comparisons: tuple[Comparison, ...]
    implicit: bool = False

    def to_raw(self) -> dict[str, Any]:
        if self.implicit and len(self.comparisons) == 1:
            return {self.path: self.comparisons[0].operand}
        ops: dict[str, Any] = {}
        for comparison in self.comparisons:
            ops.update(comparison.to_raw())
        return {self.path: ops}

    def field_paths(self) -> Iterator[str]:
        yield self.path


@dataclass(frozen=True)
class LogicalCondition:
    operator: LogicalOperator
    children: tuple["QueryDocument", ...]

    def to_raw(self) -> dict[str, Any]:
        return {self.operator.value: [child.to_raw() for child in self.children]}

    def field_paths(self) -> Iterator[str]:
        for child in self.children:
            yield from child.field_paths()


Clause = Union[FieldCondition, LogicalCondition]


@dataclass(frozen=True)
class QueryDocument:
    """Conjunction of clauses; the root of every query expression."""

    clauses: tuple[Clause, ...] = ()

    def to_raw(self) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        for clause in self.clauses:
            raw.update(clause.to_raw())
        return raw

    def field_paths(self) -> Iterator[str]:
        """Yield every field path referenced anywhere in the expression."""
        for clause in self.clauses:
            yield from clause.field_paths()


QueryExpression = QueryDocument
