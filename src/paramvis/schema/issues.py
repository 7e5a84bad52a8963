"""Schema defects and the collected validation result."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..core.exceptions import SchemaValidationError


class SchemaErrorKind(str, Enum):
    """Distinct kinds of schema defect reported to plugin authors."""

    DUPLICATE_NAME = "DuplicateName"
    INVALID_IDENTIFIER = "InvalidIdentifier"
    RANGE_INVERSION = "RangeInversion"
    MISSING_DISCRIMINATOR_CONSTANT = "MissingDiscriminatorConstant"
    DUPLICATE_DISCRIMINATOR_CONSTANT = "DuplicateDiscriminatorConstant"
    DANGLING_CONDITION_PATH = "DanglingConditionPath"
    INVALID_CONSTRAINT = "InvalidConstraint"
    INVALID_DEFAULT = "InvalidDefault"
    EMPTY_UNION = "EmptyUnion"
    MALFORMED_CONDITION = "MalformedCondition"
    MALFORMED_NODE = "MalformedNode"
    DEPTH_EXCEEDED = "DepthExceeded"


@dataclass(frozen=True)
class SchemaIssue:
    """One defect, located by schema path (or JSON pointer for raw-shape errors)."""

    kind: SchemaErrorKind
    path: str
    message: str
    details: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value, "path": self.path, "message": self.message}
        if self.details:
            data["details"] = dict(self.details)
        return data

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.path or '<root>'}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """Every defect found in one validation pass, in document order."""

    errors: tuple[SchemaIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def kinds(self) -> set[SchemaErrorKind]:
        return {issue.kind for issue in self.errors}

    def by_kind(self, kind: SchemaErrorKind) -> list[SchemaIssue]:
        return [issue for issue in self.errors if issue.kind is kind]

    def merged(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(self.errors + other.errors)

    def raise_for_errors(self) -> None:
        """Raise ``SchemaValidationError`` when any defect was found."""
        if self.errors:
            raise SchemaValidationError(list(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "error_count": len(self.errors),
            "errors": [issue.to_dict() for issue in self.errors],
        }
