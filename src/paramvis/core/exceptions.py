"""Custom exceptions for paramvis.

Author mistakes in a schema are reported as data (see
``paramvis.schema.issues.ValidationResult``); the exceptions below are raised
when a host asks for something that cannot be done, or explicitly opts into
exceptions via ``ValidationResult.raise_for_errors()``.
"""

from typing import Any


class ParamVisException(Exception):
    """Base exception class for paramvis."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message, "details": self.details}


# Query Exceptions
class QuerySyntaxError(ParamVisException):
    """Raised when a raw query expression cannot be parsed.

    ``problems`` holds every ``(location, message)`` pair found in one pass.
    """

    def __init__(self, problems: list[tuple[str, str]], details: dict[str, Any] | None = None):
        self.problems = list(problems)
        summary = "; ".join(f"{loc or '<root>'}: {msg}" for loc, msg in self.problems)
        super().__init__(
            message=f"Invalid query expression: {summary}",
            error_code="QUERY_SYNTAX_ERROR",
            details=details or {"problems": [{"location": loc, "message": msg} for loc, msg in self.problems]},
        )


# Schema Exceptions
class SchemaLoadError(ParamVisException):
    """Raised when a raw parameter tree cannot be turned into a schema model."""

    def __init__(self, issues: list[Any], details: dict[str, Any] | None = None):
        self.issues = list(issues)
        super().__init__(
            message=f"Parameter schema could not be loaded ({len(self.issues)} issue(s))",
            error_code="SCHEMA_LOAD_ERROR",
            details=details or {"issues": [issue.to_dict() for issue in self.issues]},
        )


class SchemaValidationError(ParamVisException):
    """Raised on request when a schema tree failed static validation."""

    def __init__(self, issues: list[Any], details: dict[str, Any] | None = None):
        self.issues = list(issues)
        kinds = sorted({issue.kind.value for issue in self.issues})
        super().__init__(
            message=f"Parameter schema is invalid ({len(self.issues)} error(s): {', '.join(kinds)})",
            error_code="SCHEMA_VALIDATION_ERROR",
            details=details or {"issues": [issue.to_dict() for issue in self.issues]},
        )


class SchemaNotUsableError(ParamVisException):
    """Raised when an invalid schema is handed to the resolution service."""

    def __init__(self, issue_count: int, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Parameter schema has {issue_count} unresolved error(s) and cannot be used",
            error_code="SCHEMA_NOT_USABLE",
            details=details or {"issue_count": issue_count},
        )


# Value Exceptions
class ValueTreeError(ParamVisException):
    """Raised when host-supplied values cannot form a value tree."""

    def __init__(self, path: str, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Invalid value tree at '{path}': {reason}",
            error_code="VALUE_TREE_ERROR",
            details=details or {"path": path, "reason": reason},
        )
