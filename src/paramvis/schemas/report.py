"""
Report schemas for paramvis results.

Pydantic models that turn validation and resolution results into plain JSON
documents a host can ship to a form renderer or print from the CLI.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from ..schema.issues import ValidationResult


class SchemaIssueOut(BaseModel):
    """One schema defect as reported to plugin authors"""
    kind: str
    path: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ValidationReport(BaseModel):
    """Outcome of statically validating a parameter schema"""
    ok: bool
    error_count: int
    errors: List[SchemaIssueOut] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationReport":
        return cls(
            ok=result.ok,
            error_count=len(result.errors),
            errors=[
                SchemaIssueOut(kind=i.kind.value, path=i.path, message=i.message, details=dict(i.details))
                for i in result.errors
            ],
        )


class ResolutionReport(BaseModel):
    """
    Visibility and union selection for one set of values.

    ``values`` holds the effective values (hidden fields and inactive
    variants removed) with encrypted strings masked.
    """
    visibility: Dict[str, bool]
    selection: Dict[str, Optional[int]]
    incomplete_unions: List[str] = Field(default_factory=list)
    values: Dict[str, Any] = Field(default_factory=dict)
