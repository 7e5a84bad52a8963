"""
Pydantic report schemas for paramvis.
"""

from .report import ResolutionReport, SchemaIssueOut, ValidationReport

__all__ = [
    "ResolutionReport",
    "SchemaIssueOut",
    "ValidationReport",
]
