"""
paramvis: declarative parameter schemas with conditional field visibility.

Plugins declare their parameters as a tree; hosts load it once, validate it
and then resolve which fields are visible for the values a user entered.
"""

from .core.exceptions import (
    ParamVisException,
    QuerySyntaxError,
    SchemaLoadError,
    SchemaNotUsableError,
    SchemaValidationError,
    ValueTreeError,
)
from .query import evaluate, parse_query
from .resolution import resolve_unions, resolve_visibility
from .schema import SchemaErrorKind, ValidationResult, compile_schema, parse_schema, validate
from .services import FormResolution, FormResolutionService
from .utils.value_tree import MISSING, ValueTree

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "FormResolution",
    "FormResolutionService",
    "ParamVisException",
    "QuerySyntaxError",
    "SchemaErrorKind",
    "SchemaLoadError",
    "SchemaNotUsableError",
    "SchemaValidationError",
    "ValidationResult",
    "ValueTree",
    "ValueTreeError",
    "compile_schema",
    "evaluate",
    "parse_query",
    "parse_schema",
    "resolve_unions",
    "resolve_visibility",
    "validate",
]
