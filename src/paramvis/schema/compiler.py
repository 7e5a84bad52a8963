"""Load and validate a raw parameter schema in one step."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..core.exceptions import SchemaLoadError
from .issues import ValidationResult
from .loader import load_schema
from .model import ParameterNode
from .validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledSchema:
    """Outcome of compiling a schema; ``root`` is only set when it is valid."""

    root: ParameterNode | None
    result: ValidationResult

    @property
    def ok(self) -> bool:
        return self.root is not None and self.result.ok


def compile_schema(
    raw: Any,
    *,
    max_depth: int | None = None,
    max_query_depth: int | None = None,
) -> CompiledSchema:
    """Load ``raw`` and statically validate it.

    Author mistakes never raise; they are returned in ``result``. Condition
    problems found while loading are merged with the validator's findings.
    The schema tree is withheld (``root`` is None) until every defect is
    fixed.
    """
    try:
        root, condition_issues = load_schema(raw, max_depth=max_depth, max_query_depth=max_query_depth)
    except SchemaLoadError as exc:
        result = ValidationResult(tuple(exc.issues))
    else:
        result = ValidationResult(tuple(condition_issues)).merged(validate(root, max_depth=max_depth))
        if result.ok:
            return CompiledSchema(root=root, result=result)

    logger.warning(
        "Parameter schema rejected",
        extra={"error_count": len(result.errors), "kinds": ",".join(sorted(k.value for k in result.kinds()))},
    )
    return CompiledSchema(root=None, result=result)
