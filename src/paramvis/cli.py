#!/usr/bin/env python3
"""
paramvis command line interface.

Lets plugin authors check a parameter schema before publishing it and see
which fields a given set of values would show.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .core.exceptions import ParamVisException
from .core.logging import setup_logging
from .schema.compiler import compile_schema
from .schemas.report import ResolutionReport, ValidationReport
from .services.form_resolution_service import FormResolutionService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise SystemExit(_usage_error(f"cannot read {path}: {e.strerror or e}"))
    except json.JSONDecodeError as e:
        raise SystemExit(_usage_error(f"{path} is not valid JSON: {e}"))


def _usage_error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return EXIT_USAGE


def _emit(payload: dict, indent: int | None) -> None:
    print(json.dumps(payload, indent=indent, sort_keys=False))


def cmd_validate(args: argparse.Namespace) -> int:
    raw = _load_json(args.schema)
    compiled = compile_schema(raw, max_depth=args.max_depth)
    report = ValidationReport.from_result(compiled.result)
    _emit(report.model_dump(), args.indent)
    return EXIT_OK if report.ok else EXIT_INVALID


def cmd_resolve(args: argparse.Namespace) -> int:
    raw = _load_json(args.schema)
    values = _load_json(args.values)
    if not isinstance(values, dict):
        return _usage_error(f"{args.values} must contain a JSON object")

    compiled = compile_schema(raw, max_depth=args.max_depth)
    if not compiled.ok:
        _emit(ValidationReport.from_result(compiled.result).model_dump(), args.indent)
        return EXIT_INVALID

    service = FormResolutionService(compiled)
    resolution = service.resolve(values)
    report = ResolutionReport(
        visibility=resolution.visibility.to_dict(),
        selection=resolution.selection.to_dict(),
        incomplete_unions=sorted(resolution.incomplete_unions),
        values=service.redact(resolution.values),
    )
    _emit(report.model_dump(), args.indent)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paramvis",
        description="Validate plugin parameter schemas and resolve field visibility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  paramvis validate schema.json                # Report every schema defect
  paramvis resolve schema.json values.json     # Show visibility for values
  paramvis --log-level DEBUG validate schema.json
        """,
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override PARAMVIS_LOG_LEVEL",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation of the report (default: 2)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Override PARAMVIS_MAX_SCHEMA_DEPTH",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Statically validate a schema")
    validate_parser.add_argument("schema", help="Path to the parameter schema JSON file")
    validate_parser.set_defaults(func=cmd_validate)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve visibility for a set of values")
    resolve_parser.add_argument("schema", help="Path to the parameter schema JSON file")
    resolve_parser.add_argument("values", help="Path to a JSON object of parameter values")
    resolve_parser.set_defaults(func=cmd_resolve)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        code = args.func(args)
    except ParamVisException as e:
        logger.error("Command failed", extra={"error_code": e.error_code})
        print(f"Error: {e.message}", file=sys.stderr)
        code = EXIT_USAGE

    sys.exit(code)


if __name__ == "__main__":  # pragma: no cover
    main()
