"""JSON Schema (Draft 7) describing the wire form of a parameter tree.

Only the shape is checked here (keys, JSON types, kind names). Semantic rules
such as identifier patterns, ranges and union constants are left to the
validator so each defect is reported under its own kind.
"""

from __future__ import annotations

from typing import Any

from .model import ParameterKind


PARAMETER_META_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "$ref": "#/definitions/parameter",
    "definitions": {
        "query": {"type": "object"},
        "display": {
            "type": "object",
            "properties": {
                "show": {"$ref": "#/definitions/query"},
                "hide": {"$ref": "#/definitions/query"},
            },
            "additionalProperties": False,
        },
        "variant": {
            "type": "object",
            "properties": {
                "label": {"type": "string"},
                "description": {"type": "string"},
                "children": {"type": "array", "items": {"$ref": "#/definitions/parameter"}},
            },
            "required": ["children"],
            "additionalProperties": False,
        },
        # Array item templates may omit the name
        "parameter_body": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "type": {"enum": [kind.value for kind in ParameterKind]},
                "label": {"type": "string"},
                "description": {"type": "string"},
                "placeholder": {"type": "string"},
                "required": {"type": "boolean"},
                "default": {},
                "enum": {"type": "array"},
                "const": {},
                "minimum": {"type": "number"},
                "maximum": {"type": "number"},
                "min_length": {"type": "integer"},
                "max_length": {"type": "integer"},
                "display": {"$ref": "#/definitions/display"},
                "children": {"type": "array", "items": {"$ref": "#/definitions/parameter"}},
                "items": {"$ref": "#/definitions/parameter_body"},
                "discriminator": {"type": "string"},
                "variants": {"type": "array", "items": {"$ref": "#/definitions/variant"}},
                "credential_type": {"type": "string"},
            },
            "required": ["type"],
            "additionalProperties": False,
            "allOf": [
                {
                    "if": {"properties": {"type": {"const": "discriminated_union"}}, "required": ["type"]},
                    "then": {"required": ["discriminator", "variants"]},
                },
                {
                    "if": {"properties": {"type": {"not": {"const": "object"}}}, "required": ["type"]},
                    "then": {"not": {"required": ["children"]}},
                },
                {
                    "if": {"properties": {"type": {"not": {"const": "array"}}}, "required": ["type"]},
                    "then": {"not": {"required": ["items"]}},
                },
                {
                    "if": {"properties": {"type": {"not": {"const": "string"}}}, "required": ["type"]},
                    "then": {"not": {"required": ["const"]}},
                },
                {
                    "if": {"properties": {"type": {"not": {"const": "credential_reference"}}}, "required": ["type"]},
                    "then": {"not": {"required": ["credential_type"]}},
                },
            ],
        },
        "parameter": {
            "allOf": [{"$ref": "#/definitions/parameter_body"}],
            "required": ["name"],
        },
    },
}
