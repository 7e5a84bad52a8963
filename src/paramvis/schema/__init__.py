"""
Parameter schema model, loader and static validator.
"""

from .compiler import CompiledSchema, compile_schema
from .issues import SchemaErrorKind, SchemaIssue, ValidationResult
from .loader import check_depth, check_shape, load_schema, parse_schema
from .model import (
    ArrayParameter,
    BooleanParameter,
    Constraints,
    CredentialReferenceParameter,
    DiscriminatedUnionParameter,
    Display,
    EncryptedStringParameter,
    IntegerParameter,
    NodeRef,
    NumberParameter,
    ObjectParameter,
    ParameterKind,
    ParameterNode,
    StringParameter,
    UnionVariant,
    walk,
)
from .validator import validate

__all__ = [
    "ArrayParameter",
    "BooleanParameter",
    "CompiledSchema",
    "Constraints",
    "CredentialReferenceParameter",
    "DiscriminatedUnionParameter",
    "Display",
    "EncryptedStringParameter",
    "IntegerParameter",
    "NodeRef",
    "NumberParameter",
    "ObjectParameter",
    "ParameterKind",
    "ParameterNode",
    "SchemaErrorKind",
    "SchemaIssue",
    "StringParameter",
    "UnionVariant",
    "ValidationResult",
    "check_depth",
    "check_shape",
    "compile_schema",
    "load_schema",
    "parse_schema",
    "validate",
    "walk",
]
