"""
Shared pytest fixtures and path setup for unit tests.
"""

import os
import sys
from pathlib import Path

# Pin configuration BEFORE any paramvis imports so a developer's .env cannot
# change limits under the tests.
os.environ.setdefault("PARAMVIS_ENVIRONMENT", "development")
os.environ.setdefault("PARAMVIS_LOG_LEVEL", "INFO")
os.environ.setdefault("PARAMVIS_MAX_SCHEMA_DEPTH", "32")
os.environ.setdefault("PARAMVIS_MAX_QUERY_DEPTH", "16")

# Add src to sys.path so paramvis.* imports work without an install.
PROJECT_SRC = Path(__file__).resolve().parents[2]
if str(PROJECT_SRC) not in sys.path:
    sys.path.insert(0, str(PROJECT_SRC))

import pytest

from paramvis.core.config import reset_settings_instance


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Every test sees settings built from the current environment."""
    reset_settings_instance()
    yield
    reset_settings_instance()


@pytest.fixture
def format_union_raw() -> dict:
    """Root-level union switching between JSON and markdown output."""
    return {
        "name": "output",
        "type": "discriminated_union",
        "discriminator": "format",
        "variants": [
            {
                "label": "JSON",
                "children": [
                    {"name": "format", "type": "string", "const": "json"},
                    {"name": "strict", "type": "boolean", "default": False},
                ],
            },
            {
                "label": "Markdown",
                "children": [
                    {"name": "format", "type": "string", "enum": ["markdown"]},
                    {"name": "heading_level", "type": "integer", "minimum": 1, "maximum": 6},
                ],
            },
        ],
    }


@pytest.fixture
def connector_raw() -> dict:
    """A realistic plugin parameter tree mixing every feature."""
    return {
        "name": "params",
        "type": "object",
        "children": [
            {"name": "mode", "type": "string", "enum": ["basic", "advanced"], "default": "basic"},
            {
                "name": "api_key",
                "type": "encrypted_string",
                "required": True,
            },
            {
                "name": "retries",
                "type": "integer",
                "minimum": 0,
                "maximum": 10,
                "display": {"show": {"mode": "advanced"}},
            },
            {
                "name": "advanced",
                "type": "object",
                "display": {"show": {"mode": "advanced"}},
                "children": [
                    {"name": "timeout", "type": "number", "minimum": 0},
                    {
                        "name": "proxy",
                        "type": "string",
                        "display": {"hide": {"advanced.timeout": {"$gt": 60}}},
                    },
                ],
            },
            {
                "name": "output",
                "type": "discriminated_union",
                "discriminator": "format",
                "variants": [
                    {
                        "children": [
                            {"name": "format", "type": "string", "const": "json"},
                            {"name": "schema", "type": "object"},
                        ]
                    },
                    {
                        "children": [
                            {"name": "format", "type": "string", "const": "markdown"},
                            {
                                "name": "toc",
                                "type": "boolean",
                                "display": {"show": {"output.format": "markdown"}},
                            },
                        ]
                    },
                ],
            },
            {
                "name": "tags",
                "type": "array",
                "items": {"type": "string", "min_length": 1},
            },
            {"name": "account", "type": "credential_reference", "credential_type": "oauth2"},
        ],
    }
