"""Utility to surface shared JSON schemas and examples."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from jsonschema import Draft7Validator, ValidationError

PROJECT_ROOT = Path(__file__).resolve().parents[3]
SCHEMA_DIR = PROJECT_ROOT / "schemas"
EXAMPLE_DIR = SCHEMA_DIR / "examples"

SchemaValidationError = ValidationError
"""Alias for jsonschema.ValidationError so callers stay library-agnostic."""

SCHEMA_FILES = {
    "unified_report_request_v1": "unified_report_request_schema_v1.json",
    "compare_request_v1": "compare_request_schema_v1.json",
    "analytics_request_v1": "analytics_request_schema_v1.json",
    "unified_report_v1": "unified_report_schema_v1.json",
    "comparison_result_v1": "comparison_result_schema_v1.json",
    "analytics_dashboard_v1": "analytics_dashboard_schema_v1.json",
    "permission_rules_v1": "permission_rules_schema_v1.json",
}

EXAMPLE_FILES = {
    "unified_report_request_example": "unified_report_request_example.json",
    "compare_request_example": "compare_request_example.json",
    "analytics_request_example": "analytics_request_example.json",
    "unified_report_example": "unified_report_example.json",
    "comparison_result_example": "comparison_result_example.json",
    "analytics_dashboard_example": "analytics_dashboard_example.json",
    "permission_rules_example": "permission_rules_example.json",
}

_SCHEMAS: dict[str, Mapping[str, Any]] = {}
_EXAMPLES: dict[str, Mapping[str, Any]] = {}


def _load_json_file(path: Path) -> Mapping[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def get_schema(name: str) -> Mapping[str, Any]:
    """Return the JSON schema with the given registry name."""

    if name not in _SCHEMAS:
        _SCHEMAS[name] = _load_json_file(SCHEMA_DIR / SCHEMA_FILES[name])
    return _SCHEMAS[name]


def get_example(name: str) -> Mapping[str, Any]:
    """Return a representative example payload by name."""

    if name not in _EXAMPLES:
        _EXAMPLES[name] = _load_json_file(EXAMPLE_DIR / EXAMPLE_FILES[name])
    return _EXAMPLES[name]


def validate(name: str, instance: Any) -> None:
    """Validate an instance against a named schema."""

    Draft7Validator(get_schema(name)).validate(instance)
