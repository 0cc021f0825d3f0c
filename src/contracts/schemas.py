"""Schema loading utilities for persisted payloads."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from .errors import ValidationIssue, make_issue

_SCHEMA_ROOT = Path(__file__).resolve().parent / "schemas"

PAYLOAD_SCHEMA = "puzzle_payload.schema.json"
IMPORT_SCHEMA = "puzzle_import.schema.json"

_schema_cache: Dict[str, Dict[str, Any]] = {}
_compiled_cache: Dict[str, Any] = {}


def load_schema(name: str) -> Dict[str, Any]:
    """Load a JSON schema shipped in ``contracts/schemas``."""

    resolved = (_SCHEMA_ROOT / name).resolve()
    if resolved.parent != _SCHEMA_ROOT:
        raise ValueError("Schema path escapes the schemas directory")

    if name not in _schema_cache:
        _schema_cache[name] = json.loads(resolved.read_text("utf-8"))
    return copy.deepcopy(_schema_cache[name])


def compile_schema(name: str) -> Any:
    """Return a cached Draft 2020-12 validator for the named schema."""

    validator = _compiled_cache.get(name)
    if validator is None:
        schema = load_schema(name)
        jsonschema.Draft202012Validator.check_schema(schema)
        validator = jsonschema.Draft202012Validator(schema)
        _compiled_cache[name] = validator
    return validator


def _json_path(error: jsonschema.ValidationError) -> str:
    components: List[str] = ["$"]
    for part in error.absolute_path:
        if isinstance(part, int):
            components.append(f"[{part}]")
        else:
            components.append(f".{part}")
    return "".join(components)


def schema_issues(name: str, instance: Any) -> List[ValidationIssue]:
    """Validate ``instance`` and return the findings sorted by path."""

    validator = compile_schema(name)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(map(str, e.absolute_path)))
    return [make_issue(f"schema.{error.validator}", error.message, _json_path(error)) for error in errors]


__all__ = [
    "IMPORT_SCHEMA",
    "PAYLOAD_SCHEMA",
    "compile_schema",
    "load_schema",
    "schema_issues",
]
