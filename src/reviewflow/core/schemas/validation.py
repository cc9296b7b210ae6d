"""Shared schema validation utilities.

Configuration and record files are validated with JSON Schema. Schemas are
stored as YAML files under ``reviewflow.data/schemas`` and loaded in a single,
consistent way across the codebase.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from jsonschema import Draft202012Validator

from reviewflow.core.exceptions import ReviewflowError
from reviewflow.core.utils.io import read_yaml
from reviewflow.data import get_data_path


class SchemaValidationError(ReviewflowError, ValueError):
    """Raised when schema validation fails."""

    def __init__(self, message: str = "", *, errors: List[str] | None = None, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        if errors:
            ctx["errors"] = list(errors)
        ReviewflowError.__init__(self, message, context=ctx)
        ValueError.__init__(self, message)
        self.errors = list(errors or [])


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema dict.

    Automatically appends ``.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path = get_data_path("schemas", schema_name)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name}")

    schema = read_yaml(schema_path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def validate_payload_safe(payload: Any, schema_name: str) -> List[str]:
    """Validate a payload and return readable error messages (empty if valid)."""
    schema = load_schema(schema_name)
    validator = Draft202012Validator(schema)

    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path]):
        if error.path:
            path_str = ".".join(str(p) for p in error.path)
            errors.append(f"{path_str}: {error.message}")
        else:
            errors.append(error.message)
    return errors


def validate_payload(payload: Any, schema_name: str) -> None:
    """Validate a payload against a bundled schema.

    Raises:
        SchemaValidationError: If validation fails.
        FileNotFoundError: If schema doesn't exist.
    """
    errors = validate_payload_safe(payload, schema_name)
    if errors:
        raise SchemaValidationError(
            f"Validation failed against schema '{schema_name}': {errors[0]}",
            errors=errors,
            context={"schema": schema_name},
        )


__all__ = [
    "load_schema",
    "validate_payload",
    "validate_payload_safe",
    "SchemaValidationError",
]
