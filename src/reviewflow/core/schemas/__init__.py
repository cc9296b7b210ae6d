"""Schema validation utilities for reviewflow.

Centralized JSON schema loading and validation for configuration and record
files.
"""
from __future__ import annotations

from .validation import (
    SchemaValidationError,
    load_schema,
    validate_payload,
    validate_payload_safe,
)

__all__ = [
    "load_schema",
    "validate_payload",
    "validate_payload_safe",
    "SchemaValidationError",
]
