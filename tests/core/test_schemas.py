from __future__ import annotations

import pytest

from reviewflow.core.schemas import (
    SchemaValidationError,
    load_schema,
    validate_payload,
    validate_payload_safe,
)


def test_load_schema_appends_extension() -> None:
    assert load_schema("records")["title"] == "reviewflow record file"
    with pytest.raises(FileNotFoundError):
        load_schema("nope")


def test_valid_record_payload() -> None:
    payload = {
        "workflows": [{"id": 1, "on_submit": {"with_review": {"rule": "strict"}}}],
        "projects": [{"id": "p", "workflow": 1, "branches": [{"id": "main"}]}],
        "changes": [{"id": 5, "description": "Fix", "user": "ann"}],
        "affected": {"5": {"p": ["main"]}},
    }
    assert validate_payload_safe(payload, "records.schema.yaml") == []


def test_invalid_payload_reports_paths() -> None:
    payload = {"workflows": [{"id": "1", "on_submit": {"with_review": {"mode": "policy"}}}], "extra": True}

    errors = validate_payload_safe(payload, "records")

    assert any(e.startswith("workflows.0.on_submit.with_review") for e in errors)
    assert any("extra" in e for e in errors)


def test_validate_payload_raises_with_errors() -> None:
    with pytest.raises(SchemaValidationError) as excinfo:
        validate_payload({"reviews": [{"state": "approved"}]}, "records")

    err = excinfo.value
    assert err.errors
    assert err.to_json_error()["code"] == "SchemaValidationError"
    assert err.context["schema"] == "records"
