"""Load a :class:`MemoryRecordStore` from a YAML record file."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from reviewflow.core.schemas.validation import SchemaValidationError, validate_payload
from reviewflow.core.utils.io import read_yaml, write_yaml
from reviewflow.core.workflow.models import Change, Project, Review, TestRun, Workflow

from .memory import MemoryRecordStore

logger = logging.getLogger(__name__)

RECORDS_SCHEMA = "records.schema.yaml"


def build_record_store(data: Mapping[str, Any], *, validate: bool = True) -> MemoryRecordStore:
    """Build a store from an already parsed record mapping.

    Raises:
        SchemaValidationError: when ``validate`` is set and the mapping does not
            match the record schema.
        WorkflowValidationError: for semantically invalid workflow records.
    """
    payload = dict(data or {})
    if validate:
        validate_payload(payload, RECORDS_SCHEMA)

    store = MemoryRecordStore(
        workflows=[Workflow.from_dict(w) for w in payload.get("workflows") or []],
        projects=[Project.from_dict(p) for p in payload.get("projects") or []],
        changes=[Change.from_dict(c) for c in payload.get("changes") or []],
        reviews=[Review.from_dict(r) for r in payload.get("reviews") or []],
        test_runs=[TestRun.from_dict(t) for t in payload.get("testRuns") or []],
        groups=payload.get("groups") or {},
        affected=payload.get("affected") or {},
        affected_submitted=payload.get("affectedSubmitted") or {},
        content_changed=[str(c) for c in payload.get("contentChanged") or []],
    )
    logger.debug(
        "Loaded %d workflow(s), %d project(s), %d change(s), %d review(s)",
        len(store.workflows),
        len(store.projects),
        len(store.changes),
        len(store.reviews),
    )
    return store


def load_record_file(path: Path, *, validate: bool = True) -> MemoryRecordStore:
    """Read ``path`` and build a store from it. Missing files raise."""
    data = read_yaml(Path(path), default={}, raise_on_error=True) or {}
    if not isinstance(data, dict):
        raise SchemaValidationError(
            f"Record file must be a YAML mapping: {path}", context={"path": str(path)}
        )
    return build_record_store(data, validate=validate)


def save_record_file(store: MemoryRecordStore, path: Path) -> None:
    """Write ``store`` back to ``path`` atomically and clear its ``modified`` flag."""
    records = store.to_records()
    validate_payload(records, RECORDS_SCHEMA)
    write_yaml(Path(path), records)
    store.modified = False
    logger.debug("Saved %d review(s) to %s", len(records["reviews"]), path)


__all__ = ["RECORDS_SCHEMA", "build_record_store", "load_record_file", "save_record_file"]
