"""Collaborator protocols and the in-memory record store."""
from __future__ import annotations

from .loader import build_record_store, load_record_file, save_record_file
from .memory import MemoryRecordStore
from .protocols import (
    AffectedProjectsFinder,
    ChangeLock,
    ChangeRepository,
    ContentComparer,
    GroupRepository,
    ProjectRepository,
    ReviewRepository,
    TestRunRepository,
    WorkflowRepository,
)

__all__ = [
    "MemoryRecordStore",
    "build_record_store",
    "load_record_file",
    "save_record_file",
    "ChangeRepository",
    "ProjectRepository",
    "WorkflowRepository",
    "ReviewRepository",
    "GroupRepository",
    "AffectedProjectsFinder",
    "ContentComparer",
    "TestRunRepository",
    "ChangeLock",
]
