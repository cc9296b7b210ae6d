"""Collaborators consumed by the workflow manager, grouped for injection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from reviewflow.core.repository.protocols import (
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


@dataclass(frozen=True)
class WorkflowServices:
    changes: "ChangeRepository"
    projects: "ProjectRepository"
    workflows: "WorkflowRepository"
    reviews: "ReviewRepository"
    groups: "GroupRepository"
    affected: "AffectedProjectsFinder"
    content: "ContentComparer"
    test_runs: "TestRunRepository"
    lock: Optional["ChangeLock"] = None

    @classmethod
    def from_store(cls, store: Any, *, lock: Optional["ChangeLock"] = None) -> "WorkflowServices":
        """Use one object implementing every repository protocol for all roles."""
        return cls(
            changes=store,
            projects=store,
            workflows=store,
            reviews=store,
            groups=store,
            affected=store,
            content=store,
            test_runs=store,
            lock=lock,
        )


__all__ = ["WorkflowServices"]
