"""Protocols for the collaborators the workflow engine consumes.

Record storage, version-control access and locking live outside the engine.
Anything satisfying these protocols can be handed to
:class:`~reviewflow.core.workflow.services.WorkflowServices`;
:class:`~reviewflow.core.repository.memory.MemoryRecordStore` implements all
of them.
"""
from __future__ import annotations

from typing import ContextManager, Iterable, List, Optional, Protocol, runtime_checkable

from reviewflow.core.workflow.models import (
    AffectedProjects,
    Change,
    Project,
    Review,
    TestRun,
    Workflow,
)


@runtime_checkable
class ChangeRepository(Protocol):
    def fetch_change(self, change_id: str) -> Change:
        """Fetch a change by id.

        Raises:
            InvalidChangeIdError: if ``change_id`` is not a well formed id.
            ChangeNotFoundError: if no such change exists.
        """
        ...


@runtime_checkable
class ProjectRepository(Protocol):
    def fetch_project(self, project_id: str) -> Project:
        """Raises ProjectNotFoundError when missing."""
        ...


@runtime_checkable
class WorkflowRepository(Protocol):
    def fetch_workflow(self, workflow_id: str) -> Workflow:
        """Raises WorkflowNotFoundError when missing."""
        ...

    def fetch_workflows(self, workflow_ids: Iterable[str]) -> List[Workflow]:
        """Fetch existing workflows among ``workflow_ids``; missing ids are skipped."""
        ...

    def exists(self, workflow_id: str) -> bool:
        ...

    def save(self, workflow: Workflow) -> Workflow:
        ...


@runtime_checkable
class ReviewRepository(Protocol):
    def find_by_change(self, change_id: str) -> Optional[Review]:
        """First review linked to ``change_id``, or None."""
        ...

    def fetch_review(self, review_id: str) -> Review:
        """Raises ReviewNotFoundError when missing."""
        ...

    def create_from_change(self, change: Change) -> Review:
        """Create and persist a new review for ``change``."""
        ...


@runtime_checkable
class GroupRepository(Protocol):
    def is_member(self, user_id: str, group_id: str) -> bool:
        """Raises GroupNotFoundError when the group does not exist."""
        ...


@runtime_checkable
class AffectedProjectsFinder(Protocol):
    def find_affected_projects(self, change: Change, *, submitted: bool = False) -> AffectedProjects:
        """Projects and branches touched by ``change``.

        ``submitted=False`` inspects the shelved files of the change;
        ``submitted=True`` inspects its submitted files.
        """
        ...


@runtime_checkable
class ContentComparer(Protocol):
    def has_content_changed(self, review: Review, change_id: str) -> bool:
        """Whether ``change_id`` differs from the review's head change."""
        ...


@runtime_checkable
class TestRunRepository(Protocol):
    def fetch_test_runs(self, test_run_ids: Iterable[str]) -> List[TestRun]:
        ...


@runtime_checkable
class ChangeLock(Protocol):
    def acquire(self, change_id: str) -> ContextManager[None]:
        """Hold an advisory exclusive lock on ``change_id`` for the ``with`` block."""
        ...


__all__ = [
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
